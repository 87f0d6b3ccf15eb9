"""
Typed configuration domain objects.

Replaces raw dict/env access with Pydantic-validated, immutable config classes:
- StatsEngineConfig   (stats updaters, orchestrator, dashboard)
"""

import logging
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, field_validator

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "America/Sao_Paulo"


class StatsEngineConfig(BaseModel):
    """Knobs of the streak & stats engine."""

    model_config = ConfigDict(frozen=True)

    timezone: str = DEFAULT_TIMEZONE
    write_max_attempts: int = 3
    write_base_delay: float = 0.05
    include_selected_date_habits: bool = True

    @field_validator("timezone")
    @classmethod
    def timezone_known(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone '{v}'")
        return v

    @field_validator("write_max_attempts")
    @classmethod
    def attempts_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("write_max_attempts must be >= 1")
        return v

    @field_validator("write_base_delay")
    @classmethod
    def delay_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("write_base_delay must be >= 0")
        return v
