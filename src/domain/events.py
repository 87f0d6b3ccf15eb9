"""Change records passed from the orchestrator to the scope updaters."""

from dataclasses import dataclass
from datetime import date

from ..models.completion import CompletionStatus


@dataclass(frozen=True)
class StatusChange:
    """A habit's completion status changed on one calendar day."""

    user_id: str
    habit_id: str
    category_id: str
    date: date
    new_status: CompletionStatus
    previous_status: CompletionStatus

    @property
    def completed(self) -> bool:
        return self.new_status == CompletionStatus.DONE

    @property
    def retracted(self) -> bool:
        """True when a DONE day was moved to another status."""
        return (
            self.previous_status == CompletionStatus.DONE
            and self.new_status != CompletionStatus.DONE
        )
