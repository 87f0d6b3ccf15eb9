"""Stats for all habits of one category."""

from typing import Optional

from ...domain.events import StatusChange
from ...models.stats import StatsScope
from .daily_scope_updater import DailyScopeUpdater


class CategoryStatsUpdater(DailyScopeUpdater):
    scope = StatsScope.CATEGORY

    def scope_id_for(self, change: StatusChange) -> str:
        return change.category_id or ""

    def _category_filter(self, scope_id: str) -> Optional[str]:
        return scope_id or ""
