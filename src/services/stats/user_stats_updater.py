"""Stats across every habit of a user account."""

from typing import Optional

from ...domain.events import StatusChange
from ...models.stats import USER_SCOPE_ID, StatsScope
from .daily_scope_updater import DailyScopeUpdater


class UserStatsUpdater(DailyScopeUpdater):
    scope = StatsScope.USER

    def scope_id_for(self, change: StatusChange) -> str:
        return USER_SCOPE_ID

    def _category_filter(self, scope_id: str) -> Optional[str]:
        return None
