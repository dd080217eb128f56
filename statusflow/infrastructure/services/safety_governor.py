"""Guards consulted before an automation is scheduled.

All state is read from the execution log inside the caller's transaction;
nothing is cached between calls.
"""

from collections.abc import Sequence
from datetime import datetime

from statusflow.core.config import Settings
from statusflow.domain.exceptions import (
    LoopDetectedException,
    RateLimitExceededException,
    RecursionLimitExceededException,
)
from statusflow.infrastructure.persistence.repositories.execution_repo import (
    ExecutionRepository,
)
from statusflow.shared.utils.datetime import ms_before


class SafetyGovernor:
    def __init__(self, executions: ExecutionRepository, settings: Settings) -> None:
        self.executions = executions
        self.settings = settings

    def check_recursion(self, recursion_depth: int) -> None:
        max_depth = self.settings.automation_max_recursion_depth
        if recursion_depth >= max_depth:
            raise RecursionLimitExceededException(recursion_depth, max_depth)

    async def check_rate(self, org_id: str, now: datetime) -> None:
        """Count every execution (any status) the org started in the trailing window.

        The organization stays locked until the caller commits, so the
        executions it inserts are counted by the next check.
        """
        await self.executions.lock_organization(org_id)
        since = ms_before(now, self.settings.automation_rate_limit_window_ms)
        count = await self.executions.count_since(org_id, since)
        limit = self.settings.automation_max_executions_per_window
        if count >= limit:
            raise RateLimitExceededException(org_id, count, limit)

    @staticmethod
    def check_loop(automation_id: str, execution_chain: Sequence[str]) -> None:
        if automation_id in execution_chain:
            raise LoopDetectedException(automation_id, list(execution_chain))
