"""Automation executor: trigger evaluation and the node graph interpreter.

handle_status_change_event decides which automations a status change
starts (recursion, rate and loop guards) and schedules one execute job per
started automation. execute_automation walks the automation's nodes for
one run, records every node outcome on the WorkflowExecution row, and
emits a cascading entity.status_changed event for each status it actually
changes. Nothing here raises back to the caller: every run ends in a
terminal execution status.
"""

from collections.abc import Mapping, Sequence
from datetime import timedelta
from typing import Any

from statusflow.application.dtos.engine import (
    CleanupResult,
    ExecutionResult,
    ExecutionStats,
    ExecutionWindowStats,
    NodeOutcome,
    TriggerOutcome,
)
from statusflow.application.dtos.status_change import CascadeMetadata
from statusflow.domain.entities.automation import ActionSpec, AutomationEntity, AutomationNode
from statusflow.domain.enums import ActionType, is_valid_status
from statusflow.domain.exceptions import (
    InvalidStatusValueException,
    LoopDetectedException,
    MissingAutomationException,
    MissingTriggerObjectException,
    NodeCycleDetectedException,
    RateLimitExceededException,
    RecursionLimitExceededException,
    TargetNotFoundException,
)
from statusflow.infrastructure.persistence.models.automation import (
    WorkflowAutomation,
    WorkflowExecution,
)
from statusflow.infrastructure.persistence.repositories.automation_repo import (
    AutomationRepository,
)
from statusflow.infrastructure.persistence.repositories.entity_repo import (
    EntityRepository,
    snapshot,
)
from statusflow.infrastructure.persistence.repositories.execution_repo import (
    ExecutionRepository,
)
from statusflow.infrastructure.persistence.repositories.status_count_repo import (
    StatusCountRepository,
)
from statusflow.infrastructure.scheduling.jobs import JobContext, JobName
from statusflow.infrastructure.services.event_bus import EventBus
from statusflow.infrastructure.services.safety_governor import SafetyGovernor
from statusflow.infrastructure.services.status_writer import apply_status
from statusflow.infrastructure.services.target_resolver import TargetResolver
from statusflow.infrastructure.services.trigger_matcher import (
    find_matching_automations,
    to_entity,
)
from statusflow.shared.enums import EventType, ExecutionStatus, NodeResult
from statusflow.shared.telemetry.logging import get_logger
from statusflow.shared.telemetry.tracing import add_span_attributes
from statusflow.shared.utils.datetime import to_epoch_ms

logger = get_logger(__name__)

_SOURCE = "automation_executor"


class AutomationExecutor:
    def __init__(self, ctx: JobContext, bus: EventBus | None = None) -> None:
        self.ctx = ctx
        self.db = ctx.db
        self.settings = ctx.settings
        self.bus = bus or EventBus(ctx)
        self.automations = AutomationRepository(ctx.db)
        self.executions = ExecutionRepository(ctx.db)
        self.entities = EntityRepository(ctx.db)
        self.counters = StatusCountRepository(ctx.db)
        self.governor = SafetyGovernor(self.executions, ctx.settings)
        self.resolver = TargetResolver(self.entities)

    # Trigger evaluation

    async def handle_status_change_event(
        self,
        org_id: str,
        entity_type: str,
        entity_id: str,
        from_status: str | None,
        to_status: str,
        correlation_id: str | None = None,
        event_id: str | None = None,
        execution_chain: Sequence[str] | None = None,
        recursion_depth: int = 0,
    ) -> TriggerOutcome:
        """Start every matching automation that passes the guards."""
        chain = list(execution_chain or [])
        add_span_attributes(recursion_depth=recursion_depth, chain_length=len(chain))
        try:
            self.governor.check_recursion(recursion_depth)
        except RecursionLimitExceededException as e:
            logger.warning(
                "%s for %s %s (org %s, chain %s)",
                e.message,
                entity_type,
                entity_id,
                org_id,
                chain,
            )
            return TriggerOutcome(recursion_limited=True)

        matches = await find_matching_automations(
            self.automations, org_id, entity_type, from_status, to_status
        )
        if not matches:
            return TriggerOutcome()

        now = self.ctx.now()
        try:
            await self.governor.check_rate(org_id, now)
        except RateLimitExceededException as e:
            logger.warning("%s (org %s); %d matches dropped", e.message, org_id, len(matches))
            return TriggerOutcome(rate_limited=True)

        triggered = skipped = 0
        for automation in matches:
            try:
                self.governor.check_loop(automation.id, chain)
            except LoopDetectedException as e:
                await self.executions.create(
                    WorkflowExecution(
                        org_id=org_id,
                        automation_id=automation.id,
                        triggered_by=entity_id,
                        triggered_at=now,
                        status=ExecutionStatus.SKIPPED.value,
                        nodes_executed=[],
                        execution_chain=chain,
                        recursion_depth=recursion_depth,
                        completed_at=now,
                        error=e.message,
                    )
                )
                logger.warning(
                    "Automation loop detected: %s already in chain %s", automation.id, chain
                )
                skipped += 1
                continue

            new_chain = [*chain, automation.id]
            execution = await self.executions.create(
                WorkflowExecution(
                    org_id=org_id,
                    automation_id=automation.id,
                    triggered_by=entity_id,
                    triggered_at=now,
                    status=ExecutionStatus.RUNNING.value,
                    nodes_executed=[],
                    execution_chain=new_chain,
                    recursion_depth=recursion_depth,
                )
            )
            await self.bus.record_event(
                org_id,
                EventType.AUTOMATION_TRIGGERED.value,
                f"{_SOURCE}.handle_status_change_event",
                {
                    "automationId": automation.id,
                    "automationName": automation.name,
                    "executionId": execution.id,
                    "entityType": entity_type,
                    "entityId": entity_id,
                    "fromStatus": from_status,
                    "toStatus": to_status,
                },
                correlation_id=correlation_id,
                causation_id=event_id,
            )
            self.ctx.scheduler.run_after(
                0,
                JobName.EXECUTE_AUTOMATION,
                execution_id=execution.id,
                automation_id=automation.id,
                object_type=entity_type,
                object_id=entity_id,
                execution_chain=new_chain,
                recursion_depth=recursion_depth + 1,
                correlation_id=correlation_id,
                event_id=event_id,
            )
            triggered += 1

        logger.info(
            "%s %s -> %s matched %d automations (%d scheduled, %d loop-skipped, depth %d)",
            entity_type,
            entity_id,
            to_status,
            len(matches),
            triggered,
            skipped,
            recursion_depth,
        )
        return TriggerOutcome(triggered=triggered, skipped=skipped)

    # Graph interpreter

    async def execute_automation(
        self,
        execution_id: str,
        automation_id: str,
        object_type: str,
        object_id: str,
        execution_chain: Sequence[str],
        recursion_depth: int,
        correlation_id: str | None = None,
        event_id: str | None = None,
    ) -> ExecutionResult | None:
        """Run one automation against its triggering object."""
        execution = await self.executions.get_by_id(execution_id)
        if execution is None:
            logger.warning("Execution %s no longer exists; nothing to run", execution_id)
            return None
        if execution.status != ExecutionStatus.RUNNING.value:
            logger.warning(
                "Execution %s already %s; not running again", execution_id, execution.status
            )
            return None

        row = await self.automations.get_by_id(automation_id)
        if row is None:
            error = MissingAutomationException(automation_id).message
            return await self._finish(
                execution, None, ExecutionStatus.FAILED, [], error, correlation_id, event_id
            )
        trigger_row = await self.entities.get(object_type, object_id)
        if trigger_row is None:
            error = MissingTriggerObjectException(object_type, object_id).message
            return await self._finish(
                execution, row, ExecutionStatus.FAILED, [], error, correlation_id, event_id
            )

        automation = to_entity(row)
        if not automation.nodes:
            # Zero nodes: completed, not counted as a trigger.
            return await self._finish(
                execution, row, ExecutionStatus.COMPLETED, [], None, correlation_id, event_id
            )
        # Conditions read this snapshot, not the live row.
        trigger_object = snapshot(trigger_row)
        chain = list(execution_chain)
        outcomes: list[NodeOutcome] = []
        logger.info(
            "Running automation %s (%s) for %s %s, depth %d",
            automation.id,
            automation.name,
            object_type,
            object_id,
            recursion_depth,
        )
        try:
            status, error = await self._walk(
                automation,
                object_type,
                object_id,
                trigger_object,
                chain,
                recursion_depth,
                correlation_id,
                event_id,
                outcomes,
            )
        except Exception as e:
            logger.exception("Automation %s execution %s crashed", automation_id, execution_id)
            await self.db.refresh(execution)
            await self.db.refresh(row)
            status, error = ExecutionStatus.FAILED, str(e) or e.__class__.__name__

        if status == ExecutionStatus.COMPLETED:
            row.last_triggered_at = self.ctx.now()
            row.trigger_count = (row.trigger_count or 0) + 1
        return await self._finish(
            execution, row, status, outcomes, error, correlation_id, event_id
        )

    async def abandon_execution(
        self,
        execution_id: str,
        error: str,
        correlation_id: str | None = None,
        event_id: str | None = None,
    ) -> ExecutionResult | None:
        """Fail a run whose execute job could not commit. Finished runs are left alone."""
        execution = await self.executions.get_by_id(execution_id)
        if execution is None or execution.status != ExecutionStatus.RUNNING.value:
            return None
        return await self._finish(
            execution, None, ExecutionStatus.FAILED, [], error, correlation_id, event_id
        )

    async def _walk(
        self,
        automation: AutomationEntity,
        object_type: str,
        object_id: str,
        trigger_object: Mapping[str, Any],
        chain: list[str],
        recursion_depth: int,
        correlation_id: str | None,
        event_id: str | None,
        outcomes: list[NodeOutcome],
    ) -> tuple[ExecutionStatus, str | None]:
        visited: set[str] = set()
        node_id = automation.entry_node_id
        while node_id is not None:
            node = automation.get_node(node_id)
            if node is None:
                logger.debug("Node %s not found in automation %s; walk ends", node_id, automation.id)
                break
            if node.id in visited:
                return ExecutionStatus.FAILED, NodeCycleDetectedException(node.id).message
            visited.add(node.id)

            mark = self.ctx.scheduler.mark()
            try:
                async with self.db.begin_nested():
                    outcome, next_id = await self._run_node(
                        automation,
                        node,
                        object_type,
                        object_id,
                        trigger_object,
                        chain,
                        recursion_depth,
                        correlation_id,
                        event_id,
                    )
            except Exception:
                self.ctx.scheduler.discard_since(mark)
                raise
            outcomes.append(outcome)
            logger.debug("Node %s: %s", node.id, outcome.result)
            if outcome.result == NodeResult.FAILED:
                return ExecutionStatus.FAILED, outcome.error
            node_id = next_id
        return ExecutionStatus.COMPLETED, None

    async def _run_node(
        self,
        automation: AutomationEntity,
        node: AutomationNode,
        object_type: str,
        object_id: str,
        trigger_object: Mapping[str, Any],
        chain: list[str],
        recursion_depth: int,
        correlation_id: str | None,
        event_id: str | None,
    ) -> tuple[NodeOutcome, str | None]:
        if node.is_condition:
            met = node.condition is None or node.condition.evaluate(trigger_object)
            return (
                NodeOutcome(node.id, NodeResult.SUCCESS.value),
                node.next_node_id if met else node.else_node_id,
            )
        if node.is_action:
            if node.action is None:
                return NodeOutcome(node.id, NodeResult.FAILED.value, "Action node has no action"), None
            outcome = await self._execute_action(
                automation,
                node,
                node.action,
                object_type,
                object_id,
                trigger_object,
                chain,
                recursion_depth,
                correlation_id,
                event_id,
            )
            return outcome, node.next_node_id
        return NodeOutcome(node.id, NodeResult.FAILED.value, f"Unknown node type: {node.type}"), None

    async def _execute_action(
        self,
        automation: AutomationEntity,
        node: AutomationNode,
        action: ActionSpec,
        object_type: str,
        object_id: str,
        trigger_object: Mapping[str, Any],
        chain: list[str],
        recursion_depth: int,
        correlation_id: str | None,
        event_id: str | None,
    ) -> NodeOutcome:
        if action.action_type != ActionType.UPDATE_STATUS:
            return NodeOutcome(
                node.id, NodeResult.FAILED.value, f"Unknown action type: {action.action_type}"
            )

        try:
            target = await self.resolver.resolve(
                action.target_type, object_type, object_id, trigger_object, automation.org_id
            )
        except TargetNotFoundException as e:
            logger.warning("Automation %s node %s skipped: %s", automation.id, node.id, e.message)
            return NodeOutcome(node.id, NodeResult.SKIPPED.value, e.message)

        if not is_valid_status(target.entity_type, action.new_status):
            error = InvalidStatusValueException(target.entity_type.value, action.new_status)
            return NodeOutcome(node.id, NodeResult.FAILED.value, error.message)

        entity = await self.entities.get(target.entity_type, target.entity_id)
        if entity is None:
            return NodeOutcome(node.id, NodeResult.FAILED.value, "Target object not found")

        patch = await apply_status(
            entity, target.entity_type, action.new_status, self.ctx.now(), self.counters
        )
        if patch.old_status and patch.changed:
            await self.bus.emit_status_change_event(
                automation.org_id,
                target.entity_type.value,
                target.entity_id,
                patch.old_status,
                patch.new_status,
                f"{_SOURCE}.execute_action",
                correlation_id=correlation_id
                or f"cascade-{'-'.join(chain)}-{to_epoch_ms(self.ctx.now())}",
                metadata=CascadeMetadata(
                    execution_chain=chain,
                    recursion_depth=recursion_depth,
                    is_cascade=True,
                ),
                causation_id=event_id,
            )
        return NodeOutcome(node.id, NodeResult.SUCCESS.value)

    async def _finish(
        self,
        execution: WorkflowExecution,
        row: WorkflowAutomation | None,
        status: ExecutionStatus,
        outcomes: list[NodeOutcome],
        error: str | None,
        correlation_id: str | None,
        event_id: str | None,
    ) -> ExecutionResult:
        execution.status = status.value
        execution.nodes_executed = [o.to_dict() for o in outcomes]
        execution.completed_at = self.ctx.now()
        execution.error = error
        await self.db.flush()

        event_type = (
            EventType.AUTOMATION_COMPLETED
            if status == ExecutionStatus.COMPLETED
            else EventType.AUTOMATION_FAILED
        )
        payload: dict[str, Any] = {
            "automationId": execution.automation_id,
            "executionId": execution.id,
            "status": status.value,
            "nodesExecuted": len(outcomes),
        }
        if error is not None:
            payload["error"] = error
        await self.bus.record_event(
            execution.org_id,
            event_type.value,
            f"{_SOURCE}.execute_automation",
            payload,
            correlation_id=correlation_id,
            causation_id=event_id,
        )
        if status == ExecutionStatus.COMPLETED:
            logger.info(
                "Automation %s execution %s completed (%d nodes)",
                execution.automation_id,
                execution.id,
                len(outcomes),
            )
        else:
            logger.warning(
                "Automation %s execution %s failed: %s",
                execution.automation_id,
                execution.id,
                error,
            )
        return ExecutionResult(
            execution_id=execution.id,
            status=status.value,
            nodes_executed=list(outcomes),
            error=error,
        )

    # Operations

    async def get_execution_stats(self, org_id: str) -> ExecutionStats:
        now = self.ctx.now()
        day = await self.executions.count_by_status_since(org_id, now - timedelta(hours=24))
        week = await self.executions.count_by_status_since(org_id, now - timedelta(days=7))
        return ExecutionStats(last_24h=_window(day), last_week=_window(week))

    async def cleanup_old_executions(
        self, older_than_days: int | None = None, batch_size: int | None = None
    ) -> CleanupResult:
        """Delete one batch of finished executions older than the retention period."""
        days = (
            older_than_days
            if older_than_days is not None
            else self.settings.execution_retention_days
        )
        limit = batch_size if batch_size is not None else self.settings.cleanup_batch_size
        cutoff = self.ctx.now() - timedelta(days=days)
        deleted = await self.executions.delete_finished_before(cutoff, limit)
        if deleted:
            logger.info("Deleted %d executions older than %d days", deleted, days)
        return CleanupResult(deleted=deleted, has_more=deleted == limit)


def _window(counts: Mapping[str, int]) -> ExecutionWindowStats:
    return ExecutionWindowStats(
        total=sum(counts.values()),
        completed=counts.get(ExecutionStatus.COMPLETED.value, 0),
        failed=counts.get(ExecutionStatus.FAILED.value, 0),
        skipped=counts.get(ExecutionStatus.SKIPPED.value, 0),
    )
