"""Integration tests for AutomationService (organization-scoped CRUD)."""

import pytest

from statusflow.application.dtos.automation import AutomationCreate, AutomationUpdate
from statusflow.application.use_cases.automation_service import AutomationService
from statusflow.domain.entities.automation import AutomationTrigger
from statusflow.domain.exceptions import (
    AuthorizationException,
    ResourceNotFoundException,
    ValidationException,
)
from statusflow.infrastructure.persistence.models import WorkflowExecution
from tests.factories import ORG_ID, OTHER_ORG_ID, action_node, condition_node


def _create_data(**overrides) -> AutomationCreate:
    data = {
        "name": "  Start project  ",
        "trigger": AutomationTrigger(object_type="quote", to_status="approved", from_status=" "),
        "nodes": [action_node("a1", "project", "in-progress")],
        "description": "  ",
    }
    data.update(overrides)
    return AutomationCreate(**data)


class TestCreate:
    async def test_create_trims_and_defaults_inactive(self, runner) -> None:
        async with runner.transaction() as ctx:
            automation = await AutomationService(ctx).create(ORG_ID, "user-1", _create_data())
        assert automation.name == "Start project"
        assert automation.description is None
        assert automation.trigger_from_status is None
        assert automation.is_active is False
        assert automation.trigger_count == 0
        assert automation.created_by == "user-1"
        assert automation.nodes == [action_node("a1", "project", "in-progress")]

    async def test_create_requires_name(self, runner) -> None:
        async with runner.transaction() as ctx:
            with pytest.raises(ValidationException, match="name is required"):
                await AutomationService(ctx).create(ORG_ID, None, _create_data(name="   "))

    async def test_create_validates_nodes(self, runner) -> None:
        async with runner.transaction() as ctx:
            with pytest.raises(ValidationException):
                await AutomationService(ctx).create(ORG_ID, None, _create_data(nodes=[]))


class TestManage:
    async def _create(self, runner, org_id=ORG_ID, name="Start project") -> str:
        async with runner.transaction() as ctx:
            automation = await AutomationService(ctx).create(
                org_id, "user-1", _create_data(name=name)
            )
        return automation.id

    async def test_get_enforces_organization(self, runner) -> None:
        automation_id = await self._create(runner)
        async with runner.transaction() as ctx:
            service = AutomationService(ctx)
            assert (await service.get(ORG_ID, automation_id)).id == automation_id
            with pytest.raises(AuthorizationException):
                await service.get(OTHER_ORG_ID, automation_id)
            with pytest.raises(ResourceNotFoundException):
                await service.get(ORG_ID, "missing")

    async def test_list_sorted_by_name_and_active_filter(self, runner) -> None:
        await self._create(runner, name="Zeta")
        alpha = await self._create(runner, name="Alpha")
        await self._create(runner, org_id=OTHER_ORG_ID, name="Other")
        async with runner.transaction() as ctx:
            service = AutomationService(ctx)
            await service.toggle_active(ORG_ID, alpha)
            names = [a.name for a in await service.list_automations(ORG_ID)]
            active = [a.name for a in await service.list_automations(ORG_ID, active_only=True)]
        assert names == ["Alpha", "Zeta"]
        assert active == ["Alpha"]

    async def test_update_partial(self, runner) -> None:
        automation_id = await self._create(runner)
        async with runner.transaction() as ctx:
            updated = await AutomationService(ctx).update(
                ORG_ID,
                automation_id,
                AutomationUpdate(
                    trigger=AutomationTrigger(object_type="task", to_status="completed"),
                    nodes=[condition_node("c1", "title", "exists")],
                ),
            )
        assert updated.name == "Start project"
        assert updated.trigger_object_type == "task"
        assert updated.trigger_to_status == "completed"
        assert updated.nodes[0]["id"] == "c1"

    async def test_update_rejects_empty_patch(self, runner) -> None:
        automation_id = await self._create(runner)
        async with runner.transaction() as ctx:
            with pytest.raises(ValidationException, match="No valid updates provided"):
                await AutomationService(ctx).update(ORG_ID, automation_id, AutomationUpdate())

    async def test_update_rejects_bad_trigger(self, runner) -> None:
        automation_id = await self._create(runner)
        async with runner.transaction() as ctx:
            with pytest.raises(ValidationException):
                await AutomationService(ctx).update(
                    ORG_ID,
                    automation_id,
                    AutomationUpdate(trigger=AutomationTrigger(object_type="lead", to_status="x")),
                )

    async def test_toggle_flips_active(self, runner) -> None:
        automation_id = await self._create(runner)
        async with runner.transaction() as ctx:
            service = AutomationService(ctx)
            assert (await service.toggle_active(ORG_ID, automation_id)).is_active is True
            assert (await service.toggle_active(ORG_ID, automation_id)).is_active is False

    async def test_delete_removes_execution_history(self, runner, seed, executions) -> None:
        automation_id = await self._create(runner)
        await seed(
            WorkflowExecution(
                org_id=ORG_ID,
                automation_id=automation_id,
                triggered_by="quote-1",
                status="completed",
                nodes_executed=[],
                execution_chain=[automation_id],
            )
        )
        async with runner.transaction() as ctx:
            await AutomationService(ctx).delete(ORG_ID, automation_id)
        assert await executions() == []
        async with runner.transaction() as ctx:
            with pytest.raises(ResourceNotFoundException):
                await AutomationService(ctx).get(ORG_ID, automation_id)

    async def test_get_executions_newest_first(self, runner, seed, queue) -> None:
        automation_id = await self._create(runner)
        start = queue.clock()
        await seed(
            *[
                WorkflowExecution(
                    org_id=ORG_ID,
                    automation_id=automation_id,
                    triggered_by=f"quote-{n}",
                    triggered_at=start.replace(microsecond=0).replace(second=n),
                    status="completed",
                    nodes_executed=[],
                    execution_chain=[automation_id],
                )
                for n in range(3)
            ]
        )
        async with runner.transaction() as ctx:
            history = await AutomationService(ctx).get_executions(ORG_ID, automation_id, limit=2)
        assert [e.triggered_by for e in history] == ["quote-2", "quote-1"]
