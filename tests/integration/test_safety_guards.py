"""Integration tests for the cascade guards: recursion depth, automation loops, rate limit."""

from statusflow.infrastructure.persistence.models import Client, Invoice, Project, Quote, Task
from statusflow.infrastructure.services.automation_executor import AutomationExecutor
from tests.factories import ORG_ID, OTHER_ORG_ID, action_node, condition_node


class TestRecursionLimit:
    async def test_cascade_stops_at_max_depth(
        self, runner, queue, seed, create_automation, set_status, load, executions, events
    ) -> None:
        await seed(
            Client(id="client-1", org_id=ORG_ID, name="Acme Corp"),
            Project(id="project-1", org_id=ORG_ID, client_id="client-1", title="Website"),
            Task(id="task-1", org_id=ORG_ID, project_id="project-1", title="Kickoff"),
        )
        a1 = await create_automation(
            "Task done starts project", "task", "completed", [action_node("n", "project", "in-progress")]
        )
        a2 = await create_automation(
            "Project started completes it", "project", "in-progress", [action_node("n", "self", "completed")]
        )
        a3 = await create_automation(
            "Project done activates client", "project", "completed", [action_node("n", "client", "active")]
        )
        a4 = await create_automation(
            "Active client goes inactive", "client", "active", [action_node("n", "self", "inactive")]
        )
        a5 = await create_automation(
            "Inactive client is archived", "client", "inactive", [action_node("n", "self", "archived")]
        )
        a6 = await create_automation(
            "Archived client back to lead", "client", "archived", [action_node("n", "self", "lead")]
        )

        await set_status("task", "task-1", "completed")
        await queue.run_until_idle()

        runs = await executions()
        assert [e.automation_id for e in runs] == [a1, a2, a3, a4, a5]
        assert {e.status for e in runs} == {"completed"}
        assert [e.recursion_depth for e in runs] == [0, 1, 2, 3, 4]
        assert runs[-1].execution_chain == [a1, a2, a3, a4, a5]
        assert a6 not in {e.automation_id for e in runs}

        client = await load(Client, "client-1")
        assert client.status == "archived"
        assert client.archived_at is not None
        assert (await load(Project, "project-1")).status == "completed"

        # The depth-5 event is processed normally; it just starts nothing.
        last_event = (await events("entity.status_changed"))[-1]
        assert last_event.payload["newValue"] == "archived"
        assert last_event.payload["metadata"]["recursionDepth"] == 5
        assert last_event.status == "completed"

    async def test_handler_refuses_depth_at_limit(self, runner, seed, create_automation) -> None:
        await seed(Invoice(id="invoice-1", org_id=ORG_ID, status="paid"))
        await create_automation("Any", "invoice", "paid", [condition_node("c1", "total", "exists")])
        async with runner.transaction() as ctx:
            outcome = await AutomationExecutor(ctx).handle_status_change_event(
                ORG_ID, "invoice", "invoice-1", "sent", "paid", recursion_depth=5
            )
        assert outcome.recursion_limited is True
        assert outcome.triggered == 0


class TestLoopDetection:
    async def test_automation_reentered_by_cascade_is_skipped(
        self, runner, queue, seed, create_automation, set_status, load, executions
    ) -> None:
        await seed(Invoice(id="invoice-1", org_id=ORG_ID, status="draft"))
        a = await create_automation(
            "Sent invoices go overdue", "invoice", "sent", [action_node("n", "self", "overdue")]
        )
        b = await create_automation(
            "Overdue invoices are resent",
            "invoice",
            "overdue",
            [action_node("n", "self", "sent")],
            from_status="sent",
        )

        await set_status("invoice", "invoice-1", "sent")
        await queue.run_until_idle()

        runs = await executions()
        assert [(e.automation_id, e.status) for e in runs] == [
            (a, "completed"),
            (b, "completed"),
            (a, "skipped"),
        ]
        skipped = runs[-1]
        assert skipped.error == "Skipped: Automation loop detected"
        assert skipped.execution_chain == [a, b]
        assert skipped.nodes_executed == []
        assert skipped.completed_at is not None
        assert (await load(Invoice, "invoice-1")).status == "sent"


class TestRateLimit:
    async def test_org_budget_is_enforced_per_window(
        self, runner, make_runner, queue, seed, create_automation, set_status, executions
    ) -> None:
        make_runner(automation_max_executions_per_window=2)
        await seed(
            *[Quote(id=f"quote-{n}", org_id=ORG_ID, title=f"Q{n}", status="sent") for n in range(4)],
            Quote(id="quote-other", org_id=OTHER_ORG_ID, title="Other", status="sent"),
        )
        nodes = [condition_node("c1", "title", "exists")]
        await create_automation("Acme approvals", "quote", "approved", nodes)
        await create_automation("Globex approvals", "quote", "approved", nodes, org_id=OTHER_ORG_ID)

        for n in range(3):
            await set_status("quote", f"quote-{n}", "approved")
        await set_status("quote", "quote-other", "approved", org_id=OTHER_ORG_ID)
        await queue.run_until_idle()

        assert [e.triggered_by for e in await executions()] == ["quote-0", "quote-1"]
        # Another organization's budget is untouched.
        assert [e.triggered_by for e in await executions(OTHER_ORG_ID)] == ["quote-other"]

        # Once the window has passed, the org can run again.
        queue.advance(60_001)
        await set_status("quote", "quote-3", "approved")
        await queue.run_until_idle()
        assert [e.triggered_by for e in await executions()][-1] == "quote-3"

    async def test_skipped_executions_count_toward_budget(
        self, runner, make_runner, queue, seed, create_automation
    ) -> None:
        limited = make_runner(automation_max_executions_per_window=1)
        await seed(Invoice(id="invoice-1", org_id=ORG_ID, status="sent"))
        automation_id = await create_automation(
            "Paid", "invoice", "paid", [condition_node("c1", "total", "exists")]
        )
        async with limited.transaction() as ctx:
            first = await AutomationExecutor(ctx).handle_status_change_event(
                ORG_ID, "invoice", "invoice-1", "sent", "paid", execution_chain=[automation_id]
            )
        async with limited.transaction() as ctx:
            second = await AutomationExecutor(ctx).handle_status_change_event(
                ORG_ID, "invoice", "invoice-1", "sent", "paid"
            )
        assert first.skipped == 1
        assert second.rate_limited is True
