"""WorkflowAutomation and WorkflowExecution ORM models."""

from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlalchemy import JSON, Boolean, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from statusflow.infrastructure.persistence.database import Base
from statusflow.infrastructure.persistence.models.mixins import OrgScopedModel, status_check
from statusflow.shared.enums import ExecutionStatus
from statusflow.shared.utils.datetime import utc_now


class WorkflowAutomation(OrgScopedModel, Base):
    """Automation definition. Table: workflow_automation.

    The trigger is stored as columns so the matcher can use an index; nodes
    are the stored node documents ({id, type, condition?, action?,
    nextNodeId?, elseNodeId?}) in definition order.
    """

    __tablename__ = "workflow_automation"

    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=sa.false()
    )
    trigger_object_type: Mapped[str] = mapped_column(String, nullable=False)
    trigger_from_status: Mapped[str | None] = mapped_column(String, nullable=True)
    trigger_to_status: Mapped[str] = mapped_column(String, nullable=False)
    nodes: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False)
    created_by: Mapped[str | None] = mapped_column(String, nullable=True)
    last_triggered_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    trigger_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=sa.text("0")
    )

    __table_args__ = (
        Index(
            "ix_workflow_automation_trigger",
            "org_id",
            "trigger_object_type",
            "trigger_to_status",
            "is_active",
        ),
    )


class WorkflowExecution(OrgScopedModel, Base):
    """Per-run audit trail. Table: workflow_execution.

    automation_id is not a foreign key: an execution can outlive (or point
    at) an automation that no longer exists, which the executor records as
    a failure.
    """

    __tablename__ = "workflow_execution"

    automation_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    triggered_by: Mapped[str] = mapped_column(String, nullable=False)
    triggered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=ExecutionStatus.RUNNING.value, index=True
    )
    nodes_executed: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list
    )
    execution_chain: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    recursion_depth: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=sa.text("0")
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    error: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_workflow_execution_org_triggered", "org_id", "triggered_at"),
        status_check("workflow_execution", ExecutionStatus.values()),
    )
