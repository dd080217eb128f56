"""DomainEvent ORM model: the event store."""

from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlalchemy import JSON, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from statusflow.infrastructure.persistence.database import Base
from statusflow.infrastructure.persistence.models.mixins import OrgScopedModel, status_check
from statusflow.shared.enums import DomainEventStatus
from statusflow.shared.utils.datetime import utc_now


class DomainEvent(OrgScopedModel, Base):
    """Table: domain_event. One row per published event plus its processing state."""

    __tablename__ = "domain_event"

    event_type: Mapped[str] = mapped_column(String, nullable=False, index=True)
    event_source: Mapped[str] = mapped_column(String, nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=DomainEventStatus.PENDING.value
    )
    attempt_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=sa.text("0")
    )
    correlation_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    causation_id: Mapped[str | None] = mapped_column(String, nullable=True)
    # Earliest time a pending event may be picked up (retry delay).
    available_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    failed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_domain_event_status_available", "status", "available_at", "created_at"),
        Index("ix_domain_event_org_created", "org_id", "created_at"),
        status_check("domain_event", DomainEventStatus.values()),
    )
