"""Client ORM model."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from statusflow.domain.enums import ClientStatus
from statusflow.infrastructure.persistence.database import Base
from statusflow.infrastructure.persistence.models.mixins import OrgScopedModel, status_check


class Client(OrgScopedModel, Base):
    """Table: client."""

    __tablename__ = "client"

    name: Mapped[str] = mapped_column(String, nullable=False)
    company_name: Mapped[str | None] = mapped_column(String, nullable=True)
    email: Mapped[str | None] = mapped_column(String, nullable=True)
    tags: Mapped[list[Any] | None] = mapped_column(JSON, nullable=True)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=ClientStatus.LEAD.value, index=True
    )
    archived_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (status_check("client", ClientStatus.values()),)
