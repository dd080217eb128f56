"""Per-(organization, entity type, status) counters for dashboards."""

import sqlalchemy as sa
from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from statusflow.infrastructure.persistence.database import Base
from statusflow.infrastructure.persistence.models.mixins import OrgScopedModel


class EntityStatusCount(OrgScopedModel, Base):
    """Table: entity_status_count."""

    __tablename__ = "entity_status_count"

    entity_type: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False)
    count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=sa.text("0")
    )

    __table_args__ = (
        UniqueConstraint(
            "org_id", "entity_type", "status", name="uq_entity_status_count_key"
        ),
    )
