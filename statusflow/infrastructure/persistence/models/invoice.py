"""Invoice ORM model."""

from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from statusflow.domain.enums import InvoiceStatus
from statusflow.infrastructure.persistence.database import Base
from statusflow.infrastructure.persistence.models.mixins import OrgScopedModel, status_check


class Invoice(OrgScopedModel, Base):
    """Table: invoice."""

    __tablename__ = "invoice"

    client_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("client.id", ondelete="SET NULL"), nullable=True, index=True
    )
    project_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("project.id", ondelete="SET NULL"), nullable=True, index=True
    )
    quote_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("quote.id", ondelete="SET NULL"), nullable=True, index=True
    )
    invoice_number: Mapped[str | None] = mapped_column(String, nullable=True)
    total: Mapped[float | None] = mapped_column(Float, nullable=True)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=InvoiceStatus.DRAFT.value, index=True
    )
    paid_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (status_check("invoice", InvoiceStatus.values()),)
