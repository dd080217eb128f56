"""Organization ORM model. Every other row is scoped to one organization."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from statusflow.infrastructure.persistence.database import Base
from statusflow.infrastructure.persistence.models.mixins import CuidMixin, TimestampMixin


class Organization(CuidMixin, TimestampMixin, Base):
    """Table: organization."""

    __tablename__ = "organization"

    name: Mapped[str] = mapped_column(String, nullable=False)
