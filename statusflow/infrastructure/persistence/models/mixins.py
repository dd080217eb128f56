"""SQLAlchemy mixins for common model patterns.

Provides: CuidMixin, OrganizationMixin, TimestampMixin, the combined
OrgScopedModel, and status_check() for status CHECK constraints.
"""

from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, declared_attr, mapped_column
from sqlalchemy.sql import func

from statusflow.shared.utils.datetime import utc_now
from statusflow.shared.utils.generators import generate_cuid


class CuidMixin:
    """Mixin for models using CUID as primary key."""

    @declared_attr
    def id(cls) -> Mapped[str]:
        return mapped_column(String, primary_key=True, default=generate_cuid)


class OrganizationMixin:
    """Mixin for organization-scoped models. org_id FK with CASCADE delete."""

    @declared_attr
    def org_id(cls) -> Mapped[str]:
        return mapped_column(
            String,
            ForeignKey("organization.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )


class TimestampMixin:
    """created_at / updated_at, timezone-aware.

    Values are set client-side (microsecond precision) so that rows created
    in one transaction still order by creation time; the server default only
    covers raw inserts.
    """

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True),
            default=utc_now,
            server_default=func.now(),
            nullable=False,
            index=True,
        )

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True),
            default=utc_now,
            server_default=func.now(),
            onupdate=utc_now,
            nullable=False,
        )


class OrgScopedModel(CuidMixin, OrganizationMixin, TimestampMixin):
    """Combined mixin: CUID + org_id + created_at/updated_at."""

    __abstract__ = True


def status_check(table: str, values: Iterable[str], column: str = "status") -> CheckConstraint:
    """CHECK constraint restricting column to the given values."""
    allowed = ", ".join("'{}'".format(v.replace("'", "''")) for v in values)
    return CheckConstraint(f"{column} IN ({allowed})", name=f"{table}_{column}_check")
