"""SQLAlchemy declarative base for stockplan_auth models.

Domain tables owned by other parts of the application reference
``users.id``, so they should share ``AuthBase.metadata`` (or include it in
their migration configuration).
"""

from datetime import datetime

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from stockplan.domain.shared.time import utc_now


class AuthBase(DeclarativeBase):
    """Declarative base for stockplan_auth models."""


class CreatedAtMixin:
    """Mixin for a created_at timestamp (utc_now)."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )


class TimestampMixin(CreatedAtMixin):
    """Mixin for created_at and updated_at timestamps (utc_now)."""

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        nullable=False,
    )
