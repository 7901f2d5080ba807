"""SQLAlchemy model for registered users."""

from uuid import UUID, uuid4

from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from stockplan_auth.persistence.sqlalchemy.base import AuthBase, TimestampMixin


class UserModel(AuthBase, TimestampMixin):
    """
    SQLAlchemy model for a registered identity.

    Emails are stored normalized (trimmed, lowercase), so the unique
    constraint doubles as case-insensitive uniqueness.

    Table: users
    """

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    # bcrypt format, ~60 chars
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<UserModel(id={self.id}, email={self.email})>"
