"""Staff user model."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Integer, String, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column

from inbox.db.base import Base


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    A staff member who can be assigned conversations.

    token_version is bumped to revoke every outstanding session.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    display_name: Mapped[str] = mapped_column(Text, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, server_default=text("TRUE"), default=True)
    token_version: Mapped[int] = mapped_column(Integer, server_default=text("1"), default=1)
    created_at: Mapped[datetime] = mapped_column(
        default=_now_utc, server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email}>"
