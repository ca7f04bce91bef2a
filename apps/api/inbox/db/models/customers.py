"""Platform customer model (customer value metadata keyed by email)."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import BigInteger, Index, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from inbox.db.base import Base
from inbox.db.models.conversations import BigIntegerId


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class PlatformCustomer(Base):
    """
    Customer record synced from the mailbox metadata source.

    value is the customer's worth in cents. NULL means unknown and sorts
    after every known value.
    """

    __tablename__ = "platform_customers"
    __table_args__ = (
        Index(
            "idx_platform_customers_value",
            "value",
            postgresql_using="btree",
            postgresql_ops={"value": "DESC NULLS LAST"},
        ),
    )

    id: Mapped[int] = mapped_column(BigIntegerId, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    value: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        default=_now_utc, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=_now_utc, server_default=func.now(), onupdate=_now_utc, nullable=False
    )
