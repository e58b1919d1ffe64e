"""SQLAlchemy models for the notice service."""

from datetime import UTC, datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    TypeDecorator,
)
from sqlalchemy.engine import Dialect
from sqlalchemy.orm import Mapped, mapped_column

from core.database import Base

# Largest value a BIGINT key column can hold
MAX_NOTICE_NO = 2**63 - 1


def utcnow() -> datetime:
    """Return current UTC time (timezone-aware)."""
    return datetime.now(UTC)


class UTCDateTime(TypeDecorator[datetime]):
    """Timezone-aware DateTime that always loads as UTC.

    SQLite stores datetimes without an offset, so values read back naive.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(
        self, value: datetime | None, dialect: Dialect
    ) -> datetime | None:
        if value is not None and value.tzinfo is not None:
            return value.astimezone(UTC)
        return value

    def process_result_value(
        self, value: datetime | None, dialect: Dialect
    ) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class Member(Base):
    """Read-only mirror of a member, kept for author attribution.

    Member records are owned by the member service; this table holds only
    what notices need to display (number and name). Roles are never stored
    here, they arrive per request from the gateway.
    """

    __tablename__ = "members"

    member_no: Mapped[int] = mapped_column(
        BigInteger, primary_key=True, autoincrement=False
    )
    member_name: Mapped[str] = mapped_column(String(50), nullable=False)


class Notice(Base):
    """An announcement. Written by administrators, readable by everyone."""

    __tablename__ = "notices"
    __table_args__ = (
        # Matches the listing sort: pinned first, then most recent
        Index("ix_notices_fixed_created", "is_fixed", "created_at"),
    )

    # INTEGER on SQLite so the key stays a rowid alias and autoincrements
    notice_no: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    member_no: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    notice_title: Mapped[str] = mapped_column(String(255), nullable=False)
    notice_content: Mapped[str] = mapped_column(Text, nullable=False)
    is_fixed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # Stamped by NoticeRepository.save on insert; never touched on update
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    def __repr__(self) -> str:
        return f"<Notice {self.notice_no} fixed={self.is_fixed} {self.notice_title!r}>"
