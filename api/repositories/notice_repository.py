"""Notice repository for database operations."""

import math
from typing import NamedTuple

from sqlalchemy import ColumnElement, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models import Notice, utcnow
from repositories.utils import log_slow_query

# Pinned first, then newest. notice_no breaks ties so page boundaries are stable.
_LISTING_ORDER = (
    Notice.is_fixed.desc(),
    Notice.created_at.desc(),
    Notice.notice_no.desc(),
)


class NoticePage(NamedTuple):
    """A slice of notices plus the totals needed to page through them."""

    items: list[Notice]
    total_elements: int
    page: int
    size: int

    @property
    def total_pages(self) -> int:
        if self.size <= 0:
            return 0
        return math.ceil(self.total_elements / self.size)


class NoticeRepository:
    """Repository for Notice database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @log_slow_query("notice_get_by_id")
    async def get_by_id(self, notice_no: int) -> Notice | None:
        """Get a notice by its number."""
        result = await self.db.execute(
            select(Notice).where(Notice.notice_no == notice_no)
        )
        return result.scalar_one_or_none()

    @log_slow_query("notice_exists_by_id")
    async def exists_by_id(self, notice_no: int) -> bool:
        result = await self.db.execute(
            select(Notice.notice_no).where(Notice.notice_no == notice_no)
        )
        return result.scalar_one_or_none() is not None

    async def create(
        self,
        *,
        member_no: int,
        notice_title: str,
        notice_content: str,
        is_fixed: bool = False,
    ) -> Notice:
        """Create and flush a new notice so its generated number is available."""
        notice = Notice(
            member_no=member_no,
            notice_title=notice_title,
            notice_content=notice_content,
            is_fixed=is_fixed,
        )
        return await self.save(notice)

    @log_slow_query("notice_save")
    async def save(self, notice: Notice) -> Notice:
        """Insert a new notice or flush changes to an existing one.

        created_at is stamped here, on insert only. An existing notice keeps
        the timestamp it was created with.
        """
        if notice.created_at is None:
            notice.created_at = utcnow()
        self.db.add(notice)
        await self.db.flush()
        return notice

    @log_slow_query("notice_delete_by_id")
    async def delete_by_id(self, notice_no: int) -> None:
        """Delete a notice by number. Does not check existence."""
        await self.db.execute(delete(Notice).where(Notice.notice_no == notice_no))

    @log_slow_query("notice_find_by_title_containing")
    async def find_by_title_containing(
        self, keyword: str, page: int, size: int
    ) -> NoticePage:
        """Notices whose title contains keyword, pinned first then newest.

        Matching is case-sensitive and treats % and _ literally.
        """
        return await self._find_page(self._title_contains(keyword), page, size)

    @log_slow_query("notice_find_all_pinned_then_recent")
    async def find_all_pinned_then_recent(self, page: int, size: int) -> NoticePage:
        """All notices, pinned first then newest."""
        return await self._find_page(None, page, size)

    async def _find_page(
        self, criterion: ColumnElement[bool] | None, page: int, size: int
    ) -> NoticePage:
        count_stmt = select(func.count()).select_from(Notice)
        items_stmt = select(Notice).order_by(*_LISTING_ORDER)
        if criterion is not None:
            count_stmt = count_stmt.where(criterion)
            items_stmt = items_stmt.where(criterion)

        total = (await self.db.execute(count_stmt)).scalar_one()
        result = await self.db.execute(items_stmt.offset(page * size).limit(size))
        return NoticePage(
            items=list(result.scalars().all()),
            total_elements=total,
            page=page,
            size=size,
        )

    def _title_contains(self, keyword: str) -> ColumnElement[bool]:
        bind = self.db.get_bind()
        dialect = bind.dialect.name if bind else ""

        if dialect == "sqlite":
            # SQLite's LIKE ignores ASCII case; instr() is an exact substring test
            return func.instr(Notice.notice_title, keyword) > 0
        return Notice.notice_title.contains(keyword, autoescape=True)
