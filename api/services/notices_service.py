"""Notice service for notice-related business logic.

Writes (create, update, delete) require the administrator role; reads are
public. Authorization goes through a single policy predicate, passed in as
``is_admin`` so callers and tests can substitute their own rule.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import AdminPolicy, is_admin_role
from core.config import get_settings
from core.errors import NoticeServiceError
from core.logger import get_logger
from core.wide_event import set_wide_event_fields
from models import Notice
from repositories.member_repository import MemberRepository
from repositories.notice_repository import NoticePage, NoticeRepository
from schemas import (
    NoticeCreateRequest,
    NoticePageResponse,
    NoticeResponse,
    NoticeUpdateRequest,
)

logger = get_logger(__name__)


def _ensure_admin(role: str | None, is_admin: AdminPolicy, action: str) -> None:
    if not is_admin(role):
        logger.warning("notice.forbidden", action=action, role=role)
        set_wide_event_fields(notice_action=action, notice_forbidden=True)
        raise NoticeServiceError.forbidden()


def _require_text(value: str | None, label: str) -> str:
    if value is None or not value.strip():
        raise NoticeServiceError.validation(f"{label} must not be blank.")
    return value


def to_notice_response(notice: Notice, member_name: str) -> NoticeResponse:
    return NoticeResponse(
        notice_no=notice.notice_no,
        notice_title=notice.notice_title,
        notice_content=notice.notice_content,
        is_fixed=notice.is_fixed,
        member_name=member_name,
        created_at=notice.created_at,
    )


async def _author_names(db: AsyncSession, notices: list[Notice]) -> dict[int, str]:
    """Resolve display names from the members mirror.

    Authors missing from the mirror fall back to the configured default name.
    """
    default_name = get_settings().default_author_name
    names = await MemberRepository(db).get_names_by_ids(
        [notice.member_no for notice in notices]
    )
    return {
        notice.member_no: names.get(notice.member_no, default_name)
        for notice in notices
    }


async def _to_response(db: AsyncSession, notice: Notice) -> NoticeResponse:
    names = await _author_names(db, [notice])
    return to_notice_response(notice, names[notice.member_no])


async def create_notice(
    db: AsyncSession,
    request: NoticeCreateRequest,
    role: str | None,
    member_no: int,
    *,
    is_admin: AdminPolicy = is_admin_role,
) -> NoticeResponse:
    """Create a notice. Admin only.

    is_fixed defaults to False when the request omits it.

    Raises:
        NoticeServiceError: FORBIDDEN for non-admins, VALIDATION for blank
            title or content.
    """
    _ensure_admin(role, is_admin, "create")
    title = _require_text(request.notice_title, "Title")
    content = _require_text(request.notice_content, "Content")

    notice = await NoticeRepository(db).create(
        member_no=member_no,
        notice_title=title,
        notice_content=content,
        is_fixed=request.is_fixed if request.is_fixed is not None else False,
    )

    logger.info(
        "notice.created",
        notice_no=notice.notice_no,
        member_no=member_no,
        is_fixed=notice.is_fixed,
    )
    set_wide_event_fields(notice_action="create", notice_no=notice.notice_no)
    return await _to_response(db, notice)


async def update_notice(
    db: AsyncSession,
    notice_no: int,
    request: NoticeUpdateRequest,
    role: str | None,
    *,
    is_admin: AdminPolicy = is_admin_role,
) -> NoticeResponse:
    """Partially update a notice. Admin only.

    Only fields that are not None in the request are written; the rest keep
    their current values.

    Raises:
        NoticeServiceError: FORBIDDEN for non-admins, NOT_FOUND if the notice
            does not exist, VALIDATION for a blank title or content.
    """
    _ensure_admin(role, is_admin, "update")

    notice_repo = NoticeRepository(db)
    notice = await notice_repo.get_by_id(notice_no)
    if notice is None:
        raise NoticeServiceError.not_found()

    if request.notice_title is not None:
        notice.notice_title = _require_text(request.notice_title, "Title")
    if request.notice_content is not None:
        notice.notice_content = _require_text(request.notice_content, "Content")
    if request.is_fixed is not None:
        notice.is_fixed = request.is_fixed

    await notice_repo.save(notice)

    logger.info("notice.updated", notice_no=notice_no)
    set_wide_event_fields(notice_action="update", notice_no=notice_no)
    return await _to_response(db, notice)


async def delete_notice(
    db: AsyncSession,
    notice_no: int,
    role: str | None,
    *,
    is_admin: AdminPolicy = is_admin_role,
) -> None:
    """Delete a notice. Admin only.

    Raises:
        NoticeServiceError: FORBIDDEN for non-admins, NOT_FOUND if the notice
            does not exist (no delete is issued in that case).
    """
    _ensure_admin(role, is_admin, "delete")

    notice_repo = NoticeRepository(db)
    if not await notice_repo.exists_by_id(notice_no):
        raise NoticeServiceError.not_found()

    await notice_repo.delete_by_id(notice_no)

    logger.info("notice.deleted", notice_no=notice_no)
    set_wide_event_fields(notice_action="delete", notice_no=notice_no)


async def get_notice(db: AsyncSession, notice_no: int) -> NoticeResponse:
    """Get a single notice. Public."""
    notice = await NoticeRepository(db).get_by_id(notice_no)
    if notice is None:
        raise NoticeServiceError.not_found()
    return await _to_response(db, notice)


async def list_notices(
    db: AsyncSession,
    page: int,
    size: int,
    keyword: str | None = None,
) -> NoticePageResponse:
    """List notices pinned first, then newest first. Public.

    A non-blank keyword restricts results to titles containing it.
    Pages are zero-indexed.
    """
    if page < 0:
        raise NoticeServiceError.validation("page must not be negative.")
    if size < 1:
        raise NoticeServiceError.validation("size must be at least 1.")

    notice_repo = NoticeRepository(db)
    if keyword is not None and keyword.strip():
        result: NoticePage = await notice_repo.find_by_title_containing(
            keyword, page, size
        )
        set_wide_event_fields(notice_search=True)
    else:
        result = await notice_repo.find_all_pinned_then_recent(page, size)

    names = await _author_names(db, result.items)
    return NoticePageResponse(
        content=[
            to_notice_response(notice, names[notice.member_no])
            for notice in result.items
        ],
        total_pages=result.total_pages,
        total_elements=result.total_elements,
        number=result.page,
        size=result.size,
    )
