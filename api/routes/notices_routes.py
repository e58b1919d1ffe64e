"""Notice endpoints.

Routes only pull caller identity from the gateway headers, let FastAPI
validate the body, and delegate to services.notices_service. Service errors
are rendered by the application-level NoticeServiceError handler.
"""

from typing import Annotated

from fastapi import APIRouter, Path, Query, Request
from starlette import status

from core.auth import CallerMemberNo, CallerRole
from core.database import DbSession, DbSessionReadOnly
from core.ratelimit import READ_LIMIT, WRITE_LIMIT, limiter
from models import MAX_NOTICE_NO
from schemas import (
    ErrorResponse,
    NoticeCreateRequest,
    NoticePageResponse,
    NoticeResponse,
    NoticeUpdateRequest,
)
from services.notices_service import (
    create_notice,
    delete_notice,
    get_notice,
    list_notices,
    update_notice,
)

router = APIRouter(prefix="/api/notices", tags=["notices"])

_FORBIDDEN = {403: {"model": ErrorResponse, "description": "Caller is not an admin"}}
_NOT_FOUND = {404: {"model": ErrorResponse, "description": "Notice not found"}}
_INVALID = {400: {"model": ErrorResponse, "description": "Invalid request"}}

# Out-of-range numbers are rejected as 400 before reaching the database
NoticeNo = Annotated[int, Path(ge=1, le=MAX_NOTICE_NO, description="Notice number")]


@router.post(
    "",
    response_model=NoticeResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**_FORBIDDEN, **_INVALID},
)
@limiter.limit(WRITE_LIMIT)
async def create_notice_endpoint(
    request: Request,
    body: NoticeCreateRequest,
    role: CallerRole,
    member_no: CallerMemberNo,
    db: DbSession,
) -> NoticeResponse:
    """Create a notice (admin only)."""
    return await create_notice(db, body, role, member_no)


@router.patch(
    "/{notice_no}",
    response_model=NoticeResponse,
    responses={**_FORBIDDEN, **_NOT_FOUND, **_INVALID},
)
@limiter.limit(WRITE_LIMIT)
async def update_notice_endpoint(
    request: Request,
    notice_no: NoticeNo,
    body: NoticeUpdateRequest,
    role: CallerRole,
    db: DbSession,
) -> NoticeResponse:
    """Partially update a notice (admin only). Omitted fields are unchanged."""
    return await update_notice(db, notice_no, body, role)


@router.delete(
    "/{notice_no}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={**_FORBIDDEN, **_NOT_FOUND, **_INVALID},
)
@limiter.limit(WRITE_LIMIT)
async def delete_notice_endpoint(
    request: Request,
    notice_no: NoticeNo,
    role: CallerRole,
    db: DbSession,
) -> None:
    """Delete a notice (admin only)."""
    await delete_notice(db, notice_no, role)


@router.get(
    "/{notice_no}",
    response_model=NoticeResponse,
    responses={**_NOT_FOUND, **_INVALID},
)
@limiter.limit(READ_LIMIT)
async def get_notice_endpoint(
    request: Request,
    notice_no: NoticeNo,
    db: DbSessionReadOnly,
) -> NoticeResponse:
    """Get a single notice."""
    return await get_notice(db, notice_no)


@router.get("", response_model=NoticePageResponse, responses=_INVALID)
@limiter.limit(READ_LIMIT)
async def list_notices_endpoint(
    request: Request,
    db: DbSessionReadOnly,
    page: Annotated[int, Query(ge=0, description="Zero-indexed page number")] = 0,
    size: Annotated[int, Query(ge=1, description="Notices per page")] = 10,
    keyword: Annotated[
        str | None, Query(description="Case-sensitive title substring")
    ] = None,
) -> NoticePageResponse:
    """List notices, pinned first then newest, optionally filtered by title."""
    return await list_notices(db, page, size, keyword)
