"""Pydantic schemas for API request/response validation.

Wire names are camelCase (``noticeTitle``, ``isFixed``); Python attributes
stay snake_case. Both spellings are accepted on input.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema serializing with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _require_text(value: str | None, label: str) -> str | None:
    if value is not None and not value.strip():
        raise ValueError(f"{label} must not be blank.")
    return value


class NoticeCreateRequest(CamelModel):
    """Body of POST /api/notices."""

    notice_title: str = Field(max_length=255)
    notice_content: str
    # Omitted or null means "not pinned"
    is_fixed: bool | None = None

    @field_validator("notice_title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        return _require_text(v, "Title")

    @field_validator("notice_content")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        return _require_text(v, "Content")


class NoticeUpdateRequest(CamelModel):
    """Body of PATCH /api/notices/{notice_no}.

    Every field is optional. A field that is absent or null is left
    unchanged; there is no way to clear a field through this request.
    """

    notice_title: str | None = Field(default=None, max_length=255)
    notice_content: str | None = None
    is_fixed: bool | None = None

    @field_validator("notice_title")
    @classmethod
    def title_not_blank(cls, v: str | None) -> str | None:
        return _require_text(v, "Title")

    @field_validator("notice_content")
    @classmethod
    def content_not_blank(cls, v: str | None) -> str | None:
        return _require_text(v, "Content")


class NoticeResponse(CamelModel):
    """A notice as returned to clients."""

    notice_no: int
    notice_title: str
    notice_content: str
    is_fixed: bool
    member_name: str
    created_at: datetime


class NoticePageResponse(CamelModel):
    """One page of notices plus totals for client-side paging."""

    content: list[NoticeResponse]
    total_pages: int
    total_elements: int
    number: int
    size: int


class ErrorResponse(BaseModel):
    """Body of every non-2xx response."""

    status: int
    message: str
    timestamp: datetime


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    service: str


class PoolStatusResponse(BaseModel):
    """Connection pool status."""

    pool_size: int
    checked_out: int
    overflow: int
    checked_in: int


class DetailedHealthResponse(BaseModel):
    """Health check with component status."""

    status: str
    service: str
    database: bool
    pool: PoolStatusResponse | None = None
