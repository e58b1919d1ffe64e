"""Caller identity asserted by the upstream gateway.

The gateway authenticates the caller and forwards two headers:
- ``X-Role``: the caller's role string (e.g. ``ROLE_ADMIN``)
- ``X-Member-No``: the caller's member number

This service trusts both headers as-is; it never authenticates on its own.
The authorization rule lives in a single predicate, ``is_admin_role``, which
services receive as an injectable policy.
"""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, Header, Request

from core.config import get_settings
from core.wide_event import set_wide_event_fields

AdminPolicy = Callable[[str | None], bool]


def is_admin_role(role: str | None) -> bool:
    """Case-sensitive exact match against the configured administrator role."""
    if role is None:
        return False
    return role == get_settings().admin_role


def caller_role(
    request: Request,
    x_role: Annotated[str | None, Header(alias="X-Role")] = None,
) -> str | None:
    """Returns the X-Role header, or None when absent. Does not raise."""
    request.state.role = x_role
    if x_role is not None:
        set_wide_event_fields(caller_role=x_role)
    return x_role


def caller_member_no(
    request: Request,
    x_member_no: Annotated[int, Header(alias="X-Member-No")],
) -> int:
    """Returns the X-Member-No header. Missing or non-integer values fail validation."""
    request.state.member_no = x_member_no
    set_wide_event_fields(caller_member_no=x_member_no)
    return x_member_no


CallerRole = Annotated[str | None, Depends(caller_role)]
CallerMemberNo = Annotated[int, Depends(caller_member_no)]
