"""Repository layer for database operations.

Repositories encapsulate all database queries, keeping services free of
SQL and routes free of both. Repositories never commit; the request's
session dependency owns the transaction.
"""

from repositories.member_repository import MemberRepository
from repositories.notice_repository import NoticePage, NoticeRepository
from repositories.utils import log_slow_query

__all__ = [
    "MemberRepository",
    "NoticePage",
    "NoticeRepository",
    "log_slow_query",
]
