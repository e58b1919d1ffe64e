"""Member mirror repository, used for author attribution only."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models import Member


class MemberRepository:
    """Read access to the members mirror table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, member_no: int) -> Member | None:
        return await self.db.get(Member, member_no)

    async def get_names_by_ids(self, member_nos: list[int]) -> dict[int, str]:
        """Map member_no -> member_name in a single query.

        Missing numbers are silently skipped.
        """
        if not member_nos:
            return {}
        result = await self.db.execute(
            select(Member.member_no, Member.member_name).where(
                Member.member_no.in_(set(member_nos))
            )
        )
        return {row.member_no: row.member_name for row in result}
