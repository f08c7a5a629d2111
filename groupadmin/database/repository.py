"""
Persistence for groups. Soft-deleted groups are excluded from every read
unless `with_deleted` is passed.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .meta import Group, User


class GroupRepository:
    """
    Query helpers over the `group` table, bound to a single session. The
    caller owns the transaction.
    """

    def __init__(self, conn: AsyncSession):
        self.conn = conn

    def _filter(self, filters: dict[str, Any]) -> list:
        return [getattr(Group, key) == value for key, value in filters.items()]

    async def save(self, group: Group) -> Group:
        """
        Insert or update `group`.

        Raises
        ------
        sqlalchemy.exc.IntegrityError
            If the name is already taken.
        """
        self.conn.add(group)
        await self.conn.flush()
        return group

    async def find_one(self, with_deleted: bool = False, **filters) -> Group | None:
        query = select(Group).where(*self._filter(filters))

        if not with_deleted:
            query = query.where(Group.deleted_at.is_(None))

        # First match, in ID order, when the filters are not unique.
        query = (
            query.order_by(Group.group_id)
            .limit(1)
            .execution_options(populate_existing=True)
        )

        return (await self.conn.execute(query)).unique().scalars().first()

    async def find_and_count(
        self, offset: int, limit: int, order_by: Any
    ) -> tuple[list[Group], int]:
        query = (
            select(Group)
            .where(Group.deleted_at.is_(None))
            .order_by(order_by, Group.group_id)
            .offset(offset)
            .limit(limit)
        )
        groups = list((await self.conn.execute(query)).unique().scalars().all())

        return groups, await self.count()

    async def count(self) -> int:
        query = select(func.count(Group.group_id)).where(Group.deleted_at.is_(None))
        return (await self.conn.execute(query)).scalar_one()

    async def count_dependents(self, **filters) -> int:
        """
        Count the active users associated with the active group matching
        `filters`.
        """
        query = (
            select(func.count(func.distinct(User.user_id)))
            .select_from(Group)
            .join(User, User.group_id == Group.group_id)
            .where(*self._filter(filters))
            .where(Group.deleted_at.is_(None), User.deleted_at.is_(None))
        )
        return (await self.conn.execute(query)).scalar_one()

    async def soft_delete(self, **filters) -> int:
        """
        Mark the active group matching `filters` as deleted, unless it has
        active users. Returns the number of rows affected.
        """
        has_dependents = (
            select(User.user_id)
            .where(User.group_id == Group.group_id, User.deleted_at.is_(None))
            .correlate(Group)
            .exists()
        )

        statement = (
            update(Group)
            .where(*self._filter(filters))
            .where(Group.deleted_at.is_(None))
            .where(~has_dependents)
            .values(deleted_at=datetime.now(tz=timezone.utc))
            .execution_options(synchronize_session=False)
        )

        result = await self.conn.execute(statement)
        return result.rowcount
