"""
Service layer for users
"""

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from groupadmin.core.uuid import UUID
from groupadmin.database.meta import Group, User

from .groups import GroupNotFound, canonical_group_name


class UserNotFound(Exception):
    pass


class UserExistsError(Exception):
    pass


async def create(
    user_name: str,
    email: str | None,
    conn: AsyncSession,
    log: FilteringBoundLogger,
    group_name: str | None = None,
) -> User:
    """
    Creates a user, optionally as a member of the group `group_name`.

    Raises
    ------
    UserExistsError
        If a user with this name already exists.
    GroupNotFound
        If the group does not exist.
    """

    user_name = user_name.strip().lower().replace(" ", "_")

    log = log.bind(user_name=user_name, email=email, group_name=group_name)

    user = User(user_name=user_name, email=email)

    if group_name is not None:
        user.group = await _read_group(group_name=group_name, conn=conn)

    try:
        conn.add(user)
        await conn.flush()
    except IntegrityError:
        await log.ainfo("user.create.exists")
        raise UserExistsError(f"User with user name {user_name} already exists")

    log = log.bind(user_id=user.user_id)
    await log.ainfo("user.created")

    return user


async def _read_group(group_name: str, conn: AsyncSession) -> Group:
    group_name = canonical_group_name(group_name)

    query = select(Group).where(Group.name == group_name, Group.deleted_at.is_(None))
    group = (await conn.execute(query)).unique().scalar_one_or_none()

    if group is None:
        raise GroupNotFound(f"Group {group_name} not found")

    return group


async def read_by_id(user_id: UUID, conn: AsyncSession) -> User:
    res = await conn.get(User, user_id)

    if res is None or not res.is_active:
        raise UserNotFound(f"User with ID {user_id} not found in the database")

    return res


async def read_by_name(user_name: str, conn: AsyncSession) -> User:
    user_name = user_name.strip().lower().replace(" ", "_")

    query = select(User).filter(User.user_name == user_name, User.deleted_at.is_(None))
    res = (await conn.execute(query)).unique().scalar_one_or_none()

    if res is None:
        raise UserNotFound(f"User with name {user_name} not found in the database")

    return res


async def assign_group(
    user_name: str,
    group_name: str | None,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> User:
    """
    Move a user into `group_name`, or out of any group if it is None.
    """
    user = await read_by_name(user_name=user_name, conn=conn)
    log = log.bind(user_id=user.user_id, group_name=group_name)

    if group_name is None:
        user.group = None
        user.group_id = None
    else:
        user.group = await _read_group(group_name=group_name, conn=conn)

    conn.add(user)
    await conn.flush()

    await log.ainfo("user.group_assigned")

    return user


async def delete(user_name: str, conn: AsyncSession, log: FilteringBoundLogger):
    """
    Soft-deletes the user. They no longer count against their group.
    """
    user = await read_by_name(user_name=user_name, conn=conn)

    log = log.bind(user_id=user.user_id, group_id=user.group_id)

    user.deleted_at = datetime.now(timezone.utc)
    conn.add(user)
    await conn.flush()

    await log.ainfo("user.deleted")

    return
