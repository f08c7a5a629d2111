"""
Service layer for roles.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from groupadmin.database.meta import Role


class RoleExistsError(Exception):
    pass


def canonical_role_name(name: str) -> str:
    return name.strip().upper()


class RoleLookup:
    """
    Role reads and writes, bound to a single session.
    """

    def __init__(self, conn: AsyncSession, log: FilteringBoundLogger):
        self.conn = conn
        self.log = log

    async def read_by_name(self, name: str) -> Role | None:
        """
        Read a role by its (case-insensitive) name.

        Returns
        -------
        Role | None
            None if no role has this name.
        """
        name = canonical_role_name(name)
        query = select(Role).where(Role.name == name)
        role = (await self.conn.execute(query)).unique().scalar_one_or_none()

        if role is None:
            await self.log.adebug("role.not_found", role_name=name)

        return role

    async def create(self, name: str, description: str | None = None) -> Role:
        """
        Create a new role.

        Raises
        ------
        RoleExistsError
            If a role with this name already exists.
        """
        name = canonical_role_name(name)
        log = self.log.bind(role_name=name)

        role = Role(name=name, description=description)

        try:
            self.conn.add(role)
            await self.conn.flush()
        except IntegrityError as e:
            log = log.bind(error=e)
            await log.ainfo("role.exists")
            raise RoleExistsError(f"Role {name} already exists")

        await log.ainfo("role.created", role_id=role.role_id)

        return role

    async def get_role_list(self) -> list[Role]:
        result = await self.conn.execute(select(Role).order_by(Role.name))
        roles = list(result.unique().scalars().all())
        await self.log.adebug("role.listed", number_of_roles=len(roles))
        return roles
