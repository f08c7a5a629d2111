"""
Dependencies used by the API.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger
from structlog.typing import FilteringBoundLogger

from groupadmin.config.managers import AsyncSessionManager
from groupadmin.config.settings import Settings
from groupadmin.database.repository import GroupRepository
from groupadmin.service.groups import GroupService
from groupadmin.service.mail import Mailer
from groupadmin.service.roles import RoleLookup


@lru_cache
def SETTINGS() -> Settings:
    return Settings()


@lru_cache
def DATABASE_MANAGER() -> AsyncSessionManager:
    return SETTINGS().async_manager()


async def get_async_session():
    async with DATABASE_MANAGER().session() as session:
        async with session.begin():
            yield session


def logger():
    return get_logger()


SettingsDependency = Annotated[Settings, Depends(SETTINGS)]
DatabaseDependency = Annotated[AsyncSession, Depends(get_async_session)]
LoggerDependency = Annotated[FilteringBoundLogger, Depends(logger)]


def get_role_lookup(conn: DatabaseDependency, log: LoggerDependency) -> RoleLookup:
    return RoleLookup(conn=conn, log=log)


RoleLookupDependency = Annotated[RoleLookup, Depends(get_role_lookup)]


def get_group_service(
    conn: DatabaseDependency, roles: RoleLookupDependency, log: LoggerDependency
) -> GroupService:
    return GroupService(repository=GroupRepository(conn), roles=roles, log=log)


def get_mailer(settings: SettingsDependency, log: LoggerDependency) -> Mailer:
    return Mailer(settings=settings, log=log)


GroupServiceDependency = Annotated[GroupService, Depends(get_group_service)]
MailerDependency = Annotated[Mailer, Depends(get_mailer)]
