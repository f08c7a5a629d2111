"""
Configuration variables and fixtures for the service layer tests.
"""

import pytest_asyncio

from groupadmin.database.repository import GroupRepository
from groupadmin.service.groups import GroupService
from groupadmin.service.roles import RoleLookup


@pytest_asyncio.fixture(scope="session")
def group_service():
    def make(conn, log) -> GroupService:
        return GroupService(
            repository=GroupRepository(conn),
            roles=RoleLookup(conn=conn, log=log),
            log=log,
        )

    yield make
