"""
Core configuration
"""

import pytest_asyncio
import structlog

from groupadmin.api.setup import initial_setup
from groupadmin.config.settings import Settings


@pytest_asyncio.fixture(scope="session")
def database_file(tmp_path_factory):
    yield tmp_path_factory.mktemp("database") / "groupadmin.db"


@pytest_asyncio.fixture(scope="session")
def server_settings(database_file):
    yield Settings(
        database_type="sqlite",
        database_db=str(database_file),
        database_echo=False,
        jwt_secret="test-secret-long-enough-for-hs256-signing",
        jwt_algorithm="HS256",
        initial_roles=["ADMIN", "EDITOR", "VIEWER"],
        mail_enabled=False,
        mail_from="team@livelyplanet.test",
    )


@pytest_asyncio.fixture(scope="session")
def database(server_settings: Settings):
    initial_setup(settings=server_settings)


@pytest_asyncio.fixture(scope="session", loop_scope="session")
async def session_manager(server_settings: Settings, database):
    manager = server_settings.async_manager()
    yield manager
    await manager.dispose()


@pytest_asyncio.fixture(scope="session")
def logger():
    yield structlog.get_logger()
