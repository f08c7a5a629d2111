"""
Fixtures for the API tests: the app, wired to the test database.
"""

from datetime import timedelta

import httpx
import pytest_asyncio

from groupadmin.api import dependencies
from groupadmin.api.app import app
from groupadmin.core.tokens import encode_access_token
from groupadmin.core.user import UserData
from groupadmin.core.uuid import uuid7


@pytest_asyncio.fixture(scope="session", loop_scope="session")
async def client(server_settings, session_manager):
    async def get_test_session():
        async with session_manager.session() as session:
            async with session.begin():
                yield session

    app.dependency_overrides[dependencies.SETTINGS] = lambda: server_settings
    app.dependency_overrides[dependencies.get_async_session] = get_test_session

    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()


def token_for(server_settings, grants: set[str], expiry=timedelta(hours=1)) -> str:
    return encode_access_token(
        user=UserData(user_id=uuid7(), user_name="api_user", grants=grants),
        secret=server_settings.jwt_secret,
        algorithm=server_settings.jwt_algorithm,
        expiry=expiry,
    )


@pytest_asyncio.fixture(scope="session")
def admin_headers(server_settings):
    yield {"Authorization": f"Bearer {token_for(server_settings, {'admin'})}"}


@pytest_asyncio.fixture(scope="session")
def user_headers(server_settings):
    yield {"Authorization": f"Bearer {token_for(server_settings, set())}"}


@pytest_asyncio.fixture(scope="session")
def make_token(server_settings):
    def make(grants: set[str], expiry=timedelta(hours=1)) -> str:
        return token_for(server_settings, grants, expiry=expiry)

    yield make
