"""
FastAPI app
"""

from importlib.metadata import version

from fastapi import FastAPI

from .contact import contact_app
from .dependencies import DATABASE_MANAGER, SETTINGS, logger
from .errors import add_exception_handlers
from .groups import group_app
from .roles import role_app
from .setup import initial_setup


async def lifespan(app: FastAPI):
    settings = SETTINGS()
    app.settings = settings

    if settings.create_tables:
        initial_setup(settings=settings)
        await logger().ainfo("app.setup_complete")

    yield

    await DATABASE_MANAGER().dispose()


app = FastAPI(
    lifespan=lifespan,
    title="Group Administration API",
    summary="Administration of groups and roles, with transactional mail.",
    version=version("groupadmin"),
)

app = add_exception_handlers(app)

app.include_router(group_app, prefix="/groups")
app.include_router(role_app, prefix="/roles")
app.include_router(contact_app, prefix="/contact")
