"""
Initial setup of the database: tables, and the roles that groups can be
bound to.
"""

from sqlalchemy import select
from structlog import get_logger

from groupadmin.config.settings import Settings
from groupadmin.database.meta import Role
from groupadmin.service.roles import canonical_role_name


def initial_setup(settings: Settings):
    """
    Create the tables, and any of `settings.initial_roles` that do not yet
    exist. Safe to run more than once.
    """
    log = get_logger()

    manager = settings.sync_manager()
    manager.create_all()

    with manager.session() as conn:
        with conn.begin():
            existing = set(conn.execute(select(Role.name)).scalars().all())

            for name in settings.initial_roles:
                name = canonical_role_name(name)

                if name in existing:
                    continue

                conn.add(Role(name=name))
                existing.add(name)
                log.info("setup.role_created", role_name=name)

    manager.engine.dispose()
