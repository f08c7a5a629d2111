"""
Role management.
"""

from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from groupadmin.core.group import RoleData

from .dependencies import LoggerDependency, RoleLookupDependency
from .guard import AdminUserDependency, AuthenticatedUserDependency

role_app = APIRouter(tags=["Role Management"])


@role_app.get(
    "/list",
    summary="List all roles",
    responses={200: {"description": "List of roles."}},
)
async def list_roles(
    user: AuthenticatedUserDependency, roles: RoleLookupDependency
) -> list[RoleData]:
    return [r.to_core() for r in await roles.get_role_list()]


class RoleCreationRequest(BaseModel):
    """
    Request model for creating a new role.
    """

    name: str = Field(min_length=4, max_length=128)
    description: str | None = Field(default=None, max_length=512)


@role_app.put(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create a new role",
    description="Role names are stored upper-case. Requires admin privileges.",
    responses={
        201: {"description": "Role created successfully."},
        400: {"description": "Invalid input data."},
        409: {"description": "Role already exists."},
    },
)
async def create_role(
    content: RoleCreationRequest,
    user: AdminUserDependency,
    roles: RoleLookupDependency,
    log: LoggerDependency,
) -> RoleData:
    role = await roles.create(name=content.name, description=content.description)
    await log.ainfo("api.role.created", user_id=user.user_id, role_id=role.role_id)
    return role.to_core()
