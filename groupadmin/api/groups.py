"""
Group management.
"""

from fastapi import APIRouter, status

from groupadmin.core.group import (
    GroupCreateRequest,
    GroupData,
    GroupPage,
    GroupUpdateRequest,
)
from groupadmin.core.uuid import UUID
from groupadmin.service.groups import GroupNotFound

from .dependencies import GroupServiceDependency, LoggerDependency
from .guard import AdminUserDependency, AuthenticatedUserDependency

group_app = APIRouter(tags=["Group Management"])


@group_app.get(
    "",
    summary="List groups",
    description=(
        "Retrieve one page of groups, ordered by `sort_field` in "
        "`sort_direction`. The total is the size of the whole collection."
    ),
    responses={
        200: {"description": "Page of groups."},
        400: {"description": "Invalid paging or ordering."},
    },
)
async def list_groups(
    user: AuthenticatedUserDependency,
    groups: GroupServiceDependency,
    offset: int = 0,
    limit: int = 20,
    sort_direction: str = "ASC",
    sort_field: str = "name",
) -> GroupPage:
    data, total = await groups.find_all(
        offset=offset,
        limit=limit,
        sort_direction=sort_direction,
        sort_field=sort_field,
    )
    return GroupPage(data=[g.to_core() for g in data], total=total)


@group_app.get(
    "/total",
    summary="Count groups",
    responses={200: {"description": "Number of active groups."}},
)
async def count_groups(
    user: AuthenticatedUserDependency, groups: GroupServiceDependency
) -> int:
    return await groups.find_total()


@group_app.get(
    "/name/{name}",
    summary="Get group by name",
    description="Names are case-insensitive.",
    responses={
        200: {"description": "Group details."},
        404: {"description": "Group not found."},
    },
)
async def get_group_by_name(
    name: str, user: AuthenticatedUserDependency, groups: GroupServiceDependency
) -> GroupData:
    group = await groups.find_by_name(name)

    if group is None:
        raise GroupNotFound(f"Group {name.upper()} not found")

    return group.to_core()


@group_app.get(
    "/{group_id}",
    summary="Get group by ID",
    responses={
        200: {"description": "Group details."},
        404: {"description": "Group not found."},
    },
)
async def get_group_by_id(
    group_id: UUID, user: AuthenticatedUserDependency, groups: GroupServiceDependency
) -> GroupData:
    group = await groups.find_by_id(group_id)

    if group is None:
        raise GroupNotFound(f"Group {group_id} not found")

    return group.to_core()


@group_app.put(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create a new group",
    description="Create a group bound to an existing role. Requires admin privileges.",
    responses={
        201: {"description": "Group created successfully."},
        400: {"description": "Invalid input data."},
        403: {"description": "Access denied to create groups."},
        404: {"description": "Role not found."},
        409: {"description": "Group name already exists."},
    },
)
async def create_group(
    content: GroupCreateRequest,
    user: AdminUserDependency,
    groups: GroupServiceDependency,
    log: LoggerDependency,
) -> GroupData:
    group = await groups.create(content)
    await log.ainfo("api.group.created", user_id=user.user_id, group_id=group.group_id)
    return group.to_core()


@group_app.post(
    "",
    summary="Update a group",
    description=(
        "Change the description and role of the group with the given name. "
        "Requires admin privileges."
    ),
    responses={
        200: {"description": "Group updated successfully."},
        400: {"description": "Invalid input data."},
        403: {"description": "Access denied to update groups."},
        404: {"description": "Group or role not found."},
    },
)
async def update_group(
    content: GroupUpdateRequest,
    user: AdminUserDependency,
    groups: GroupServiceDependency,
    log: LoggerDependency,
) -> GroupData:
    group = await groups.update(content)
    await log.ainfo("api.group.updated", user_id=user.user_id, group_id=group.group_id)
    return group.to_core()


@group_app.delete(
    "/name/{name}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a group by name",
    description="Soft-delete a group that no active user belongs to.",
    responses={
        204: {"description": "Group deleted successfully."},
        403: {"description": "Access denied to delete groups."},
        404: {"description": "Group not found."},
        422: {"description": "Group still has users."},
    },
)
async def delete_group_by_name(
    name: str,
    user: AdminUserDependency,
    groups: GroupServiceDependency,
    log: LoggerDependency,
) -> None:
    await groups.delete_by_name(name)
    await log.ainfo("api.group.deleted", user_id=user.user_id, group_name=name)


@group_app.delete(
    "/{group_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a group",
    description="Soft-delete a group that no active user belongs to.",
    responses={
        204: {"description": "Group deleted successfully."},
        403: {"description": "Access denied to delete groups."},
        404: {"description": "Group not found."},
        422: {"description": "Group still has users."},
    },
)
async def delete_group(
    group_id: UUID,
    user: AdminUserDependency,
    groups: GroupServiceDependency,
    log: LoggerDependency,
) -> None:
    await groups.delete(group_id)
    await log.ainfo("api.group.deleted", user_id=user.user_id, group_id=group_id)
