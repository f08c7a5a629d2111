"""
Core group data models, and the rule sets for group input.
"""

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field, StringConstraints, field_validator

from groupadmin.core.uuid import UUID

GroupName = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=4, max_length=128)
]
RoleName = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=4, max_length=128)
]
Description = Annotated[str, StringConstraints(max_length=512)]

# Columns that callers may sort group listings by.
SORTABLE_FIELDS = ("group_id", "name", "description", "created_at", "updated_at")
SortField = Literal["group_id", "name", "description", "created_at", "updated_at"]
SortDirection = Literal["ASC", "DESC"]


class RoleData(BaseModel):
    role_id: UUID
    name: str
    description: str | None


class GroupData(BaseModel):
    group_id: UUID
    name: str
    description: str | None
    role: str
    created_at: datetime
    updated_at: datetime | None
    deleted_at: datetime | None = None


class GroupPage(BaseModel):
    data: list[GroupData]
    # Size of the whole collection, not of this page
    total: int


class GroupCreateRequest(BaseModel):
    """
    Request model for creating a new group.
    """

    name: GroupName
    role: RoleName
    description: Description | None = None


class GroupUpdateRequest(BaseModel):
    """
    Request model for updating a group. The name selects the group and is
    never changed; only the description and role are.
    """

    name: GroupName
    role: RoleName
    description: Description | None = None


class GroupPageRequest(BaseModel):
    """
    Paging and ordering for group listings.
    """

    offset: int = Field(default=0, ge=0)
    limit: int = Field(default=20, ge=1)
    sort_direction: SortDirection = "ASC"
    sort_field: SortField = "name"

    @field_validator("sort_direction", mode="before")
    @classmethod
    def normalize_direction(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value
