"""
Group ORM
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import Column, DateTime
from sqlmodel import Field, Relationship, SQLModel

from groupadmin.core.group import GroupData
from groupadmin.core.uuid import UUID, uuid7

if TYPE_CHECKING:
    from .role import Role
    from .user import User


def now() -> datetime:
    return datetime.now(tz=timezone.utc)


class Group(SQLModel, table=True):
    group_id: UUID = Field(primary_key=True, default_factory=uuid7)

    # Always stored upper-case
    name: str = Field(unique=True, max_length=128)
    description: str | None = Field(default=None, max_length=512)

    role_id: UUID = Field(foreign_key="role.role_id")
    role: "Role" = Relationship(
        back_populates="groups", sa_relationship_kwargs=dict(lazy="joined")
    )

    users: list["User"] = Relationship(back_populates="group")

    created_at: datetime = Field(
        default_factory=now, sa_column=Column(DateTime(timezone=True))
    )
    updated_at: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True))
    )
    # Set on soft deletion; null while the group is active.
    deleted_at: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True), index=True)
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def to_core(self) -> GroupData:
        """
        Convert this Group ORM object to a GroupData core object.
        """
        return GroupData(
            group_id=self.group_id,
            name=self.name,
            description=self.description,
            role=self.role.name,
            created_at=self.created_at,
            updated_at=self.updated_at,
            deleted_at=self.deleted_at,
        )
