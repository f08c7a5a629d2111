"""
ORM for user information.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Column, DateTime
from sqlmodel import Field, Relationship, SQLModel

from groupadmin.core.uuid import UUID, uuid7

from .group import now

if TYPE_CHECKING:
    from .group import Group


class User(SQLModel, table=True):
    user_id: UUID = Field(primary_key=True, default_factory=uuid7)

    user_name: str = Field(unique=True)
    email: str | None = None

    # A user whose group is set is a dependent of that group, and blocks
    # its deletion while active.
    group_id: UUID | None = Field(default=None, foreign_key="group.group_id")
    group: Optional["Group"] = Relationship(
        back_populates="users", sa_relationship_kwargs=dict(lazy="joined")
    )

    created_at: datetime = Field(
        default_factory=now, sa_column=Column(DateTime(timezone=True))
    )
    deleted_at: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True))
    )

    @property
    def is_active(self) -> bool:
        return self.deleted_at is None
