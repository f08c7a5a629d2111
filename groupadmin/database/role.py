"""
Role ORM
"""

from typing import TYPE_CHECKING

from sqlmodel import Field, Relationship, SQLModel

from groupadmin.core.group import RoleData
from groupadmin.core.uuid import UUID, uuid7

if TYPE_CHECKING:
    from .group import Group


class Role(SQLModel, table=True):
    role_id: UUID = Field(primary_key=True, default_factory=uuid7)

    name: str = Field(unique=True, max_length=128)
    description: str | None = Field(default=None, max_length=512)

    # Groups reference their role; a role does not own its groups.
    groups: list["Group"] = Relationship(back_populates="role")

    def to_core(self) -> RoleData:
        return RoleData(
            role_id=self.role_id, name=self.name, description=self.description
        )
