"""
A shared user object, carried inside access tokens.
"""

from pydantic import BaseModel, Field

from groupadmin.core.uuid import UUID


class UserData(BaseModel):
    user_id: UUID
    user_name: str
    email: str | None = None
    group_name: str | None = None
    grants: set[str] = Field(default_factory=set)
