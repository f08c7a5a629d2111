"""
Meta functionality for the database.
"""

from .group import Group
from .role import Role
from .user import User

ALL_TABLES = (
    Role,
    Group,
    User,
)
