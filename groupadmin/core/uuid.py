"""
Identifiers for database rows. uuid7 is time-ordered, so primary keys sort by
creation; it is not in the standard library as of python 3.12.
"""

from uuid import UUID as UUID

from uuid_extensions import uuid7 as uuid7

__all__ = ["UUID", "uuid7"]
