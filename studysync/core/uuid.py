"""
Identifiers for every stored record. UUIDv7 is time-ordered, which keeps
primary key indexes compact; it is not in the standard library yet.
"""

from uuid import UUID as UUID

from uuid_extensions import uuid7 as uuid7

__ALL__ = ["UUID", "uuid7"]
