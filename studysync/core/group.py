"""
Core group data models.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel

from studysync.core.uuid import UUID


class MembershipRole(str, Enum):
    ADMIN = "admin"
    MODERATOR = "moderator"
    MEMBER = "member"


class GroupData(BaseModel):
    group_id: UUID
    name: str
    description: str | None
    creator_id: UUID
    category: str | None
    max_members: int
    is_private: bool
    invite_code: str
    created_at: datetime
    updated_at: datetime


class MembershipData(BaseModel):
    membership_id: UUID
    group_id: UUID
    user_id: UUID
    role: MembershipRole
    joined_at: datetime


class UserGroupData(BaseModel):
    """
    A group from the point of view of one of its members.
    """

    group: GroupData
    role: MembershipRole
    joined_at: datetime
    member_count: int
