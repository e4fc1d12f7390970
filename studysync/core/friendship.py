"""
Core friendship data models.
"""

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel

from studysync.core.uuid import UUID

from .user import UserSummary


class FriendshipStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    # Reserved; no operation moves a friendship here yet.
    BLOCKED = "blocked"


class FriendshipData(BaseModel):
    friendship_id: UUID
    requester_id: UUID
    addressee_id: UUID
    status: FriendshipStatus
    created_at: datetime
    updated_at: datetime


class FriendListEntry(BaseModel):
    """
    A friendship as seen by one of its two parties.
    """

    friendship_id: UUID
    status: FriendshipStatus
    created_at: datetime
    request_type: Literal["sent", "received"]
    user: UserSummary
