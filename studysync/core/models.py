"""
Pydantic models for requests to and responses from the API.
"""

from datetime import datetime

from pydantic import BaseModel

from studysync.core.friendship import FriendshipStatus
from studysync.core.group import GroupData
from studysync.core.meeting import AttendeeStatus, MeetingStatus
from studysync.core.uuid import UUID


class ProfileUpdateRequest(BaseModel):
    display_name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    study_interests: list[str] = []
    timezone: str | None = None
    preferred_study_times: list[str] = []
    is_public: bool = True


class FriendRequestContent(BaseModel):
    addressee_id: UUID


class FriendResponseContent(BaseModel):
    friendship_id: UUID
    status: FriendshipStatus


class GroupCreationRequest(BaseModel):
    name: str = ""
    description: str | None = None
    category: str | None = None
    max_members: int | None = None
    is_private: bool = False


class JoinGroupRequest(BaseModel):
    invite_code: str


class JoinGroupResponse(BaseModel):
    message: str
    group: GroupData


class MeetingCreationRequest(BaseModel):
    group_id: UUID
    title: str | None = None
    description: str | None = None
    scheduled_at: datetime | None = None
    duration_minutes: int | None = None


class AttendanceResponseContent(BaseModel):
    status: AttendeeStatus


class MeetingStatusContent(BaseModel):
    status: MeetingStatus
