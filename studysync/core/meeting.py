"""
Core meeting and attendance data models.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel

from studysync.core.uuid import UUID

from .user import UserSummary


class MeetingStatus(str, Enum):
    SCHEDULED = "scheduled"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AttendeeStatus(str, Enum):
    INVITED = "invited"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    ATTENDED = "attended"


class MeetingData(BaseModel):
    meeting_id: UUID
    group_id: UUID
    title: str
    description: str | None
    scheduled_at: datetime
    duration_minutes: int
    meet_link: str
    created_by_id: UUID
    status: MeetingStatus
    created_at: datetime


class AttendeeData(BaseModel):
    attendee_id: UUID
    meeting_id: UUID
    user_id: UUID
    status: AttendeeStatus
    joined_at: datetime | None
    left_at: datetime | None


class AttendeeDetail(AttendeeData):
    user: UserSummary


class GroupMeetingData(BaseModel):
    meeting: MeetingData
    created_by: UserSummary
    total_attendees: int
    accepted_attendees: int


class UpcomingMeetingData(BaseModel):
    meeting: MeetingData
    group_name: str
    attendance_status: AttendeeStatus
    created_by: UserSummary


class JoinedMeetingData(BaseModel):
    attendance: AttendeeData
    meeting: MeetingData


class AttendanceRecordData(BaseModel):
    """
    A completed meeting that a user took part in.
    """

    meeting: MeetingData
    group_name: str
    joined_at: datetime
    left_at: datetime | None
    minutes_present: int | None
