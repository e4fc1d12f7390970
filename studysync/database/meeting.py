"""
Meeting and attendance ORM
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

from studysync.core.meeting import (
    AttendeeData,
    AttendeeStatus,
    MeetingData,
    MeetingStatus,
)
from studysync.core.uuid import UUID, uuid7

from .group import StudyGroup
from .user import User


class Meeting(SQLModel, table=True):
    meeting_id: UUID = Field(primary_key=True, default_factory=uuid7)

    group_id: UUID = Field(
        foreign_key="study_group.group_id", ondelete="CASCADE", index=True
    )
    group: StudyGroup = Relationship(sa_relationship_kwargs=dict(lazy="joined"))

    title: str
    description: str | None = None
    scheduled_at: datetime = Field(sa_column=Column(DateTime(timezone=True), index=True))
    duration_minutes: int = 60
    # Opaque join token for the external conferencing service.
    meet_link: str

    created_by_id: UUID = Field(foreign_key="user.user_id")
    created_by: User = Relationship(sa_relationship_kwargs=dict(lazy="joined"))

    status: MeetingStatus = MeetingStatus.SCHEDULED
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True)),
    )

    def to_core(self) -> MeetingData:
        return MeetingData(
            meeting_id=self.meeting_id,
            group_id=self.group_id,
            title=self.title,
            description=self.description,
            scheduled_at=self.scheduled_at,
            duration_minutes=self.duration_minutes,
            meet_link=self.meet_link,
            created_by_id=self.created_by_id,
            status=self.status,
            created_at=self.created_at,
        )


class MeetingAttendee(SQLModel, table=True):
    """
    One user's invitation to, response to, and attendance of a meeting. The
    response (`status`) and the attendance times are tracked separately.
    """

    __tablename__ = "meeting_attendee"
    __table_args__ = (
        UniqueConstraint("meeting_id", "user_id", name="uix_meeting_attendee"),
    )

    attendee_id: UUID = Field(primary_key=True, default_factory=uuid7)

    meeting_id: UUID = Field(
        foreign_key="meeting.meeting_id", ondelete="CASCADE", index=True
    )
    user_id: UUID = Field(foreign_key="user.user_id", ondelete="CASCADE", index=True)
    user: User = Relationship(sa_relationship_kwargs=dict(lazy="joined"))

    status: AttendeeStatus = AttendeeStatus.INVITED
    joined_at: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True))
    )
    left_at: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True))
    )

    def to_core(self) -> AttendeeData:
        return AttendeeData(
            attendee_id=self.attendee_id,
            meeting_id=self.meeting_id,
            user_id=self.user_id,
            status=self.status,
            joined_at=self.joined_at,
            left_at=self.left_at,
        )
