"""
Read-only queries over settled social records, for the analytics layer.
Nothing here writes.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from studysync.core.clock import as_utc
from studysync.core.meeting import AttendanceRecordData, AttendeeStatus, MeetingStatus
from studysync.core.uuid import UUID
from studysync.database.meeting import Meeting, MeetingAttendee

from . import friendship as friendship_service


async def attended_meetings(
    user_id: UUID, conn: AsyncSession, log: FilteringBoundLogger
) -> list[AttendanceRecordData]:
    """
    Completed meetings that `user_id` joined, most recent first.
    """

    result = await conn.execute(
        select(Meeting, MeetingAttendee.joined_at, MeetingAttendee.left_at)
        .join(MeetingAttendee, MeetingAttendee.meeting_id == Meeting.meeting_id)
        .where(
            MeetingAttendee.user_id == user_id,
            MeetingAttendee.status == AttendeeStatus.ATTENDED,
            MeetingAttendee.joined_at.is_not(None),
            Meeting.status == MeetingStatus.COMPLETED,
        )
        .order_by(Meeting.scheduled_at.desc())
    )

    records = []

    for meeting, joined_at, left_at in result.all():
        minutes_present = None

        if left_at is not None:
            present = as_utc(left_at) - as_utc(joined_at)
            minutes_present = max(int(present.total_seconds() // 60), 0)

        records.append(
            AttendanceRecordData(
                meeting=meeting.to_core(),
                group_name=meeting.group.name,
                joined_at=joined_at,
                left_at=left_at,
                minutes_present=minutes_present,
            )
        )

    await log.adebug(
        "history.attended_meetings", user_id=user_id, number_of_meetings=len(records)
    )

    return records


async def accepted_friend_ids(user_id: UUID, conn: AsyncSession) -> list[UUID]:
    return await friendship_service.accepted_friend_ids(user_id=user_id, conn=conn)
