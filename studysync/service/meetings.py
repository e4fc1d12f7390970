"""
Service layer for group meetings and their attendance.

A meeting belongs to a group. Scheduling it invites everyone who is in the
group at that moment (the organizer is recorded as having accepted). Each
invitee then responds, and separately joins and leaves the meeting itself.

Attendee states:

    invited -> accepted | declined     (respond, may be repeated)
    invited | accepted | declined -> attended   (join)
    attended -> attended, with left_at set      (leave, only after a join)
"""

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased
from structlog.typing import FilteringBoundLogger

from studysync.core.clock import as_utc, utcnow
from studysync.core.meeting import (
    AttendeeDetail,
    AttendeeStatus,
    GroupMeetingData,
    MeetingStatus,
    UpcomingMeetingData,
)
from studysync.core.random import meet_link
from studysync.core.uuid import UUID
from studysync.database.meeting import Meeting, MeetingAttendee

from . import groups as groups_service
from . import user as user_service
from .errors import Forbidden, InvalidArgument, NotFound

RESPONSE_STATUSES = (AttendeeStatus.ACCEPTED, AttendeeStatus.DECLINED)


class MeetingNotFound(NotFound):
    pass


class AttendeeNotFound(NotFound):
    pass


class InvalidMeetingError(InvalidArgument):
    pass


class NotAGroupMember(Forbidden):
    pass


class NotAnAttendee(Forbidden):
    pass


class MeetingPermissionDenied(Forbidden):
    pass


async def schedule(
    creator_id: UUID,
    group_id: UUID,
    title: str | None,
    description: str | None,
    scheduled_at: datetime | None,
    conn: AsyncSession,
    log: FilteringBoundLogger,
    duration_minutes: int = 60,
    meet_link_base_url: str = "https://meet.google.com",
) -> Meeting:
    """
    Schedule a meeting for a group and invite all of its current members.

    The meeting and every attendee row are built up front and written in
    the caller's transaction, so a meeting never exists with a partial
    invitation list.

    Parameters
    ----------
    creator_id: UUID
        The organizer; must be a member of the group.
    group_id: UUID
        The group the meeting is for.
    title: str
        Required.
    description: str | None
        Free text.
    scheduled_at: datetime
        Required. Naive values are taken to be UTC.
    duration_minutes: int
        Expected length of the meeting.

    Raises
    ------
    InvalidMeetingError
        If the title or time is missing, or the duration is not positive.
    NotAGroupMember
        If the organizer is not a member of the group.
    """

    title = (title or "").strip()

    log = log.bind(creator_id=creator_id, group_id=group_id, title=title)

    if not title or scheduled_at is None:
        await log.ainfo("meeting.schedule.missing_fields")
        raise InvalidMeetingError("Group ID, title, and scheduled time are required")

    if duration_minutes < 1:
        await log.ainfo("meeting.schedule.invalid_duration")
        raise InvalidMeetingError("Meeting duration must be positive")

    try:
        await groups_service.membership_of(
            group_id=group_id, user_id=creator_id, conn=conn, log=log
        )
    except groups_service.MembershipNotFound:
        await log.ainfo("meeting.schedule.not_member")
        raise NotAGroupMember("You are not a member of this group")

    group = await groups_service.read_by_id(group_id=group_id, conn=conn, log=log)
    creator = await user_service.read_by_id(user_id=creator_id, conn=conn)
    roster = await groups_service.roster_of(group_id=group_id, conn=conn)

    meeting = Meeting(
        group_id=group_id,
        group=group,
        title=title,
        description=description,
        scheduled_at=as_utc(scheduled_at),
        duration_minutes=duration_minutes,
        meet_link=meet_link(base_url=meet_link_base_url),
        created_by_id=creator_id,
        created_by=creator,
        status=MeetingStatus.SCHEDULED,
        created_at=utcnow(),
    )

    attendees = [
        MeetingAttendee(
            meeting_id=meeting.meeting_id,
            user_id=member_id,
            status=(
                AttendeeStatus.ACCEPTED
                if member_id == creator_id
                else AttendeeStatus.INVITED
            ),
        )
        for member_id in roster
    ]

    conn.add(meeting)
    await conn.flush()
    conn.add_all(attendees)
    await conn.flush()

    await log.ainfo(
        "meeting.scheduled",
        meeting_id=meeting.meeting_id,
        number_of_attendees=len(attendees),
    )

    return meeting


async def read_by_id(
    meeting_id: UUID, conn: AsyncSession, log: FilteringBoundLogger
) -> Meeting:
    """
    Raises
    ------
    MeetingNotFound
        If the meeting does not exist.
    """
    meeting = (
        await conn.execute(select(Meeting).where(Meeting.meeting_id == meeting_id))
    ).scalar_one_or_none()

    if meeting is None:
        await log.ainfo("meeting.not_found", meeting_id=meeting_id)
        raise MeetingNotFound(f"Meeting {meeting_id} not found")

    return meeting


async def list_for_group(
    group_id: UUID,
    caller_id: UUID,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> list[GroupMeetingData]:
    """
    All meetings of a group, soonest first, with invitation counts.

    Raises
    ------
    NotAGroupMember
        If the caller is not a member of the group.
    """

    log = log.bind(group_id=group_id, caller_id=caller_id)

    try:
        await groups_service.membership_of(
            group_id=group_id, user_id=caller_id, conn=conn, log=log
        )
    except groups_service.MembershipNotFound:
        await log.ainfo("meeting.list.not_member")
        raise NotAGroupMember("You are not a member of this group")

    invited = aliased(MeetingAttendee)
    total = (
        select(func.count(invited.attendee_id))
        .where(invited.meeting_id == Meeting.meeting_id)
        .correlate(Meeting)
        .scalar_subquery()
    )

    responded = aliased(MeetingAttendee)
    accepted = (
        select(func.count(responded.attendee_id))
        .where(
            responded.meeting_id == Meeting.meeting_id,
            responded.status == AttendeeStatus.ACCEPTED,
        )
        .correlate(Meeting)
        .scalar_subquery()
    )

    result = await conn.execute(
        select(Meeting, total, accepted)
        .where(Meeting.group_id == group_id)
        .order_by(Meeting.scheduled_at.asc())
    )

    meetings = [
        GroupMeetingData(
            meeting=meeting.to_core(),
            created_by=meeting.created_by.to_summary(),
            total_attendees=total_attendees,
            accepted_attendees=accepted_attendees,
        )
        for meeting, total_attendees, accepted_attendees in result.all()
    ]

    await log.adebug("meeting.listed", number_of_meetings=len(meetings))

    return meetings


async def list_upcoming_for_user(
    user_id: UUID,
    conn: AsyncSession,
    log: FilteringBoundLogger,
    limit: int = 10,
    now: datetime | None = None,
) -> list[UpcomingMeetingData]:
    """
    The `limit` nearest future meetings, across all groups, that `user_id`
    was invited to and that have not been cancelled.
    """

    now = as_utc(now) if now is not None else utcnow()

    log = log.bind(user_id=user_id, limit=limit)

    result = await conn.execute(
        select(Meeting, MeetingAttendee.status)
        .join(MeetingAttendee, MeetingAttendee.meeting_id == Meeting.meeting_id)
        .where(
            MeetingAttendee.user_id == user_id,
            Meeting.scheduled_at > now,
            Meeting.status != MeetingStatus.CANCELLED,
        )
        .order_by(Meeting.scheduled_at.asc())
        .limit(limit)
    )

    meetings = [
        UpcomingMeetingData(
            meeting=meeting.to_core(),
            group_name=meeting.group.name,
            attendance_status=status,
            created_by=meeting.created_by.to_summary(),
        )
        for meeting, status in result.all()
    ]

    await log.adebug("meeting.upcoming", number_of_meetings=len(meetings))

    return meetings


async def _read_attendee(
    meeting_id: UUID,
    user_id: UUID,
    conn: AsyncSession,
    joined_only: bool = False,
) -> MeetingAttendee | None:
    statement = select(MeetingAttendee).where(
        MeetingAttendee.meeting_id == meeting_id,
        MeetingAttendee.user_id == user_id,
    )

    if joined_only:
        statement = statement.where(MeetingAttendee.joined_at.is_not(None))

    return (await conn.execute(statement)).scalar_one_or_none()


async def respond(
    user_id: UUID,
    meeting_id: UUID,
    status: AttendeeStatus,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> MeetingAttendee:
    """
    Accept or decline a meeting invitation. Users may change their mind as
    often as they like.

    Raises
    ------
    InvalidMeetingError
        If `status` is neither accepted nor declined.
    AttendeeNotFound
        If the user was not invited to the meeting.
    """

    log = log.bind(user_id=user_id, meeting_id=meeting_id, status=status)

    if status not in RESPONSE_STATUSES:
        await log.ainfo("meeting.respond.invalid_status")
        raise InvalidMeetingError(f"Invalid status {status}")

    attendee = await _read_attendee(meeting_id=meeting_id, user_id=user_id, conn=conn)

    if attendee is None:
        await log.ainfo("meeting.respond.not_invited")
        raise AttendeeNotFound("Meeting invitation not found")

    attendee.status = status
    await conn.flush()

    await log.ainfo("meeting.responded")

    return attendee


async def join(
    user_id: UUID,
    meeting_id: UUID,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> tuple[MeetingAttendee, Meeting]:
    """
    Mark the user as present. Whatever they answered before, they are now
    `attended`, and `joined_at` is (re)set to the current time.

    Raises
    ------
    AttendeeNotFound
        If the user was not invited to the meeting.
    """

    log = log.bind(user_id=user_id, meeting_id=meeting_id)

    attendee = await _read_attendee(meeting_id=meeting_id, user_id=user_id, conn=conn)

    if attendee is None:
        await log.ainfo("meeting.join.not_invited")
        raise AttendeeNotFound("Meeting not found or not invited")

    # TODO: decide whether re-joining should keep the first joined_at; for
    # now every join restarts the clock.
    attendee.status = AttendeeStatus.ATTENDED
    attendee.joined_at = utcnow()
    await conn.flush()

    meeting = await read_by_id(meeting_id=meeting_id, conn=conn, log=log)

    await log.ainfo("meeting.joined")

    return attendee, meeting


async def leave(
    user_id: UUID,
    meeting_id: UUID,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> MeetingAttendee:
    """
    Record the user leaving a meeting they joined. Their status is left as is.

    Raises
    ------
    AttendeeNotFound
        If the user was not invited, or has not joined yet.
    """

    log = log.bind(user_id=user_id, meeting_id=meeting_id)

    attendee = await _read_attendee(
        meeting_id=meeting_id, user_id=user_id, conn=conn, joined_only=True
    )

    if attendee is None:
        await log.ainfo("meeting.leave.not_joined")
        raise AttendeeNotFound("Meeting not found or not joined")

    attendee.left_at = utcnow()
    await conn.flush()

    await log.ainfo("meeting.left")

    return attendee


async def list_attendees(
    caller_id: UUID,
    meeting_id: UUID,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> list[AttendeeDetail]:
    """
    Everyone invited to a meeting, ordered by status and then user name. Only
    invitees may look.

    Raises
    ------
    NotAnAttendee
        If the caller was not invited to the meeting.
    """

    log = log.bind(caller_id=caller_id, meeting_id=meeting_id)

    if await _read_attendee(meeting_id=meeting_id, user_id=caller_id, conn=conn) is None:
        await log.ainfo("meeting.attendees.access_denied")
        raise NotAnAttendee("Access denied")

    result = await conn.execute(
        select(MeetingAttendee).where(MeetingAttendee.meeting_id == meeting_id)
    )

    attendees = sorted(
        result.scalars().all(),
        key=lambda attendee: (attendee.status.value, attendee.user.user_name),
    )

    await log.adebug("meeting.attendees.listed", number_of_attendees=len(attendees))

    return [
        AttendeeDetail(**attendee.to_core().model_dump(), user=attendee.user.to_summary())
        for attendee in attendees
    ]


async def update_status(
    caller_id: UUID,
    meeting_id: UUID,
    status: MeetingStatus,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> Meeting:
    """
    Move a meeting to any status. Only its organizer, or a group admin or
    moderator, may do this. Any status may follow any other.

    Raises
    ------
    InvalidMeetingError
        If `status` is not a meeting status.
    MeetingPermissionDenied
        If the meeting does not exist, the caller is no longer in its group,
        or they are neither the organizer nor an admin/moderator.
    """

    log = log.bind(caller_id=caller_id, meeting_id=meeting_id, status=status)

    try:
        status = MeetingStatus(status)
    except ValueError:
        await log.ainfo("meeting.status.invalid")
        raise InvalidMeetingError(f"Invalid status {status}")

    meeting = (
        await conn.execute(select(Meeting).where(Meeting.meeting_id == meeting_id))
    ).scalar_one_or_none()

    if meeting is None:
        await log.ainfo("meeting.status.not_found")
        raise MeetingPermissionDenied("Permission denied")

    try:
        membership = await groups_service.membership_of(
            group_id=meeting.group_id, user_id=caller_id, conn=conn, log=log
        )
    except groups_service.MembershipNotFound:
        await log.ainfo("meeting.status.not_member")
        raise MeetingPermissionDenied("Permission denied")

    if meeting.created_by_id != caller_id and not membership.can_manage_meetings():
        await log.ainfo("meeting.status.access_denied", role=membership.role)
        raise MeetingPermissionDenied("Permission denied")

    previous = meeting.status
    meeting.status = status
    await conn.flush()

    await log.ainfo("meeting.status.updated", previous_status=previous)

    return meeting
