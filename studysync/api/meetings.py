"""
Group meetings and attendance.
"""

from fastapi import APIRouter, status

from studysync.core.meeting import (
    AttendanceRecordData,
    AttendeeData,
    AttendeeDetail,
    GroupMeetingData,
    JoinedMeetingData,
    MeetingData,
    UpcomingMeetingData,
)
from studysync.core.models import (
    AttendanceResponseContent,
    MeetingCreationRequest,
    MeetingStatusContent,
)
from studysync.core.uuid import UUID
from studysync.service import history as history_service
from studysync.service import meetings as meetings_service

from .dependencies import DatabaseDependency, LoggerDependency, SettingsDependency
from .identity import CallerDependency

meeting_app = APIRouter(tags=["Meetings"])


@meeting_app.post(
    "",
    summary="Schedule a meeting",
    description="Every current member of the group is invited.",
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "Meeting scheduled."},
        400: {"description": "Title or time missing."},
        403: {"description": "You are not a member of this group."},
    },
)
async def schedule_meeting(
    content: MeetingCreationRequest,
    caller: CallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
    settings: SettingsDependency,
) -> MeetingData:
    log = log.bind(user_id=caller.user_id)

    meeting = await meetings_service.schedule(
        creator_id=caller.user_id,
        group_id=content.group_id,
        title=content.title,
        description=content.description,
        scheduled_at=content.scheduled_at,
        duration_minutes=(
            content.duration_minutes or settings.default_meeting_duration_minutes
        ),
        meet_link_base_url=settings.meet_link_base_url,
        conn=conn,
        log=log,
    )
    return meeting.to_core()


@meeting_app.get(
    "/group/{group_id}",
    summary="List a group's meetings",
    responses={403: {"description": "You are not a member of this group."}},
)
async def list_group_meetings(
    group_id: UUID,
    caller: CallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> list[GroupMeetingData]:
    return await meetings_service.list_for_group(
        group_id=group_id, caller_id=caller.user_id, conn=conn, log=log
    )


@meeting_app.get(
    "/upcoming",
    summary="Your next meetings",
)
async def list_upcoming_meetings(
    caller: CallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
    settings: SettingsDependency,
) -> list[UpcomingMeetingData]:
    return await meetings_service.list_upcoming_for_user(
        user_id=caller.user_id,
        limit=settings.upcoming_meeting_limit,
        conn=conn,
        log=log,
    )


@meeting_app.get(
    "/history",
    summary="Completed meetings you attended",
)
async def list_attended_meetings(
    caller: CallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> list[AttendanceRecordData]:
    return await history_service.attended_meetings(
        user_id=caller.user_id, conn=conn, log=log
    )


@meeting_app.put(
    "/{meeting_id}/respond",
    summary="Accept or decline a meeting invitation",
    responses={
        400: {"description": "Invalid status."},
        404: {"description": "Meeting invitation not found."},
    },
)
async def respond_to_meeting(
    meeting_id: UUID,
    content: AttendanceResponseContent,
    caller: CallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> AttendeeData:
    attendee = await meetings_service.respond(
        user_id=caller.user_id,
        meeting_id=meeting_id,
        status=content.status,
        conn=conn,
        log=log,
    )
    return attendee.to_core()


@meeting_app.post(
    "/{meeting_id}/join",
    summary="Join a meeting",
    responses={404: {"description": "Meeting not found or not invited."}},
)
async def join_meeting(
    meeting_id: UUID,
    caller: CallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> JoinedMeetingData:
    attendee, meeting = await meetings_service.join(
        user_id=caller.user_id, meeting_id=meeting_id, conn=conn, log=log
    )
    return JoinedMeetingData(attendance=attendee.to_core(), meeting=meeting.to_core())


@meeting_app.post(
    "/{meeting_id}/leave",
    summary="Leave a meeting",
    responses={404: {"description": "Meeting not found or not joined."}},
)
async def leave_meeting(
    meeting_id: UUID,
    caller: CallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> AttendeeData:
    attendee = await meetings_service.leave(
        user_id=caller.user_id, meeting_id=meeting_id, conn=conn, log=log
    )
    return attendee.to_core()


@meeting_app.get(
    "/{meeting_id}/attendees",
    summary="List a meeting's attendees",
    responses={403: {"description": "You were not invited to this meeting."}},
)
async def list_meeting_attendees(
    meeting_id: UUID,
    caller: CallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> list[AttendeeDetail]:
    return await meetings_service.list_attendees(
        caller_id=caller.user_id, meeting_id=meeting_id, conn=conn, log=log
    )


@meeting_app.put(
    "/{meeting_id}/status",
    summary="Change a meeting's status",
    description="Only the organizer or a group admin/moderator may do this.",
    responses={403: {"description": "Permission denied."}},
)
async def update_meeting_status(
    meeting_id: UUID,
    content: MeetingStatusContent,
    caller: CallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> MeetingData:
    meeting = await meetings_service.update_status(
        caller_id=caller.user_id,
        meeting_id=meeting_id,
        status=content.status,
        conn=conn,
        log=log,
    )
    return meeting.to_core()
