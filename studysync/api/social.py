"""
Profiles, friendships, user search and study groups.
"""

from fastapi import APIRouter, status

from studysync.core.friendship import FriendListEntry, FriendshipData
from studysync.core.group import GroupData, UserGroupData
from studysync.core.models import (
    FriendRequestContent,
    FriendResponseContent,
    GroupCreationRequest,
    JoinGroupRequest,
    JoinGroupResponse,
    ProfileUpdateRequest,
)
from studysync.core.user import ProfileData, UserSummary
from studysync.core.uuid import UUID
from studysync.service import friendship as friendship_service
from studysync.service import groups as groups_service
from studysync.service import profile as profile_service
from studysync.service import user as user_service

from .dependencies import DatabaseDependency, LoggerDependency, SettingsDependency
from .identity import CallerDependency

social_app = APIRouter(tags=["Social"])


@social_app.get(
    "/profile",
    summary="Get your own profile",
    responses={200: {"description": "Your profile."}},
)
async def read_own_profile(
    caller: CallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> ProfileData:
    return await profile_service.read_profile(
        viewer_id=caller.user_id, owner_id=caller.user_id, conn=conn, log=log
    )


@social_app.get(
    "/profile/{user_id}",
    summary="Get a user's profile",
    description=(
        "Private profiles are only visible to their owner and to accepted friends."
    ),
    responses={
        200: {"description": "The profile."},
        403: {"description": "Profile is private."},
        404: {"description": "User not found."},
    },
)
async def read_profile(
    user_id: UUID,
    caller: CallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> ProfileData:
    return await profile_service.read_profile(
        viewer_id=caller.user_id, owner_id=user_id, conn=conn, log=log
    )


@social_app.put(
    "/profile",
    summary="Update your profile",
    responses={200: {"description": "The updated profile."}},
)
async def update_profile(
    content: ProfileUpdateRequest,
    caller: CallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> ProfileData:
    return await profile_service.update_profile(
        user_id=caller.user_id, conn=conn, log=log, **content.model_dump()
    )


@social_app.post(
    "/friends/request",
    summary="Send a friend request",
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "Friend request sent."},
        404: {"description": "User not found."},
        409: {"description": "A friendship already exists, or it is to yourself."},
    },
)
async def send_friend_request(
    content: FriendRequestContent,
    caller: CallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> FriendshipData:
    friendship = await friendship_service.send_request(
        requester_id=caller.user_id,
        addressee_id=content.addressee_id,
        conn=conn,
        log=log,
    )
    return friendship.to_core()


@social_app.put(
    "/friends/respond",
    summary="Accept or decline a friend request",
    responses={
        200: {"description": "The updated friendship."},
        400: {"description": "Invalid status."},
        404: {"description": "No pending request with this ID for you."},
    },
)
async def respond_to_friend_request(
    content: FriendResponseContent,
    caller: CallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> FriendshipData:
    friendship = await friendship_service.respond(
        addressee_id=caller.user_id,
        friendship_id=content.friendship_id,
        status=content.status,
        conn=conn,
        log=log,
    )
    return friendship.to_core()


@social_app.get(
    "/friends",
    summary="List your friendships",
    description="Every friendship you are part of, in any state, newest first.",
)
async def list_friends(
    caller: CallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> list[FriendListEntry]:
    return await friendship_service.list_for_user(
        user_id=caller.user_id, conn=conn, log=log
    )


@social_app.get(
    "/users/search",
    summary="Search for users",
    responses={400: {"description": "Query too short."}},
)
async def search_users(
    caller: CallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
    settings: SettingsDependency,
    q: str = "",
) -> list[UserSummary]:
    return await user_service.search(
        query=q,
        viewer_id=caller.user_id,
        conn=conn,
        log=log,
        minimum_length=settings.minimum_search_length,
        limit=settings.search_result_limit,
    )


@social_app.post(
    "/groups",
    summary="Create a study group",
    description="The creator becomes the group's first member and its admin.",
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "Group created."},
        400: {"description": "Invalid group details."},
    },
)
async def create_group(
    content: GroupCreationRequest,
    caller: CallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
    settings: SettingsDependency,
) -> GroupData:
    log = log.bind(user_id=caller.user_id)

    group = await groups_service.create(
        creator_id=caller.user_id,
        name=content.name,
        description=content.description,
        category=content.category,
        max_members=content.max_members or settings.default_max_members,
        is_private=content.is_private,
        minimum_name_length=settings.minimum_group_name_length,
        invite_code_length=settings.invite_code_length,
        invite_code_attempts=settings.invite_code_attempts,
        conn=conn,
        log=log,
    )
    return group.to_core()


@social_app.get(
    "/groups",
    summary="List your study groups",
)
async def list_groups(
    caller: CallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> list[UserGroupData]:
    return await groups_service.list_for_user(
        user_id=caller.user_id, conn=conn, log=log
    )


@social_app.post(
    "/groups/join",
    summary="Join a study group with its invite code",
    responses={
        200: {"description": "Joined the group."},
        404: {"description": "Invalid invite code."},
        409: {"description": "Already a member, or the group is full."},
    },
)
async def join_group(
    content: JoinGroupRequest,
    caller: CallerDependency,
    conn: DatabaseDependency,
    log: LoggerDependency,
) -> JoinGroupResponse:
    group = await groups_service.join_by_invite_code(
        user_id=caller.user_id, code=content.invite_code, conn=conn, log=log
    )
    return JoinGroupResponse(message="Successfully joined group", group=group.to_core())
