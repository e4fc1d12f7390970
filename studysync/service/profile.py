"""
Service layer for user profiles.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from studysync.core.clock import utcnow
from studysync.core.user import ProfileData
from studysync.core.uuid import UUID
from studysync.database.user import UserProfile

from . import user as user_service
from . import visibility
from .errors import Forbidden


class ProfilePrivate(Forbidden):
    pass


async def read_profile(
    viewer_id: UUID, owner_id: UUID, conn: AsyncSession, log: FilteringBoundLogger
) -> ProfileData:
    """
    Read `owner_id`'s profile on behalf of `viewer_id`.

    Raises
    ------
    user_service.UserNotFound
        If the owner does not exist.
    ProfilePrivate
        If the profile is private and the viewer is neither its owner nor an
        accepted friend.
    """

    log = log.bind(viewer_id=viewer_id, owner_id=owner_id)

    owner = await user_service.read_by_id(user_id=owner_id, conn=conn)
    profile = owner.to_profile()

    if not await visibility.can_view_profile(
        viewer_id=viewer_id, owner_id=owner_id, is_public=profile.is_public, conn=conn
    ):
        await log.ainfo("profile.private")
        raise ProfilePrivate("Profile is private")

    await log.adebug("profile.read")

    return profile


async def update_profile(
    user_id: UUID,
    conn: AsyncSession,
    log: FilteringBoundLogger,
    display_name: str | None = None,
    bio: str | None = None,
    avatar_url: str | None = None,
    study_interests: list[str] | None = None,
    timezone: str | None = None,
    preferred_study_times: list[str] | None = None,
    is_public: bool = True,
) -> ProfileData:
    """
    Replace the editable parts of a user's profile, creating it if needed.
    """

    log = log.bind(user_id=user_id, is_public=is_public)

    user = await user_service.read_by_id(user_id=user_id, conn=conn)
    current_time = utcnow()

    if user.profile is None:
        user.profile = UserProfile(user_id=user.user_id, created_at=current_time)

    profile = user.profile
    profile.display_name = display_name
    profile.bio = bio
    profile.avatar_url = avatar_url
    profile.study_interests = list(study_interests or [])
    profile.timezone = timezone
    profile.preferred_study_times = list(preferred_study_times or [])
    profile.is_public = is_public
    profile.updated_at = current_time

    await conn.flush()

    await log.ainfo("profile.updated")

    return user.to_profile()
