"""
Service layer for users.

Users are owned by the identity service; this module keeps the local mirror
that the social records point at, and provides user search.
"""

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from studysync.core.user import UserSummary
from studysync.core.uuid import UUID
from studysync.database.user import User, UserProfile

from .errors import Conflict, InvalidArgument, NotFound


class UserNotFound(NotFound):
    pass


class UserExistsError(Conflict):
    pass


class SearchQueryTooShort(InvalidArgument):
    pass


async def create(
    user_name: str,
    conn: AsyncSession,
    log: FilteringBoundLogger,
    user_id: UUID | None = None,
) -> User:
    """
    Creates a user (and their default, public, profile).

    Raises
    ------
    UserExistsError
        If a user with this ID already exists.
    """

    user_name = user_name.strip()

    log = log.bind(user_name=user_name)

    user = User(user_name=user_name) if user_id is None else User(
        user_id=user_id, user_name=user_name
    )
    user.profile = UserProfile(
        user_id=user.user_id, created_at=user.created_at, updated_at=user.created_at
    )

    try:
        conn.add(user)
        await conn.flush()
    except IntegrityError:
        await log.ainfo("user.create.exists")
        raise UserExistsError(f"User with ID {user.user_id} already exists")

    log = log.bind(user_id=user.user_id)
    await log.ainfo("user.created")

    return user


async def ensure(
    user_id: UUID, user_name: str, conn: AsyncSession, log: FilteringBoundLogger
) -> User:
    """
    Return the local mirror of an identity, creating it on first sight. The
    identity service owns user names, so a changed name replaces ours.

    Raises
    ------
    UserExistsError
        If a concurrent request created the same user first.
    """
    user = await conn.get(User, user_id)

    if user is None:
        return await create(user_name=user_name, user_id=user_id, conn=conn, log=log)

    user_name = user_name.strip()

    if user.user_name != user_name:
        log = log.bind(user_id=user_id, old_user_name=user.user_name)
        user.user_name = user_name
        conn.add(user)
        await conn.flush()
        await log.ainfo("user.renamed", user_name=user_name)

    return user


async def read_by_id(user_id: UUID, conn: AsyncSession) -> User:
    res = await conn.get(User, user_id)

    if res is None:
        raise UserNotFound(f"User with ID {user_id} not found in the database")

    return res


async def read_by_name(user_name: str, conn: AsyncSession) -> User:
    """
    User names are not unique; this returns the oldest user with the name.
    """
    user_name = user_name.strip()

    query = (
        select(User).filter(User.user_name == user_name).order_by(User.created_at)
    )
    res = (await conn.execute(query)).unique().scalars().first()

    if res is None:
        raise UserNotFound(f"User with name {user_name} not found in the database")

    return res


async def search(
    query: str,
    viewer_id: UUID,
    conn: AsyncSession,
    log: FilteringBoundLogger,
    minimum_length: int = 2,
    limit: int = 20,
) -> list[UserSummary]:
    """
    Find users whose user name or display name contains `query`, ignoring
    case. The viewer and users with private profiles are never returned.

    Raises
    ------
    SearchQueryTooShort
        If the query is shorter than `minimum_length`.
    """
    query = (query or "").strip()

    log = log.bind(query=query, viewer_id=viewer_id)

    if len(query) < minimum_length:
        await log.ainfo("user.search.too_short")
        raise SearchQueryTooShort(
            f"Search query must be at least {minimum_length} characters"
        )

    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    pattern = f"%{escaped}%"

    statement = (
        select(User)
        .outerjoin(UserProfile, UserProfile.user_id == User.user_id)
        .where(
            or_(
                User.user_name.ilike(pattern, escape="\\"),
                UserProfile.display_name.ilike(pattern, escape="\\"),
            ),
            User.user_id != viewer_id,
            or_(UserProfile.is_public.is_(True), UserProfile.user_id.is_(None)),
        )
        .order_by(User.user_name)
        .limit(limit)
    )

    users = (await conn.execute(statement)).unique().scalars().all()

    await log.adebug("user.search.complete", number_of_results=len(users))

    return [user.to_summary() for user in users]

