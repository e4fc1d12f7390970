"""
Service layer for friendships.

A friendship starts `pending` when one user asks another, and the addressee
(only) settles it, once, as `accepted` or `declined`. There is at most one
friendship per pair of users, whoever asked first.
"""

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from studysync.core.clock import utcnow
from studysync.core.friendship import FriendListEntry, FriendshipStatus
from studysync.core.uuid import UUID
from studysync.database.friendship import Friendship, ordered_pair

from . import user as user_service
from .errors import Conflict, InvalidArgument, InvalidOperation, NotFound

RESPONSE_STATUSES = (FriendshipStatus.ACCEPTED, FriendshipStatus.DECLINED)


class FriendshipNotFound(NotFound):
    pass


class FriendshipExistsError(Conflict):
    pass


class SelfFriendshipError(InvalidOperation):
    pass


class InvalidFriendshipResponse(InvalidArgument):
    pass


def between(user_a: UUID, user_b: UUID):
    """
    Filter clause matching the friendship between two users, in either
    direction.
    """
    low, high = ordered_pair(user_a, user_b)
    return and_(Friendship.user_low_id == low, Friendship.user_high_id == high)


async def send_request(
    requester_id: UUID,
    addressee_id: UUID,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> Friendship:
    """
    Ask `addressee_id` to be friends with `requester_id`.

    Raises
    ------
    SelfFriendshipError
        If the two users are the same.
    user_service.UserNotFound
        If either user does not exist.
    FriendshipExistsError
        If any friendship (in any state, sent by either user) already exists
        between the two users.
    """

    log = log.bind(requester_id=requester_id, addressee_id=addressee_id)

    if requester_id == addressee_id:
        await log.ainfo("friendship.request.self")
        raise SelfFriendshipError("Cannot send friend request to yourself")

    requester = await user_service.read_by_id(user_id=requester_id, conn=conn)
    addressee = await user_service.read_by_id(user_id=addressee_id, conn=conn)

    existing = (
        await conn.execute(select(Friendship).where(between(requester_id, addressee_id)))
    ).scalar_one_or_none()

    if existing is not None:
        await log.ainfo(
            "friendship.request.exists",
            friendship_id=existing.friendship_id,
            status=existing.status,
        )
        raise FriendshipExistsError("Friendship request already exists")

    low, high = ordered_pair(requester_id, addressee_id)
    current_time = utcnow()

    friendship = Friendship(
        requester_id=requester_id,
        requester=requester,
        addressee_id=addressee_id,
        addressee=addressee,
        user_low_id=low,
        user_high_id=high,
        status=FriendshipStatus.PENDING,
        created_at=current_time,
        updated_at=current_time,
    )

    try:
        conn.add(friendship)
        await conn.flush()
    except IntegrityError:
        # Lost a race with a request going the other way.
        await log.ainfo("friendship.request.exists")
        raise FriendshipExistsError("Friendship request already exists")

    await log.ainfo("friendship.requested", friendship_id=friendship.friendship_id)

    return friendship


async def respond(
    addressee_id: UUID,
    friendship_id: UUID,
    status: FriendshipStatus,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> Friendship:
    """
    Accept or decline a pending friend request addressed to `addressee_id`.

    Raises
    ------
    InvalidFriendshipResponse
        If `status` is neither accepted nor declined.
    FriendshipNotFound
        If there is no pending request with this ID addressed to this user.
        This includes requests that have already been answered.
    """

    log = log.bind(addressee_id=addressee_id, friendship_id=friendship_id, status=status)

    if status not in RESPONSE_STATUSES:
        await log.ainfo("friendship.respond.invalid_status")
        raise InvalidFriendshipResponse(f"Invalid status {status}")

    friendship = (
        await conn.execute(
            select(Friendship)
            .where(
                Friendship.friendship_id == friendship_id,
                Friendship.addressee_id == addressee_id,
                Friendship.status == FriendshipStatus.PENDING,
            )
            .with_for_update(of=Friendship)
        )
    ).scalar_one_or_none()

    if friendship is None:
        await log.ainfo("friendship.respond.not_found")
        raise FriendshipNotFound("Friend request not found")

    friendship.status = status
    friendship.updated_at = utcnow()
    await conn.flush()

    await log.ainfo("friendship.responded")

    return friendship


async def list_for_user(
    user_id: UUID, conn: AsyncSession, log: FilteringBoundLogger
) -> list[FriendListEntry]:
    """
    All friendships (in any state) that `user_id` is part of, newest first,
    each with the other user's public details.
    """

    log = log.bind(user_id=user_id)

    result = await conn.execute(
        select(Friendship)
        .where(
            or_(Friendship.requester_id == user_id, Friendship.addressee_id == user_id)
        )
        .order_by(Friendship.created_at.desc())
    )

    friendships = result.unique().scalars().all()

    await log.adebug("friendship.listed", number_of_friendships=len(friendships))

    return [
        FriendListEntry(
            friendship_id=friendship.friendship_id,
            status=friendship.status,
            created_at=friendship.created_at,
            request_type="sent" if friendship.requester_id == user_id else "received",
            user=friendship.counterpart(user_id).to_summary(),
        )
        for friendship in friendships
    ]


async def are_friends(user_a: UUID, user_b: UUID, conn: AsyncSession) -> bool:
    """
    Whether an accepted friendship exists between the two users.
    """
    if user_a == user_b:
        return False

    result = await conn.execute(
        select(Friendship.friendship_id).where(
            between(user_a, user_b), Friendship.status == FriendshipStatus.ACCEPTED
        )
    )

    return result.first() is not None


async def can_view(viewer_id: UUID, owner_id: UUID, conn: AsyncSession) -> bool:
    """
    Whether `viewer_id` may see `owner_id`'s non-public data: they are the
    same person, or accepted friends.
    """
    if viewer_id == owner_id:
        return True

    return await are_friends(viewer_id, owner_id, conn=conn)


async def accepted_friend_ids(user_id: UUID, conn: AsyncSession) -> list[UUID]:
    result = await conn.execute(
        select(Friendship.requester_id, Friendship.addressee_id).where(
            or_(Friendship.requester_id == user_id, Friendship.addressee_id == user_id),
            Friendship.status == FriendshipStatus.ACCEPTED,
        )
    )

    return [
        addressee_id if requester_id == user_id else requester_id
        for requester_id, addressee_id in result.all()
    ]
