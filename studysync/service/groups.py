"""
Service layer for study groups.

Groups are created by a user, who becomes their first member and admin.
Everyone else gets in with the group's invite code, as long as there is
room.
"""

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased
from structlog.typing import FilteringBoundLogger

from studysync.core.clock import utcnow
from studysync.core.group import MembershipRole, UserGroupData
from studysync.core.random import invite_code as generate_invite_code
from studysync.core.uuid import UUID
from studysync.database.group import GroupMembership, StudyGroup

from . import user as user_service
from .errors import CapacityExceeded, Conflict, InvalidArgument, NotFound


class GroupNotFound(NotFound):
    pass


class MembershipNotFound(NotFound):
    pass


class InvalidGroupError(InvalidArgument):
    pass


class AlreadyMemberError(Conflict):
    pass


class InviteCodeUnavailable(Conflict):
    pass


class GroupFullError(CapacityExceeded):
    pass


async def _unused_invite_code(
    conn: AsyncSession, length: int, attempts: int, log: FilteringBoundLogger
) -> str:
    for _ in range(attempts):
        code = generate_invite_code(length=length)

        taken = (
            await conn.execute(
                select(StudyGroup.group_id).where(
                    func.upper(StudyGroup.invite_code) == code.upper()
                )
            )
        ).first()

        if taken is None:
            return code

        await log.ainfo("group.invite_code.collision")

    raise InviteCodeUnavailable("Unable to allocate a unique invite code")


async def create(
    creator_id: UUID,
    name: str,
    description: str | None,
    category: str | None,
    conn: AsyncSession,
    log: FilteringBoundLogger,
    max_members: int = 10,
    is_private: bool = False,
    minimum_name_length: int = 3,
    invite_code_length: int = 10,
    invite_code_attempts: int = 8,
) -> StudyGroup:
    """
    Create a new study group, with its creator as the first member and admin.

    Parameters
    ----------
    creator_id: UUID
        The user creating the group.
    name: str
        The group's name, at least `minimum_name_length` characters long.
    description: str | None
        Free text describing the group.
    category: str | None
        Free text category (e.g. a subject).
    max_members: int
        The most members the group may ever have, the creator included.
    is_private: bool
        Whether the group is private.

    Raises
    ------
    InvalidGroupError
        If the name is too short or `max_members` is less than one.
    user_service.UserNotFound
        If the creator does not exist.
    InviteCodeUnavailable
        If no unused invite code could be found.
    """

    name = (name or "").strip()

    log = log.bind(
        creator_id=creator_id,
        group_name=name,
        max_members=max_members,
        is_private=is_private,
    )

    if len(name) < minimum_name_length:
        await log.ainfo("group.create.name_too_short")
        raise InvalidGroupError(
            f"Group name must be at least {minimum_name_length} characters"
        )

    if max_members < 1:
        await log.ainfo("group.create.invalid_max_members")
        raise InvalidGroupError("A group must allow at least one member")

    creator = await user_service.read_by_id(user_id=creator_id, conn=conn)

    code = await _unused_invite_code(
        conn=conn, length=invite_code_length, attempts=invite_code_attempts, log=log
    )

    current_time = utcnow()

    group = StudyGroup(
        name=name,
        description=description,
        category=category,
        creator_id=creator_id,
        creator=creator,
        max_members=max_members,
        is_private=is_private,
        invite_code=code.upper(),
        created_at=current_time,
        updated_at=current_time,
    )
    membership = GroupMembership(
        group_id=group.group_id,
        user_id=creator_id,
        role=MembershipRole.ADMIN,
        joined_at=current_time,
    )

    # Both rows live in the caller's transaction; neither is visible without
    # the other.
    try:
        conn.add(group)
        await conn.flush()
        conn.add(membership)
        await conn.flush()
    except IntegrityError as e:
        log = log.bind(error=e)
        await log.ainfo("group.create.integrity_error")
        raise InviteCodeUnavailable("Invite code was claimed concurrently")

    await log.ainfo("group.created", group_id=group.group_id)

    return group


async def read_by_id(
    group_id: UUID,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> StudyGroup:
    """
    Read a group by its ID.

    Raises
    ------
    GroupNotFound
        If the group does not exist.
    """
    log = log.bind(group_id=group_id)

    group = (
        await conn.execute(select(StudyGroup).where(StudyGroup.group_id == group_id))
    ).scalar_one_or_none()

    if group is None:
        await log.ainfo("group.not_found")
        raise GroupNotFound(f"Group with id {group_id} not found")

    await log.adebug("group.found")
    return group


async def member_count(group_id: UUID, conn: AsyncSession) -> int:
    result = await conn.execute(
        select(func.count(GroupMembership.membership_id)).where(
            GroupMembership.group_id == group_id
        )
    )
    return result.scalar_one()


async def list_for_user(
    user_id: UUID, conn: AsyncSession, log: FilteringBoundLogger
) -> list[UserGroupData]:
    """
    Every group `user_id` belongs to, most recently joined first, with their
    role and the group's current size.
    """

    log = log.bind(user_id=user_id)

    counted = aliased(GroupMembership)
    size = (
        select(func.count(counted.membership_id))
        .where(counted.group_id == StudyGroup.group_id)
        .correlate(StudyGroup)
        .scalar_subquery()
    )

    result = await conn.execute(
        select(StudyGroup, GroupMembership.role, GroupMembership.joined_at, size)
        .join(GroupMembership, GroupMembership.group_id == StudyGroup.group_id)
        .where(GroupMembership.user_id == user_id)
        .order_by(GroupMembership.joined_at.desc())
    )

    groups = [
        UserGroupData(
            group=group.to_core(),
            role=role,
            joined_at=joined_at,
            member_count=count,
        )
        for group, role, joined_at, count in result.all()
    ]

    await log.adebug("group.listed", number_of_groups=len(groups))

    return groups


async def join_by_invite_code(
    user_id: UUID,
    code: str,
    conn: AsyncSession,
    log: FilteringBoundLogger,
) -> StudyGroup:
    """
    Add `user_id` to the group with invite code `code` as a plain member.

    The group row is locked for the rest of the transaction while the
    members are counted, so two joins racing for the last place are
    serialized and only one of them gets it.

    Raises
    ------
    GroupNotFound
        If no group has this invite code.
    AlreadyMemberError
        If the user is already a member of the group.
    GroupFullError
        If the group already has `max_members` members.
    """

    code = (code or "").strip().upper()

    log = log.bind(user_id=user_id, invite_code=code)

    await user_service.read_by_id(user_id=user_id, conn=conn)

    group = (
        await conn.execute(
            select(StudyGroup)
            .where(StudyGroup.invite_code == code)
            .with_for_update(of=StudyGroup)
        )
    ).scalar_one_or_none()

    if group is None:
        await log.ainfo("group.join.invalid_code")
        raise GroupNotFound("Invalid invite code")

    log = log.bind(group_id=group.group_id)

    existing = (
        await conn.execute(
            select(GroupMembership.membership_id).where(
                GroupMembership.group_id == group.group_id,
                GroupMembership.user_id == user_id,
            )
        )
    ).first()

    if existing is not None:
        await log.ainfo("group.join.already_member")
        raise AlreadyMemberError("Already a member of this group")

    count = await member_count(group_id=group.group_id, conn=conn)

    if count >= group.max_members:
        await log.ainfo(
            "group.join.full", member_count=count, max_members=group.max_members
        )
        raise GroupFullError("Group is full")

    try:
        conn.add(
            GroupMembership(
                group_id=group.group_id,
                user_id=user_id,
                role=MembershipRole.MEMBER,
                joined_at=utcnow(),
            )
        )
        await conn.flush()
    except IntegrityError:
        await log.ainfo("group.join.already_member")
        raise AlreadyMemberError("Already a member of this group")

    await log.ainfo("group.joined", member_count=count + 1)

    return group


async def membership_of(
    group_id: UUID, user_id: UUID, conn: AsyncSession, log: FilteringBoundLogger
) -> GroupMembership:
    """
    The membership of `user_id` in `group_id`.

    Raises
    ------
    MembershipNotFound
        If the user is not a member of the group (or the group does not exist).
    """
    membership = (
        await conn.execute(
            select(GroupMembership).where(
                GroupMembership.group_id == group_id,
                GroupMembership.user_id == user_id,
            )
        )
    ).scalar_one_or_none()

    if membership is None:
        await log.adebug(
            "group.membership.not_found", group_id=group_id, user_id=user_id
        )
        raise MembershipNotFound(f"User {user_id} is not a member of group {group_id}")

    return membership


async def roster_of(group_id: UUID, conn: AsyncSession) -> list[UUID]:
    """
    The IDs of the current members of a group, in the order they joined.
    """
    result = await conn.execute(
        select(GroupMembership.user_id)
        .where(GroupMembership.group_id == group_id)
        .order_by(GroupMembership.joined_at, GroupMembership.membership_id)
    )
    return list(result.scalars().all())
