"""
Tests the study group service layer.
"""

import pytest

from studysync.core.group import MembershipRole
from studysync.core.random import INVITE_CODE_ALPHABET
from studysync.core.uuid import uuid7
from studysync.service import groups as groups_service
from studysync.service import user as user_service
from studysync.service.errors import CapacityExceeded


@pytest.mark.asyncio(loop_scope="session")
async def test_create_group(session_manager, logger, create_user):
    owner = await create_user("owner")

    async with session_manager.session() as conn:
        async with conn.begin():
            group = await groups_service.create(
                creator_id=owner,
                name="  Organic Chemistry  ",
                description="Weekly problem sets",
                category="Chemistry",
                max_members=5,
                is_private=True,
                conn=conn,
                log=logger,
            )

            GROUP_ID = group.group_id
            INVITE_CODE = group.invite_code

            assert group.name == "Organic Chemistry"
            assert group.creator_id == owner

    assert len(INVITE_CODE) == 10
    assert INVITE_CODE == INVITE_CODE.upper()
    assert set(INVITE_CODE) <= set(INVITE_CODE_ALPHABET)

    async with session_manager.session() as conn:
        async with conn.begin():
            group = await groups_service.read_by_id(
                group_id=GROUP_ID, conn=conn, log=logger
            )
            assert group.max_members == 5
            assert group.is_private

            membership = await groups_service.membership_of(
                group_id=GROUP_ID, user_id=owner, conn=conn, log=logger
            )
            assert membership.role == MembershipRole.ADMIN
            assert membership.can_manage_meetings()

            groups = await groups_service.list_for_user(
                user_id=owner, conn=conn, log=logger
            )

    assert len(groups) == 1
    assert groups[0].group.group_id == GROUP_ID
    assert groups[0].role == MembershipRole.ADMIN
    assert groups[0].member_count == 1


@pytest.mark.asyncio(loop_scope="session")
async def test_create_group_invalid(session_manager, logger, create_user):
    owner = await create_user("owner")

    with pytest.raises(groups_service.InvalidGroupError):
        async with session_manager.session() as conn:
            async with conn.begin():
                await groups_service.create(
                    creator_id=owner,
                    name=" ab ",
                    description=None,
                    category=None,
                    conn=conn,
                    log=logger,
                )

    with pytest.raises(groups_service.InvalidGroupError):
        async with session_manager.session() as conn:
            async with conn.begin():
                await groups_service.create(
                    creator_id=owner,
                    name="Statistics",
                    description=None,
                    category=None,
                    max_members=0,
                    conn=conn,
                    log=logger,
                )

    with pytest.raises(user_service.UserNotFound):
        async with session_manager.session() as conn:
            async with conn.begin():
                await groups_service.create(
                    creator_id=uuid7(),
                    name="Statistics",
                    description=None,
                    category=None,
                    conn=conn,
                    log=logger,
                )

    # Nothing was left behind by the failed attempts
    async with session_manager.session() as conn:
        async with conn.begin():
            groups = await groups_service.list_for_user(
                user_id=owner, conn=conn, log=logger
            )

    assert groups == []


@pytest.mark.asyncio(loop_scope="session")
async def test_join_group_capacity(
    session_manager, logger, create_user, create_group
):
    owner = await create_user("owner")
    second = await create_user("second")
    third = await create_user("third")

    GROUP_ID, INVITE_CODE = await create_group(creator_id=owner, max_members=2)

    # Codes match whatever the case
    async with session_manager.session() as conn:
        async with conn.begin():
            group = await groups_service.join_by_invite_code(
                user_id=second, code=f" {INVITE_CODE.lower()} ", conn=conn, log=logger
            )
            assert group.group_id == GROUP_ID

    with pytest.raises(groups_service.AlreadyMemberError):
        async with session_manager.session() as conn:
            async with conn.begin():
                await groups_service.join_by_invite_code(
                    user_id=second, code=INVITE_CODE, conn=conn, log=logger
                )

    with pytest.raises(groups_service.GroupFullError) as excinfo:
        async with session_manager.session() as conn:
            async with conn.begin():
                await groups_service.join_by_invite_code(
                    user_id=third, code=INVITE_CODE, conn=conn, log=logger
                )

    assert isinstance(excinfo.value, CapacityExceeded)

    with pytest.raises(groups_service.GroupNotFound):
        async with session_manager.session() as conn:
            async with conn.begin():
                await groups_service.join_by_invite_code(
                    user_id=third, code="NOT-A-CODE", conn=conn, log=logger
                )

    async with session_manager.session() as conn:
        async with conn.begin():
            assert await groups_service.member_count(group_id=GROUP_ID, conn=conn) == 2
            assert await groups_service.roster_of(group_id=GROUP_ID, conn=conn) == [
                owner,
                second,
            ]

            membership = await groups_service.membership_of(
                group_id=GROUP_ID, user_id=second, conn=conn, log=logger
            )
            assert membership.role == MembershipRole.MEMBER
            assert not membership.can_manage_meetings()

            groups = await groups_service.list_for_user(
                user_id=second, conn=conn, log=logger
            )

            assert [g.member_count for g in groups] == [2]
            assert [g.role for g in groups] == [MembershipRole.MEMBER]

    with pytest.raises(groups_service.MembershipNotFound):
        async with session_manager.session() as conn:
            async with conn.begin():
                await groups_service.membership_of(
                    group_id=GROUP_ID, user_id=third, conn=conn, log=logger
                )


@pytest.mark.asyncio(loop_scope="session")
async def test_read_unknown_group(session_manager, logger):
    with pytest.raises(groups_service.GroupNotFound):
        async with session_manager.session() as conn:
            async with conn.begin():
                await groups_service.read_by_id(group_id=uuid7(), conn=conn, log=logger)


@pytest.mark.asyncio(loop_scope="session")
async def test_groups_most_recently_joined_first(
    session_manager, logger, create_user, create_group
):
    owner = await create_user("owner")
    member = await create_user("member")

    OLDER_ID, OLDER_CODE = await create_group(creator_id=owner)
    NEWER_ID, NEWER_CODE = await create_group(creator_id=owner)

    # Joined in the opposite order to creation
    for code in (NEWER_CODE, OLDER_CODE):
        async with session_manager.session() as conn:
            async with conn.begin():
                await groups_service.join_by_invite_code(
                    user_id=member, code=code, conn=conn, log=logger
                )

    async with session_manager.session() as conn:
        async with conn.begin():
            owned = await groups_service.list_for_user(
                user_id=owner, conn=conn, log=logger
            )
            joined = await groups_service.list_for_user(
                user_id=member, conn=conn, log=logger
            )

    assert [g.group.group_id for g in owned] == [NEWER_ID, OLDER_ID]
    assert [g.role for g in owned] == [MembershipRole.ADMIN, MembershipRole.ADMIN]

    assert [g.group.group_id for g in joined] == [OLDER_ID, NEWER_ID]
    assert [g.member_count for g in joined] == [2, 2]
