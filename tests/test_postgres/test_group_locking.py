"""
Tests that joins racing for the last place in a group are serialized by
the lock on the group row.
"""

import asyncio

import pytest

from studysync.core.uuid import uuid7
from studysync.service import groups as groups_service
from studysync.service import user as user_service

pytestmark = pytest.mark.postgres


async def new_user(manager, logger, prefix: str):
    async with manager.session() as conn:
        async with conn.begin():
            user = await user_service.create(
                user_name=f"{prefix}_{uuid7().hex}", conn=conn, log=logger
            )
            return user.user_id


async def join(manager, logger, user_id, code: str):
    async with manager.session() as conn:
        async with conn.begin():
            group = await groups_service.join_by_invite_code(
                user_id=user_id, code=code, conn=conn, log=logger
            )
            return group.group_id


@pytest.mark.asyncio(loop_scope="session")
async def test_join_waits_for_group_lock(postgres_manager, logger):
    owner = await new_user(postgres_manager, logger, "owner")
    first = await new_user(postgres_manager, logger, "first")
    second = await new_user(postgres_manager, logger, "second")

    async with postgres_manager.session() as conn:
        async with conn.begin():
            group = await groups_service.create(
                creator_id=owner,
                name="Organic Chemistry",
                description=None,
                category=None,
                max_members=2,
                conn=conn,
                log=logger,
            )
            GROUP_ID = group.group_id
            INVITE_CODE = group.invite_code

    async with postgres_manager.session() as conn:
        async with conn.begin():
            await groups_service.join_by_invite_code(
                user_id=first, code=INVITE_CODE, conn=conn, log=logger
            )

            # The first join holds the group row until it commits
            racing = asyncio.create_task(
                join(postgres_manager, logger, second, INVITE_CODE)
            )
            done, _ = await asyncio.wait([racing], timeout=1.0)
            assert not done

    with pytest.raises(groups_service.GroupFullError):
        await racing

    async with postgres_manager.session() as conn:
        async with conn.begin():
            assert await groups_service.roster_of(group_id=GROUP_ID, conn=conn) == [
                owner,
                first,
            ]


@pytest.mark.asyncio(loop_scope="session")
async def test_concurrent_joins_fill_group_once(postgres_manager, logger):
    owner = await new_user(postgres_manager, logger, "owner")
    joiners = [await new_user(postgres_manager, logger, "joiner") for _ in range(4)]

    async with postgres_manager.session() as conn:
        async with conn.begin():
            group = await groups_service.create(
                creator_id=owner,
                name="Organic Chemistry",
                description=None,
                category=None,
                max_members=3,
                conn=conn,
                log=logger,
            )
            GROUP_ID = group.group_id
            INVITE_CODE = group.invite_code

    results = await asyncio.gather(
        *(join(postgres_manager, logger, user_id, INVITE_CODE) for user_id in joiners),
        return_exceptions=True,
    )

    joined = [result for result in results if result == GROUP_ID]
    full = [r for r in results if isinstance(r, groups_service.GroupFullError)]

    assert len(joined) == 2
    assert len(full) == 2

    async with postgres_manager.session() as conn:
        async with conn.begin():
            assert await groups_service.member_count(group_id=GROUP_ID, conn=conn) == 3
