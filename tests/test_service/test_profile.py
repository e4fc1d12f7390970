"""
Tests profiles, their visibility, and user search.
"""

import pytest

from studysync.core.friendship import FriendshipStatus
from studysync.core.uuid import uuid7
from studysync.service import friendship as friendship_service
from studysync.service import profile as profile_service
from studysync.service import user as user_service
from studysync.service import visibility


def test_can_view():
    owner = uuid7()
    viewer = uuid7()

    assert visibility.can_view(viewer, owner, is_public=True, are_friends=False)
    assert visibility.can_view(owner, owner, is_public=False, are_friends=False)
    assert visibility.can_view(viewer, owner, is_public=False, are_friends=True)
    assert not visibility.can_view(viewer, owner, is_public=False, are_friends=False)


@pytest.mark.asyncio(loop_scope="session")
async def test_profile_visibility(session_manager, logger, create_user):
    owner = await create_user("owner")
    viewer = await create_user("viewer")

    # Profiles start out public
    async with session_manager.session() as conn:
        async with conn.begin():
            profile = await profile_service.read_profile(
                viewer_id=viewer, owner_id=owner, conn=conn, log=logger
            )

    assert profile.is_public
    assert profile.study_interests == []
    assert profile.productivity_score == 0

    async with session_manager.session() as conn:
        async with conn.begin():
            profile = await profile_service.update_profile(
                user_id=owner,
                display_name="Ada",
                bio="Numbers, mostly",
                study_interests=["calculus", "logic"],
                timezone="Europe/London",
                preferred_study_times=["evening"],
                is_public=False,
                conn=conn,
                log=logger,
            )

    assert profile.display_name == "Ada"
    assert profile.study_interests == ["calculus", "logic"]
    assert not profile.is_public

    with pytest.raises(profile_service.ProfilePrivate):
        async with session_manager.session() as conn:
            async with conn.begin():
                await profile_service.read_profile(
                    viewer_id=viewer, owner_id=owner, conn=conn, log=logger
                )

    async with session_manager.session() as conn:
        async with conn.begin():
            profile = await profile_service.read_profile(
                viewer_id=owner, owner_id=owner, conn=conn, log=logger
            )

            assert profile.bio == "Numbers, mostly"
            assert profile.preferred_study_times == ["evening"]

            friendship = await friendship_service.send_request(
                requester_id=viewer, addressee_id=owner, conn=conn, log=logger
            )
            FRIENDSHIP_ID = friendship.friendship_id

    # A pending request is not enough
    with pytest.raises(profile_service.ProfilePrivate):
        async with session_manager.session() as conn:
            async with conn.begin():
                await profile_service.read_profile(
                    viewer_id=viewer, owner_id=owner, conn=conn, log=logger
                )

    async with session_manager.session() as conn:
        async with conn.begin():
            await friendship_service.respond(
                addressee_id=owner,
                friendship_id=FRIENDSHIP_ID,
                status=FriendshipStatus.ACCEPTED,
                conn=conn,
                log=logger,
            )

    async with session_manager.session() as conn:
        async with conn.begin():
            profile = await profile_service.read_profile(
                viewer_id=viewer, owner_id=owner, conn=conn, log=logger
            )

    assert profile.user_id == owner
    assert profile.display_name == "Ada"

    with pytest.raises(user_service.UserNotFound):
        async with session_manager.session() as conn:
            async with conn.begin():
                await profile_service.read_profile(
                    viewer_id=viewer, owner_id=uuid7(), conn=conn, log=logger
                )


@pytest.mark.asyncio(loop_scope="session")
async def test_search_users(session_manager, logger, create_user):
    viewer = await create_user("zebrafinch")
    visible = await create_user("zebrafinch")
    hidden = await create_user("zebrafinch")
    nicknamed = await create_user("someone")

    async with session_manager.session() as conn:
        async with conn.begin():
            await profile_service.update_profile(
                user_id=hidden, is_public=False, conn=conn, log=logger
            )
            await profile_service.update_profile(
                user_id=nicknamed,
                display_name="The Zebrafinch",
                conn=conn,
                log=logger,
            )

    async with session_manager.session() as conn:
        async with conn.begin():
            results = await user_service.search(
                query="  ZEBRAFINCH ", viewer_id=viewer, conn=conn, log=logger
            )
            limited = await user_service.search(
                query="zebrafinch", viewer_id=viewer, limit=1, conn=conn, log=logger
            )
            wildcards = await user_service.search(
                query="%_", viewer_id=viewer, conn=conn, log=logger
            )

    assert {result.user_id for result in results} == {visible, nicknamed}
    assert len(limited) == 1
    assert wildcards == []

    nickname = next(result for result in results if result.user_id == nicknamed)
    assert nickname.display_name == "The Zebrafinch"

    with pytest.raises(user_service.SearchQueryTooShort):
        async with session_manager.session() as conn:
            async with conn.begin():
                await user_service.search(
                    query=" z ", viewer_id=viewer, conn=conn, log=logger
                )


@pytest.mark.asyncio(loop_scope="session")
async def test_ensure_user(session_manager, logger):
    USER_ID = uuid7()

    async with session_manager.session() as conn:
        async with conn.begin():
            user = await user_service.ensure(
                user_id=USER_ID, user_name=f"mirrored_{USER_ID.hex}", conn=conn, log=logger
            )
            assert user.user_id == USER_ID

    async with session_manager.session() as conn:
        async with conn.begin():
            user = await user_service.ensure(
                user_id=USER_ID, user_name=f"mirrored_{USER_ID.hex}", conn=conn, log=logger
            )
            assert user.profile is not None

            same = await user_service.read_by_name(
                user_name=f"mirrored_{USER_ID.hex}", conn=conn
            )
            assert same.user_id == USER_ID

    # Names belong to the identity service and may repeat; only IDs collide
    async with session_manager.session() as conn:
        async with conn.begin():
            namesake = await user_service.create(
                user_name=f"mirrored_{USER_ID.hex}", conn=conn, log=logger
            )
            NAMESAKE_ID = namesake.user_id

    assert NAMESAKE_ID != USER_ID

    with pytest.raises(user_service.UserExistsError):
        async with session_manager.session() as conn:
            async with conn.begin():
                await user_service.create(
                    user_name="someone_else", user_id=USER_ID, conn=conn, log=logger
                )

    async with session_manager.session() as conn:
        async with conn.begin():
            user = await user_service.ensure(
                user_id=USER_ID, user_name=f"renamed_{USER_ID.hex}", conn=conn, log=logger
            )
            assert user.user_name == f"renamed_{USER_ID.hex}"

    async with session_manager.session() as conn:
        async with conn.begin():
            user = await user_service.read_by_id(user_id=USER_ID, conn=conn)
            assert user.user_name == f"renamed_{USER_ID.hex}"

            same = await user_service.read_by_name(
                user_name=f"mirrored_{USER_ID.hex}", conn=conn
            )
            assert same.user_id == NAMESAKE_ID
