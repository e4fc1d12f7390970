"""
Configuration variables and fixtures for the service layer tests.
"""

import pytest_asyncio
import structlog

from studysync.config.settings import Settings
from studysync.core.uuid import uuid7
from studysync.service import groups as groups_service
from studysync.service import user as user_service


@pytest_asyncio.fixture(scope="session")
def session_manager(server_settings: Settings, database):
    yield server_settings.async_manager()


@pytest_asyncio.fixture(scope="session")
def logger():
    yield structlog.get_logger()


@pytest_asyncio.fixture(scope="session")
def create_user(session_manager, logger):
    """
    Creates a user whose name starts with `prefix` and returns their ID.
    Every call gets a fresh user, as all tests share one database.
    """

    async def create(prefix: str = "user"):
        async with session_manager.session() as conn:
            async with conn.begin():
                user = await user_service.create(
                    user_name=f"{prefix}_{uuid7().hex}", conn=conn, log=logger
                )
                return user.user_id

    return create


@pytest_asyncio.fixture(scope="session")
def create_group(session_manager, logger):
    """
    Creates a group owned by `creator_id`, adds `member_ids` to it through
    its invite code, and returns the group's ID and invite code.
    """

    async def create(creator_id, member_ids=(), max_members: int = 10):
        async with session_manager.session() as conn:
            async with conn.begin():
                group = await groups_service.create(
                    creator_id=creator_id,
                    name="Linear Algebra",
                    description="Eigen-everything",
                    category="Mathematics",
                    max_members=max_members,
                    conn=conn,
                    log=logger,
                )
                group_id = group.group_id
                invite_code = group.invite_code

        for member_id in member_ids:
            async with session_manager.session() as conn:
                async with conn.begin():
                    await groups_service.join_by_invite_code(
                        user_id=member_id, code=invite_code, conn=conn, log=logger
                    )

        return group_id, invite_code

    return create
