"""
Database session management.

Both managers register every table before creating or dropping the schema.
"""

from sqlalchemy import URL, Engine
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel, create_engine


def _metadata():
    from studysync.database.meta import ALL_TABLES  # noqa: F401

    return SQLModel.metadata


class SyncSessionManager:
    """
    Synchronous sessions, for setup and scripts:

    manager = SyncSessionManager(conn_url)

    with manager.session() as conn:
        user = conn.get(User, user_id)
    """

    connection_url: URL
    engine: Engine
    session: sessionmaker

    def __init__(self, connection_url: URL, echo: bool = False):
        self.connection_url = connection_url
        self.engine = create_engine(self.connection_url, echo=echo)
        self.session = sessionmaker(self.engine)

    def create_all(self):
        """
        Create any missing tables. There are no migrations; this is how the
        schema gets set up.
        """
        with self.engine.begin() as conn:
            _metadata().create_all(conn)

    def drop_all(self):
        """
        Drop every table, and all of the data with it. Tests only.
        """
        with self.engine.begin() as conn:
            _metadata().drop_all(conn)


class AsyncSessionManager:
    """
    Asynchronous sessions. The application owns one of these and hands
    sessions out per request:

    manager = AsyncSessionManager(conn_url)

    async with manager.session() as conn:
        async with conn.begin():
            group = await groups_service.read_by_id(group_id, conn=conn, log=log)
    """

    connection_url: URL
    engine: AsyncEngine
    session: async_sessionmaker

    def __init__(self, connection_url: URL, echo: bool = False):
        self.connection_url = connection_url
        self.engine = create_async_engine(self.connection_url, echo=echo)
        self.session = async_sessionmaker(self.engine)

    async def create_all(self):
        async with self.engine.begin() as conn:
            await conn.run_sync(_metadata().create_all)

    async def drop_all(self):
        async with self.engine.begin() as conn:
            await conn.run_sync(_metadata().drop_all)

    async def dispose(self):
        await self.engine.dispose()
