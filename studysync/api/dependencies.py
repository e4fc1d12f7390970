"""
Dependencies used by the API.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger
from structlog.typing import FilteringBoundLogger

from studysync.config.settings import Settings


@lru_cache
def SETTINGS():
    return Settings()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_async_session(request: Request):
    """
    One session and one transaction per request: committed if the request
    handler returns, rolled back if it raises or is cancelled.
    """
    async with request.app.state.database_manager.session() as session:
        async with session.begin():
            yield session


def logger():
    return get_logger()


SettingsDependency = Annotated[Settings, Depends(get_settings)]
DatabaseDependency = Annotated[AsyncSession, Depends(get_async_session)]
LoggerDependency = Annotated[FilteringBoundLogger, Depends(logger)]
