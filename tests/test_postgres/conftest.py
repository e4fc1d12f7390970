"""
Fixtures for tests that need a real PostgreSQL server, started in a
container. Select them with `pytest -m postgres`.
"""

import pytest_asyncio
import structlog
from testcontainers.postgres import PostgresContainer

from studysync.config.settings import Settings


@pytest_asyncio.fixture(scope="session")
def database_container():
    with PostgresContainer() as container:
        yield {
            "database_type": "postgres",
            "database_user": container.username,
            "database_password": container.password,
            "database_port": container.get_exposed_port(container.port),
            "database_host": "localhost",
            "database_db": container.dbname,
        }


@pytest_asyncio.fixture(scope="session")
def postgres_settings(database_container):
    settings = Settings(**database_container)
    settings.sync_manager().create_all()

    yield settings


@pytest_asyncio.fixture(scope="session")
async def postgres_manager(postgres_settings: Settings):
    manager = postgres_settings.async_manager()

    yield manager

    await manager.dispose()


@pytest_asyncio.fixture(scope="session")
def logger():
    yield structlog.get_logger()
