"""
Core configuration
"""

import pytest_asyncio

from studysync.config.settings import Settings


@pytest_asyncio.fixture(scope="session")
def database_file(tmp_path_factory):
    yield tmp_path_factory.mktemp("database") / "studysync.db"


@pytest_asyncio.fixture(scope="session")
def server_settings(database_file):
    yield Settings(
        database_type="sqlite",
        database_db=str(database_file),
        database_echo=False,
    )


@pytest_asyncio.fixture(scope="session")
def database(server_settings: Settings):
    server_settings.sync_manager().create_all()
