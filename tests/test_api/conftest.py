"""
Fixtures for testing the API through its ASGI interface, with tokens
signed by a freshly generated identity key pair.
"""

from datetime import timedelta

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from studysync.api.app import create_app
from studysync.config.settings import Settings
from studysync.core.auth import issue_access_token
from studysync.core.cryptography import generate_key_pair
from studysync.core.uuid import uuid7

KEY_PASSWORD = "TEST_PASSWORD"


@pytest_asyncio.fixture(scope="session")
def identity_keys():
    public, private = generate_key_pair(
        key_pair_type="Ed25519", key_password=KEY_PASSWORD
    )
    yield public, private


@pytest_asyncio.fixture(scope="session")
def api_settings(tmp_path_factory, identity_keys):
    public, _ = identity_keys

    settings = Settings(
        database_type="sqlite",
        database_db=str(tmp_path_factory.mktemp("api") / "studysync_api.db"),
        identity_public_key=public,
        identity_key_password=KEY_PASSWORD,
        default_max_members=3,
    )
    settings.sync_manager().create_all()

    yield settings


@pytest_asyncio.fixture(scope="session")
async def client(api_settings):
    app = create_app(settings=api_settings)

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client

    await app.state.database_manager.dispose()


@pytest_asyncio.fixture(scope="session")
def caller(identity_keys):
    """
    Mint an identity, by default for a brand new user with a unique name.
    Returns their ID and the headers to send as them.
    """
    _, private = identity_keys

    def make(
        prefix: str = "user",
        validity: timedelta = timedelta(hours=1),
        user_id=None,
        user_name: str | None = None,
    ):
        user_id = user_id or uuid7()
        token = issue_access_token(
            user_id=user_id,
            user_name=user_name or f"{prefix}_{user_id.hex}",
            private_key=private,
            key_password=KEY_PASSWORD,
            key_pair_type="Ed25519",
            validity=validity,
        )
        return user_id, {"Authorization": f"Bearer {token}"}

    return make
