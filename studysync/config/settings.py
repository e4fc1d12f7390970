"""
Main settings object.
"""

from datetime import timedelta
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import URL

from .managers import AsyncSessionManager, SyncSessionManager


class Settings(BaseSettings):
    database_type: Literal["sqlite", "postgres"] = "sqlite"
    database_user: str | None = None
    database_password: str | None = None
    database_port: int | None = None
    database_host: str | None = None
    database_db: str = "studysync.db"

    database_echo: bool = False

    # Identity tokens are issued elsewhere; we only need the public key to
    # verify them. Either give the key inline or point at a PEM file.
    identity_public_key: str | bytes | None = None
    identity_public_key_filename: Path | None = None
    identity_key_pair_type: str = "Ed25519"

    # Only used to mint development tokens (`studysync token`).
    identity_private_key_filename: Path | None = None
    identity_key_password: str = "CHANGEME"
    development_token_expiry: timedelta = timedelta(hours=8)

    # Example/testing setup
    create_example_users: bool = False
    example_user_names: list[str] = ["alice", "bob", "carol"]

    # Domain knobs
    default_max_members: int = 10
    default_meeting_duration_minutes: int = 60
    upcoming_meeting_limit: int = 10
    invite_code_length: int = 10
    invite_code_attempts: int = 8
    meet_link_base_url: str = "https://meet.google.com"
    minimum_group_name_length: int = 3
    minimum_search_length: int = 2
    search_result_limit: int = 20

    hostname: str = "http://localhost:8000"

    model_config = SettingsConfigDict(env_prefix="STUDYSYNC_", env_file=".env")

    @property
    def sync_driver(self) -> str:
        match self.database_type:
            case "sqlite":
                return "sqlite"
            case "postgres":
                return "postgresql+psycopg"
            case _:
                raise ValueError

    @property
    def async_driver(self) -> str:
        match self.database_type:
            case "sqlite":
                return "sqlite+aiosqlite"
            case "postgres":
                return "postgresql+asyncpg"
            case _:
                raise ValueError

    @property
    def sync_uri(self) -> URL:
        return URL.create(
            drivername=self.sync_driver,
            username=self.database_user,
            password=self.database_password,
            host=self.database_host,
            port=self.database_port,
            database=self.database_db,
        )

    def sync_manager(self) -> SyncSessionManager:
        return SyncSessionManager(connection_url=self.sync_uri, echo=self.database_echo)

    @property
    def async_uri(self) -> URL:
        return URL.create(
            drivername=self.async_driver,
            username=self.database_user,
            password=self.database_password,
            host=self.database_host,
            port=self.database_port,
            database=self.database_db,
        )

    def async_manager(self) -> AsyncSessionManager:
        return AsyncSessionManager(
            connection_url=self.async_uri, echo=self.database_echo
        )

    def read_public_key(self) -> bytes | None:
        """
        The identity verification key, inline value first, then the file.
        """
        if self.identity_public_key is not None:
            key = self.identity_public_key
        elif self.identity_public_key_filename is not None:
            with open(self.identity_public_key_filename, "r") as handle:
                key = handle.read()
        else:
            return None

        if isinstance(key, str):
            key = key.encode("utf-8")

        return key
