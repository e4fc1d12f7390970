"""
A simple CLI for running a sample server and minting development tokens.
"""

import os
import sys
import time
from multiprocessing import Process

import uvicorn


def run_server(**kwargs):
    for k, v in kwargs.items():
        os.environ[k] = v

    uvicorn.run("studysync.api.app:create_app", factory=True, host="0.0.0.0")


def mint_token(user_name: str):
    from sqlalchemy import select

    from studysync.config.settings import Settings
    from studysync.core.auth import issue_access_token
    from studysync.database.user import User, UserProfile

    settings = Settings()

    if settings.identity_private_key_filename is None:
        print("Set STUDYSYNC_IDENTITY_PRIVATE_KEY_FILENAME to mint tokens")
        exit(1)

    with open(settings.identity_private_key_filename, "rb") as handle:
        private_key = handle.read()

    manager = settings.sync_manager()

    with manager.session() as conn:
        user = conn.execute(
            select(User)
            .filter(User.user_name == user_name)
            .order_by(User.created_at)
        ).scalars().first()

        if user is None:
            user = User(user_name=user_name)
            user.profile = UserProfile(
                user_id=user.user_id,
                created_at=user.created_at,
                updated_at=user.created_at,
            )
            conn.add(user)
            conn.commit()
            print(f"Created user {user_name}")

        user_id = user.user_id

    print(
        issue_access_token(
            user_id=user_id,
            user_name=user_name,
            private_key=private_key,
            key_password=settings.identity_key_password,
            key_pair_type=settings.identity_key_pair_type,
            validity=settings.development_token_expiry,
        )
    )


def main():
    try:
        run = sys.argv[1] == "run"
        setup = sys.argv[1] == "setup"
        token = sys.argv[1] == "token"
        dev = run and sys.argv[2] == "dev"
        prod = run and sys.argv[2] == "prod"
    except IndexError:
        print(
            "Only supported commands are studysync run dev, studysync run prod, "
            "studysync setup, or studysync token {username}"
        )
        exit(1)

    if run and dev:
        from testcontainers.postgres import PostgresContainer

        with PostgresContainer() as container:
            print(
                f"Container details: username={container.username}, password={container.password}, port={container.get_exposed_port(container.port)}"
            )

            environment = {
                "STUDYSYNC_DATABASE_TYPE": "postgres",
                "STUDYSYNC_DATABASE_USER": container.username,
                "STUDYSYNC_DATABASE_PASSWORD": container.password,
                "STUDYSYNC_DATABASE_PORT": str(
                    container.get_exposed_port(container.port)
                ),
                "STUDYSYNC_DATABASE_HOST": "localhost",
                "STUDYSYNC_DATABASE_DB": container.dbname,
                "STUDYSYNC_DATABASE_ECHO": "False",
                "STUDYSYNC_CREATE_EXAMPLE_USERS": "True",
            }

            background_process = Process(target=run_server, kwargs=environment)
            background_process.start()

            while True:
                time.sleep(1)

    if run and prod:
        from studysync.api.setup import initial_setup
        from studysync.config.settings import Settings

        settings = Settings()
        initial_setup(settings=settings)

        run_server()

    if setup:
        from studysync.api.setup import initial_setup
        from studysync.config.settings import Settings

        settings = Settings()
        initial_setup(settings=settings)

        print("Setup complete, please restart the container or application")
        exit(0)

    if token:
        try:
            user_name = sys.argv[2]
        except IndexError:
            print("Usage: studysync token {username}")
            exit(1)

        mint_token(user_name=user_name)
