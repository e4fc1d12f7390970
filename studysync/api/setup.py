"""
Initial setup of the service. Creates the database tables and, in example
mode, a throwaway identity key pair with a handful of users and tokens to
go with it.
"""

from studysync.config.settings import Settings
from studysync.core.auth import issue_access_token
from studysync.core.cryptography import generate_key_pair


def initial_setup(settings: Settings):
    """
    Creates the table schema if it does not already exist.
    """
    manager = settings.sync_manager()
    manager.create_all()

    return


def example_setup(settings: Settings) -> bytes | None:
    """
    Performs the 'example' setup where we create a key pair and fake users,
    printing a token for each of them. Returns the public key that the
    tokens verify against.
    """

    if not settings.create_example_users:
        return None

    from sqlalchemy import select

    from studysync.database.user import User, UserProfile

    manager = settings.sync_manager()
    manager.create_all()

    public, private = generate_key_pair(
        key_pair_type=settings.identity_key_pair_type,
        key_password=settings.identity_key_password,
    )

    with manager.session() as conn:
        for user_name in settings.example_user_names:
            user = conn.execute(
                select(User)
                .filter(User.user_name == user_name)
                .order_by(User.created_at)
            ).scalars().first()

            if user is None:
                user = User(user_name=user_name)
                user.profile = UserProfile(
                    user_id=user.user_id,
                    display_name=user_name.title(),
                    created_at=user.created_at,
                    updated_at=user.created_at,
                )
                conn.add(user)

            token = issue_access_token(
                user_id=user.user_id,
                user_name=user.user_name,
                private_key=private,
                key_password=settings.identity_key_password,
                key_pair_type=settings.identity_key_pair_type,
                validity=settings.development_token_expiry,
            )

            print(f"Example user {user_name}, token: {token}")

        conn.commit()

    return public
