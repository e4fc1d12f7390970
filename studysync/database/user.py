"""
ORM for user identities and their profiles.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, Relationship, SQLModel

from studysync.core.user import ProfileData, UserSummary
from studysync.core.uuid import UUID, uuid7


class UserProfile(SQLModel, table=True):
    __tablename__ = "user_profile"

    user_id: UUID = Field(
        primary_key=True, foreign_key="user.user_id", ondelete="CASCADE"
    )

    display_name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    study_interests: list[str] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    timezone: str | None = None
    preferred_study_times: list[str] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    # Maintained by the analytics layer; read-only here.
    productivity_score: int = 0
    is_public: bool = True

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True)),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True)),
    )


class User(SQLModel, table=True):
    """
    A mirror of an identity issued by the identity service. We only keep what
    is needed to show who someone is.
    """

    user_id: UUID = Field(primary_key=True, default_factory=uuid7)

    user_name: str = Field(index=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True)),
    )

    profile: Optional[UserProfile] = Relationship(
        sa_relationship_kwargs=dict(lazy="joined", uselist=False)
    )

    def to_summary(self) -> UserSummary:
        profile = self.profile

        return UserSummary(
            user_id=self.user_id,
            user_name=self.user_name,
            display_name=profile.display_name if profile else None,
            avatar_url=profile.avatar_url if profile else None,
            productivity_score=profile.productivity_score if profile else 0,
        )

    def to_profile(self) -> ProfileData:
        profile = self.profile or UserProfile(
            user_id=self.user_id,
            created_at=self.created_at,
            updated_at=self.created_at,
        )

        return ProfileData(
            user_id=self.user_id,
            user_name=self.user_name,
            display_name=profile.display_name,
            bio=profile.bio,
            avatar_url=profile.avatar_url,
            study_interests=profile.study_interests or [],
            timezone=profile.timezone,
            preferred_study_times=profile.preferred_study_times or [],
            productivity_score=profile.productivity_score,
            is_public=profile.is_public,
            created_at=profile.created_at,
            updated_at=profile.updated_at,
        )
