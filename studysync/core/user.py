"""
Shared user objects that are serialized.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from studysync.core.uuid import UUID


class IdentityData(BaseModel):
    """
    The caller identity carried by a verified access token.
    """

    user_id: UUID
    user_name: str


class UserSummary(BaseModel):
    """
    The public identity fields of a user, as shown next to friendships,
    attendee rows and search results.
    """

    user_id: UUID
    user_name: str
    display_name: str | None = None
    avatar_url: str | None = None
    productivity_score: int = 0


class ProfileData(BaseModel):
    user_id: UUID
    user_name: str
    display_name: str | None
    bio: str | None
    avatar_url: str | None
    study_interests: list[str] = Field(default_factory=list)
    timezone: str | None
    preferred_study_times: list[str] = Field(default_factory=list)
    productivity_score: int
    is_public: bool
    created_at: datetime
    updated_at: datetime
