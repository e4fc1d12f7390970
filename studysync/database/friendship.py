"""
Friendship ORM
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

from studysync.core.friendship import FriendshipData, FriendshipStatus
from studysync.core.uuid import UUID, uuid7

from .user import User


def ordered_pair(user_a: UUID, user_b: UUID) -> tuple[UUID, UUID]:
    """
    The canonical (low, high) form of an unordered pair of users.
    """
    return (user_a, user_b) if user_a.bytes <= user_b.bytes else (user_b, user_a)


class Friendship(SQLModel, table=True):
    """
    A friendship between two users. Only one may exist per pair of users,
    whichever of them sent the request; the canonical pair columns carry that
    constraint in the database.
    """

    __table_args__ = (
        UniqueConstraint("user_low_id", "user_high_id", name="uix_friendship_pair"),
    )

    friendship_id: UUID = Field(primary_key=True, default_factory=uuid7)

    requester_id: UUID = Field(
        foreign_key="user.user_id", ondelete="CASCADE", index=True
    )
    addressee_id: UUID = Field(
        foreign_key="user.user_id", ondelete="CASCADE", index=True
    )

    user_low_id: UUID
    user_high_id: UUID

    status: FriendshipStatus = FriendshipStatus.PENDING

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True)),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True)),
    )

    requester: User = Relationship(
        sa_relationship_kwargs=dict(
            lazy="joined", foreign_keys="[Friendship.requester_id]"
        )
    )
    addressee: User = Relationship(
        sa_relationship_kwargs=dict(
            lazy="joined", foreign_keys="[Friendship.addressee_id]"
        )
    )

    def counterpart(self, user_id: UUID) -> User:
        return self.addressee if self.requester_id == user_id else self.requester

    def to_core(self) -> FriendshipData:
        return FriendshipData(
            friendship_id=self.friendship_id,
            requester_id=self.requester_id,
            addressee_id=self.addressee_id,
            status=self.status,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
