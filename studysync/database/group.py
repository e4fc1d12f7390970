"""
Study group ORM
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

from studysync.core.group import GroupData, MembershipData, MembershipRole
from studysync.core.uuid import UUID, uuid7

from .user import User


class GroupMembership(SQLModel, table=True):
    """
    A record of a user's membership of a study group.
    """

    __tablename__ = "group_membership"
    __table_args__ = (
        UniqueConstraint("group_id", "user_id", name="uix_group_membership"),
    )

    membership_id: UUID = Field(primary_key=True, default_factory=uuid7)

    group_id: UUID = Field(
        foreign_key="study_group.group_id", ondelete="CASCADE", index=True
    )
    user_id: UUID = Field(foreign_key="user.user_id", ondelete="CASCADE", index=True)

    role: MembershipRole = MembershipRole.MEMBER
    joined_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True)),
    )

    def can_manage_meetings(self) -> bool:
        return self.role in (MembershipRole.ADMIN, MembershipRole.MODERATOR)

    def to_core(self) -> MembershipData:
        return MembershipData(
            membership_id=self.membership_id,
            group_id=self.group_id,
            user_id=self.user_id,
            role=self.role,
            joined_at=self.joined_at,
        )


class StudyGroup(SQLModel, table=True):
    __tablename__ = "study_group"

    group_id: UUID = Field(primary_key=True, default_factory=uuid7)

    name: str
    description: str | None = None
    category: str | None = None

    creator_id: UUID = Field(foreign_key="user.user_id")
    creator: User = Relationship(sa_relationship_kwargs=dict(lazy="joined"))

    max_members: int = 10
    is_private: bool = False
    # Stored upper case; never changes once issued.
    invite_code: str = Field(unique=True, index=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True)),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True)),
    )

    def to_core(self) -> GroupData:
        return GroupData(
            group_id=self.group_id,
            name=self.name,
            description=self.description,
            creator_id=self.creator_id,
            category=self.category,
            max_members=self.max_members,
            is_private=self.is_private,
            invite_code=self.invite_code,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
