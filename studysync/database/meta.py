"""
Meta functionality for the database.
"""

from .friendship import Friendship
from .group import GroupMembership, StudyGroup
from .meeting import Meeting, MeetingAttendee
from .user import User, UserProfile

ALL_TABLES = (
    User,
    UserProfile,
    Friendship,
    StudyGroup,
    GroupMembership,
    Meeting,
    MeetingAttendee,
)
