"""
Who may see whose non-public data.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from studysync.core.uuid import UUID

from . import friendship as friendship_service


def can_view(viewer_id: UUID, owner_id: UUID, is_public: bool, are_friends: bool) -> bool:
    return is_public or viewer_id == owner_id or are_friends


async def can_view_profile(
    viewer_id: UUID, owner_id: UUID, is_public: bool, conn: AsyncSession
) -> bool:
    """
    Evaluate `can_view` against the store, only asking about the friendship
    when the answer depends on it.
    """
    if is_public or viewer_id == owner_id:
        return True

    return can_view(
        viewer_id=viewer_id,
        owner_id=owner_id,
        is_public=is_public,
        are_friends=await friendship_service.are_friends(viewer_id, owner_id, conn=conn),
    )
