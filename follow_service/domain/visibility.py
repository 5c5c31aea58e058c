"""
Visibility policy - who may read what, and whether a follow needs approval
"""
from typing import Optional
from uuid import UUID

from .models import Account, RelationshipStatus


class VisibilityPolicy:
    """Pure decision rules over an account's privacy flag and edge status"""

    def can_view(
        self,
        viewer_id: Optional[UUID],
        target: Account,
        relationship_status: Optional[RelationshipStatus],
    ) -> bool:
        """
        Check if viewer may read target's profile data

        Args:
            viewer_id: Viewing account, None for anonymous
            target: Account being viewed
            relationship_status: Status of the viewer -> target edge, if any

        Returns:
            True for the owner, for public accounts, and for accepted followers
        """
        if target.is_owner(viewer_id):
            return True
        if not target.is_private:
            return True
        return viewer_id is not None and relationship_status == RelationshipStatus.ACCEPTED

    def initial_status_for(self, target: Account) -> RelationshipStatus:
        """Status a new edge towards target starts in"""
        if target.is_private:
            return RelationshipStatus.PENDING
        return RelationshipStatus.ACCEPTED


visibility_policy = VisibilityPolicy()
