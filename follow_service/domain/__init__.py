from .models import (
    Account,
    Relationship,
    RelationshipStatus,
    Direction,
    Notification,
    NotificationType,
    RelationshipType,
)
from .visibility import VisibilityPolicy, visibility_policy


__all__ = [
    # models.py
    "Account",
    "Relationship",
    "RelationshipStatus",
    "Direction",
    "Notification",
    "NotificationType",
    "RelationshipType",
    # visibility.py
    "VisibilityPolicy",
    "visibility_policy",
]
