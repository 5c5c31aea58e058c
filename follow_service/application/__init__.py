from .workflow import FollowWorkflow, UnitOfWorkFactory
from .notifications import NotificationService
from .profiles import ProfileService, AccountService


__all__ = [
    # workflow.py
    "FollowWorkflow",
    "UnitOfWorkFactory",
    # notifications.py
    "NotificationService",
    # profiles.py
    "ProfileService",
    "AccountService",
]
