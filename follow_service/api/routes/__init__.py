from .follow import router as follow_router
from .profiles import router as profiles_router
from .notifications import router as notifications_router
from .accounts import router as accounts_router


__all__ = [
    # follow.py
    "follow_router",
    # profiles.py
    "profiles_router",
    # notifications.py
    "notifications_router",
    # accounts.py
    "accounts_router",
]
