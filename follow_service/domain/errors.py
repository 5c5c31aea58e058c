"""
Domain errors

Every failure the follow workflow can report to a caller. Each carries a
stable ``code`` and the HTTP ``status`` the API maps it to.
"""
from typing import Optional


class FollowServiceError(Exception):
    """Base class for recoverable, caller-actionable failures"""

    code: str = "follow_service_error"
    status: int = 400
    default_message: str = "Request could not be completed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class DuplicateEdge(FollowServiceError):
    code = "duplicate_edge"
    status = 409
    default_message = "You are already following or have requested to follow this user"


class SelfFollow(FollowServiceError):
    code = "self_follow"
    status = 400
    default_message = "You cannot follow yourself"


class NotFound(FollowServiceError):
    code = "not_found"
    status = 404
    default_message = "Not found"


class EdgeNotFound(NotFound):
    code = "relationship_not_found"
    default_message = "Follow relationship not found"


class AccountNotFound(NotFound):
    code = "account_not_found"
    default_message = "Account not found"


class NotificationNotFound(NotFound):
    code = "notification_not_found"
    default_message = "Notification not found"


class Unauthorized(FollowServiceError):
    code = "unauthorized"
    status = 403
    default_message = "You are not allowed to perform this action"


class InvalidTransition(FollowServiceError):
    code = "invalid_transition"
    status = 409
    default_message = "This action is not valid for the current follow status"


class StatusMismatch(FollowServiceError):
    code = "status_mismatch"
    status = 409
    default_message = "This request is no longer valid"


class ProfileNotVisible(FollowServiceError):
    code = "profile_not_visible"
    status = 403
    default_message = "This account is private"


class DuplicateAccount(FollowServiceError):
    code = "duplicate_account"
    status = 409
    default_message = "An account with this email already exists"
