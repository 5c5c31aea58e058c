"""
Domain models - Core business entities
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from enum import Enum
from uuid import UUID


class RelationshipStatus(str, Enum):
    """Follow edge status"""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class Direction(str, Enum):
    """Which side of the edge a user sits on"""
    FOLLOWERS = "followers"  # edges where following_id = user
    FOLLOWING = "following"  # edges where follower_id = user


class NotificationType(str, Enum):
    """Notification kinds emitted by the follow workflow"""
    FOLLOW_REQUEST = "follow_request"
    FOLLOW_ACCEPTED = "follow_accepted"
    NEW_FOLLOWER = "new_follower"
    FOLLOW_REJECTED = "follow_rejected"


class RelationshipType(str, Enum):
    """Relationship between a viewer and another user"""
    FOLLOWING = "following"  # viewer follows target
    FOLLOWED_BY = "followed_by"  # target follows viewer
    MUTUAL = "mutual"
    PENDING = "pending"  # viewer sent a request
    REQUESTED = "requested"  # target sent a request
    NONE = "none"


@dataclass
class Account:
    """Account domain model"""
    id: UUID
    email: str
    display_name: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    website: Optional[str] = None
    twitter: Optional[str] = None
    linkedin: Optional[str] = None
    github: Optional[str] = None
    phone_number: Optional[str] = None
    country_code: Optional[str] = None
    country_name: Optional[str] = None
    is_private: bool = False
    email_verified: bool = False
    onboarding_completed: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def is_owner(self, user_id: Optional[UUID]) -> bool:
        """Check if the given user_id owns this account"""
        return user_id is not None and self.id == user_id

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match on display name or full name"""
        needle = query.lower()
        return any(
            needle in value.lower()
            for value in (self.display_name, self.full_name)
            if value
        )


@dataclass
class Relationship:
    """Directed follow edge"""
    follower_id: UUID
    following_id: UUID
    status: RelationshipStatus = RelationshipStatus.PENDING
    id: Optional[UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def is_pending(self) -> bool:
        return self.status == RelationshipStatus.PENDING

    def is_accepted(self) -> bool:
        return self.status == RelationshipStatus.ACCEPTED


@dataclass
class Notification:
    """Notification record"""
    user_id: UUID
    from_user_id: UUID
    type: NotificationType
    message: str
    read: bool = False
    id: Optional[UUID] = None
    created_at: Optional[datetime] = None
    from_user: Optional[Account] = None


@dataclass
class FollowStats:
    """Follow statistics for a user"""
    user_id: UUID
    follower_count: int
    following_count: int
    pending_requests_count: int


@dataclass
class Profile:
    """Full profile as seen by a permitted viewer"""
    account: Account
    follower_count: int
    following_count: int
    viewer_status: Optional[RelationshipStatus] = None
    viewer_is_owner: bool = False
    redacted: bool = False


@dataclass
class RedactedProfile:
    """What a non-permitted viewer sees of a private account"""
    id: UUID
    display_name: Optional[str]
    avatar_url: Optional[str]
    follower_count: int
    following_count: int
    is_private: bool = True
    viewer_status: Optional[RelationshipStatus] = None
    redacted: bool = True


@dataclass
class Connection:
    """An edge joined with the account on its other side"""
    relationship: Relationship
    account: Optional[Account]


@dataclass
class ConnectionPage:
    """A page of connections"""
    items: list = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 10
    has_more: bool = False


@dataclass
class PrivacyChange:
    """Outcome of a privacy flag update"""
    account: Account
    rejected_count: int = 0


@dataclass
class RelationshipView:
    """Relationship between a viewer and a target"""
    user_id: UUID
    target_user_id: UUID
    relationship: RelationshipType
    is_following: bool
    is_followed_by: bool
    is_mutual: bool
    is_pending: bool
    is_requested: bool
