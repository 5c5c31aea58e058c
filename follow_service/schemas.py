"""
Pydantic schemas for request/response validation
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from uuid import UUID

from .domain.models import (
    Account,
    Connection,
    ConnectionPage,
    Notification,
    NotificationType,
    RedactedProfile,
    RelationshipStatus,
    RelationshipType,
)


# Request Schemas
class FollowRequestAction(BaseModel):
    """Accept or reject follow request"""

    action: str = Field(..., description="Action: 'accept' or 'reject'")

    @field_validator("action")
    @classmethod
    def validate_action(cls, v):
        if v not in ["accept", "reject"]:
            raise ValueError("Action must be 'accept' or 'reject'")
        return v


class PrivacyUpdate(BaseModel):
    """Change the caller's privacy flag"""

    is_private: bool


class UserCreatedEvent(BaseModel):
    """Identity provider's account-created event"""

    id: UUID
    email: str
    email_confirmed_at: Optional[datetime] = None
    raw_user_meta_data: Dict[str, Any] = Field(default_factory=dict)


# Response Schemas
class MessageResponse(BaseModel):
    """Generic message response"""

    message: str


class AccountSummary(BaseModel):
    """Minimal account info shown next to list entries and notifications"""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    display_name: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None


class RelationshipResponse(BaseModel):
    """A follow edge"""

    model_config = ConfigDict(from_attributes=True)

    id: Optional[UUID] = None
    follower_id: UUID
    following_id: UUID
    status: RelationshipStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class FollowResponse(BaseModel):
    """Response after follow action"""

    success: bool
    status: RelationshipStatus
    message: str
    relationship: Optional[RelationshipResponse] = None


class ConnectionInfo(BaseModel):
    """One entry of a followers / following / pending list"""

    user_id: UUID
    user: Optional[AccountSummary] = None
    status: RelationshipStatus
    created_at: Optional[datetime] = None

    @classmethod
    def from_connection(cls, connection: Connection, user_id: UUID) -> "ConnectionInfo":
        return cls(
            user_id=user_id,
            user=AccountSummary.model_validate(connection.account) if connection.account else None,
            status=connection.relationship.status,
            created_at=connection.relationship.created_at,
        )


class ConnectionsResponse(BaseModel):
    """Paginated connections"""

    items: List[ConnectionInfo]
    total: int
    page: int
    page_size: int
    has_more: bool

    @classmethod
    def from_page(cls, page: ConnectionPage, follower_side: bool) -> "ConnectionsResponse":
        items = []
        for connection in page.items:
            edge = connection.relationship
            other_id = edge.follower_id if follower_side else edge.following_id
            items.append(ConnectionInfo.from_connection(connection, other_id))
        return cls(
            items=items,
            total=page.total,
            page=page.page,
            page_size=page.page_size,
            has_more=page.has_more,
        )


class ProfileResponse(BaseModel):
    """Profile as seen by the viewer; optional fields are absent when redacted"""

    id: UUID
    redacted: bool
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    is_private: bool
    follower_count: int
    following_count: int
    viewer_status: Optional[RelationshipStatus] = None
    full_name: Optional[str] = None
    email: Optional[str] = None
    bio: Optional[str] = None
    website: Optional[str] = None
    twitter: Optional[str] = None
    linkedin: Optional[str] = None
    github: Optional[str] = None
    country_code: Optional[str] = None
    country_name: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, profile) -> "ProfileResponse":
        if isinstance(profile, RedactedProfile):
            return cls(
                id=profile.id,
                redacted=True,
                display_name=profile.display_name,
                avatar_url=profile.avatar_url,
                is_private=profile.is_private,
                follower_count=profile.follower_count,
                following_count=profile.following_count,
                viewer_status=profile.viewer_status,
            )

        account: Account = profile.account
        return cls(
            id=account.id,
            redacted=False,
            display_name=account.display_name,
            avatar_url=account.avatar_url,
            is_private=account.is_private,
            follower_count=profile.follower_count,
            following_count=profile.following_count,
            viewer_status=profile.viewer_status,
            full_name=account.full_name,
            email=account.email if profile.viewer_is_owner else None,
            bio=account.bio,
            website=account.website,
            twitter=account.twitter,
            linkedin=account.linkedin,
            github=account.github,
            country_code=account.country_code,
            country_name=account.country_name,
            created_at=account.created_at,
        )


class RelationshipViewResponse(BaseModel):
    """Response with relationship info between two users"""

    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    target_user_id: UUID
    relationship: RelationshipType
    is_following: bool
    is_followed_by: bool
    is_mutual: bool
    is_pending: bool
    is_requested: bool


class GraphStatsResponse(BaseModel):
    """User's graph statistics"""

    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    follower_count: int
    following_count: int
    pending_requests_count: int


class PrivacyResponse(BaseModel):
    """Result of a privacy flag update"""

    is_private: bool
    rejected_count: int


class NotificationResponse(BaseModel):
    """One notification"""

    id: UUID
    user_id: UUID
    from_user_id: UUID
    type: NotificationType
    message: str
    read: bool
    created_at: Optional[datetime] = None
    from_user: Optional[AccountSummary] = None

    @classmethod
    def from_domain(cls, notification: Notification) -> "NotificationResponse":
        return cls(
            id=notification.id,
            user_id=notification.user_id,
            from_user_id=notification.from_user_id,
            type=notification.type,
            message=notification.message,
            read=notification.read,
            created_at=notification.created_at,
            from_user=(
                AccountSummary.model_validate(notification.from_user)
                if notification.from_user
                else None
            ),
        )


class NotificationsResponse(BaseModel):
    """A page of notifications plus the unread badge count"""

    notifications: List[NotificationResponse]
    unread_count: int


class MarkAllReadResponse(BaseModel):
    """How many notifications were flipped to read"""

    updated: int


class AccountResponse(BaseModel):
    """Account as created from an identity event"""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    display_name: Optional[str] = None
    full_name: Optional[str] = None
    is_private: bool
    email_verified: bool
    created_at: Optional[datetime] = None


# Internal Models
class CurrentUser(BaseModel):
    """Authenticated caller, as reported by the identity provider"""

    id: UUID
    email: Optional[str] = None
    is_active: bool = True
