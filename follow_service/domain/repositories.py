"""
Repository interfaces - Define contracts for data access
"""
from abc import ABC, abstractmethod
from typing import Optional, List, Iterable, Dict
from uuid import UUID

from .models import (
    Account,
    Relationship,
    RelationshipStatus,
    Direction,
    Notification,
)


class IAccountRepository(ABC):
    """Account repository interface"""

    @abstractmethod
    async def create(self, account: Account) -> Account:
        """Create a new account; returns the stored one if the ID already exists"""
        pass

    @abstractmethod
    async def find_by_id(self, account_id: UUID) -> Optional[Account]:
        """Find account by ID"""
        pass

    @abstractmethod
    async def find_many(self, account_ids: Iterable[UUID]) -> Dict[UUID, Account]:
        """Find accounts by ID, keyed by ID"""
        pass

    @abstractmethod
    async def lock(self, account_id: UUID, exclusive: bool = False) -> Optional[Account]:
        """Read an account and hold a row lock until the unit of work ends"""
        pass

    @abstractmethod
    async def set_private(self, account_id: UUID, is_private: bool) -> Account:
        """Update the privacy flag"""
        pass


class IRelationshipRepository(ABC):
    """Relationship store interface"""

    @abstractmethod
    async def create_edge(
        self,
        follower_id: UUID,
        following_id: UUID,
        status: RelationshipStatus = RelationshipStatus.PENDING,
    ) -> Relationship:
        """Create an edge; raises SelfFollow or DuplicateEdge"""
        pass

    @abstractmethod
    async def get_edge(self, follower_id: UUID, following_id: UUID) -> Optional[Relationship]:
        """Get the edge for an ordered pair"""
        pass

    @abstractmethod
    async def update_status(
        self,
        follower_id: UUID,
        following_id: UUID,
        new_status: RelationshipStatus,
        expected_status: RelationshipStatus,
    ) -> Relationship:
        """Compare-and-swap the status; raises EdgeNotFound or StatusMismatch"""
        pass

    @abstractmethod
    async def delete_edge(
        self,
        follower_id: UUID,
        following_id: UUID,
        status_filter: Optional[RelationshipStatus] = None,
    ) -> None:
        """Delete an edge; raises EdgeNotFound or StatusMismatch"""
        pass

    @abstractmethod
    async def reject_pending_for(self, following_id: UUID) -> int:
        """Move every pending edge targeting an account to rejected"""
        pass

    @abstractmethod
    async def count_by_status(
        self, user_id: UUID, direction: Direction, status: RelationshipStatus
    ) -> int:
        """Count edges on one side of a user"""
        pass

    @abstractmethod
    async def list_by_status(
        self,
        user_id: UUID,
        direction: Direction,
        status: RelationshipStatus,
        page: int,
        page_size: int,
    ) -> List[Relationship]:
        """List edges on one side of a user, newest first"""
        pass


class INotificationRepository(ABC):
    """Notification sink interface"""

    @abstractmethod
    async def append(self, notification: Notification) -> Notification:
        """Append a notification"""
        pass

    @abstractmethod
    async def get(self, notification_id: UUID) -> Optional[Notification]:
        """Get a notification by ID"""
        pass

    @abstractmethod
    async def list_for_user(self, user_id: UUID, limit: int, offset: int) -> List[Notification]:
        """List a recipient's notifications, newest first"""
        pass

    @abstractmethod
    async def mark_read(self, notification_id: UUID) -> None:
        """Flip read on one notification"""
        pass

    @abstractmethod
    async def mark_all_read(self, user_id: UUID) -> int:
        """Flip read on every unread notification of a recipient"""
        pass

    @abstractmethod
    async def mark_request_read(self, user_id: UUID, from_user_id: UUID) -> int:
        """Flip read on the follow_request notifications one sender left a recipient"""
        pass

    @abstractmethod
    async def count_unread(self, user_id: UUID) -> int:
        """Count unread notifications of a recipient"""
        pass


class IUnitOfWork(ABC):
    """
    One atomic transaction over all three stores

    Commits when the ``async with`` block exits cleanly, rolls back when it
    raises.
    """

    accounts: IAccountRepository
    relationships: IRelationshipRepository
    notifications: INotificationRepository

    @abstractmethod
    async def __aenter__(self) -> "IUnitOfWork":
        pass

    @abstractmethod
    async def __aexit__(self, exc_type, exc, tb) -> None:
        pass
