"""
In-memory storage backend

Used for local runs (STORAGE_BACKEND=memory) and tests. A unit of work holds
the store lock for its whole duration, so transactions are serialized.
Repositories journal the prior value of each record before changing it, and a
block that raises puts those values back.
"""
import asyncio
import copy
import itertools
from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional, List, Iterable, Dict, Tuple, Any
from uuid import UUID, uuid4

from ..domain.models import (
    Account,
    Relationship,
    RelationshipStatus,
    Direction,
    Notification,
    NotificationType,
)
from ..domain.repositories import (
    IAccountRepository,
    IRelationshipRepository,
    INotificationRepository,
    IUnitOfWork,
)
from ..domain.errors import (
    AccountNotFound,
    DuplicateAccount,
    DuplicateEdge,
    EdgeNotFound,
    SelfFollow,
    StatusMismatch,
)

# Journal marker for a record that did not exist yet
_MISSING = object()


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryStore:
    """Tables kept as dicts, plus an insertion counter for stable ordering"""

    def __init__(self):
        self.lock = asyncio.Lock()
        self.accounts: Dict[UUID, Account] = {}
        self.relationships: Dict[Tuple[UUID, UUID], Relationship] = {}
        self.notifications: Dict[UUID, Notification] = {}
        self.sequence: Dict[UUID, int] = {}
        self.journal: Optional[Dict[Tuple[str, Any], Any]] = None
        self._counter = itertools.count()

    def remember(self, table: str, key: Any) -> None:
        """Keep a record's value from before the current unit of work touched it"""
        if self.journal is None or (table, key) in self.journal:
            return
        current = getattr(self, table).get(key, _MISSING)
        self.journal[(table, key)] = current if current is _MISSING else copy.copy(current)

    def begin(self) -> None:
        self.journal = {}

    def commit(self) -> None:
        self.journal = None

    def rollback(self) -> None:
        for (table, key), previous in self.journal.items():
            records = getattr(self, table)
            if previous is _MISSING:
                records.pop(key, None)
            else:
                records[key] = previous
        self.journal = None

    def next_sequence(self, record_id: UUID) -> None:
        self.remember("sequence", record_id)
        self.sequence[record_id] = next(self._counter)

    def unit_of_work(self) -> "InMemoryUnitOfWork":
        return InMemoryUnitOfWork(self)


class InMemoryAccountRepository(IAccountRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def create(self, account: Account) -> Account:
        existing = self.store.accounts.get(account.id)
        if existing is not None:
            return replace(existing)
        if any(a.email == account.email for a in self.store.accounts.values()):
            raise DuplicateAccount()

        now = _now()
        stored = replace(account, created_at=now, updated_at=now)
        self.store.remember("accounts", stored.id)
        self.store.accounts[stored.id] = stored
        return replace(stored)

    async def find_by_id(self, account_id: UUID) -> Optional[Account]:
        account = self.store.accounts.get(account_id)
        return replace(account) if account else None

    async def find_many(self, account_ids: Iterable[UUID]) -> Dict[UUID, Account]:
        return {
            account_id: replace(self.store.accounts[account_id])
            for account_id in set(account_ids)
            if account_id in self.store.accounts
        }

    async def lock(self, account_id: UUID, exclusive: bool = False) -> Optional[Account]:
        # The unit of work already holds the store lock
        return await self.find_by_id(account_id)

    async def set_private(self, account_id: UUID, is_private: bool) -> Account:
        account = self.store.accounts.get(account_id)
        if account is None:
            raise AccountNotFound()
        self.store.remember("accounts", account_id)
        account.is_private = is_private
        account.updated_at = _now()
        return replace(account)


class InMemoryRelationshipRepository(IRelationshipRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    def _side(self, edge: Relationship, direction: Direction) -> UUID:
        if direction == Direction.FOLLOWERS:
            return edge.following_id
        return edge.follower_id

    def _missing_or_mismatch(self, follower_id: UUID, following_id: UUID):
        if (follower_id, following_id) not in self.store.relationships:
            return EdgeNotFound()
        return StatusMismatch()

    async def create_edge(
        self,
        follower_id: UUID,
        following_id: UUID,
        status: RelationshipStatus = RelationshipStatus.PENDING,
    ) -> Relationship:
        if follower_id == following_id:
            raise SelfFollow()
        key = (follower_id, following_id)
        if key in self.store.relationships:
            raise DuplicateEdge()

        now = _now()
        edge = Relationship(
            follower_id=follower_id,
            following_id=following_id,
            status=status,
            id=uuid4(),
            created_at=now,
            updated_at=now,
        )
        self.store.remember("relationships", key)
        self.store.relationships[key] = edge
        self.store.next_sequence(edge.id)
        return replace(edge)

    async def get_edge(self, follower_id: UUID, following_id: UUID) -> Optional[Relationship]:
        edge = self.store.relationships.get((follower_id, following_id))
        return replace(edge) if edge else None

    async def update_status(
        self,
        follower_id: UUID,
        following_id: UUID,
        new_status: RelationshipStatus,
        expected_status: RelationshipStatus,
    ) -> Relationship:
        key = (follower_id, following_id)
        edge = self.store.relationships.get(key)
        if edge is None or edge.status != expected_status:
            raise self._missing_or_mismatch(follower_id, following_id)
        self.store.remember("relationships", key)
        edge.status = new_status
        edge.updated_at = _now()
        return replace(edge)

    async def delete_edge(
        self,
        follower_id: UUID,
        following_id: UUID,
        status_filter: Optional[RelationshipStatus] = None,
    ) -> None:
        key = (follower_id, following_id)
        edge = self.store.relationships.get(key)
        if edge is None or (status_filter is not None and edge.status != status_filter):
            raise self._missing_or_mismatch(follower_id, following_id)
        self.store.remember("relationships", key)
        self.store.remember("sequence", edge.id)
        del self.store.relationships[key]
        self.store.sequence.pop(edge.id, None)

    async def reject_pending_for(self, following_id: UUID) -> int:
        now = _now()
        rejected = 0
        for key, edge in self.store.relationships.items():
            if edge.following_id == following_id and edge.is_pending():
                self.store.remember("relationships", key)
                edge.status = RelationshipStatus.REJECTED
                edge.updated_at = now
                rejected += 1
        return rejected

    async def count_by_status(
        self, user_id: UUID, direction: Direction, status: RelationshipStatus
    ) -> int:
        return sum(
            1
            for edge in self.store.relationships.values()
            if self._side(edge, direction) == user_id and edge.status == status
        )

    async def list_by_status(
        self,
        user_id: UUID,
        direction: Direction,
        status: RelationshipStatus,
        page: int,
        page_size: int,
    ) -> List[Relationship]:
        edges = [
            edge
            for edge in self.store.relationships.values()
            if self._side(edge, direction) == user_id and edge.status == status
        ]
        edges.sort(key=lambda e: self.store.sequence[e.id], reverse=True)
        offset = (max(1, page) - 1) * page_size
        return [replace(edge) for edge in edges[offset:offset + page_size]]


class InMemoryNotificationRepository(INotificationRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    def _flip_read(self, matches) -> int:
        updated = 0
        for notification_id, notification in self.store.notifications.items():
            if not notification.read and matches(notification):
                self.store.remember("notifications", notification_id)
                notification.read = True
                updated += 1
        return updated

    async def append(self, notification: Notification) -> Notification:
        stored = replace(notification, id=uuid4(), created_at=_now(), from_user=None)
        self.store.remember("notifications", stored.id)
        self.store.notifications[stored.id] = stored
        self.store.next_sequence(stored.id)
        return replace(stored)

    async def get(self, notification_id: UUID) -> Optional[Notification]:
        notification = self.store.notifications.get(notification_id)
        return replace(notification) if notification else None

    async def list_for_user(self, user_id: UUID, limit: int, offset: int) -> List[Notification]:
        entries = [n for n in self.store.notifications.values() if n.user_id == user_id]
        entries.sort(key=lambda n: self.store.sequence[n.id], reverse=True)
        return [replace(n) for n in entries[offset:offset + limit]]

    async def mark_read(self, notification_id: UUID) -> None:
        self._flip_read(lambda n: n.id == notification_id)

    async def mark_all_read(self, user_id: UUID) -> int:
        return self._flip_read(lambda n: n.user_id == user_id)

    async def mark_request_read(self, user_id: UUID, from_user_id: UUID) -> int:
        return self._flip_read(
            lambda n: n.user_id == user_id
            and n.from_user_id == from_user_id
            and n.type == NotificationType.FOLLOW_REQUEST
        )

    async def count_unread(self, user_id: UUID) -> int:
        return sum(
            1
            for n in self.store.notifications.values()
            if n.user_id == user_id and not n.read
        )


class InMemoryUnitOfWork(IUnitOfWork):
    """Serializes on the store lock; rolls back from the store's journal"""

    def __init__(self, store: InMemoryStore):
        self.store = store
        self.accounts = InMemoryAccountRepository(store)
        self.relationships = InMemoryRelationshipRepository(store)
        self.notifications = InMemoryNotificationRepository(store)

    async def __aenter__(self) -> "InMemoryUnitOfWork":
        await self.store.lock.acquire()
        self.store.begin()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is not None:
                self.store.rollback()
            else:
                self.store.commit()
        finally:
            self.store.lock.release()
