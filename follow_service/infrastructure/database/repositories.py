"""
Repository implementations - Data access layer
"""
from typing import Optional, List, Iterable, Dict
from uuid import UUID
import asyncpg

from ...domain.models import (
    Account,
    Relationship,
    RelationshipStatus,
    Direction,
    Notification,
    NotificationType,
)
from ...domain.repositories import (
    IAccountRepository,
    IRelationshipRepository,
    INotificationRepository,
)
from ...domain.errors import (
    AccountNotFound,
    DuplicateAccount,
    DuplicateEdge,
    EdgeNotFound,
    SelfFollow,
    StatusMismatch,
)

ACCOUNT_COLUMNS = """
    id, email, display_name, full_name, avatar_url, bio, website,
    twitter, linkedin, github, phone_number, country_code, country_name,
    is_private, email_verified, onboarding_completed, created_at, updated_at
"""

RELATIONSHIP_COLUMNS = "id, follower_id, following_id, status, created_at, updated_at"

NOTIFICATION_COLUMNS = "id, user_id, from_user_id, type, message, read, created_at"

# Column holding the user for each side of an edge
DIRECTION_COLUMNS = {
    Direction.FOLLOWERS: "following_id",
    Direction.FOLLOWING: "follower_id",
}


def _affected_rows(command_tag: str) -> int:
    """Parse the row count from an asyncpg command tag like 'UPDATE 3'"""
    return int(command_tag.split()[-1])


class AccountRepository(IAccountRepository):
    """Account repository implementation using PostgreSQL"""

    def __init__(self, conn: asyncpg.Connection):
        self.conn = conn

    def _row_to_account(self, row: Optional[asyncpg.Record]) -> Optional[Account]:
        """Convert database row to Account model"""
        if not row:
            return None
        return Account(**dict(row))

    async def create(self, account: Account) -> Account:
        """Create a new account"""
        row = await self.conn.fetchrow(
            f"""
            INSERT INTO accounts (
                id, email, display_name, full_name, avatar_url, bio, website,
                twitter, linkedin, github, phone_number, country_code, country_name,
                is_private, email_verified, onboarding_completed
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14, $15, $16)
            ON CONFLICT DO NOTHING
            RETURNING {ACCOUNT_COLUMNS}
            """,
            account.id,
            account.email,
            account.display_name,
            account.full_name,
            account.avatar_url,
            account.bio,
            account.website,
            account.twitter,
            account.linkedin,
            account.github,
            account.phone_number,
            account.country_code,
            account.country_name,
            account.is_private,
            account.email_verified,
            account.onboarding_completed,
        )
        if row:
            return self._row_to_account(row)

        existing = await self.find_by_id(account.id)
        if existing is None:
            raise DuplicateAccount()
        return existing

    async def find_by_id(self, account_id: UUID) -> Optional[Account]:
        """Find account by ID"""
        row = await self.conn.fetchrow(
            f"SELECT {ACCOUNT_COLUMNS} FROM accounts WHERE id = $1",
            account_id,
        )
        return self._row_to_account(row)

    async def find_many(self, account_ids: Iterable[UUID]) -> Dict[UUID, Account]:
        """Find accounts by ID"""
        ids = list(set(account_ids))
        if not ids:
            return {}
        rows = await self.conn.fetch(
            f"SELECT {ACCOUNT_COLUMNS} FROM accounts WHERE id = ANY($1::uuid[])",
            ids,
        )
        return {row["id"]: self._row_to_account(row) for row in rows}

    async def lock(self, account_id: UUID, exclusive: bool = False) -> Optional[Account]:
        """Read an account holding FOR NO KEY UPDATE or FOR SHARE"""
        mode = "FOR NO KEY UPDATE" if exclusive else "FOR SHARE"
        row = await self.conn.fetchrow(
            f"SELECT {ACCOUNT_COLUMNS} FROM accounts WHERE id = $1 {mode}",
            account_id,
        )
        return self._row_to_account(row)

    async def set_private(self, account_id: UUID, is_private: bool) -> Account:
        """Update the privacy flag"""
        row = await self.conn.fetchrow(
            f"""
            UPDATE accounts
            SET is_private = $2, updated_at = clock_timestamp()
            WHERE id = $1
            RETURNING {ACCOUNT_COLUMNS}
            """,
            account_id,
            is_private,
        )
        if not row:
            raise AccountNotFound()
        return self._row_to_account(row)


class RelationshipRepository(IRelationshipRepository):
    """Relationship store implementation using PostgreSQL"""

    def __init__(self, conn: asyncpg.Connection):
        self.conn = conn

    def _row_to_relationship(self, row: Optional[asyncpg.Record]) -> Optional[Relationship]:
        """Convert database row to Relationship model"""
        if not row:
            return None
        data = dict(row)
        data["status"] = RelationshipStatus(data["status"])
        return Relationship(**data)

    async def _missing_or_mismatch(self, follower_id: UUID, following_id: UUID):
        """Explain why a guarded statement touched no row"""
        if await self.get_edge(follower_id, following_id) is None:
            return EdgeNotFound()
        return StatusMismatch()

    async def create_edge(
        self,
        follower_id: UUID,
        following_id: UUID,
        status: RelationshipStatus = RelationshipStatus.PENDING,
    ) -> Relationship:
        """Create an edge; the unique pair constraint decides races"""
        if follower_id == following_id:
            raise SelfFollow()

        row = await self.conn.fetchrow(
            f"""
            INSERT INTO relationships (follower_id, following_id, status)
            VALUES ($1, $2, $3)
            ON CONFLICT (follower_id, following_id) DO NOTHING
            RETURNING {RELATIONSHIP_COLUMNS}
            """,
            follower_id,
            following_id,
            status.value,
        )
        if not row:
            raise DuplicateEdge()
        return self._row_to_relationship(row)

    async def get_edge(self, follower_id: UUID, following_id: UUID) -> Optional[Relationship]:
        """Get the edge for an ordered pair"""
        row = await self.conn.fetchrow(
            f"""
            SELECT {RELATIONSHIP_COLUMNS}
            FROM relationships
            WHERE follower_id = $1 AND following_id = $2
            """,
            follower_id,
            following_id,
        )
        return self._row_to_relationship(row)

    async def update_status(
        self,
        follower_id: UUID,
        following_id: UUID,
        new_status: RelationshipStatus,
        expected_status: RelationshipStatus,
    ) -> Relationship:
        """Compare-and-swap on status"""
        row = await self.conn.fetchrow(
            f"""
            UPDATE relationships
            SET status = $3, updated_at = clock_timestamp()
            WHERE follower_id = $1 AND following_id = $2 AND status = $4
            RETURNING {RELATIONSHIP_COLUMNS}
            """,
            follower_id,
            following_id,
            new_status.value,
            expected_status.value,
        )
        if not row:
            raise await self._missing_or_mismatch(follower_id, following_id)
        return self._row_to_relationship(row)

    async def delete_edge(
        self,
        follower_id: UUID,
        following_id: UUID,
        status_filter: Optional[RelationshipStatus] = None,
    ) -> None:
        """Delete an edge, optionally only in a given status"""
        row = await self.conn.fetchrow(
            """
            DELETE FROM relationships
            WHERE follower_id = $1 AND following_id = $2
              AND ($3::text IS NULL OR status = $3::text)
            RETURNING id
            """,
            follower_id,
            following_id,
            status_filter.value if status_filter else None,
        )
        if not row:
            raise await self._missing_or_mismatch(follower_id, following_id)

    async def reject_pending_for(self, following_id: UUID) -> int:
        """Reject all pending requests targeting an account in one statement"""
        result = await self.conn.execute(
            """
            UPDATE relationships
            SET status = 'rejected', updated_at = clock_timestamp()
            WHERE following_id = $1 AND status = 'pending'
            """,
            following_id,
        )
        return _affected_rows(result)

    async def count_by_status(
        self, user_id: UUID, direction: Direction, status: RelationshipStatus
    ) -> int:
        """Count edges on one side of a user"""
        column = DIRECTION_COLUMNS[direction]
        count = await self.conn.fetchval(
            f"SELECT COUNT(*) FROM relationships WHERE {column} = $1 AND status = $2",
            user_id,
            status.value,
        )
        return count or 0

    async def list_by_status(
        self,
        user_id: UUID,
        direction: Direction,
        status: RelationshipStatus,
        page: int,
        page_size: int,
    ) -> List[Relationship]:
        """List edges on one side of a user, newest first"""
        column = DIRECTION_COLUMNS[direction]
        offset = (max(1, page) - 1) * page_size
        rows = await self.conn.fetch(
            f"""
            SELECT {RELATIONSHIP_COLUMNS}
            FROM relationships
            WHERE {column} = $1 AND status = $2
            ORDER BY created_at DESC, id DESC
            LIMIT $3 OFFSET $4
            """,
            user_id,
            status.value,
            page_size,
            offset,
        )
        return [self._row_to_relationship(row) for row in rows]


class NotificationRepository(INotificationRepository):
    """Notification sink implementation using PostgreSQL"""

    def __init__(self, conn: asyncpg.Connection):
        self.conn = conn

    def _row_to_notification(self, row: Optional[asyncpg.Record]) -> Optional[Notification]:
        """Convert database row to Notification model"""
        if not row:
            return None
        data = dict(row)
        data["type"] = NotificationType(data["type"])
        return Notification(**data)

    async def append(self, notification: Notification) -> Notification:
        """Append a notification"""
        row = await self.conn.fetchrow(
            f"""
            INSERT INTO notifications (user_id, from_user_id, type, message, read)
            VALUES ($1, $2, $3, $4, $5)
            RETURNING {NOTIFICATION_COLUMNS}
            """,
            notification.user_id,
            notification.from_user_id,
            notification.type.value,
            notification.message,
            notification.read,
        )
        return self._row_to_notification(row)

    async def get(self, notification_id: UUID) -> Optional[Notification]:
        """Get a notification by ID"""
        row = await self.conn.fetchrow(
            f"SELECT {NOTIFICATION_COLUMNS} FROM notifications WHERE id = $1",
            notification_id,
        )
        return self._row_to_notification(row)

    async def list_for_user(self, user_id: UUID, limit: int, offset: int) -> List[Notification]:
        """List a recipient's notifications, newest first"""
        rows = await self.conn.fetch(
            f"""
            SELECT {NOTIFICATION_COLUMNS}
            FROM notifications
            WHERE user_id = $1
            ORDER BY created_at DESC, id DESC
            LIMIT $2 OFFSET $3
            """,
            user_id,
            limit,
            offset,
        )
        return [self._row_to_notification(row) for row in rows]

    async def mark_read(self, notification_id: UUID) -> None:
        """Flip read on one notification"""
        await self.conn.execute(
            "UPDATE notifications SET read = true WHERE id = $1",
            notification_id,
        )

    async def mark_all_read(self, user_id: UUID) -> int:
        """Flip read on every unread notification of a recipient"""
        result = await self.conn.execute(
            "UPDATE notifications SET read = true WHERE user_id = $1 AND read = false",
            user_id,
        )
        return _affected_rows(result)

    async def mark_request_read(self, user_id: UUID, from_user_id: UUID) -> int:
        """Flip read on the follow_request notifications one sender left a recipient"""
        result = await self.conn.execute(
            """
            UPDATE notifications SET read = true
            WHERE user_id = $1 AND from_user_id = $2 AND type = $3 AND read = false
            """,
            user_id,
            from_user_id,
            NotificationType.FOLLOW_REQUEST.value,
        )
        return _affected_rows(result)

    async def count_unread(self, user_id: UUID) -> int:
        """Count unread notifications of a recipient"""
        count = await self.conn.fetchval(
            "SELECT COUNT(*) FROM notifications WHERE user_id = $1 AND read = false",
            user_id,
        )
        return count or 0
