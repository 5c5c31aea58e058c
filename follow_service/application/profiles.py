"""
Profile read paths - everything here consults the visibility policy first
"""
from typing import Optional, Union, Dict, Any
from uuid import UUID
import logging

from ..config import settings
from ..domain.models import (
    Account,
    Connection,
    ConnectionPage,
    Direction,
    FollowStats,
    Profile,
    RedactedProfile,
    RelationshipStatus,
    RelationshipType,
    RelationshipView,
)
from ..domain.repositories import IUnitOfWork
from ..domain.visibility import VisibilityPolicy, visibility_policy
from ..domain.errors import AccountNotFound, ProfileNotVisible
from .workflow import UnitOfWorkFactory

logger = logging.getLogger(__name__)


def _clamp_page(page: int, page_size: int):
    """Validate pagination the same way for every list"""
    return max(1, page), max(1, min(page_size, settings.MAX_PAGE_SIZE))


class ProfileService:
    """Business logic for profile, list and relationship reads"""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        policy: VisibilityPolicy = visibility_policy,
    ):
        self.uow_factory = uow_factory
        self.policy = policy

    async def _load_visible(
        self, uow: IUnitOfWork, viewer_id: Optional[UUID], target_id: UUID
    ):
        """Fetch target and viewer's edge status; returns (account, status, visible)"""
        target = await uow.accounts.find_by_id(target_id)
        if target is None:
            raise AccountNotFound()

        viewer_status = None
        if viewer_id is not None and viewer_id != target_id:
            edge = await uow.relationships.get_edge(viewer_id, target_id)
            viewer_status = edge.status if edge else None

        visible = self.policy.can_view(viewer_id, target, viewer_status)
        return target, viewer_status, visible

    async def _counts(self, uow: IUnitOfWork, user_id: UUID):
        followers = await uow.relationships.count_by_status(
            user_id, Direction.FOLLOWERS, RelationshipStatus.ACCEPTED
        )
        following = await uow.relationships.count_by_status(
            user_id, Direction.FOLLOWING, RelationshipStatus.ACCEPTED
        )
        return followers, following

    async def get_profile(
        self, viewer_id: Optional[UUID], target_id: UUID
    ) -> Union[Profile, RedactedProfile]:
        """
        Get a profile as the viewer is allowed to see it

        Args:
            viewer_id: Viewing account, None for anonymous
            target_id: Account to show

        Returns:
            Profile for the owner, public accounts and accepted followers,
            RedactedProfile otherwise

        Raises:
            AccountNotFound: target does not exist
        """
        async with self.uow_factory() as uow:
            target, viewer_status, visible = await self._load_visible(uow, viewer_id, target_id)
            follower_count, following_count = await self._counts(uow, target_id)

        if not visible:
            return RedactedProfile(
                id=target.id,
                display_name=target.display_name,
                avatar_url=target.avatar_url,
                follower_count=follower_count,
                following_count=following_count,
                viewer_status=viewer_status,
            )

        return Profile(
            account=target,
            follower_count=follower_count,
            following_count=following_count,
            viewer_status=viewer_status,
            viewer_is_owner=target.is_owner(viewer_id),
        )

    async def _list_connections(
        self,
        viewer_id: Optional[UUID],
        user_id: UUID,
        direction: Direction,
        page: int,
        page_size: int,
        search: Optional[str],
    ) -> ConnectionPage:
        page, page_size = _clamp_page(page, page_size)

        async with self.uow_factory() as uow:
            _, _, visible = await self._load_visible(uow, viewer_id, user_id)
            if not visible:
                raise ProfileNotVisible()

            edges = await uow.relationships.list_by_status(
                user_id, direction, RelationshipStatus.ACCEPTED, page, page_size
            )
            total = await uow.relationships.count_by_status(
                user_id, direction, RelationshipStatus.ACCEPTED
            )

            if direction == Direction.FOLLOWERS:
                other_ids = [edge.follower_id for edge in edges]
            else:
                other_ids = [edge.following_id for edge in edges]
            accounts = await uow.accounts.find_many(other_ids)

        items = [
            Connection(relationship=edge, account=accounts.get(other_id))
            for edge, other_id in zip(edges, other_ids)
        ]
        if search:
            items = [item for item in items if item.account and item.account.matches(search)]

        return ConnectionPage(
            items=items,
            total=total,
            page=page,
            page_size=page_size,
            has_more=page * page_size < total,
        )

    async def list_followers(
        self,
        viewer_id: Optional[UUID],
        user_id: UUID,
        page: int = 1,
        page_size: int = settings.DEFAULT_PAGE_SIZE,
        search: Optional[str] = None,
    ) -> ConnectionPage:
        """
        Accepted followers of a user, newest first

        ``search`` keeps entries whose display name or full name contains it,
        ignoring case, within the requested page.

        Raises:
            AccountNotFound: user does not exist
            ProfileNotVisible: viewer may not see this user's data
        """
        return await self._list_connections(
            viewer_id, user_id, Direction.FOLLOWERS, page, page_size, search
        )

    async def list_following(
        self,
        viewer_id: Optional[UUID],
        user_id: UUID,
        page: int = 1,
        page_size: int = settings.DEFAULT_PAGE_SIZE,
        search: Optional[str] = None,
    ) -> ConnectionPage:
        """Accounts a user follows (accepted), newest first; see list_followers"""
        return await self._list_connections(
            viewer_id, user_id, Direction.FOLLOWING, page, page_size, search
        )

    async def list_pending_requests(
        self, user_id: UUID, page: int = 1, page_size: int = settings.DEFAULT_PAGE_SIZE
    ) -> ConnectionPage:
        """Incoming pending requests for the caller's own account"""
        page, page_size = _clamp_page(page, page_size)

        async with self.uow_factory() as uow:
            edges = await uow.relationships.list_by_status(
                user_id, Direction.FOLLOWERS, RelationshipStatus.PENDING, page, page_size
            )
            total = await uow.relationships.count_by_status(
                user_id, Direction.FOLLOWERS, RelationshipStatus.PENDING
            )
            accounts = await uow.accounts.find_many(edge.follower_id for edge in edges)

        return ConnectionPage(
            items=[Connection(relationship=e, account=accounts.get(e.follower_id)) for e in edges],
            total=total,
            page=page,
            page_size=page_size,
            has_more=page * page_size < total,
        )

    async def get_relationship(self, viewer_id: UUID, target_id: UUID) -> RelationshipView:
        """
        Get relationship between viewer and target

        Returns:
            RelationshipView with relationship details
        """
        async with self.uow_factory() as uow:
            following = await uow.relationships.get_edge(viewer_id, target_id)
            followed_by = await uow.relationships.get_edge(target_id, viewer_id)

        is_following = following is not None and following.is_accepted()
        is_followed_by = followed_by is not None and followed_by.is_accepted()
        is_pending = following is not None and following.is_pending()
        is_requested = followed_by is not None and followed_by.is_pending()
        is_mutual = is_following and is_followed_by

        if is_mutual:
            relationship = RelationshipType.MUTUAL
        elif is_following:
            relationship = RelationshipType.FOLLOWING
        elif is_followed_by:
            relationship = RelationshipType.FOLLOWED_BY
        elif is_pending:
            relationship = RelationshipType.PENDING
        elif is_requested:
            relationship = RelationshipType.REQUESTED
        else:
            relationship = RelationshipType.NONE

        return RelationshipView(
            user_id=viewer_id,
            target_user_id=target_id,
            relationship=relationship,
            is_following=is_following,
            is_followed_by=is_followed_by,
            is_mutual=is_mutual,
            is_pending=is_pending,
            is_requested=is_requested,
        )

    async def get_stats(self, user_id: UUID, viewer_id: Optional[UUID] = None) -> FollowStats:
        """
        Follower, following and pending request counts, derived from edges

        Incoming requests are the owner's business only: any other viewer,
        or no viewer, gets a pending count of zero.
        """
        async with self.uow_factory() as uow:
            account = await uow.accounts.find_by_id(user_id)
            if account is None:
                raise AccountNotFound()
            follower_count, following_count = await self._counts(uow, user_id)
            pending_count = 0
            if account.is_owner(viewer_id):
                pending_count = await uow.relationships.count_by_status(
                    user_id, Direction.FOLLOWERS, RelationshipStatus.PENDING
                )

        return FollowStats(
            user_id=user_id,
            follower_count=follower_count,
            following_count=following_count,
            pending_requests_count=pending_count,
        )


class AccountService:
    """Creates accounts from identity provider events"""

    def __init__(self, uow_factory: UnitOfWorkFactory):
        self.uow_factory = uow_factory

    async def provision_account(self, event: Dict[str, Any]) -> Account:
        """
        Create the default account for a newly registered identity

        Args:
            event: user-created payload with ``id``, ``email``,
                ``email_confirmed_at`` and ``raw_user_meta_data.full_name``

        Returns:
            The new account, or the stored one when the event is redelivered
        """
        metadata = event.get("raw_user_meta_data") or {}
        full_name = metadata.get("full_name") or ""
        account = Account(
            id=UUID(str(event["id"])),
            email=event["email"],
            full_name=full_name,
            display_name=full_name,
            email_verified=event.get("email_confirmed_at") is not None,
            is_private=False,
        )

        async with self.uow_factory() as uow:
            stored = await uow.accounts.create(account)

        logger.info(f"Account {stored.id} provisioned")
        return stored
