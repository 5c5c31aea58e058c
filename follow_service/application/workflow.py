"""
Follow workflow - the state machine over follow edges

Every relationship mutation goes through FollowWorkflow. Each transition runs
in one unit of work, so the edge change and the notification it emits commit
together. Live push and Kafka events go out after commit and never change the
outcome.
"""
from typing import Callable, Optional, List
from uuid import UUID
import logging

from ..config import settings
from ..domain.models import (
    Notification,
    NotificationType,
    PrivacyChange,
    Relationship,
    RelationshipStatus,
)
from ..domain.repositories import IUnitOfWork
from ..domain.visibility import VisibilityPolicy, visibility_policy
from ..domain.errors import AccountNotFound, EdgeNotFound, InvalidTransition, Unauthorized
from ..infrastructure.push import NotificationPublisher
from ..infrastructure.events import KafkaProducerManager

logger = logging.getLogger(__name__)

UnitOfWorkFactory = Callable[[], IUnitOfWork]

NOTIFICATION_MESSAGES = {
    NotificationType.FOLLOW_REQUEST: "You have a new follow request",
    NotificationType.NEW_FOLLOWER: "You have a new follower",
    NotificationType.FOLLOW_ACCEPTED: "Your follow request has been accepted",
    NotificationType.FOLLOW_REJECTED: "Your follow request has been declined",
}


class FollowWorkflow:
    """Creates, transitions and withdraws follow edges"""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        publisher: NotificationPublisher,
        kafka: KafkaProducerManager,
        policy: VisibilityPolicy = visibility_policy,
        notify_on_reject: Optional[bool] = None,
    ):
        self.uow_factory = uow_factory
        self.publisher = publisher
        self.kafka = kafka
        self.policy = policy
        if notify_on_reject is None:
            notify_on_reject = settings.NOTIFY_FOLLOW_REJECTED
        self.notify_on_reject = notify_on_reject

    @staticmethod
    def _require_actor(actor_id: UUID, expected_id: UUID, role: str):
        if actor_id != expected_id:
            raise Unauthorized(f"Only the {role} can perform this action")

    async def _notify(
        self,
        uow: IUnitOfWork,
        recipient_id: UUID,
        sender_id: UUID,
        notification_type: NotificationType,
    ) -> Notification:
        return await uow.notifications.append(
            Notification(
                user_id=recipient_id,
                from_user_id=sender_id,
                type=notification_type,
                message=NOTIFICATION_MESSAGES[notification_type],
            )
        )

    async def _push(self, notifications: List[Notification]):
        for notification in notifications:
            await self.publisher.publish(notification)

    async def request_follow(
        self, actor_id: UUID, follower_id: UUID, following_id: UUID
    ) -> Relationship:
        """
        Request to follow an account

        The target's privacy flag at request time decides the initial status:
        private targets get a pending request and a follow_request
        notification, public targets get an accepted edge and a new_follower
        notification.

        Raises:
            Unauthorized: actor is not the follower
            AccountNotFound: either account is missing
            SelfFollow: follower and target are the same account
            DuplicateEdge: an edge already exists for the pair, in any status
        """
        self._require_actor(actor_id, follower_id, "follower")

        async with self.uow_factory() as uow:
            if await uow.accounts.find_by_id(follower_id) is None:
                raise AccountNotFound("Follower account not found")
            target = await uow.accounts.lock(following_id)
            if target is None:
                raise AccountNotFound()

            status = self.policy.initial_status_for(target)
            edge = await uow.relationships.create_edge(follower_id, following_id, status)

            if edge.is_pending():
                notification_type = NotificationType.FOLLOW_REQUEST
            else:
                notification_type = NotificationType.NEW_FOLLOWER
            notification = await self._notify(uow, following_id, follower_id, notification_type)

        logger.info(f"Follow {follower_id} -> {following_id} created as {edge.status.value}")
        await self._push([notification])
        await self.kafka.publish_follow_event(follower_id, following_id, edge.status.value)
        return edge

    async def _decide(
        self,
        actor_id: UUID,
        follower_id: UUID,
        following_id: UUID,
        new_status: RelationshipStatus,
    ) -> Relationship:
        """
        Move a pending request to accepted or rejected on the target's behalf

        The target's follow_request notifications from this follower are
        marked read in the same transaction.
        """
        self._require_actor(actor_id, following_id, "requested account")

        notifications = []
        async with self.uow_factory() as uow:
            edge = await uow.relationships.get_edge(follower_id, following_id)
            if edge is None:
                raise EdgeNotFound("Follow request not found")
            if not edge.is_pending():
                raise InvalidTransition(f"Follow request is {edge.status.value}, not pending")

            edge = await uow.relationships.update_status(
                follower_id, following_id, new_status, RelationshipStatus.PENDING
            )
            await uow.notifications.mark_request_read(following_id, follower_id)

            if new_status == RelationshipStatus.ACCEPTED:
                notifications.append(
                    await self._notify(uow, follower_id, following_id, NotificationType.FOLLOW_ACCEPTED)
                )
            elif self.notify_on_reject:
                notifications.append(
                    await self._notify(uow, follower_id, following_id, NotificationType.FOLLOW_REJECTED)
                )

        logger.info(f"Follow request {follower_id} -> {following_id} {new_status.value}")
        await self._push(notifications)
        return edge

    async def accept_request(
        self, actor_id: UUID, follower_id: UUID, following_id: UUID
    ) -> Relationship:
        """
        Accept a pending follow request

        Raises:
            Unauthorized: actor is not the requested account
            EdgeNotFound: no request exists
            InvalidTransition: the request is not pending
            StatusMismatch: another transition changed the request first
        """
        edge = await self._decide(actor_id, follower_id, following_id, RelationshipStatus.ACCEPTED)
        await self.kafka.publish_follow_accepted_event(follower_id, following_id)
        return edge

    async def reject_request(
        self, actor_id: UUID, follower_id: UUID, following_id: UUID
    ) -> Relationship:
        """Reject a pending follow request; same failures as accept_request"""
        edge = await self._decide(actor_id, follower_id, following_id, RelationshipStatus.REJECTED)
        await self.kafka.publish_follow_rejected_event(follower_id, following_id)
        return edge

    async def _withdraw(
        self,
        actor_id: UUID,
        follower_id: UUID,
        following_id: UUID,
        required_status: RelationshipStatus,
    ):
        self._require_actor(actor_id, follower_id, "follower")

        async with self.uow_factory() as uow:
            edge = await uow.relationships.get_edge(follower_id, following_id)
            if edge is None:
                raise EdgeNotFound()
            if edge.status != required_status:
                raise InvalidTransition(
                    f"Relationship is {edge.status.value}, expected {required_status.value}"
                )
            await uow.relationships.delete_edge(follower_id, following_id, required_status)

        logger.info(f"Follow {follower_id} -> {following_id} withdrawn from {required_status.value}")
        await self.kafka.publish_follow_removed_event(
            follower_id, following_id, required_status.value
        )

    async def cancel_request(self, actor_id: UUID, follower_id: UUID, following_id: UUID):
        """
        Cancel a pending follow request

        Raises:
            Unauthorized: actor is not the follower
            EdgeNotFound: no edge exists
            InvalidTransition: the edge is not pending (use unfollow for accepted)
        """
        await self._withdraw(actor_id, follower_id, following_id, RelationshipStatus.PENDING)

    async def unfollow(self, actor_id: UUID, follower_id: UUID, following_id: UUID):
        """
        Stop following an account

        Raises:
            Unauthorized: actor is not the follower
            EdgeNotFound: no edge exists
            InvalidTransition: the edge is not accepted (use cancel for pending)
        """
        await self._withdraw(actor_id, follower_id, following_id, RelationshipStatus.ACCEPTED)

    async def set_privacy(
        self, actor_id: UUID, account_id: UUID, is_private: bool
    ) -> PrivacyChange:
        """
        Set an account's privacy flag

        Going from public to private rejects every pending request targeting
        the account, in the same transaction as the flag change. Going back
        to public leaves rejected edges rejected.
        """
        self._require_actor(actor_id, account_id, "account owner")

        async with self.uow_factory() as uow:
            account = await uow.accounts.lock(account_id, exclusive=True)
            if account is None:
                raise AccountNotFound()

            was_private = account.is_private
            account = await uow.accounts.set_private(account_id, is_private)

            rejected_count = 0
            if is_private and not was_private:
                rejected_count = await uow.relationships.reject_pending_for(account_id)

        if rejected_count:
            logger.info(f"Account {account_id} went private, rejected {rejected_count} pending requests")
        await self.kafka.publish_privacy_changed_event(account_id, is_private, rejected_count)
        return PrivacyChange(account=account, rejected_count=rejected_count)
