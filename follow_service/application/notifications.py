"""
Notification sink - read and acknowledge what the follow workflow emitted
"""
from typing import List
from uuid import UUID

from ..config import settings
from ..domain.models import Notification
from ..domain.errors import NotificationNotFound, Unauthorized
from .workflow import UnitOfWorkFactory


class NotificationService:
    """Business logic for a recipient's notifications"""

    def __init__(self, uow_factory: UnitOfWorkFactory):
        self.uow_factory = uow_factory

    async def list_for_user(
        self, user_id: UUID, limit: int = settings.NOTIFICATION_PAGE_SIZE, offset: int = 0
    ) -> List[Notification]:
        """
        List a recipient's notifications, newest first

        Each entry carries the sending account in ``from_user`` when it still
        exists.
        """
        async with self.uow_factory() as uow:
            notifications = await uow.notifications.list_for_user(user_id, limit, max(0, offset))
            senders = await uow.accounts.find_many(n.from_user_id for n in notifications)

        for notification in notifications:
            notification.from_user = senders.get(notification.from_user_id)
        return notifications

    async def unread_count(self, user_id: UUID) -> int:
        async with self.uow_factory() as uow:
            return await uow.notifications.count_unread(user_id)

    async def mark_read(self, notification_id: UUID, requesting_user: UUID) -> None:
        """
        Mark one notification read

        Raises:
            NotificationNotFound: no such notification
            Unauthorized: requester is not the recipient
        """
        async with self.uow_factory() as uow:
            notification = await uow.notifications.get(notification_id)
            if notification is None:
                raise NotificationNotFound()
            if notification.user_id != requesting_user:
                raise Unauthorized("You can only mark your own notifications as read")
            await uow.notifications.mark_read(notification_id)

    async def mark_all_read(self, user_id: UUID) -> int:
        """Mark every unread notification read; returns how many changed"""
        async with self.uow_factory() as uow:
            return await uow.notifications.mark_all_read(user_id)
