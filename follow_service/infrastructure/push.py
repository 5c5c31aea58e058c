"""
Redis pub/sub channel for live notification push
"""
import redis.asyncio as redis
from typing import Optional, AsyncIterator, Any, Dict
from uuid import UUID
import json
import logging

from ..config import settings
from ..domain.models import Notification

logger = logging.getLogger(__name__)


def notification_payload(notification: Notification) -> Dict[str, Any]:
    """JSON-ready form of a notification"""
    return {
        "id": str(notification.id),
        "user_id": str(notification.user_id),
        "from_user_id": str(notification.from_user_id),
        "type": notification.type.value,
        "message": notification.message,
        "read": notification.read,
        "created_at": notification.created_at.isoformat() if notification.created_at else None,
    }


class NotificationPublisher:
    """Fire-and-forget publisher of new notifications, keyed by recipient"""

    def __init__(self):
        self.redis: Optional[redis.Redis] = None

    async def connect(self):
        """Connect to Redis"""
        if not settings.REDIS_ENABLED:
            logger.info("Notification push is disabled")
            return

        try:
            self.redis = redis.from_url(
                f"redis://{settings.REDIS_HOST}:{settings.REDIS_PORT}/{settings.REDIS_DB}",
                password=settings.REDIS_PASSWORD if settings.REDIS_PASSWORD else None,
                encoding="utf-8",
                decode_responses=True,
            )
            # Test connection
            await self.redis.ping()
            logger.info("Connected to Redis successfully")
        except Exception as e:
            logger.warning(f"Failed to connect to Redis: {e}. Continuing without live push.")
            self.redis = None

    async def disconnect(self):
        """Disconnect from Redis"""
        if self.redis:
            await self.redis.close()
            logger.info("Disconnected from Redis")

    def _channel(self, user_id: UUID) -> str:
        """Channel name for a recipient"""
        return f"{settings.NOTIFICATION_CHANNEL_PREFIX}:{user_id}"

    async def publish(self, notification: Notification):
        """Push a committed notification to its recipient's channel"""
        if not self.redis:
            logger.debug(f"Live push disabled, skipping notification {notification.id}")
            return

        try:
            await self.redis.publish(
                self._channel(notification.user_id),
                json.dumps(notification_payload(notification)),
            )
        except Exception as e:
            logger.error(f"Error pushing notification {notification.id}: {e}")

    async def subscribe(self, user_id: UUID) -> AsyncIterator[Dict[str, Any]]:
        """Yield notifications pushed to a recipient until the caller stops"""
        if not self.redis:
            return

        pubsub = self.redis.pubsub()
        await pubsub.subscribe(self._channel(user_id))
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                try:
                    yield json.loads(message["data"])
                except (TypeError, ValueError) as e:
                    logger.warning(f"Dropping malformed push message: {e}")
        finally:
            await pubsub.unsubscribe(self._channel(user_id))
            await pubsub.close()


# Global publisher instance
notification_publisher = NotificationPublisher()


async def get_notification_publisher() -> NotificationPublisher:
    """Dependency for getting notification publisher instance"""
    return notification_publisher
