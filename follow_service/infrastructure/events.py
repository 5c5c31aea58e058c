"""
Kafka producer for publishing follow events
"""
from aiokafka import AIOKafkaProducer
from typing import Optional, Dict, Any
from uuid import UUID
import json
import logging
from datetime import datetime, timezone

from ..config import settings

logger = logging.getLogger(__name__)


class KafkaProducerManager:
    """Kafka producer manager for publishing events"""

    def __init__(self):
        self.producer: Optional[AIOKafkaProducer] = None

    async def start(self):
        """Start Kafka producer"""
        if not settings.KAFKA_ENABLED:
            logger.info("Kafka is disabled")
            return

        try:
            self.producer = AIOKafkaProducer(
                bootstrap_servers=settings.KAFKA_BOOTSTRAP_SERVERS,
                value_serializer=lambda v: json.dumps(v).encode("utf-8"),
                key_serializer=lambda v: str(v).encode("utf-8") if v else None,
            )
            await self.producer.start()
            logger.info("Kafka producer started successfully")
        except Exception as e:
            logger.warning(f"Failed to start Kafka producer: {e}. Continuing without Kafka.")
            self.producer = None

    async def stop(self):
        """Stop Kafka producer"""
        if self.producer:
            await self.producer.stop()
            logger.info("Kafka producer stopped")

    async def publish_event(self, topic: str, key: str, event_data: Dict[str, Any]):
        """
        Publish event to Kafka topic

        Args:
            topic: Kafka topic name
            key: Message key (follower or account id)
            event_data: Event data to publish
        """
        if not self.producer:
            logger.debug(f"Kafka disabled, skipping event: {topic}")
            return

        try:
            await self.producer.send(topic, value=event_data, key=key)
            logger.info(f"Published event to {topic}: {key}")
        except Exception as e:
            logger.error(f"Error publishing event to {topic}: {e}")

    def _edge_event(self, event_type: str, follower_id: UUID, following_id: UUID) -> Dict[str, Any]:
        return {
            "event_type": event_type,
            "follower_id": str(follower_id),
            "following_id": str(following_id),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    async def publish_follow_event(self, follower_id: UUID, following_id: UUID, status: str):
        """Publish follow requested event"""
        event_data = self._edge_event("follow", follower_id, following_id)
        event_data["status"] = status
        await self.publish_event(
            settings.KAFKA_TOPIC_FOLLOW_REQUESTED, str(follower_id), event_data
        )

    async def publish_follow_accepted_event(self, follower_id: UUID, following_id: UUID):
        """Publish follow request accepted event"""
        await self.publish_event(
            settings.KAFKA_TOPIC_FOLLOW_ACCEPTED,
            str(follower_id),
            self._edge_event("follow_accepted", follower_id, following_id),
        )

    async def publish_follow_rejected_event(self, follower_id: UUID, following_id: UUID):
        """Publish follow request rejected event"""
        await self.publish_event(
            settings.KAFKA_TOPIC_FOLLOW_REJECTED,
            str(follower_id),
            self._edge_event("follow_rejected", follower_id, following_id),
        )

    async def publish_follow_removed_event(
        self, follower_id: UUID, following_id: UUID, previous_status: str
    ):
        """Publish unfollow / cancelled request event"""
        event_data = self._edge_event("follow_removed", follower_id, following_id)
        event_data["previous_status"] = previous_status
        await self.publish_event(
            settings.KAFKA_TOPIC_FOLLOW_REMOVED, str(follower_id), event_data
        )

    async def publish_privacy_changed_event(
        self, account_id: UUID, is_private: bool, rejected_count: int
    ):
        """Publish privacy flag change event"""
        event_data = {
            "event_type": "privacy_changed",
            "account_id": str(account_id),
            "is_private": is_private,
            "rejected_count": rejected_count,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        await self.publish_event(
            settings.KAFKA_TOPIC_PRIVACY_CHANGED, str(account_id), event_data
        )


# Global producer instance
kafka_producer = KafkaProducerManager()


async def get_kafka_producer() -> KafkaProducerManager:
    """Dependency for getting Kafka producer instance"""
    return kafka_producer
