from .memory import InMemoryStore, InMemoryUnitOfWork
from .push import NotificationPublisher, notification_publisher
from .events import KafkaProducerManager, kafka_producer


__all__ = [
    # memory.py
    "InMemoryStore",
    "InMemoryUnitOfWork",
    # push.py
    "NotificationPublisher",
    "notification_publisher",
    # events.py
    "KafkaProducerManager",
    "kafka_producer",
]
