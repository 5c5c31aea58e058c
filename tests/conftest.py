"""
Shared fixtures: an in-memory store and services wired to recording side channels
"""
from typing import Optional
from uuid import uuid4

import pytest

from follow_service.application import (
    AccountService,
    FollowWorkflow,
    NotificationService,
    ProfileService,
)
from follow_service.infrastructure.events import KafkaProducerManager
from follow_service.infrastructure.memory import InMemoryStore
from follow_service.infrastructure.push import NotificationPublisher


class RecordingPublisher(NotificationPublisher):
    """Keeps pushed notifications instead of sending them to Redis"""

    def __init__(self):
        super().__init__()
        self.pushed = []

    async def publish(self, notification):
        self.pushed.append(notification)


class RecordingProducer(KafkaProducerManager):
    """Keeps events instead of sending them to Kafka"""

    def __init__(self):
        super().__init__()
        self.events = []

    async def publish_event(self, topic, key, event_data):
        self.events.append((topic, key, event_data))

    def topics(self):
        return [topic for topic, _, _ in self.events]


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def producer():
    return RecordingProducer()


@pytest.fixture
def workflow(store, publisher, producer):
    return FollowWorkflow(store.unit_of_work, publisher, producer, notify_on_reject=False)


@pytest.fixture
def profiles(store):
    return ProfileService(store.unit_of_work)


@pytest.fixture
def notifications(store):
    return NotificationService(store.unit_of_work)


@pytest.fixture
def accounts(store):
    return AccountService(store.unit_of_work)


@pytest.fixture
def make_account(accounts, workflow):
    """Create an account through the identity event path, optionally private"""

    async def _make(name: str = "user", is_private: bool = False, full_name: Optional[str] = None):
        account_id = uuid4()
        account = await accounts.provision_account(
            {
                "id": str(account_id),
                "email": f"{name}-{account_id.hex[:8]}@example.com",
                "email_confirmed_at": None,
                "raw_user_meta_data": {"full_name": full_name or name},
            }
        )
        if is_private:
            change = await workflow.set_privacy(account.id, account.id, True)
            account = change.account
        return account

    return _make
