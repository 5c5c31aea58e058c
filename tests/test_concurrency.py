"""
Racing transitions against the same edge
"""
import asyncio

import pytest

from follow_service.application import FollowWorkflow
from follow_service.domain import NotificationType, RelationshipStatus
from follow_service.domain.errors import (
    DuplicateEdge,
    FollowServiceError,
    InvalidTransition,
    StatusMismatch,
)
from follow_service.infrastructure.memory import InMemoryRelationshipRepository


async def test_concurrent_duplicate_requests_create_one_edge(workflow, store, make_account):
    a = await make_account("alice")
    b = await make_account("bob", is_private=True)

    results = await asyncio.gather(
        *(workflow.request_follow(a.id, a.id, b.id) for _ in range(10)),
        return_exceptions=True,
    )

    created = [r for r in results if not isinstance(r, Exception)]
    duplicates = [r for r in results if isinstance(r, DuplicateEdge)]
    assert len(created) == 1
    assert len(duplicates) == 9
    assert len(store.relationships) == 1
    requests = [n for n in store.notifications.values() if n.type == NotificationType.FOLLOW_REQUEST]
    assert len(requests) == 1


async def test_accept_racing_privacy_cascade_settles_once(workflow, store, make_account):
    a = await make_account("alice")
    b = await make_account("bob", is_private=True)
    await workflow.request_follow(a.id, a.id, b.id)
    await workflow.set_privacy(b.id, b.id, False)

    accept, change = await asyncio.gather(
        workflow.accept_request(b.id, a.id, b.id),
        workflow.set_privacy(b.id, b.id, True),
        return_exceptions=True,
    )

    status = store.relationships[(a.id, b.id)].status
    if isinstance(accept, FollowServiceError):
        assert isinstance(accept, InvalidTransition)
        assert change.rejected_count == 1
        assert status == RelationshipStatus.REJECTED
    else:
        assert accept.status == RelationshipStatus.ACCEPTED
        assert change.rejected_count == 0
        assert status == RelationshipStatus.ACCEPTED


async def test_accept_and_reject_race_has_one_winner(workflow, store, make_account):
    a = await make_account("alice")
    b = await make_account("bob", is_private=True)
    await workflow.request_follow(a.id, a.id, b.id)

    results = await asyncio.gather(
        workflow.accept_request(b.id, a.id, b.id),
        workflow.reject_request(b.id, a.id, b.id),
        return_exceptions=True,
    )

    winners = [r for r in results if not isinstance(r, Exception)]
    assert len(winners) == 1
    assert store.relationships[(a.id, b.id)].status == winners[0].status


async def test_cancel_and_accept_race(workflow, store, make_account):
    a = await make_account("alice")
    b = await make_account("bob", is_private=True)
    await workflow.request_follow(a.id, a.id, b.id)

    cancel, accept = await asyncio.gather(
        workflow.cancel_request(a.id, a.id, b.id),
        workflow.accept_request(b.id, a.id, b.id),
        return_exceptions=True,
    )

    edge = store.relationships.get((a.id, b.id))
    if isinstance(accept, Exception):
        assert cancel is None
        assert edge is None
    else:
        assert isinstance(cancel, InvalidTransition)
        assert edge.status == RelationshipStatus.ACCEPTED


class _DecidedElsewhere(InMemoryRelationshipRepository):
    """Settles the request right after it is read, as a racing transaction would"""

    async def get_edge(self, follower_id, following_id):
        edge = await super().get_edge(follower_id, following_id)
        if edge is not None and edge.is_pending():
            self.store.relationships[(follower_id, following_id)].status = RelationshipStatus.REJECTED
        return edge


async def test_decision_losing_the_status_swap(store, publisher, producer, notifications, make_account):
    a = await make_account("alice")
    b = await make_account("bob", is_private=True)

    def racing_unit_of_work():
        uow = store.unit_of_work()
        uow.relationships = _DecidedElsewhere(store)
        return uow

    workflow = FollowWorkflow(racing_unit_of_work, publisher, producer, notify_on_reject=False)
    await workflow.request_follow(a.id, a.id, b.id)
    publisher.pushed.clear()

    with pytest.raises(StatusMismatch):
        await workflow.accept_request(b.id, a.id, b.id)

    assert store.relationships[(a.id, b.id)].status == RelationshipStatus.REJECTED
    assert await notifications.list_for_user(a.id) == []
    assert await notifications.unread_count(b.id) == 1
    assert publisher.pushed == []
