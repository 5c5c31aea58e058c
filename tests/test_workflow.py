from uuid import uuid4

import pytest

from follow_service.application import FollowWorkflow
from follow_service.config import settings
from follow_service.domain import NotificationType, RelationshipStatus
from follow_service.domain.errors import (
    AccountNotFound,
    DuplicateEdge,
    EdgeNotFound,
    InvalidTransition,
    SelfFollow,
    Unauthorized,
)


async def _notifications_of(notifications, account, kind=None):
    entries = await notifications.list_for_user(account.id, limit=100)
    if kind is None:
        return entries
    return [n for n in entries if n.type == kind]


async def test_request_to_private_account_is_pending(workflow, notifications, make_account):
    a = await make_account("alice")
    b = await make_account("bob", is_private=True)

    edge = await workflow.request_follow(a.id, a.id, b.id)

    assert edge.status == RelationshipStatus.PENDING
    requests = await _notifications_of(notifications, b)
    assert [n.type for n in requests] == [NotificationType.FOLLOW_REQUEST]
    assert requests[0].from_user_id == a.id


async def test_request_to_public_account_is_accepted(workflow, notifications, profiles, make_account):
    a = await make_account("alice")
    b = await make_account("bob")
    before = await profiles.get_stats(b.id)

    edge = await workflow.request_follow(a.id, a.id, b.id)

    assert edge.status == RelationshipStatus.ACCEPTED
    entries = await _notifications_of(notifications, b)
    assert [n.type for n in entries] == [NotificationType.NEW_FOLLOWER]
    after = await profiles.get_stats(b.id)
    assert after.follower_count == before.follower_count + 1


@pytest.mark.parametrize("first_status", ["pending", "accepted", "rejected"])
async def test_duplicate_request_fails_in_any_status(workflow, store, make_account, first_status):
    a = await make_account("alice")
    b = await make_account("bob", is_private=first_status != "accepted")
    await workflow.request_follow(a.id, a.id, b.id)
    if first_status == "rejected":
        await workflow.reject_request(b.id, a.id, b.id)

    with pytest.raises(DuplicateEdge):
        await workflow.request_follow(a.id, a.id, b.id)

    assert len(store.relationships) == 1
    assert store.relationships[(a.id, b.id)].status.value == first_status


async def test_self_follow_is_refused(workflow, store, make_account):
    a = await make_account("alice")
    with pytest.raises(SelfFollow):
        await workflow.request_follow(a.id, a.id, a.id)
    assert store.relationships == {}
    assert store.notifications == {}


async def test_request_for_someone_else_is_refused(workflow, make_account):
    a = await make_account("alice")
    b = await make_account("bob")
    mallory = await make_account("mallory")
    with pytest.raises(Unauthorized):
        await workflow.request_follow(mallory.id, a.id, b.id)


async def test_request_to_missing_account(workflow, make_account):
    a = await make_account("alice")
    with pytest.raises(AccountNotFound):
        await workflow.request_follow(a.id, a.id, uuid4())


async def test_only_target_can_decide(workflow, make_account):
    a = await make_account("alice")
    b = await make_account("bob", is_private=True)
    await workflow.request_follow(a.id, a.id, b.id)

    with pytest.raises(Unauthorized):
        await workflow.accept_request(a.id, a.id, b.id)
    with pytest.raises(Unauthorized):
        await workflow.reject_request(a.id, a.id, b.id)


async def test_decide_on_missing_or_settled_request(workflow, make_account):
    a = await make_account("alice")
    b = await make_account("bob", is_private=True)

    with pytest.raises(EdgeNotFound):
        await workflow.accept_request(b.id, a.id, b.id)

    await workflow.request_follow(a.id, a.id, b.id)
    await workflow.accept_request(b.id, a.id, b.id)

    with pytest.raises(InvalidTransition):
        await workflow.accept_request(b.id, a.id, b.id)
    with pytest.raises(InvalidTransition):
        await workflow.reject_request(b.id, a.id, b.id)


async def test_reject_is_silent_by_default(workflow, notifications, make_account):
    a = await make_account("alice")
    b = await make_account("bob", is_private=True)
    await workflow.request_follow(a.id, a.id, b.id)

    edge = await workflow.reject_request(b.id, a.id, b.id)

    assert edge.status == RelationshipStatus.REJECTED
    assert await _notifications_of(notifications, a) == []


async def test_reject_notifies_when_enabled(store, publisher, producer, notifications, make_account):
    loud = FollowWorkflow(store.unit_of_work, publisher, producer, notify_on_reject=True)
    a = await make_account("alice")
    b = await make_account("bob", is_private=True)
    await loud.request_follow(a.id, a.id, b.id)

    await loud.reject_request(b.id, a.id, b.id)

    entries = await _notifications_of(notifications, a)
    assert [n.type for n in entries] == [NotificationType.FOLLOW_REJECTED]
    assert entries[0].from_user_id == b.id


async def test_cancel_only_applies_to_pending(workflow, store, make_account):
    a = await make_account("alice")
    private = await make_account("bob", is_private=True)
    public = await make_account("carol")

    await workflow.request_follow(a.id, a.id, private.id)
    await workflow.cancel_request(a.id, a.id, private.id)
    assert (a.id, private.id) not in store.relationships

    await workflow.request_follow(a.id, a.id, public.id)
    with pytest.raises(InvalidTransition):
        await workflow.cancel_request(a.id, a.id, public.id)
    assert (a.id, public.id) in store.relationships


async def test_unfollow_only_applies_to_accepted(workflow, store, make_account):
    a = await make_account("alice")
    private = await make_account("bob", is_private=True)

    await workflow.request_follow(a.id, a.id, private.id)
    with pytest.raises(InvalidTransition):
        await workflow.unfollow(a.id, a.id, private.id)
    assert (a.id, private.id) in store.relationships


async def test_rejected_edge_cannot_be_withdrawn(workflow, make_account):
    a = await make_account("alice")
    b = await make_account("bob", is_private=True)
    await workflow.request_follow(a.id, a.id, b.id)
    await workflow.reject_request(b.id, a.id, b.id)

    with pytest.raises(InvalidTransition):
        await workflow.cancel_request(a.id, a.id, b.id)
    with pytest.raises(InvalidTransition):
        await workflow.unfollow(a.id, a.id, b.id)


async def test_withdraw_needs_follower_and_edge(workflow, make_account):
    a = await make_account("alice")
    b = await make_account("bob")
    with pytest.raises(EdgeNotFound):
        await workflow.unfollow(a.id, a.id, b.id)

    await workflow.request_follow(a.id, a.id, b.id)
    with pytest.raises(Unauthorized):
        await workflow.unfollow(b.id, a.id, b.id)


async def test_going_private_rejects_pending_requests(workflow, store, profiles, make_account):
    b = await make_account("bob", is_private=True)
    fans = [await make_account(f"fan{i}") for i in range(2)]
    requesters = [await make_account(f"req{i}") for i in range(3)]

    await workflow.set_privacy(b.id, b.id, False)
    for fan in fans:
        await workflow.request_follow(fan.id, fan.id, b.id)
    await workflow.set_privacy(b.id, b.id, True)
    for requester in requesters:
        await workflow.request_follow(requester.id, requester.id, b.id)

    # pending requests survive a public flip; the next private flip rejects them
    await workflow.set_privacy(b.id, b.id, False)
    change = await workflow.set_privacy(b.id, b.id, True)

    assert change.rejected_count == 3
    assert change.account.is_private is True
    for requester in requesters:
        assert store.relationships[(requester.id, b.id)].status == RelationshipStatus.REJECTED
    for fan in fans:
        assert store.relationships[(fan.id, b.id)].status == RelationshipStatus.ACCEPTED

    await workflow.set_privacy(b.id, b.id, False)
    for requester in requesters:
        assert store.relationships[(requester.id, b.id)].status == RelationshipStatus.REJECTED
    assert (await profiles.get_stats(b.id)).follower_count == 2


async def test_staying_private_does_not_cascade(workflow, store, make_account):
    a = await make_account("alice")
    b = await make_account("bob", is_private=True)
    await workflow.request_follow(a.id, a.id, b.id)

    change = await workflow.set_privacy(b.id, b.id, True)

    assert change.rejected_count == 0
    assert store.relationships[(a.id, b.id)].status == RelationshipStatus.PENDING


async def test_privacy_is_owner_only(workflow, make_account):
    a = await make_account("alice")
    b = await make_account("bob")
    with pytest.raises(Unauthorized):
        await workflow.set_privacy(a.id, b.id, True)


async def test_side_channels_fire_after_commit(workflow, publisher, producer, make_account):
    a = await make_account("alice")
    b = await make_account("bob", is_private=True)
    producer.events.clear()

    await workflow.request_follow(a.id, a.id, b.id)
    await workflow.accept_request(b.id, a.id, b.id)
    await workflow.unfollow(a.id, a.id, b.id)

    assert [n.type for n in publisher.pushed] == [
        NotificationType.FOLLOW_REQUEST,
        NotificationType.FOLLOW_ACCEPTED,
    ]
    assert producer.topics() == [
        settings.KAFKA_TOPIC_FOLLOW_REQUESTED,
        settings.KAFKA_TOPIC_FOLLOW_ACCEPTED,
        settings.KAFKA_TOPIC_FOLLOW_REMOVED,
    ]
    assert producer.events[0][2]["status"] == "pending"
    assert producer.events[2][2]["previous_status"] == "accepted"


async def test_failed_transition_emits_nothing(workflow, publisher, producer, make_account):
    a = await make_account("alice")
    b = await make_account("bob")
    await workflow.request_follow(a.id, a.id, b.id)
    publisher.pushed.clear()
    producer.events.clear()

    with pytest.raises(DuplicateEdge):
        await workflow.request_follow(a.id, a.id, b.id)

    assert publisher.pushed == []
    assert producer.events == []


async def test_request_accept_unfollow_round(workflow, notifications, profiles, store, make_account):
    a = await make_account("alice")
    b = await make_account("bob", is_private=True)

    edge = await workflow.request_follow(a.id, a.id, b.id)
    assert edge.status == RelationshipStatus.PENDING
    assert len(await _notifications_of(notifications, b, NotificationType.FOLLOW_REQUEST)) == 1

    edge = await workflow.accept_request(b.id, a.id, b.id)
    assert edge.status == RelationshipStatus.ACCEPTED
    accepted = await _notifications_of(notifications, a, NotificationType.FOLLOW_ACCEPTED)
    assert len(accepted) == 1
    assert accepted[0].from_user_id == b.id
    assert (await profiles.get_stats(b.id)).follower_count == 1

    await workflow.unfollow(a.id, a.id, b.id)
    assert (a.id, b.id) not in store.relationships
    assert (await profiles.get_stats(b.id)).follower_count == 0


@pytest.mark.parametrize("decision", ["accept", "reject"])
async def test_decision_marks_request_notice_read(workflow, notifications, make_account, decision):
    b = await make_account("bob", is_private=True)
    a = await make_account("alice")
    other = await make_account("carol")
    await workflow.request_follow(a.id, a.id, b.id)
    await workflow.request_follow(other.id, other.id, b.id)
    assert await notifications.unread_count(b.id) == 2

    decide = workflow.accept_request if decision == "accept" else workflow.reject_request
    await decide(b.id, a.id, b.id)

    entries = await _notifications_of(notifications, b, NotificationType.FOLLOW_REQUEST)
    read = {n.from_user_id: n.read for n in entries}
    assert read == {a.id: True, other.id: False}
    assert await notifications.unread_count(b.id) == 1


async def test_failed_decision_leaves_notice_unread(workflow, notifications, make_account):
    b = await make_account("bob", is_private=True)
    a = await make_account("alice")
    await workflow.request_follow(a.id, a.id, b.id)

    with pytest.raises(Unauthorized):
        await workflow.accept_request(a.id, a.id, b.id)

    assert await notifications.unread_count(b.id) == 1
