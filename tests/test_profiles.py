from uuid import uuid4

import pytest

from follow_service.domain import RelationshipStatus, RelationshipType
from follow_service.domain.errors import AccountNotFound, DuplicateAccount, ProfileNotVisible
from follow_service.domain.models import Profile, RedactedProfile


async def test_private_profile_redacted_for_strangers(profiles, make_account):
    owner = await make_account("bob", is_private=True)
    stranger = await make_account("eve")

    for viewer_id in (stranger.id, None):
        profile = await profiles.get_profile(viewer_id, owner.id)
        assert isinstance(profile, RedactedProfile)
        assert profile.display_name == "bob"
        assert profile.is_private is True


async def test_private_profile_visible_to_owner(profiles, make_account):
    owner = await make_account("bob", is_private=True)

    profile = await profiles.get_profile(owner.id, owner.id)

    assert isinstance(profile, Profile)
    assert profile.viewer_is_owner is True
    assert profile.viewer_status is None


async def test_pending_follower_still_redacted(workflow, profiles, make_account):
    owner = await make_account("bob", is_private=True)
    viewer = await make_account("alice")
    await workflow.request_follow(viewer.id, viewer.id, owner.id)

    profile = await profiles.get_profile(viewer.id, owner.id)

    assert isinstance(profile, RedactedProfile)
    assert profile.viewer_status == RelationshipStatus.PENDING


async def test_accepted_follower_sees_private_profile(workflow, profiles, make_account):
    owner = await make_account("bob", is_private=True)
    viewer = await make_account("alice")
    await workflow.request_follow(viewer.id, viewer.id, owner.id)
    await workflow.accept_request(owner.id, viewer.id, owner.id)

    profile = await profiles.get_profile(viewer.id, owner.id)

    assert isinstance(profile, Profile)
    assert profile.viewer_is_owner is False
    assert profile.follower_count == 1


async def test_missing_profile(profiles):
    with pytest.raises(AccountNotFound):
        await profiles.get_profile(None, uuid4())


async def test_lists_of_private_account_are_hidden(profiles, make_account):
    owner = await make_account("bob", is_private=True)
    stranger = await make_account("eve")

    with pytest.raises(ProfileNotVisible):
        await profiles.list_followers(stranger.id, owner.id)
    with pytest.raises(ProfileNotVisible):
        await profiles.list_following(stranger.id, owner.id)

    page = await profiles.list_followers(owner.id, owner.id)
    assert page.total == 0


async def test_followers_paginate_newest_first(workflow, profiles, make_account):
    star = await make_account("star")
    fans = [await make_account(f"fan{i}") for i in range(12)]
    for fan in fans:
        await workflow.request_follow(fan.id, fan.id, star.id)

    first = await profiles.list_followers(None, star.id, page=1, page_size=10)
    second = await profiles.list_followers(None, star.id, page=2, page_size=10)

    assert first.total == 12
    assert first.has_more is True
    assert [c.account.id for c in first.items[:2]] == [fans[11].id, fans[10].id]
    assert [c.account.id for c in second.items] == [fans[1].id, fans[0].id]
    assert second.has_more is False


async def test_search_filters_page_by_name(workflow, profiles, make_account):
    star = await make_account("star")
    ada = await make_account("ada", full_name="Ada Lovelace")
    grace = await make_account("grace", full_name="Grace Hopper")
    for fan in (ada, grace):
        await workflow.request_follow(fan.id, fan.id, star.id)

    page = await profiles.list_followers(star.id, star.id, search="LOVE")

    assert [c.account.id for c in page.items] == [ada.id]
    assert page.total == 2


async def test_following_excludes_pending(workflow, profiles, make_account):
    alice = await make_account("alice")
    public = await make_account("carol")
    private = await make_account("bob", is_private=True)
    await workflow.request_follow(alice.id, alice.id, public.id)
    await workflow.request_follow(alice.id, alice.id, private.id)

    page = await profiles.list_following(alice.id, alice.id)

    assert [c.account.id for c in page.items] == [public.id]


async def test_pending_requests_listing(workflow, profiles, make_account):
    owner = await make_account("bob", is_private=True)
    first = await make_account("alice")
    second = await make_account("carol")
    await workflow.request_follow(first.id, first.id, owner.id)
    await workflow.request_follow(second.id, second.id, owner.id)

    page = await profiles.list_pending_requests(owner.id)

    assert page.total == 2
    assert [c.relationship.follower_id for c in page.items] == [second.id, first.id]


async def test_relationship_view(workflow, profiles, make_account):
    alice = await make_account("alice")
    bob = await make_account("bob")
    carol = await make_account("carol", is_private=True)

    assert (await profiles.get_relationship(alice.id, bob.id)).relationship == RelationshipType.NONE

    await workflow.request_follow(alice.id, alice.id, bob.id)
    assert (await profiles.get_relationship(alice.id, bob.id)).relationship == RelationshipType.FOLLOWING
    assert (await profiles.get_relationship(bob.id, alice.id)).relationship == RelationshipType.FOLLOWED_BY

    await workflow.request_follow(bob.id, bob.id, alice.id)
    view = await profiles.get_relationship(alice.id, bob.id)
    assert view.relationship == RelationshipType.MUTUAL
    assert view.is_mutual is True

    await workflow.request_follow(alice.id, alice.id, carol.id)
    assert (await profiles.get_relationship(alice.id, carol.id)).relationship == RelationshipType.PENDING
    assert (await profiles.get_relationship(carol.id, alice.id)).relationship == RelationshipType.REQUESTED


async def test_stats_count_edges(workflow, profiles, make_account):
    owner = await make_account("bob", is_private=True)
    fan = await make_account("alice")
    requester = await make_account("carol")
    await workflow.request_follow(fan.id, fan.id, owner.id)
    await workflow.accept_request(owner.id, fan.id, owner.id)
    await workflow.request_follow(requester.id, requester.id, owner.id)

    stats = await profiles.get_stats(owner.id, owner.id)

    assert stats.follower_count == 1
    assert stats.following_count == 0
    assert stats.pending_requests_count == 1

    with pytest.raises(AccountNotFound):
        await profiles.get_stats(uuid4())


async def test_pending_count_is_owner_only(workflow, profiles, make_account):
    owner = await make_account("bob", is_private=True)
    requester = await make_account("alice")
    stranger = await make_account("carol")
    await workflow.request_follow(requester.id, requester.id, owner.id)

    for viewer_id in (stranger.id, requester.id, None):
        stats = await profiles.get_stats(owner.id, viewer_id)
        assert stats.pending_requests_count == 0
        assert stats.follower_count == 0

    assert (await profiles.get_stats(owner.id, owner.id)).pending_requests_count == 1


async def test_provisioned_account_defaults(accounts):
    account_id = uuid4()
    account = await accounts.provision_account(
        {
            "id": str(account_id),
            "email": "new@example.com",
            "email_confirmed_at": "2024-01-01T00:00:00Z",
            "raw_user_meta_data": {"full_name": "New Person"},
        }
    )

    assert account.id == account_id
    assert account.is_private is False
    assert account.email_verified is True
    assert account.display_name == "New Person"
    assert account.full_name == "New Person"


async def test_provisioning_is_idempotent(accounts):
    event = {"id": str(uuid4()), "email": "again@example.com"}
    first = await accounts.provision_account(event)
    second = await accounts.provision_account(event)

    assert first.id == second.id
    assert second.full_name == ""
    assert second.email_verified is False

    with pytest.raises(DuplicateAccount):
        await accounts.provision_account({"id": str(uuid4()), "email": "again@example.com"})
