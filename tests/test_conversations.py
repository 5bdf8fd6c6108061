import pytest

from kindred.core.errors import Conflict, Forbidden, NotFound, ValidationError
from kindred.services.repository import MatchRepository, ProfileRepository, UserRepository


@pytest.fixture
async def matched_pair(store, matching, make_user, make_profile):
    """Alice super-likes Bob's profile; both accounts are members of the match."""
    bob_profile = await make_profile(name="Bob")
    bob = await make_user(profile_id=bob_profile.id)
    bob_profile.user_id = bob.id
    await ProfileRepository(store).save(bob_profile)

    alice_profile = await make_profile(name="Alice")
    alice = await make_user(profile_id=alice_profile.id)
    await matching.super_like(alice.id, bob_profile.id)
    alice = await UserRepository(store).get(alice.id)
    match_id = alice.find_match(bob_profile.id).match_id
    return alice, bob, match_id


async def test_members_can_exchange_messages(conversations, matched_pair):
    alice, bob, match_id = matched_pair

    await conversations.send_message(alice.id, match_id, "Hi Bob")
    await conversations.send_message(bob.id, match_id, "Hey!", "text")

    match = await conversations.get(bob.id, match_id)
    assert [(m.sender, m.content) for m in match.messages] == [(alice.id, "Hi Bob"), (bob.id, "Hey!")]
    assert match.interaction_count == 2


async def test_outsiders_are_forbidden(conversations, matched_pair, make_user):
    _, _, match_id = matched_pair
    outsider = await make_user()

    with pytest.raises(Forbidden):
        await conversations.get(outsider.id, match_id)
    with pytest.raises(Forbidden):
        await conversations.send_message(outsider.id, match_id, "hello")
    with pytest.raises(NotFound):
        await conversations.get(outsider.id, "missing")


async def test_invalid_message_is_rejected(conversations, matched_pair):
    alice, _, match_id = matched_pair

    with pytest.raises(ValidationError):
        await conversations.send_message(alice.id, match_id, "x" * 1001)


async def test_mark_read_only_touches_incoming(conversations, matched_pair):
    alice, bob, match_id = matched_pair
    await conversations.send_message(alice.id, match_id, "one")
    await conversations.send_message(bob.id, match_id, "two")

    assert await conversations.mark_read(bob.id, match_id) == 1
    assert await conversations.mark_read(bob.id, match_id) == 0

    match = await conversations.get(alice.id, match_id)
    assert [m.is_read for m in match.messages] == [True, False]


async def test_unmatch_frees_a_match_slot(store, conversations, matching, matched_pair):
    alice, _, match_id = matched_pair

    match = await conversations.unmatch(alice.id, match_id)

    assert match.status == "unmatched"
    assert (await matching.stats(alice.id))["totalMatches"] == 0
    assert (await MatchRepository(store).get(match_id)).status == "unmatched"
    with pytest.raises(Conflict):
        await conversations.send_message(alice.id, match_id, "still there?")
    with pytest.raises(Conflict):
        await conversations.unmatch(alice.id, match_id)


async def test_block_records_reason(store, conversations, matched_pair):
    alice, bob, match_id = matched_pair

    match = await conversations.block(bob.id, match_id, "spam")

    assert match.status == "blocked"
    assert match.blocks[0].from_user == bob.id
    assert match.blocks[0].reason == "spam"
    assert match.blocks[0].to_profile == alice.profile_id
    assert (await UserRepository(store).get(alice.id)).matches == []
    with pytest.raises(Conflict):
        await conversations.block(alice.id, match_id)
