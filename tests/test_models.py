import time

import pytest
from pydantic import ValidationError

from kindred.models.match import Compatibility, CompatibilityFactor, Match
from kindred.models.profile import Profile
from kindred.models.user import AgeRange, User, normalize_email


@pytest.mark.parametrize("age", [17, 101])
def test_profile_rejects_age_out_of_range(age):
    with pytest.raises(ValidationError):
        Profile(name="Sam", age=age)


def test_profile_limits():
    with pytest.raises(ValidationError):
        Profile(name="Sam", age=30, photos=[f"https://img/{i}.jpg" for i in range(7)])
    with pytest.raises(ValidationError):
        Profile(name="Sam", age=30, bio="x" * 501)
    with pytest.raises(ValidationError):
        Profile(name="Sam", age=30, interests=["x" * 51])


def test_profile_interests_are_deduplicated_in_order():
    profile = Profile(name="Sam", age=30, interests=["Coffee", " Hiking ", "Coffee", ""])

    assert profile.interests == ["Coffee", "Hiking"]


def test_geopoint_rejects_swapped_coordinates():
    with pytest.raises(ValidationError):
        Profile(name="Sam", age=30, location_data={"coordinates": [40.0, 181.0]})


def test_user_email_is_normalised_and_validated():
    assert User(email=" Sam@Example.COM ", password_hash="x").email == "sam@example.com"
    with pytest.raises(ValidationError):
        User(email="not-an-email", password_hash="x")


def test_malformed_email_is_rejected_quickly():
    started = time.perf_counter()
    with pytest.raises(ValueError):
        normalize_email("a" * 40 + "!")
    with pytest.raises(ValidationError):
        User(email="a" * 40 + "!", password_hash="x")
    assert time.perf_counter() - started < 1.0


def test_age_range_must_be_ordered():
    with pytest.raises(ValidationError):
        AgeRange(min=40, max=30)


def make_match() -> Match:
    return Match(users=["alice", "bob"], profiles=["pa", "pb"], status="matched", match_type="like")


def test_add_message_updates_interaction_metadata():
    match = make_match()
    before = match.last_interaction

    match.add_message("alice", "hi")
    match.add_message("bob", "hello", "emoji")

    assert [m.content for m in match.messages] == ["hi", "hello"]
    assert match.interaction_count == 2
    assert match.last_interaction >= before
    assert match.last_message.sender == "bob"
    assert match.unread_count == 2


def test_message_content_limits():
    match = make_match()
    with pytest.raises(ValidationError):
        match.add_message("alice", "x" * 1001)
    with pytest.raises(ValidationError):
        match.add_message("alice", "")
    assert match.messages == []


def test_mark_as_read_skips_own_messages():
    match = make_match()
    match.add_message("alice", "one")
    match.add_message("bob", "two")
    match.add_message("alice", "three")

    changed = match.mark_as_read("alice")

    assert changed == 1
    assert [m.is_read for m in match.messages] == [False, True, False]
    assert match.messages[1].read_at is not None
    assert match.messages[0].read_at is None
    assert match.interaction_count == 3


def test_mark_as_read_without_changes_keeps_last_interaction():
    match = make_match()
    match.add_message("alice", "one")
    stamp = match.last_interaction

    assert match.mark_as_read("alice") == 0
    assert match.last_interaction == stamp


@pytest.mark.parametrize("raw,quality", [(80, "high"), (50, "medium"), (20, "low")])
def test_match_quality_follows_score(raw, quality):
    match = make_match()
    match.set_compatibility(Compatibility(factors=[CompatibilityFactor(factor="age", weight=1.0, score=raw)]))

    assert match.compatibility.score == raw
    assert match.metadata.match_quality == quality


def test_public_view_includes_derived_values():
    match = make_match()
    match.add_message("alice", "hi")

    data = match.public()

    assert data["unread_count"] == 1
    assert data["match_duration"] == 0
    assert data["last_message"]["content"] == "hi"
    assert "version" not in data
