import pytest

from kindred.core.errors import AccountLocked, Conflict, Unauthorized, ValidationError
from kindred.core.security import PasswordHasher, TokenService
from kindred.services.repository import UserRepository


async def test_register_then_login(accounts, tokens):
    user, token = await accounts.register("Sam@Example.com", "secret123")

    assert user.email == "sam@example.com"
    assert tokens.verify_session(token) == user.id

    logged_in, session = await accounts.login("sam@example.com", "secret123")
    assert logged_in.id == user.id
    assert (await accounts.authenticate(session)).id == user.id


async def test_register_rejects_duplicates_and_short_passwords(accounts):
    await accounts.register("sam@example.com", "secret123")

    with pytest.raises(Conflict):
        await accounts.register("SAM@example.com", "another1")
    with pytest.raises(ValidationError):
        await accounts.register("new@example.com", "123")
    with pytest.raises(ValidationError):
        await accounts.register("not-an-email", "secret123")


async def test_wrong_password_locks_after_five_attempts(accounts):
    await accounts.register("sam@example.com", "secret123")

    for _ in range(5):
        with pytest.raises(Unauthorized):
            await accounts.login("sam@example.com", "wrong-pass")

    with pytest.raises(AccountLocked):
        await accounts.login("sam@example.com", "secret123")


async def test_unknown_email_and_bad_token_are_unauthorized(accounts):
    with pytest.raises(Unauthorized):
        await accounts.login("nobody@example.com", "secret123")
    with pytest.raises(Unauthorized):
        await accounts.authenticate("garbage")


async def test_change_password(accounts):
    user, _ = await accounts.register("sam@example.com", "secret123")

    with pytest.raises(ValidationError):
        await accounts.change_password(user.id, "wrong-pass", "newsecret")
    await accounts.change_password(user.id, "secret123", "newsecret")

    await accounts.login("sam@example.com", "newsecret")


async def test_update_email_moves_the_unique_claim(accounts):
    user, _ = await accounts.register("sam@example.com", "secret123")
    await accounts.register("taken@example.com", "secret123")

    with pytest.raises(Conflict):
        await accounts.update_email(user.id, "taken@example.com")
    await accounts.update_email(user.id, "new@example.com")

    await accounts.login("new@example.com", "secret123")
    await accounts.register("sam@example.com", "secret123")


async def test_password_reset_is_single_use(store, accounts, mailer):
    user, _ = await accounts.register("sam@example.com", "secret123")

    await accounts.request_password_reset("sam@example.com")
    await accounts.request_password_reset("nobody@example.com")

    assert len(mailer.resets) == 1
    email, token = mailer.resets[0]
    assert email == "sam@example.com"

    await accounts.reset_password(token, "brandnew1")

    assert mailer.confirmations == ["sam@example.com"]
    await accounts.login("sam@example.com", "brandnew1")
    with pytest.raises(ValidationError):
        await accounts.reset_password(token, "another1")
    assert (await UserRepository(store).get(user.id)).reset_nonce is None


async def test_session_token_cannot_reset_password(accounts):
    _, session = await accounts.register("sam@example.com", "secret123")

    with pytest.raises(ValidationError):
        await accounts.reset_password(session, "brandnew1")


async def test_delete_account_removes_profile_and_frees_email(store, accounts, make_profile):
    user, _ = await accounts.register("sam@example.com", "secret123")
    profile = await make_profile(user_id=user.id)
    stored = await UserRepository(store).get(user.id)
    stored.profile_id = profile.id
    await UserRepository(store).save(stored)

    await accounts.delete(user.id)

    assert await UserRepository(store).get(user.id) is None
    assert await store.get("profiles", profile.id) is None
    await accounts.register("sam@example.com", "secret123")


def test_password_hasher_roundtrip():
    hasher = PasswordHasher(iterations=1000)
    encoded = hasher.hash("secret123")

    assert encoded.startswith("pbkdf2_sha256$1000$")
    assert hasher.verify("secret123", encoded)
    assert not hasher.verify("secret124", encoded)
    assert not hasher.verify("secret123", "garbage")
    assert not hasher.verify("secret123", None)


def test_tokens_are_bound_to_secret_and_purpose():
    tokens = TokenService(secret="one", ttl_seconds=60)
    session = tokens.issue_session("u1")
    reset = tokens.issue_reset("u1", "nonce")

    assert tokens.verify_session(session) == "u1"
    assert tokens.verify_session(reset) is None
    assert tokens.verify_reset(reset) == ("u1", "nonce")
    assert tokens.verify_reset(session) is None
    assert TokenService(secret="two", ttl_seconds=60).verify_session(session) is None
