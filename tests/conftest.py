import fakeredis
import httpx
import pytest

from kindred.core.app import create_app
from kindred.core.config import Settings
from kindred.core.security import PasswordHasher, TokenService
from kindred.models.profile import Profile
from kindred.models.user import User
from kindred.services.accounts import AccountService
from kindred.services.conversations import ConversationService
from kindred.services.matching import MatchService
from kindred.services.repository import ProfileRepository, UserRepository
from kindred.services.store import DocumentStore


class RecordingMailer:
    """Stands in for EmailService and remembers what would have been sent."""

    def __init__(self) -> None:
        self.resets: list[tuple[str, str]] = []
        self.confirmations: list[str] = []

    async def send_password_reset(self, email: str, token: str, ttl_minutes: int) -> bool:
        self.resets.append((email, token))
        return True

    async def send_password_reset_success(self, email: str) -> bool:
        self.confirmations.append(email)
        return True

    async def close(self) -> None:
        pass


@pytest.fixture
async def redis_client():
    client = fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
def store(redis_client) -> DocumentStore:
    return DocumentStore(client=redis_client, prefix="test:")


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(iterations=1000)


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(secret="test-secret", ttl_seconds=3600)


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def accounts(store, tokens, mailer, hasher) -> AccountService:
    return AccountService(store, tokens, mailer, hasher=hasher)


@pytest.fixture
def matching(store) -> MatchService:
    return MatchService(store, max_matches=4)


@pytest.fixture
def conversations(store) -> ConversationService:
    return ConversationService(store)


@pytest.fixture
def make_user(store, hasher):
    users = UserRepository(store)
    counter = iter(range(10_000))

    async def _make(email: str | None = None, profile_id: str | None = None) -> User:
        user = User(
            email=email or f"user{next(counter)}@example.com",
            password_hash=hasher.hash("secret123"),
            profile_id=profile_id,
        )
        await users.claim_email(user.email, user.id)
        return await users.save(user)

    return _make


@pytest.fixture
def make_profile(store):
    profiles = ProfileRepository(store)

    async def _make(**fields) -> Profile:
        data = {"name": "Sam", "age": 27, "interests": ["Hiking", "Coffee"]}
        data.update(fields)
        return await profiles.save(Profile(**data))

    return _make


@pytest.fixture
async def client(store, mailer, tokens, hasher):
    config = Settings(APP_ENV="development", MAX_MATCHES=4)
    app = create_app(store=store, mailer=mailer, tokens=tokens, hasher=hasher, config=config)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield http
