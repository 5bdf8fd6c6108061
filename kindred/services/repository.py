from typing import Generic, TypeVar

from loguru import logger
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from kindred.core.constants import MATCHES, PROFILES, USERS
from kindred.models.match import Match
from kindred.models.profile import Profile
from kindred.models.user import User
from kindred.services.store import DocumentStore, Write

ModelT = TypeVar("ModelT", bound=BaseModel)


class Repository(Generic[ModelT]):
    """Typed access to one collection of the document store."""

    collection: str
    model: type[ModelT]

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    def _load(self, doc: dict | None) -> ModelT | None:
        if doc is None:
            return None
        try:
            return self.model.model_validate(doc)
        except PydanticValidationError as exc:
            logger.warning(f"Ignoring malformed {self.collection} document {doc.get('id')}: {exc}")
            return None

    async def get(self, doc_id: str) -> ModelT | None:
        return self._load(await self.store.get(self.collection, doc_id))

    async def all(self) -> list[ModelT]:
        docs = await self.store.list_all(self.collection)
        return [obj for obj in (self._load(doc) for doc in docs) if obj is not None]

    def stage(self, obj: ModelT, delete: bool = False) -> Write:
        return Write(self.collection, obj.model_dump(mode="json"), delete=delete, model=obj)

    async def save(self, obj: ModelT) -> ModelT:
        await self.store.save_many([self.stage(obj)])
        return obj

    async def delete(self, obj: ModelT) -> None:
        await self.store.save_many([self.stage(obj, delete=True)])


class UserRepository(Repository[User]):
    collection = USERS
    model = User

    async def find_by_email(self, email: str) -> User | None:
        user_id = await self.store.lookup_unique(USERS, "email", email.strip().lower())
        return await self.get(user_id) if user_id else None

    async def claim_email(self, email: str, user_id: str) -> bool:
        return await self.store.claim_unique(USERS, "email", email, user_id)

    async def release_email(self, email: str) -> None:
        await self.store.release_unique(USERS, "email", email)


class ProfileRepository(Repository[Profile]):
    collection = PROFILES
    model = Profile


class MatchRepository(Repository[Match]):
    collection = MATCHES
    model = Match
