from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from kindred.core.errors import Conflict, Forbidden, NotFound, ValidationError
from kindred.models.match import Compatibility
from kindred.models.profile import Profile, ProfileFields, ProfileUpdate, utcnow
from kindred.services.compatibility import calculate_compatibility
from kindred.services.repository import ProfileRepository, UserRepository
from kindred.services.seed import SEED_PROFILES
from kindred.services.store import DocumentStore, retry_on_conflict


def validation_message(exc: PydanticValidationError) -> str:
    return "; ".join(f"{'.'.join(str(p) for p in err['loc']) or 'value'}: {err['msg']}" for err in exc.errors())


class ProfileService:
    """Profile CRUD. A profile belongs to at most one account."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store
        self.profiles = ProfileRepository(store)
        self.users = UserRepository(store)

    async def get(self, profile_id: str) -> Profile | None:
        return await self.profiles.get(profile_id)

    async def require(self, profile_id: str) -> Profile:
        profile = await self.profiles.get(profile_id)
        if profile is None:
            raise NotFound("Profile not found")
        return profile

    async def list_active(self, exclude_id: str | None = None) -> list[Profile]:
        profiles = [p for p in await self.profiles.all() if p.is_active and p.id != exclude_id]
        profiles.sort(key=lambda p: p.created_at, reverse=True)
        return profiles

    async def _require_owned(self, user_id: str, profile_id: str) -> Profile:
        profile = await self.require(profile_id)
        if profile.user_id != user_id:
            raise Forbidden("You can only change your own profile")
        return profile

    async def create(self, user_id: str, fields: ProfileFields) -> Profile:
        async def _create() -> Profile:
            user = await self.users.get(user_id)
            if user is None:
                raise NotFound("User not found")
            if user.profile_id and await self.profiles.get(user.profile_id):
                raise Conflict("Profile already exists")

            profile = Profile(**fields.model_dump(), user_id=user.id)
            user.profile_id = profile.id
            user.updated_at = utcnow()
            await self.store.save_many([self.profiles.stage(profile), self.users.stage(user)])
            return profile

        profile = await retry_on_conflict(_create)
        logger.info(f"Profile {profile.id} created for user {user_id}")
        return profile

    async def update(self, user_id: str, profile_id: str, changes: ProfileUpdate) -> Profile:
        async def _update() -> Profile:
            profile = await self._require_owned(user_id, profile_id)
            merged = {**profile.model_dump(), **changes.model_dump(exclude_unset=True)}
            merged["updated_at"] = merged["last_active"] = utcnow()
            try:
                updated = Profile.model_validate(merged)
            except PydanticValidationError as exc:
                raise ValidationError(validation_message(exc)) from exc
            return await self.profiles.save(updated)

        return await retry_on_conflict(_update)

    async def delete(self, user_id: str, profile_id: str) -> None:
        async def _delete() -> None:
            profile = await self._require_owned(user_id, profile_id)
            writes = [self.profiles.stage(profile, delete=True)]
            user = await self.users.get(user_id)
            if user is not None and user.profile_id == profile_id:
                user.profile_id = None
                user.updated_at = utcnow()
                writes.append(self.users.stage(user))
            await self.store.save_many(writes)

        await retry_on_conflict(_delete)
        logger.info(f"Profile {profile_id} deleted by user {user_id}")

    async def seed(self) -> int:
        """Replace the unowned demo profiles with the built-in set."""
        stale = [p for p in await self.profiles.all() if p.user_id is None]
        fresh = [Profile.model_validate(data) for data in SEED_PROFILES]
        writes = [self.profiles.stage(p, delete=True) for p in stale]
        writes += [self.profiles.stage(p) for p in fresh]
        await self.store.save_many(writes)
        logger.info(f"Seeded {len(fresh)} profiles (replaced {len(stale)})")
        return len(fresh)

    async def compatibility_with(self, user_id: str, profile_id: str) -> Compatibility:
        """Compatibility between the caller's own profile and another one."""
        target = await self.require(profile_id)
        user = await self.users.get(user_id)
        if user is None or not user.profile_id:
            raise ValidationError("Create your profile first")
        own = await self.require(user.profile_id)
        return calculate_compatibility(own, target)
