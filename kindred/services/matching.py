import asyncio
import weakref
from dataclasses import dataclass

from loguru import logger

from kindred.core.config import settings
from kindred.core.errors import Conflict, MatchLimitReached, NotFound, ValidationError
from kindred.models.match import Match, MatchType
from kindred.models.profile import Profile, utcnow
from kindred.models.user import LikeRecord, MatchEntry, User
from kindred.services.compatibility import calculate_compatibility, common_interests, haversine_km
from kindred.services.profiles import ProfileService
from kindred.services.repository import MatchRepository, UserRepository
from kindred.services.store import DocumentStore, retry_on_conflict


@dataclass
class LikeResult:
    is_match: bool
    matches_count: int
    max_matches_reached: bool


class ActorLocks:
    """
    One asyncio.Lock per actor so the duplicate check and the write of a single
    action never interleave inside this process. A lock stays registered while
    any request holds or awaits it and is dropped once nothing references it.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def __call__(self, actor_id: str) -> asyncio.Lock:
        lock = self._locks.get(actor_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[actor_id] = lock
        return lock


class MatchService:
    """
    Like / super-like / pass / remove transitions for an (account, profile) pair.

    The account document owns both the liked list and the matched list, so each
    action is one versioned write of that document, together with the match
    document when a match is created or removed.
    """

    def __init__(self, store: DocumentStore, max_matches: int | None = None) -> None:
        self.store = store
        self.max_matches = max_matches or settings.MAX_MATCHES
        self.users = UserRepository(store)
        self.matches = MatchRepository(store)
        self.profiles = ProfileService(store)
        self._lock = ActorLocks()

    async def _load_actor(self, user_id: str) -> User:
        user = await self.users.get(user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    async def _prepare_like(self, user_id: str, profile_id: str) -> tuple[User, Profile]:
        target = await self.profiles.require(profile_id)
        user = await self._load_actor(user_id)
        if user.profile_id == profile_id:
            raise ValidationError("You cannot like your own profile")
        if user.find_like(profile_id):
            raise Conflict("Profile already liked")
        return user, target

    async def _new_match(self, user: User, target: Profile, kind: MatchType) -> Match:
        users = [user.id]
        if target.user_id and target.user_id != user.id:
            users.append(target.user_id)
        own = await self.profiles.get(user.profile_id) if user.profile_id else None
        match = Match(
            users=users,
            profiles=[own.id, target.id] if own else [target.id],
            status="matched",
            match_type=kind,
        )
        if own is not None:
            match.set_compatibility(calculate_compatibility(own, target))
            match.metadata.mutual_interests = common_interests(own, target)
            match.metadata.age_difference = abs(own.age - target.age)
            match.metadata.common_location = own.location.lower() == target.location.lower()
            if own.location_data and target.location_data:
                match.metadata.distance = round(haversine_km(own.location_data, target.location_data), 2)
        return match

    def _record_like(self, user: User, profile_id: str, kind: MatchType) -> None:
        user.liked_profiles.append(LikeRecord(profile_id=profile_id, kind=kind))
        user.stats.total_likes += 1
        if kind == "super_like":
            user.stats.total_super_likes += 1
        user.updated_at = utcnow()

    def _record_match(self, user: User, match: Match, profile_id: str, kind: MatchType) -> None:
        user.matches.append(MatchEntry(profile_id=profile_id, match_id=match.id, kind=kind))
        user.stats.total_matches += 1

    def _result(self, user: User, is_match: bool) -> LikeResult:
        count = len(user.matches)
        return LikeResult(is_match=is_match, matches_count=count, max_matches_reached=count >= self.max_matches)

    async def like(self, user_id: str, profile_id: str, super_liked: bool = False) -> LikeResult:
        """
        Record a like. A super-liked like also becomes a match while the actor is
        under the match cap; at the cap the like is kept and no match is made.
        The target's own likes are not consulted.
        """

        async def _like() -> LikeResult:
            user, target = await self._prepare_like(user_id, profile_id)
            kind: MatchType = "super_like" if super_liked else "like"
            self._record_like(user, profile_id, kind)

            writes = []
            is_match = False
            if super_liked and len(user.matches) < self.max_matches:
                match = await self._new_match(user, target, kind)
                self._record_match(user, match, profile_id, kind)
                writes.append(self.matches.stage(match))
                is_match = True
            writes.append(self.users.stage(user))
            await self.store.save_many(writes)
            return self._result(user, is_match)

        async with self._lock(user_id):
            result = await retry_on_conflict(_like)
        logger.info(f"User {user_id} liked profile {profile_id} (super={super_liked}, match={result.is_match})")
        return result

    async def super_like(self, user_id: str, profile_id: str) -> LikeResult:
        """Like and match in one write. Refused outright when the actor is at the match cap."""

        async def _super_like() -> LikeResult:
            user, target = await self._prepare_like(user_id, profile_id)
            if len(user.matches) >= self.max_matches:
                raise MatchLimitReached(f"You've reached the maximum of {self.max_matches} matches")

            self._record_like(user, profile_id, "super_like")
            match = await self._new_match(user, target, "super_like")
            self._record_match(user, match, profile_id, "super_like")
            await self.store.save_many([self.matches.stage(match), self.users.stage(user)])
            return self._result(user, True)

        async with self._lock(user_id):
            result = await retry_on_conflict(_super_like)
        logger.info(f"User {user_id} super liked profile {profile_id}")
        return result

    async def pass_profile(self, user_id: str, profile_id: str) -> None:
        """Passing is advisory: the target must exist but nothing is stored."""
        await self.profiles.require(profile_id)
        logger.debug(f"User {user_id} passed on profile {profile_id}")

    async def remove_match(self, user_id: str, profile_id: str) -> int:
        """Forget both the like and the match for this profile. Succeeds when neither exists."""

        async def _remove() -> int:
            user = await self._load_actor(user_id)
            entries = [m for m in user.matches if m.profile_id == profile_id]
            had_like = user.find_like(profile_id) is not None
            if not entries and not had_like:
                return len(user.matches)

            user.matches = [m for m in user.matches if m.profile_id != profile_id]
            user.liked_profiles = [like for like in user.liked_profiles if like.profile_id != profile_id]
            user.updated_at = utcnow()
            writes = [self.users.stage(user)]
            for entry in entries:
                match = await self.matches.get(entry.match_id)
                if match is not None:
                    writes.append(self.matches.stage(match, delete=True))
            await self.store.save_many(writes)
            return len(user.matches)

        async with self._lock(user_id):
            count = await retry_on_conflict(_remove)
        logger.info(f"User {user_id} removed profile {profile_id} from matches")
        return count

    async def stats(self, user_id: str) -> dict:
        user = await self._load_actor(user_id)
        return {
            "totalMatches": len(user.matches),
            "totalLiked": len(user.liked_profiles),
            "superLikes": sum(1 for like in user.liked_profiles if like.super_liked),
            "maxMatchesReached": len(user.matches) >= self.max_matches,
        }

    async def _with_profiles(self, entries: list) -> list[dict]:
        result = []
        for entry in entries:
            data = entry.model_dump(mode="json")
            profile = await self.profiles.get(entry.profile_id)
            data["profile"] = profile.public() if profile else None
            result.append(data)
        return result

    async def list_matches(self, user_id: str) -> list[dict]:
        user = await self._load_actor(user_id)
        return await self._with_profiles(user.matches)

    async def list_liked(self, user_id: str) -> list[dict]:
        user = await self._load_actor(user_id)
        return await self._with_profiles(user.liked_profiles)
