from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from kindred.core.errors import Conflict, Forbidden, NotFound, ValidationError
from kindred.models.match import Block, BlockReason, Match, Message, MessageType
from kindred.models.profile import utcnow
from kindred.services.profiles import validation_message
from kindred.services.repository import MatchRepository, UserRepository
from kindred.services.store import DocumentStore, Write, retry_on_conflict


class ConversationService:
    """Messaging and unmatch/block actions on an existing match."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store
        self.matches = MatchRepository(store)
        self.users = UserRepository(store)

    async def get(self, user_id: str, match_id: str) -> Match:
        match = await self.matches.get(match_id)
        if match is None:
            raise NotFound("Match not found")
        if user_id not in match.users:
            raise Forbidden("Not part of this match")
        return match

    async def _require_active(self, user_id: str, match_id: str) -> Match:
        match = await self.get(user_id, match_id)
        if match.status != "matched":
            raise Conflict("This match is no longer active")
        return match

    async def send_message(
        self, user_id: str, match_id: str, content: str, message_type: MessageType = "text"
    ) -> Message:
        async def _send() -> Message:
            match = await self._require_active(user_id, match_id)
            try:
                message = match.add_message(user_id, content, message_type)
            except PydanticValidationError as exc:
                raise ValidationError(validation_message(exc)) from exc
            await self.matches.save(match)
            return message

        return await retry_on_conflict(_send)

    async def mark_read(self, user_id: str, match_id: str) -> int:
        async def _mark() -> int:
            match = await self.get(user_id, match_id)
            changed = match.mark_as_read(user_id)
            if changed:
                await self.matches.save(match)
            return changed

        return await retry_on_conflict(_mark)

    async def _detach(self, match: Match) -> list[Write]:
        """Stage removal of this match from every member's matched list."""
        writes = []
        for member_id in match.users:
            member = await self.users.get(member_id)
            if member is None:
                continue
            kept = [entry for entry in member.matches if entry.match_id != match.id]
            if len(kept) != len(member.matches):
                member.matches = kept
                member.updated_at = utcnow()
                writes.append(self.users.stage(member))
        return writes

    async def unmatch(self, user_id: str, match_id: str) -> Match:
        async def _unmatch() -> Match:
            match = await self._require_active(user_id, match_id)
            match.status = "unmatched"
            match.updated_at = utcnow()
            writes = await self._detach(match)
            await self.store.save_many([self.matches.stage(match), *writes])
            return match

        match = await retry_on_conflict(_unmatch)
        logger.info(f"User {user_id} unmatched {match_id}")
        return match

    async def block(self, user_id: str, match_id: str, reason: BlockReason = "other") -> Match:
        async def _block() -> Match:
            match = await self.get(user_id, match_id)
            if match.status == "blocked":
                raise Conflict("Match already blocked")
            own = await self.users.get(user_id)
            own_profile = own.profile_id if own else None
            target = next((p for p in match.profiles if p != own_profile), match.profiles[-1])

            match.status = "blocked"
            match.blocks.append(Block(from_user=user_id, to_profile=target, reason=reason))
            match.updated_at = utcnow()
            writes = await self._detach(match)
            await self.store.save_many([self.matches.stage(match), *writes])
            return match

        match = await retry_on_conflict(_block)
        logger.info(f"User {user_id} blocked match {match_id} ({reason})")
        return match
