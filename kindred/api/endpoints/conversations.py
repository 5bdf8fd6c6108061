from fastapi import APIRouter, Depends
from pydantic import BaseModel

from kindred.api.deps import get_conversations, get_current_user
from kindred.models.match import BlockReason, MessageType
from kindred.models.user import User
from kindred.services.conversations import ConversationService

router = APIRouter(prefix="/api/conversations", tags=["conversations"])


class MessageRequest(BaseModel):
    content: str
    messageType: MessageType = "text"


class BlockRequest(BaseModel):
    reason: BlockReason = "other"


@router.get("/{match_id}")
async def get_conversation(
    match_id: str,
    user: User = Depends(get_current_user),
    conversations: ConversationService = Depends(get_conversations),
) -> dict:
    return (await conversations.get(user.id, match_id)).public()


@router.post("/{match_id}/messages", status_code=201)
async def send_message(
    match_id: str,
    payload: MessageRequest,
    user: User = Depends(get_current_user),
    conversations: ConversationService = Depends(get_conversations),
) -> dict:
    message = await conversations.send_message(user.id, match_id, payload.content, payload.messageType)
    return message.model_dump(mode="json")


@router.post("/{match_id}/read")
async def mark_read(
    match_id: str,
    user: User = Depends(get_current_user),
    conversations: ConversationService = Depends(get_conversations),
) -> dict:
    count = await conversations.mark_read(user.id, match_id)
    return {"message": "Messages marked as read", "updated": count}


@router.post("/{match_id}/unmatch")
async def unmatch(
    match_id: str,
    user: User = Depends(get_current_user),
    conversations: ConversationService = Depends(get_conversations),
) -> dict:
    match = await conversations.unmatch(user.id, match_id)
    return {"message": "Unmatched", "status": match.status}


@router.post("/{match_id}/block")
async def block(
    match_id: str,
    payload: BlockRequest | None = None,
    user: User = Depends(get_current_user),
    conversations: ConversationService = Depends(get_conversations),
) -> dict:
    reason = payload.reason if payload else "other"
    match = await conversations.block(user.id, match_id, reason)
    return {"message": "Match blocked", "status": match.status}
