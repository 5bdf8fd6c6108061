from fastapi import APIRouter, Depends
from pydantic import BaseModel

from kindred.api.deps import get_current_user, get_matching
from kindred.models.user import User
from kindred.services.matching import LikeResult, MatchService

router = APIRouter(prefix="/api/matches", tags=["matches"])


class LikeRequest(BaseModel):
    superLiked: bool = False


def _like_response(message: str, result: LikeResult) -> dict:
    return {
        "message": message,
        "isMatch": result.is_match,
        "matchesCount": result.matches_count,
        "maxMatchesReached": result.max_matches_reached,
    }


@router.get("/")
async def list_matches(user: User = Depends(get_current_user), matching: MatchService = Depends(get_matching)):
    return await matching.list_matches(user.id)


# /liked and /stats must be declared before /{profile_id}
@router.get("/liked")
async def list_liked(user: User = Depends(get_current_user), matching: MatchService = Depends(get_matching)):
    return await matching.list_liked(user.id)


@router.get("/stats")
async def match_stats(user: User = Depends(get_current_user), matching: MatchService = Depends(get_matching)) -> dict:
    return await matching.stats(user.id)


@router.post("/like/{profile_id}")
async def like_profile(
    profile_id: str,
    payload: LikeRequest | None = None,
    user: User = Depends(get_current_user),
    matching: MatchService = Depends(get_matching),
) -> dict:
    super_liked = payload.superLiked if payload else False
    result = await matching.like(user.id, profile_id, super_liked=super_liked)
    return _like_response("It's a match!" if result.is_match else "Profile liked", result)


@router.post("/superlike/{profile_id}")
async def super_like_profile(
    profile_id: str, user: User = Depends(get_current_user), matching: MatchService = Depends(get_matching)
) -> dict:
    result = await matching.super_like(user.id, profile_id)
    return _like_response("Super like sent! It's a match!", result)


@router.post("/pass/{profile_id}")
async def pass_profile(
    profile_id: str, user: User = Depends(get_current_user), matching: MatchService = Depends(get_matching)
) -> dict:
    await matching.pass_profile(user.id, profile_id)
    return {"message": "Profile passed"}


@router.delete("/{profile_id}")
async def remove_match(
    profile_id: str, user: User = Depends(get_current_user), matching: MatchService = Depends(get_matching)
) -> dict:
    count = await matching.remove_match(user.id, profile_id)
    return {"message": "Match removed", "matchesCount": count}
