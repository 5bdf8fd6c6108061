from fastapi import APIRouter, Depends

from kindred.api.deps import get_current_user, get_profiles
from kindred.models.profile import ProfileFields, ProfileUpdate
from kindred.models.user import User
from kindred.services.profiles import ProfileService

router = APIRouter(prefix="/api/profiles", tags=["profiles"])


@router.get("/")
async def list_profiles(user: User = Depends(get_current_user), profiles: ProfileService = Depends(get_profiles)):
    """Active profiles for swiping, newest first, without the caller's own."""
    return [p.public() for p in await profiles.list_active(exclude_id=user.profile_id)]


# Must be declared before the /{profile_id} routes
@router.post("/seed")
async def seed_profiles(profiles: ProfileService = Depends(get_profiles)) -> dict:
    count = await profiles.seed()
    return {"message": "Profiles seeded successfully", "count": count}


@router.get("/{profile_id}")
async def get_profile(
    profile_id: str, user: User = Depends(get_current_user), profiles: ProfileService = Depends(get_profiles)
) -> dict:
    return (await profiles.require(profile_id)).public()


@router.get("/{profile_id}/compatibility")
async def get_compatibility(
    profile_id: str, user: User = Depends(get_current_user), profiles: ProfileService = Depends(get_profiles)
) -> dict:
    compatibility = await profiles.compatibility_with(user.id, profile_id)
    return compatibility.model_dump(mode="json")


@router.post("/", status_code=201)
async def create_profile(
    payload: ProfileFields, user: User = Depends(get_current_user), profiles: ProfileService = Depends(get_profiles)
) -> dict:
    return (await profiles.create(user.id, payload)).public()


@router.put("/{profile_id}")
async def update_profile(
    profile_id: str,
    payload: ProfileUpdate,
    user: User = Depends(get_current_user),
    profiles: ProfileService = Depends(get_profiles),
) -> dict:
    return (await profiles.update(user.id, profile_id, payload)).public()


@router.delete("/{profile_id}")
async def delete_profile(
    profile_id: str, user: User = Depends(get_current_user), profiles: ProfileService = Depends(get_profiles)
) -> dict:
    await profiles.delete(user.id, profile_id)
    return {"message": "Profile deleted successfully"}
