from fastapi import APIRouter

from .endpoints.conversations import router as conversations_router
from .endpoints.health import router as health_router
from .endpoints.matches import router as matches_router
from .endpoints.profiles import router as profiles_router
from .endpoints.users import router as users_router

api_router = APIRouter()


@api_router.get("/")
async def root():
    return {"message": "Kindred dating API is running"}


api_router.include_router(health_router)
api_router.include_router(users_router)
api_router.include_router(profiles_router)
api_router.include_router(matches_router)
api_router.include_router(conversations_router)
