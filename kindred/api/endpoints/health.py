from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health", summary="Simple readiness probe")
async def health_check(request: Request) -> dict[str, str]:
    store_ok = await request.app.state.store.ping()
    return {"status": "ok", "store": "ok" if store_ok else "unavailable"}
