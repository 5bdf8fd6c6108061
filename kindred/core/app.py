import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from kindred.api.main import api_router
from kindred.core.errors import DomainError
from kindred.core.security import PasswordHasher, TokenService
from kindred.services.accounts import AccountService
from kindred.services.conversations import ConversationService
from kindred.services.mail import EmailService
from kindred.services.matching import MatchService
from kindred.services.profiles import ProfileService
from kindred.services.store import DocumentStore

from .config import Settings, settings
from .version import __version__


def configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events (startup/shutdown).
    """
    yield
    try:
        await app.state.mailer.close()
        await app.state.store.close()
        logger.info("Store and mail clients closed")
    except Exception as exc:
        logger.warning(f"Failed to close clients on shutdown: {exc}")


def create_app(
    store: DocumentStore | None = None,
    mailer: EmailService | None = None,
    tokens: TokenService | None = None,
    hasher: PasswordHasher | None = None,
    config: Settings | None = None,
) -> FastAPI:
    """Build the application around the given collaborators (defaults come from settings)."""
    config = config or settings

    app = FastAPI(
        title="Kindred",
        description="Dating app backend: accounts, profiles, likes and matches",
        version=__version__,
        lifespan=lifespan,
        docs_url=None if config.APP_ENV == "production" else "/docs",
        redoc_url=None if config.APP_ENV == "production" else "/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    )

    store = store or DocumentStore(url=config.REDIS_URL, prefix=config.REDIS_KEY_PREFIX)
    mailer = mailer or EmailService(frontend_url=config.FRONTEND_URL)
    tokens = tokens or TokenService(secret=config.TOKEN_SECRET, ttl_seconds=config.TOKEN_TTL_SECONDS)

    app.state.store = store
    app.state.mailer = mailer
    app.state.accounts = AccountService(store, tokens, mailer, hasher=hasher)
    app.state.profiles = ProfileService(store)
    app.state.matching = MatchService(store, max_matches=config.MAX_MATCHES)
    app.state.conversations = ConversationService(store)

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"message": "Something went wrong!"})

    app.include_router(api_router)
    return app


configure_logging(settings.LOG_LEVEL)
app = create_app()
