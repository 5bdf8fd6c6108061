import secrets
from datetime import timedelta

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from kindred.core.config import settings
from kindred.core.constants import MIN_PASSWORD_LENGTH
from kindred.core.errors import AccountLocked, Conflict, NotFound, Unauthorized, ValidationError
from kindred.core.security import PasswordHasher, TokenService, redact_token
from kindred.models.profile import utcnow
from kindred.models.user import User, normalize_email
from kindred.services.mail import EmailService
from kindred.services.profiles import validation_message
from kindred.services.repository import ProfileRepository, UserRepository
from kindred.services.store import DocumentStore, retry_on_conflict

FORGOT_PASSWORD_MESSAGE = "If that email is registered, a reset link has been sent"


def _check_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")


def _email(value: str) -> str:
    try:
        return normalize_email(value)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc


class AccountService:
    """Registration, login, session lookup and password management."""

    def __init__(
        self,
        store: DocumentStore,
        tokens: TokenService,
        mailer: EmailService,
        hasher: PasswordHasher | None = None,
    ) -> None:
        self.store = store
        self.tokens = tokens
        self.mailer = mailer
        self.hasher = hasher or PasswordHasher()
        self.users = UserRepository(store)
        self.profiles = ProfileRepository(store)

    async def register(self, email: str, password: str) -> tuple[User, str]:
        email = _email(email)
        _check_password(password)
        try:
            user = User(email=email, password_hash=self.hasher.hash(password))
        except PydanticValidationError as exc:
            raise ValidationError(validation_message(exc)) from exc

        if not await self.users.claim_email(email, user.id):
            raise Conflict("User already exists")
        try:
            await self.users.save(user)
        except Exception:
            await self.users.release_email(email)
            raise

        logger.info(f"Registered user {user.id}")
        return user, self.tokens.issue_session(user.id)

    async def login(self, email: str, password: str) -> tuple[User, str]:
        try:
            email = normalize_email(email)
        except ValueError:
            raise Unauthorized("Invalid credentials") from None

        async def _login() -> tuple[User, bool]:
            user = await self.users.find_by_email(email)
            if user is None:
                raise Unauthorized("Invalid credentials")
            if user.is_locked:
                raise AccountLocked()

            now = utcnow()
            if self.hasher.verify(password, user.password_hash):
                user.login_attempts = 0
                user.lock_until = None
                user.last_active = now
                await self.users.save(user)
                return user, True

            # An expired lock starts a fresh count
            if user.lock_until and user.lock_until <= now:
                user.lock_until = None
                user.login_attempts = 0
            user.login_attempts += 1
            if user.login_attempts >= settings.MAX_LOGIN_ATTEMPTS:
                user.lock_until = now + timedelta(seconds=settings.LOGIN_LOCK_SECONDS)
                logger.warning(f"Locking user {user.id} after {user.login_attempts} failed logins")
            await self.users.save(user)
            return user, False

        user, ok = await retry_on_conflict(_login)
        if not ok:
            raise Unauthorized("Invalid credentials")
        token = self.tokens.issue_session(user.id)
        logger.info(f"User {user.id} logged in [{redact_token(token)}]")
        return user, token

    async def authenticate(self, token: str) -> User:
        user_id = self.tokens.verify_session(token)
        if not user_id:
            raise Unauthorized("Token is not valid")
        user = await self.users.get(user_id)
        if user is None or not user.is_active:
            raise Unauthorized("Token is not valid")
        return user

    async def require(self, user_id: str) -> User:
        user = await self.users.get(user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    async def update_email(self, user_id: str, email: str) -> User:
        email = _email(email)
        user = await self.require(user_id)
        if email == user.email:
            return user
        if not await self.users.claim_email(email, user.id):
            raise Conflict("Email already taken")

        old_email = user.email

        async def _update() -> User:
            current = await self.require(user_id)
            current.email = email
            current.updated_at = utcnow()
            return await self.users.save(current)

        try:
            user = await retry_on_conflict(_update)
        except Exception:
            await self.users.release_email(email)
            raise
        await self.users.release_email(old_email)
        return user

    async def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        _check_password(new_password)

        async def _change() -> None:
            user = await self.require(user_id)
            if not self.hasher.verify(current_password, user.password_hash):
                raise ValidationError("Current password is incorrect")
            user.password_hash = self.hasher.hash(new_password)
            user.updated_at = utcnow()
            await self.users.save(user)

        await retry_on_conflict(_change)
        logger.info(f"Password changed for user {user_id}")

    async def delete(self, user_id: str) -> None:
        async def _delete() -> User:
            user = await self.require(user_id)
            writes = [self.users.stage(user, delete=True)]
            if user.profile_id:
                profile = await self.profiles.get(user.profile_id)
                if profile is not None:
                    writes.append(self.profiles.stage(profile, delete=True))
            await self.store.save_many(writes)
            return user

        user = await retry_on_conflict(_delete)
        await self.users.release_email(user.email)
        logger.info(f"Deleted account {user_id}")

    async def request_password_reset(self, email: str) -> None:
        """Email a single-use reset link. Unknown addresses are ignored silently."""
        try:
            email = normalize_email(email)
        except ValueError:
            return
        user = await self.users.find_by_email(email)
        if user is None:
            logger.debug("Password reset requested for unknown email")
            return

        nonce = secrets.token_urlsafe(16)
        ttl = settings.PASSWORD_RESET_TTL_SECONDS

        async def _store_nonce() -> None:
            current = await self.require(user.id)
            current.reset_nonce = nonce
            current.reset_expires = utcnow() + timedelta(seconds=ttl)
            await self.users.save(current)

        await retry_on_conflict(_store_nonce)
        token = self.tokens.issue_reset(user.id, nonce)
        await self.mailer.send_password_reset(user.email, token, ttl // 60)

    async def reset_password(self, token: str, new_password: str) -> None:
        _check_password(new_password)
        claims = self.tokens.verify_reset(token)
        if claims is None:
            raise ValidationError("Invalid or expired reset token")
        user_id, nonce = claims

        async def _reset() -> User:
            user = await self.users.get(user_id)
            if (
                user is None
                or not user.reset_nonce
                or not secrets.compare_digest(user.reset_nonce, nonce)
                or not user.reset_expires
                or user.reset_expires <= utcnow()
            ):
                raise ValidationError("Invalid or expired reset token")
            user.password_hash = self.hasher.hash(new_password)
            user.reset_nonce = None
            user.reset_expires = None
            user.login_attempts = 0
            user.lock_until = None
            user.updated_at = utcnow()
            return await self.users.save(user)

        user = await retry_on_conflict(_reset)
        logger.info(f"Password reset for user {user.id}")
        await self.mailer.send_password_reset_success(user.email)
