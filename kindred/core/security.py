import base64
import json
import os

from cryptography.exceptions import InvalidKey
from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from loguru import logger

from kindred.core.config import settings

HASH_SCHEME = "pbkdf2_sha256"
SESSION_PURPOSE = "session"
RESET_PURPOSE = "reset"


def redact_token(token: str | None) -> str:
    """
    Redact a token for logging purposes.
    Shows the first 6 characters followed by ***.
    """
    if not token:
        return "None"
    if len(token) <= 6:
        return token
    return f"{token[:6]}***"


def _kdf(salt: bytes, iterations: int) -> PBKDF2HMAC:
    return PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        iterations=iterations,
    )


class PasswordHasher:
    """PBKDF2-HMAC-SHA256 password hashing with a per-password random salt."""

    def __init__(self, iterations: int | None = None) -> None:
        self.iterations = iterations or settings.PASSWORD_HASH_ITERATIONS

    def hash(self, password: str) -> str:
        salt = os.urandom(16)
        digest = _kdf(salt, self.iterations).derive(password.encode("utf-8"))
        return "$".join(
            [
                HASH_SCHEME,
                str(self.iterations),
                base64.urlsafe_b64encode(salt).decode("ascii"),
                base64.urlsafe_b64encode(digest).decode("ascii"),
            ]
        )

    def verify(self, password: str, encoded: str | None) -> bool:
        if not encoded:
            return False
        try:
            scheme, iterations, salt_b64, digest_b64 = encoded.split("$")
        except ValueError:
            logger.warning("Stored password hash has an unexpected format")
            return False
        if scheme != HASH_SCHEME:
            return False

        salt = base64.urlsafe_b64decode(salt_b64)
        digest = base64.urlsafe_b64decode(digest_b64)
        try:
            _kdf(salt, int(iterations)).verify(password.encode("utf-8"), digest)
            return True
        except InvalidKey:
            return False


class TokenService:
    """
    Issues and verifies signed, encrypted, expiring tokens (Fernet).

    Session tokens carry the user id; reset tokens also carry a single-use nonce
    that must match the one stored on the account.
    """

    def __init__(self, secret: str | None = None, ttl_seconds: int | None = None) -> None:
        self.secret = secret or settings.TOKEN_SECRET
        self.ttl_seconds = ttl_seconds or settings.TOKEN_TTL_SECONDS
        if self.secret == "change-me":
            logger.warning("TOKEN_SECRET is using the default placeholder. Set a strong value to secure sessions.")
        self._cipher = self._get_cipher()

    def _get_cipher(self) -> Fernet:
        salt = b"kindred-session-token-key-salt"
        key = base64.urlsafe_b64encode(_kdf(salt, 200_000).derive(self.secret.encode("utf-8")))
        return Fernet(key)

    def _issue(self, payload: dict) -> str:
        return self._cipher.encrypt(json.dumps(payload).encode("utf-8")).decode("utf-8")

    def _read(self, token: str, purpose: str, ttl: int) -> dict | None:
        try:
            raw = self._cipher.decrypt(token.encode("utf-8"), ttl=ttl)
        except (InvalidToken, ValueError):
            logger.debug(f"Rejected {purpose} token {redact_token(token)}")
            return None
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            return None
        if payload.get("purpose") != purpose or not payload.get("sub"):
            return None
        return payload

    def issue_session(self, user_id: str) -> str:
        return self._issue({"sub": user_id, "purpose": SESSION_PURPOSE})

    def verify_session(self, token: str) -> str | None:
        """Return the user id carried by a valid session token, else None."""
        payload = self._read(token, SESSION_PURPOSE, self.ttl_seconds)
        return payload["sub"] if payload else None

    def issue_reset(self, user_id: str, nonce: str) -> str:
        return self._issue({"sub": user_id, "purpose": RESET_PURPOSE, "nonce": nonce})

    def verify_reset(self, token: str, ttl: int | None = None) -> tuple[str, str] | None:
        payload = self._read(token, RESET_PURPOSE, ttl or settings.PASSWORD_RESET_TTL_SECONDS)
        if not payload or not payload.get("nonce"):
            return None
        return payload["sub"], payload["nonce"]
