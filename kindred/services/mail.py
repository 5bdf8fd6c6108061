from pathlib import Path

import httpx
from jinja2 import Environment, FileSystemLoader, select_autoescape
from loguru import logger

from kindred.core.base_client import BaseClient
from kindred.core.config import settings

# kindred/services/mail.py -> kindred/services -> kindred
templates_dir = Path(__file__).resolve().parent.parent / "templates" / "email"

jinja_env = Environment(
    loader=FileSystemLoader(str(templates_dir)),
    autoescape=select_autoescape(["html"]),
)


class MailClient(BaseClient):
    """Client for a SendGrid v3 compatible transactional email API."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        api_key = api_key or settings.MAIL_API_KEY
        if not api_key:
            logger.warning("MAIL_API_KEY is not set. Outgoing email will be rejected.")
        super().__init__(
            base_url=base_url or settings.MAIL_API_URL,
            timeout=10.0,
            headers={"Authorization": f"Bearer {api_key or ''}"},
            transport=transport,
        )

    async def send(self, to: str, subject: str, html: str, sender: str | None = None) -> None:
        payload = {
            "personalizations": [{"to": [{"email": to}]}],
            "from": {"email": sender or settings.MAIL_FROM},
            "subject": subject,
            "content": [{"type": "text/html", "value": html}],
        }
        await self.post("/mail/send", json=payload)


class EmailService:
    """Account emails. Delivery problems are logged and reported as False."""

    def __init__(self, client: MailClient | None = None, frontend_url: str | None = None) -> None:
        self.client = client or MailClient()
        self.frontend_url = (frontend_url or settings.FRONTEND_URL).rstrip("/")

    async def _deliver(self, to: str, subject: str, template: str, **context) -> bool:
        html = jinja_env.get_template(template).render(**context)
        try:
            await self.client.send(to, subject, html)
        except httpx.HTTPError as exc:
            logger.error(f"Failed to send '{subject}' email: {exc}")
            return False
        logger.info(f"'{subject}' email sent")
        return True

    async def send_password_reset(self, email: str, token: str, ttl_minutes: int) -> bool:
        reset_url = f"{self.frontend_url}/reset-password?{httpx.QueryParams({'token': token})}"
        return await self._deliver(
            email,
            "Password Reset Request - Dating App",
            "password_reset.html",
            reset_url=reset_url,
            ttl_minutes=ttl_minutes,
        )

    async def send_password_reset_success(self, email: str) -> bool:
        return await self._deliver(
            email,
            "Password Reset Successful - Dating App",
            "password_reset_success.html",
        )

    async def close(self) -> None:
        await self.client.close()
