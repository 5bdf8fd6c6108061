import json

import httpx

from kindred.services.mail import EmailService, MailClient


def recording_transport(statuses: list[int], seen: list[httpx.Request]) -> httpx.MockTransport:
    replies = iter(statuses)

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(next(replies))

    return httpx.MockTransport(handler)


async def test_password_reset_email_payload():
    seen: list[httpx.Request] = []
    client = MailClient(api_key="key", base_url="https://mail.test/v3", transport=recording_transport([202], seen))
    service = EmailService(client=client, frontend_url="https://app.test/")

    assert await service.send_password_reset("sam@example.com", "tok=en", 15) is True

    request = seen[0]
    assert request.url == "https://mail.test/v3/mail/send"
    assert request.headers["Authorization"] == "Bearer key"
    body = json.loads(request.content)
    assert body["personalizations"][0]["to"][0]["email"] == "sam@example.com"
    assert body["subject"] == "Password Reset Request - Dating App"
    html = body["content"][0]["value"]
    assert "https://app.test/reset-password?token=tok%3Den" in html
    assert "15 minutes" in html
    await service.close()


async def test_rejected_email_is_reported_not_raised():
    seen: list[httpx.Request] = []
    client = MailClient(api_key="key", base_url="https://mail.test/v3", transport=recording_transport([401], seen))
    service = EmailService(client=client)

    assert await service.send_password_reset_success("sam@example.com") is False
    assert len(seen) == 1
    await service.close()


async def test_server_errors_are_retried():
    seen: list[httpx.Request] = []
    client = MailClient(api_key="key", base_url="https://mail.test/v3", transport=recording_transport([503, 202], seen))
    service = EmailService(client=client)

    assert await service.send_password_reset_success("sam@example.com") is True
    assert len(seen) == 2
    await service.close()
