"""
Outbound notifications for accepted submissions.
"""

import logging
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)

RESEND_EMAILS_URL = "https://api.resend.com/emails"


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of a best-effort side effect whose failure the caller may discard."""

    ok: bool
    error: str | None = None

    @classmethod
    def success(cls) -> "DeliveryResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, exc: BaseException) -> "DeliveryResult":
        return cls(ok=False, error=f"{type(exc).__name__}: {exc}")


def confirmation_html(submission_id: str, status: str) -> str:
    return (
        "<h2>Thank you for your submission!</h2>"
        f"<p>Submission ID: {submission_id}</p>"
        f"<p>Status: {status}</p>"
    )


class Notifier:
    def __init__(
        self,
        http: httpx.AsyncClient,
        resend_api_key: str | None = None,
        email_from: str = "noreply@yourdomain.com",
        webhook_url: str | None = None,
    ) -> None:
        self.http = http
        self.resend_api_key = resend_api_key
        self.email_from = email_from
        self.webhook_url = webhook_url

    @property
    def email_enabled(self) -> bool:
        return bool(self.resend_api_key)

    @property
    def webhook_enabled(self) -> bool:
        return bool(self.webhook_url)

    async def send_confirmation_email(
        self, email: str, submission_id: str, status: str
    ) -> DeliveryResult:
        try:
            await self.http.post(
                RESEND_EMAILS_URL,
                headers={"Authorization": f"Bearer {self.resend_api_key}"},
                json={
                    "from": self.email_from,
                    "to": email,
                    "subject": "Form Submission Confirmation",
                    "html": confirmation_html(submission_id, status),
                },
            )
        except Exception as e:
            return DeliveryResult.failure(e)
        return DeliveryResult.success()

    async def post_webhook(self, payload: dict[str, Any]) -> None:
        """POST the payload to the configured webhook. Transport errors propagate."""
        response = await self.http.post(self.webhook_url, json=payload)
        logger.info("Webhook responded with %s", response.status_code)
