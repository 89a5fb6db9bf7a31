"""
Outbound verification calls: payment gateway, CAPTCHA and bot challenge.

Every check resolves to a boolean. Network and parse failures are logged and
reported as a failed verification; they never raise to the caller.
"""

import logging
from typing import Any
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)

PAYSTACK_VERIFY_URL = "https://api.paystack.co/transaction/verify/{reference}"
RECAPTCHA_VERIFY_URL = "https://www.google.com/recaptcha/api/siteverify"
TURNSTILE_VERIFY_URL = "https://challenges.cloudflare.com/turnstile/v0/siteverify"


class VerificationClient:
    def __init__(
        self,
        http: httpx.AsyncClient,
        paystack_secret_key: str | None = None,
        recaptcha_secret_key: str | None = None,
        turnstile_secret_key: str | None = None,
    ) -> None:
        self.http = http
        self.paystack_secret_key = paystack_secret_key
        self.recaptcha_secret_key = recaptcha_secret_key
        self.turnstile_secret_key = turnstile_secret_key

    async def verify_payment(self, reference: str | None) -> bool:
        if not reference:
            return False
        url = PAYSTACK_VERIFY_URL.format(reference=quote(str(reference), safe=""))
        try:
            response = await self.http.get(
                url,
                headers={
                    "Authorization": f"Bearer {self.paystack_secret_key or ''}",
                    "Content-Type": "application/json",
                },
            )
            result: dict[str, Any] = response.json()
            return bool(result.get("status")) and result["data"]["status"] == "success"
        except Exception as e:
            logger.warning("Paystack verification error: %s: %s", type(e).__name__, e)
            return False

    async def verify_recaptcha(self, token: str | None) -> bool:
        try:
            response = await self.http.post(
                RECAPTCHA_VERIFY_URL,
                data={"secret": self.recaptcha_secret_key or "", "response": token or ""},
            )
            return bool(response.json().get("success"))
        except Exception as e:
            logger.warning("reCAPTCHA verification error: %s: %s", type(e).__name__, e)
            return False

    async def verify_turnstile(self, token: str | None) -> bool:
        try:
            response = await self.http.post(
                TURNSTILE_VERIFY_URL,
                json={"secret": self.turnstile_secret_key, "response": token},
            )
            return bool(response.json().get("success"))
        except Exception as e:
            logger.warning("Turnstile verification error: %s: %s", type(e).__name__, e)
            return False
