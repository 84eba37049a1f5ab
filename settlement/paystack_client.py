"""
Paystack transaction API client.

Two single-attempt calls: initialize a transaction (hosted payment page)
and verify a transaction by reference. Neither call retries; failures are
raised to the caller as the errors in ``settlement.errors``.
"""
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

import httpx

from settlement.config import GatewaySettings
from settlement.errors import GatewayUnavailable, InitializationError, VerificationUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerificationResult:
    """Paystack's verdict on a single transaction reference."""

    succeeded: bool
    amount_paid_minor_units: int
    message: str


class PaystackClient:

    def __init__(self, settings: GatewaySettings, http_client: Optional[httpx.Client] = None):
        self.settings = settings
        self._http = http_client

    def _headers(self) -> dict:
        if not self.settings.is_available():
            raise GatewayUnavailable("Paystack gateway is disabled or has no secret key")
        return {
            "authorization": f"Bearer {self.settings.secret_key}",
            "content-type": "application/json",
            "cache-control": "no-cache",
        }

    def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        if self._http is not None:
            return self._http.request(method, url, timeout=self.settings.timeout, **kwargs)
        with httpx.Client(timeout=self.settings.timeout) as client:
            return client.request(method, url, **kwargs)

    def initialize_transaction(
        self,
        email: str,
        amount_minor_units: int,
        callback_url: str,
        reference: str,
    ) -> str:
        """Start a transaction and return Paystack's hosted authorization URL."""
        headers = self._headers()
        payload = {
            "email": email,
            "amount": amount_minor_units,
            "callback_url": callback_url,
            "reference": reference,
        }
        url = f"{self.settings.base_url}/transaction/initialize"
        logger.info("Initializing Paystack transaction reference=%s amount=%s", reference, amount_minor_units)

        try:
            response = self._send("POST", url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("Paystack initialize failed for reference=%s: %s", reference, exc)
            raise InitializationError(f"Could not reach Paystack: {exc}") from exc

        if not response.is_success:
            logger.warning(
                "Paystack initialize returned HTTP %s for reference=%s",
                response.status_code, reference,
            )
            raise InitializationError(f"Paystack returned HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as exc:
            raise InitializationError("Paystack returned an unreadable response") from exc

        if not isinstance(body, dict):
            raise InitializationError("Paystack returned an unreadable response")

        data = body.get("data") or {}
        authorization_url = data.get("authorization_url") if isinstance(data, dict) else None
        if not body.get("status") or not authorization_url:
            raise InitializationError(body.get("message") or "Paystack initialization failed")

        return authorization_url

    def verify_transaction(self, reference: str) -> VerificationResult:
        """
        Ask Paystack whether the transaction ``reference`` cleared.

        A transaction Paystack reports as failed is returned as a result with
        ``succeeded=False``; only an unreachable or unreadable Paystack raises
        ``VerificationUnavailable``.
        """
        headers = self._headers()
        url = f"{self.settings.base_url}/transaction/verify/{quote(str(reference), safe='')}"
        logger.info("Verifying Paystack transaction reference=%s", reference)

        try:
            response = self._send("GET", url, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("Paystack verify failed for reference=%s: %s", reference, exc)
            raise VerificationUnavailable(f"Could not reach Paystack: {exc}") from exc

        if response.status_code >= 500:
            logger.warning(
                "Paystack verify returned HTTP %s for reference=%s",
                response.status_code, reference,
            )
            raise VerificationUnavailable(f"Paystack returned HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as exc:
            raise VerificationUnavailable("Paystack returned an unreadable response") from exc

        if not isinstance(body, dict) or not isinstance(body.get("status"), bool):
            raise VerificationUnavailable("Paystack response has no status")

        data = body.get("data") or {}
        if not isinstance(data, dict):
            data = {}
        try:
            amount = int(data.get("amount") or 0)
        except (TypeError, ValueError) as exc:
            raise VerificationUnavailable("Paystack response has an invalid amount") from exc

        result = VerificationResult(
            succeeded=body["status"] and data.get("status") == "success",
            amount_paid_minor_units=amount,
            message=str(body.get("message") or ""),
        )
        logger.info(
            "Paystack verify reference=%s succeeded=%s amount=%s",
            reference, result.succeeded, result.amount_paid_minor_units,
        )
        return result
