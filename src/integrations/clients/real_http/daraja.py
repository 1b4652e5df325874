"""
Safaricom Daraja HTTP clients.

Used when Daraja consumer credentials are configured.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from src.error_handler import GatewayError
from src.integrations.contracts.interfaces import CredentialProvider, PaymentGateway, StkPushRequest

logger = logging.getLogger(__name__)

OAUTH_PATH = "/oauth/v1/generate"
STK_PUSH_PATH = "/mpesa/stkpush/v1/processrequest"


def _json_body(response: httpx.Response, label: str) -> Dict[str, Any]:
    try:
        data = response.json() if response.content else {}
    except ValueError as exc:
        raise GatewayError(f"{label} returned a non-JSON body") from exc
    if not isinstance(data, dict):
        raise GatewayError(f"{label} returned {type(data).__name__}, expected an object")
    return data


class DarajaOAuthProvider(CredentialProvider):
    """Client-credentials token for the Daraja APIs."""

    def __init__(
        self,
        base_url: str,
        consumer_key: str,
        consumer_secret: str,
        timeout_seconds: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.consumer_key = consumer_key
        self.consumer_secret = consumer_secret
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def get_access_token(self) -> str:
        if not (self.consumer_key and self.consumer_secret):
            raise GatewayError("DARAJA_CONSUMER_KEY / DARAJA_CONSUMER_SECRET are not configured.")

        url = f"{self.base_url}{OAUTH_PATH}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                response = await client.get(
                    url,
                    params={"grant_type": "client_credentials"},
                    auth=(self.consumer_key, self.consumer_secret),
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error("Daraja OAuth rejected credentials: %s %s", e.response.status_code, e.response.text)
            raise GatewayError("Daraja OAuth request failed") from e
        except httpx.RequestError as e:
            logger.error("Request error connecting to Daraja OAuth: %s", e)
            raise GatewayError("Daraja OAuth request failed") from e

        token = _json_body(response, "Daraja OAuth").get("access_token")
        if not token:
            raise GatewayError("Daraja OAuth response has no access_token")
        return str(token)


class DarajaClient(PaymentGateway):
    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def submit_stk_push(self, request: StkPushRequest, access_token: str) -> Dict[str, Any]:
        """
        Submit an STK push and return Daraja's acknowledgment unmodified.

        Daraja answers validation problems (bad shortcode, wrong password) with
        4xx and a JSON error body; those are raised as GatewayError.
        """
        url = f"{self.base_url}{STK_PUSH_PATH}"
        headers = {"Authorization": f"Bearer {access_token}", "Content-Type": "application/json"}
        logger.info(
            "Submitting STK push shortcode=%s phone=%s amount=%s",
            request.business_short_code, request.phone_number, request.amount,
        )
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                response = await client.post(url, json=request.to_payload(), headers=headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error("HTTP error from Daraja STK push: %s %s", e.response.status_code, e.response.text)
            raise GatewayError("Daraja STK push failed", payload={"status": e.response.status_code}) from e
        except httpx.RequestError as e:
            logger.error("Request error connecting to Daraja STK push: %s", e)
            raise GatewayError("Daraja STK push failed") from e

        data = _json_body(response, "Daraja STK push")
        logger.info("STK push response: %s", data)
        return data
