"""
Safaricom Daraja — MOCK clients.

⚠️  Mock implementation for local development and testing.
    No network calls are made; STK pushes are acknowledged with realistic
    fake identifiers and recorded in memory so tests can inspect them.
"""

import logging
import uuid
from typing import Any, Dict, List

from src.integrations.contracts.interfaces import CredentialProvider, PaymentGateway, StkPushRequest

logger = logging.getLogger(__name__)


class StaticTokenProvider(CredentialProvider):
    """Hands out a fixed bearer token."""

    def __init__(self, token: str = "mock-token"):
        self.token = token
        self.calls = 0

    async def get_access_token(self) -> str:
        self.calls += 1
        return self.token


class MockDarajaGateway(PaymentGateway):
    """
    Mock Daraja STK push gateway.

    Parameters
    ----------
    response_code : str
        ResponseCode to return. "0" means the prompt was sent. Default "0".
    """

    def __init__(self, response_code: str = "0"):
        self._response_code = response_code
        self.requests: List[StkPushRequest] = []
        logger.info("[DARAJA MOCK] Gateway initialised (response_code=%s)", response_code)

    async def submit_stk_push(self, request: StkPushRequest, access_token: str) -> Dict[str, Any]:
        self.requests.append(request)
        logger.info("[DARAJA MOCK] STK push phone=%s amount=%s", request.phone_number, request.amount)

        accepted = self._response_code == "0"
        return {
            "MerchantRequestID": f"{uuid.uuid4().int % 100000}-{uuid.uuid4().int % 10000000}-1",
            "CheckoutRequestID": f"ws_CO_{request.timestamp}{request.phone_number}",
            "ResponseCode": self._response_code,
            "ResponseDescription": "Success. Request accepted for processing" if accepted else "Rejected",
            "CustomerMessage": "Success. Request accepted for processing" if accepted else "Rejected",
        }
