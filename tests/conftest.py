"""Pytest fixtures for the payment relay tests."""

from datetime import datetime

import pytest

from src.integrations.clients.mocks.daraja import MockDarajaGateway, StaticTokenProvider
from src.integrations.clients.mocks.firestore import InMemoryDocumentStore
from src.integrations.policy.relay_service import RelayService
from src.utils.config_loader import RelaySettings

FIXED_NOW = datetime(2024, 3, 5, 9, 7, 2)


@pytest.fixture
def settings():
    return RelaySettings(
        daraja_shortcode="174379",
        daraja_passkey="passkey",
        daraja_consumer_key="key",
        daraja_consumer_secret="secret",
        callback_url="https://relay.example.com/callback",
    )


@pytest.fixture
def store():
    """In-memory Firestore stand-in."""
    return InMemoryDocumentStore()


@pytest.fixture
def gateway():
    return MockDarajaGateway()


@pytest.fixture
def store_tokens():
    return StaticTokenProvider("store-token")


@pytest.fixture
def relay(settings, gateway, store, store_tokens):
    return RelayService(
        settings=settings,
        gateway=gateway,
        gateway_credentials=StaticTokenProvider("gateway-token"),
        store=store,
        store_credentials=store_tokens,
        clock=lambda: FIXED_NOW,
    )


def _build_stk_callback(result_code=0, phone=254712345678, amount=500):
    """Daraja STK callback body as delivered to /callback."""
    callback = {
        "MerchantRequestID": "29115-34620561-1",
        "CheckoutRequestID": "ws_CO_191220191020363925",
        "ResultDesc": "The service request is processed successfully.",
    }
    if result_code is not None:
        callback["ResultCode"] = result_code
    if result_code == 0:
        callback["CallbackMetadata"] = {
            "Item": [
                {"Name": "Amount", "Value": amount},
                {"Name": "MpesaReceiptNumber", "Value": "NLJ7RT61SV"},
                {"Name": "TransactionDate", "Value": 20191219102115},
                {"Name": "PhoneNumber", "Value": phone},
            ]
        }
    return {"Body": {"stkCallback": callback}}


@pytest.fixture
def stk_callback():
    return _build_stk_callback
