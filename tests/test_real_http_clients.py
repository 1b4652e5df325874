import base64
import json
from datetime import datetime, timezone

import httpx
import pytest

from src.error_handler import GatewayError, StoreError
from src.integrations.clients.real_http.daraja import DarajaClient, DarajaOAuthProvider
from src.integrations.clients.real_http.firestore import (
    FirestoreClient,
    decode_fields,
    encode_fields,
)
from src.integrations.contracts.payments import build_stk_push_request

BASE_URL = "https://sandbox.safaricom.co.ke"


def _stk_request():
    return build_stk_push_request(
        shortcode="174379", passkey="pk", phone="254712345678", amount=5,
        callback_url="https://relay.example.com/callback", now=datetime(2024, 1, 1, 8, 0, 0),
    )


# ---------------------------------------------------------------------------
# Daraja
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_oauth_uses_basic_auth_client_credentials():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        return httpx.Response(200, json={"access_token": "abc123", "expires_in": "3599"})

    provider = DarajaOAuthProvider(BASE_URL, "key", "secret", transport=httpx.MockTransport(handler))

    assert await provider.get_access_token() == "abc123"
    assert seen["url"] == f"{BASE_URL}/oauth/v1/generate?grant_type=client_credentials"
    assert seen["auth"] == "Basic " + base64.b64encode(b"key:secret").decode("ascii")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(401, text="Unauthorized"),
        httpx.Response(200, json={"error": "no token"}),
        httpx.Response(200, text="<html>maintenance</html>"),
    ],
)
async def test_oauth_failures_raise_gateway_error(response):
    provider = DarajaOAuthProvider(BASE_URL, "key", "secret", transport=httpx.MockTransport(lambda r: response))

    with pytest.raises(GatewayError):
        await provider.get_access_token()


@pytest.mark.asyncio
async def test_oauth_requires_credentials():
    with pytest.raises(GatewayError):
        await DarajaOAuthProvider(BASE_URL, "", "").get_access_token()


@pytest.mark.asyncio
async def test_stk_push_posts_descriptor_with_bearer_token():
    seen = {}
    ack = {"MerchantRequestID": "1", "CheckoutRequestID": "ws_CO_1", "ResponseCode": "0"}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=ack)

    client = DarajaClient(BASE_URL, transport=httpx.MockTransport(handler))
    out = await client.submit_stk_push(_stk_request(), "tok")

    assert out == ack
    assert seen["path"] == "/mpesa/stkpush/v1/processrequest"
    assert seen["auth"] == "Bearer tok"
    assert seen["body"]["Timestamp"] == "20240101080000"
    assert seen["body"]["PhoneNumber"] == "254712345678"


@pytest.mark.asyncio
async def test_stk_push_http_and_transport_errors_raise_gateway_error():
    rejected = DarajaClient(
        BASE_URL,
        transport=httpx.MockTransport(lambda r: httpx.Response(400, json={"errorMessage": "Invalid Access Token"})),
    )
    with pytest.raises(GatewayError):
        await rejected.submit_stk_push(_stk_request(), "tok")

    def unreachable(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GatewayError):
        await DarajaClient(BASE_URL, transport=httpx.MockTransport(unreachable)).submit_stk_push(_stk_request(), "tok")


# ---------------------------------------------------------------------------
# Firestore
# ---------------------------------------------------------------------------

def test_firestore_typed_value_encoding():
    encoded = encode_fields(
        {
            "phone": "254712345678",
            "amount": 500,
            "success": True,
            "rawPayload": "{}",
            "timestamp": datetime(2024, 1, 1, 8, 0, 0, tzinfo=timezone.utc),
        }
    )

    assert encoded == {
        "phone": {"stringValue": "254712345678"},
        "amount": {"integerValue": "500"},
        "success": {"booleanValue": True},
        "rawPayload": {"stringValue": "{}"},
        "timestamp": {"timestampValue": "2024-01-01T08:00:00Z"},
    }


def test_firestore_decoding_handles_nested_values():
    fields = {
        "amount": {"integerValue": "10"},
        "success": {"booleanValue": False},
        "meta": {"mapValue": {"fields": {"tags": {"arrayValue": {"values": [{"stringValue": "a"}]}}}}},
        "missing": {"nullValue": None},
    }

    assert decode_fields(fields) == {"amount": 10, "success": False, "meta": {"tags": ["a"]}, "missing": None}


@pytest.mark.asyncio
async def test_put_document_posts_typed_fields():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"name": "projects/p/databases/(default)/documents/mpesa_payments/x"})

    client = FirestoreClient("demo-project", transport=httpx.MockTransport(handler))
    await client.put_document("mpesa_payments", {"phone": "254712345678", "success": True}, "gtoken")

    assert seen["method"] == "POST"
    assert seen["path"] == "/v1/projects/demo-project/databases/(default)/documents/mpesa_payments"
    assert seen["auth"] == "Bearer gtoken"
    assert seen["body"] == {
        "fields": {"phone": {"stringValue": "254712345678"}, "success": {"booleanValue": True}}
    }


@pytest.mark.asyncio
async def test_list_documents_decodes_and_bounds_page_size():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        return httpx.Response(
            200,
            json={
                "documents": [
                    {"name": "d1", "fields": {"phone": {"stringValue": "254712345678"}, "success": {"booleanValue": True}}},
                    {"name": "d2", "fields": {"phone": {"stringValue": "254700000000"}, "amount": {"integerValue": "3"}}},
                ]
            },
        )

    client = FirestoreClient("demo-project", transport=httpx.MockTransport(handler))
    docs = await client.list_documents("mpesa_payments", "gtoken", page_size=50)

    assert seen["params"] == {"pageSize": "50", "orderBy": "timestamp desc"}
    assert docs == [
        {"phone": "254712345678", "success": True},
        {"phone": "254700000000", "amount": 3},
    ]


@pytest.mark.asyncio
async def test_list_documents_on_empty_collection():
    client = FirestoreClient("demo-project", transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})))

    assert await client.list_documents("mpesa_payments", "gtoken") == []


@pytest.mark.asyncio
async def test_firestore_errors_raise_store_error():
    denied = FirestoreClient(
        "demo-project",
        transport=httpx.MockTransport(lambda r: httpx.Response(403, json={"error": {"status": "PERMISSION_DENIED"}})),
    )
    with pytest.raises(StoreError):
        await denied.list_documents("mpesa_payments", "gtoken")

    garbled = FirestoreClient("demo-project", transport=httpx.MockTransport(lambda r: httpx.Response(200, text="oops")))
    with pytest.raises(StoreError):
        await garbled.put_document("mpesa_payments", {"phone": "x"}, "gtoken")


@pytest.mark.asyncio
async def test_upstream_errors_are_logged_with_lazy_arguments(caplog):
    daraja = DarajaClient(BASE_URL, transport=httpx.MockTransport(lambda r: httpx.Response(401, text="Unauthorized")))
    firestore = FirestoreClient("demo-project", transport=httpx.MockTransport(lambda r: httpx.Response(503, text="down")))

    with caplog.at_level("ERROR"):
        with pytest.raises(GatewayError):
            await daraja.submit_stk_push(_stk_request(), "tok")
        with pytest.raises(StoreError):
            await firestore.list_documents("mpesa_payments", "gtoken")

    assert [r.args for r in caplog.records] == [(401, "Unauthorized"), (503, "down")]
    assert caplog.records[0].getMessage() == "HTTP error from Daraja STK push: 401 Unauthorized"
