import base64
import json
import re
from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Union

from src.error_handler import ValidationError
from .interfaces import StkCallbackResult, StkPushRequest

"""
Payment contracts.

Validation and encoding helpers for the Daraja STK push flow:
- phone / amount checks for initiating a payment
- password + timestamp derivation required by the gateway
- tolerant parsing of the asynchronous STK callback body

Used by both:
- clients/mocks/* (local development and tests)
- clients/real_http/* (real Daraja / Firestore calls)
"""

PHONE_PATTERN = re.compile(r"^2547\d{8}$")

ACK_RESPONSE: Dict[str, Any] = {"ResultCode": 0, "ResultDesc": "Accepted"}


# ---------------------------------------------------------------------------
# Request validation
# ---------------------------------------------------------------------------

def validate_phone(phone: Any) -> str:
    if not isinstance(phone, str) or not PHONE_PATTERN.match(phone):
        raise ValidationError("invalid phone format")
    return phone


def validate_amount(amount: Any) -> int:
    """Accept whole numbers >= 1, including integral floats like 500.0."""
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise ValidationError("amount must be positive")
    if isinstance(amount, float):
        if not amount.is_integer():
            raise ValidationError("amount must be positive")
        amount = int(amount)
    if amount < 1:
        raise ValidationError("amount must be positive")
    return amount


# ---------------------------------------------------------------------------
# Gateway authentication fields
# ---------------------------------------------------------------------------

def build_timestamp(now: Optional[datetime] = None) -> str:
    """14-character local timestamp, YYYYMMDDHHMMSS."""
    return (now or datetime.now()).strftime("%Y%m%d%H%M%S")


def build_password(shortcode: str, passkey: str, timestamp: str) -> str:
    return base64.b64encode(f"{shortcode}{passkey}{timestamp}".encode("utf-8")).decode("ascii")


def build_stk_push_request(
    *,
    shortcode: str,
    passkey: str,
    phone: str,
    amount: int,
    callback_url: str,
    now: Optional[datetime] = None,
) -> StkPushRequest:
    timestamp = build_timestamp(now)
    return StkPushRequest(
        business_short_code=shortcode,
        password=build_password(shortcode, passkey, timestamp),
        timestamp=timestamp,
        amount=amount,
        phone_number=phone,
        callback_url=callback_url,
    )


# ---------------------------------------------------------------------------
# Callback parsing
# ---------------------------------------------------------------------------

def decode_callback_body(body: Union[bytes, str, Dict[str, Any]]) -> Dict[str, Any]:
    """
    Return the callback as a dict.

    Raises ValueError when the body is not a JSON object.
    """
    if isinstance(body, dict):
        return body
    if isinstance(body, bytes):
        body = body.decode("utf-8")
    data = json.loads(body)
    if not isinstance(data, dict):
        raise ValueError(f"Callback body must be a JSON object, got {type(data).__name__}")
    return data


def _stk_callback(data: Dict[str, Any]) -> Dict[str, Any]:
    body = data.get("Body")
    if not isinstance(body, dict):
        return {}
    callback = body.get("stkCallback")
    return callback if isinstance(callback, dict) else {}


def _item_value(items: Iterable[Any], name: str) -> Any:
    for item in items:
        if isinstance(item, dict) and item.get("Name") == name:
            return item.get("Value")
    return None


def _as_int(value: Any, default: Optional[int]) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not number.is_integer():
        return default
    return int(number)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


def parse_stk_callback(data: Dict[str, Any]) -> StkCallbackResult:
    """
    Extract the fields the relay cares about from an STK callback.

    CallbackMetadata.Item is an unordered list of {Name, Value} pairs and is
    absent on failed payments. Missing phone -> "", missing amount -> 0,
    missing ResultCode -> None (treated as failure).
    """
    callback = _stk_callback(data)
    metadata = callback.get("CallbackMetadata")
    items = metadata.get("Item") if isinstance(metadata, dict) else None
    if not isinstance(items, list):
        items = []

    return StkCallbackResult(
        result_code=_as_int(callback.get("ResultCode"), None),
        result_desc=_as_text(callback.get("ResultDesc")),
        phone=_as_text(_item_value(items, "PhoneNumber")),
        amount=_as_int(_item_value(items, "Amount"), 0),
        merchant_request_id=_as_text(callback.get("MerchantRequestID")),
        checkout_request_id=_as_text(callback.get("CheckoutRequestID")),
        mpesa_receipt_number=_as_text(_item_value(items, "MpesaReceiptNumber")),
        transaction_date=_as_text(_item_value(items, "TransactionDate")),
    )


def record_is_successful(fields: Dict[str, Any]) -> bool:
    """
    True when a stored document represents a successful payment.

    Older documents carry only the raw payload (under "payload" or
    "rawPayload"); their ResultCode is read back from it.
    """
    success = fields.get("success")
    if isinstance(success, bool):
        return success

    raw = fields.get("rawPayload") or fields.get("payload")
    if not raw:
        return False
    try:
        return parse_stk_callback(decode_callback_body(raw)).success
    except ValueError:
        return False
