"""
Configuration loader for the payment relay
"""

import base64
import binascii
import json
import logging
import os
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

DEFAULT_ALLOWED_ORIGINS = ["https://augustine59-wangombe.github.io"]


class RelaySettings(BaseModel):
    """Everything the relay needs from the environment"""

    # Firestore
    firebase_service_account: str = ""
    firestore_collection: str = "mpesa_payments"
    status_page_size: int = Field(default=50, ge=1, le=300)

    # Daraja
    daraja_base_url: str = "https://sandbox.safaricom.co.ke"
    daraja_shortcode: str = ""
    daraja_passkey: str = ""
    daraja_consumer_key: str = ""
    daraja_consumer_secret: str = ""
    callback_url: str = ""

    # HTTP
    allowed_origins: List[str] = Field(default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS))
    port: int = Field(default=3000, ge=1, le=65535)
    http_timeout_seconds: float = Field(default=20.0, gt=0)
    integrations_mode: str = ""

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [o.strip() for o in value.split(",") if o.strip()]
        return value

    @field_validator("daraja_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def has_gateway_credentials(self) -> bool:
        return bool(self.daraja_consumer_key and self.daraja_consumer_secret and self.daraja_shortcode)

    @property
    def has_store_credentials(self) -> bool:
        return bool(self.firebase_service_account)

    def use_real_integrations(self) -> bool:
        mode = self.integrations_mode.strip().lower()
        if mode in {"real", "live"}:
            return True
        if mode in {"mock", "test"}:
            return False
        return self.has_gateway_credentials and self.has_store_credentials

    def service_account_info(self) -> Dict[str, Any]:
        return decode_service_account(self.firebase_service_account)


def decode_service_account(blob: str) -> Dict[str, Any]:
    """
    Decode a base64 service-account blob.

    Raises:
        ValueError: If the blob is missing or is not base64-encoded JSON with a project_id
    """
    if not blob:
        raise ValueError("FIREBASE_SERVICE_ACCOUNT is not configured.")
    try:
        decoded = base64.b64decode(blob, validate=True).decode("utf-8")
        info = json.loads(decoded)
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValueError("FIREBASE_SERVICE_ACCOUNT is not base64-encoded JSON.") from exc
    if not isinstance(info, dict) or not info.get("project_id"):
        raise ValueError("Service account is missing project_id.")
    return info


_ENV_FIELDS = {
    "FIREBASE_SERVICE_ACCOUNT": "firebase_service_account",
    "FIRESTORE_COLLECTION": "firestore_collection",
    "STATUS_PAGE_SIZE": "status_page_size",
    "DARAJA_BASE_URL": "daraja_base_url",
    "DARAJA_SHORTCODE": "daraja_shortcode",
    "DARAJA_PASSKEY": "daraja_passkey",
    "DARAJA_CONSUMER_KEY": "daraja_consumer_key",
    "DARAJA_CONSUMER_SECRET": "daraja_consumer_secret",
    "CALLBACK_URL": "callback_url",
    "ALLOWED_ORIGINS": "allowed_origins",
    "PORT": "port",
    "HTTP_TIMEOUT_SECONDS": "http_timeout_seconds",
    "INTEGRATIONS_MODE": "integrations_mode",
}


def load_relay_settings(env: Optional[Mapping[str, str]] = None) -> RelaySettings:
    """
    Load and validate relay settings from environment variables

    Args:
        env: Mapping to read from. Defaults to os.environ

    Returns:
        Validated RelaySettings object

    Raises:
        ValidationError: If a variable has an invalid value
    """
    source = os.environ if env is None else env
    values = {field: source[key] for key, field in _ENV_FIELDS.items() if source.get(key, "").strip()}

    try:
        settings = RelaySettings(**values)
    except ValidationError as e:
        logger.error("Relay configuration validation failed: %s", e)
        raise

    if not settings.callback_url:
        logger.warning("CALLBACK_URL is not set; STK push requests will carry an empty callback URL.")
    logger.info(
        "Loaded relay settings (collection=%s, real_integrations=%s)",
        settings.firestore_collection,
        settings.use_real_integrations(),
    )
    return settings
