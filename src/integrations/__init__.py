"""
Integrations layer.
This package contains all code used to communicate with external systems:
- Safaricom Daraja (OAuth + STK push)
- Google Firestore REST API (payment records)
- Google service-account tokens for Firestore

Key rule:
- API handlers MUST NOT call external APIs directly.
- Handlers call the relay service (policy/relay_service.py), which calls
  integration clients (under src/integrations/clients).
- MOCK clients are used in development/tests, REAL_HTTP clients when credentials are set.

Switching implementations:
- The selection of mock vs real clients happens in ONE place (src/api/dependencies.py).
"""

from .contracts.interfaces import (
    CredentialProvider,
    DocumentStore,
    PaymentGateway,
    PaymentRecord,
    StkCallbackResult,
    StkPushRequest,
)
from .contracts.payments import (
    ACK_RESPONSE,
    build_password,
    build_stk_push_request,
    build_timestamp,
    parse_stk_callback,
    validate_amount,
    validate_phone,
)

__all__ = [
    # interfaces
    "CredentialProvider", "DocumentStore", "PaymentGateway",
    "PaymentRecord", "StkCallbackResult", "StkPushRequest",
    # payments
    "ACK_RESPONSE", "build_password", "build_stk_push_request", "build_timestamp",
    "parse_stk_callback", "validate_amount", "validate_phone",
]
