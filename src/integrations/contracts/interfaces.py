from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


# ---------------------------------------------------------------------------
# Shared data models
# ---------------------------------------------------------------------------

@dataclass
class StkPushRequest:
    """Transaction descriptor submitted to the Daraja STK push endpoint."""
    business_short_code: str
    password: str
    timestamp: str                       # YYYYMMDDHHMMSS, local time
    amount: int
    phone_number: str
    callback_url: str
    account_reference: str = "Youth Registration"
    transaction_desc: str = "Membership Payment"
    transaction_type: str = "CustomerPayBillOnline"

    def to_payload(self) -> Dict[str, Any]:
        return {
            "BusinessShortCode": self.business_short_code,
            "Password": self.password,
            "Timestamp": self.timestamp,
            "TransactionType": self.transaction_type,
            "Amount": self.amount,
            "PartyA": self.phone_number,
            "PartyB": self.business_short_code,
            "PhoneNumber": self.phone_number,
            "CallBackURL": self.callback_url,
            "AccountReference": self.account_reference,
            "TransactionDesc": self.transaction_desc,
        }


@dataclass
class StkCallbackResult:
    """Typed view of a Daraja STK callback body."""
    result_code: Optional[int]
    result_desc: str = ""
    phone: str = ""
    amount: int = 0
    merchant_request_id: str = ""
    checkout_request_id: str = ""
    mpesa_receipt_number: str = ""
    transaction_date: str = ""

    @property
    def success(self) -> bool:
        return self.result_code == 0


@dataclass
class PaymentRecord:
    phone: str
    amount: int
    success: bool
    raw_payload: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_fields(self) -> Dict[str, Any]:
        return {
            "phone": self.phone,
            "amount": self.amount,
            "success": self.success,
            "rawPayload": self.raw_payload,
            "timestamp": self.created_at,
        }


# ---------------------------------------------------------------------------
# Collaborator interfaces
# ---------------------------------------------------------------------------

class CredentialProvider(ABC):
    """Issues bearer tokens for one upstream API."""

    @abstractmethod
    async def get_access_token(self) -> str:
        """Return a bearer token valid for the next call."""


class PaymentGateway(ABC):

    @abstractmethod
    async def submit_stk_push(self, request: StkPushRequest, access_token: str) -> Dict[str, Any]:
        """Submit a push-payment prompt and return the gateway's raw JSON body."""


class DocumentStore(ABC):

    @abstractmethod
    async def put_document(self, collection: str, fields: Dict[str, Any], access_token: str) -> Dict[str, Any]:
        """Append one document built from plain Python field values."""

    @abstractmethod
    async def list_documents(self, collection: str, access_token: str, page_size: int = 50) -> List[Dict[str, Any]]:
        """Return the most recent documents as plain field mappings, newest first."""
