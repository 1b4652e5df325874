"""
Payment relay service

Coordinates the Daraja gateway and the Firestore document store for the three
HTTP operations:
- initiate_payment: validate, sign and submit an STK push
- ingest_callback: acknowledge Daraja immediately, persist the result later
- check_status: report whether a phone has a successful payment on record

Holds configuration and client references only; every call is independent.
"""

import json
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Union

from src.error_handler import GatewayError, RelayError
from src.integrations.contracts.interfaces import (
    CredentialProvider,
    DocumentStore,
    PaymentGateway,
    PaymentRecord,
)
from src.integrations.contracts.payments import (
    ACK_RESPONSE,
    build_stk_push_request,
    decode_callback_body,
    parse_stk_callback,
    record_is_successful,
    validate_amount,
    validate_phone,
)
from src.utils.config_loader import RelaySettings

logger = logging.getLogger(__name__)

CallbackBody = Union[bytes, str, Dict[str, Any]]
Scheduler = Callable[..., Any]


class RelayService:
    def __init__(
        self,
        settings: RelaySettings,
        gateway: PaymentGateway,
        gateway_credentials: CredentialProvider,
        store: DocumentStore,
        store_credentials: CredentialProvider,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.settings = settings
        self.gateway = gateway
        self.gateway_credentials = gateway_credentials
        self.store = store
        self.store_credentials = store_credentials
        self._clock = clock

    # ------------------------------------------------------------------
    # STK push
    # ------------------------------------------------------------------

    async def initiate_payment(self, phone: Any, amount: Any) -> Dict[str, Any]:
        """
        Start an STK push for `phone` and return Daraja's raw acknowledgment.

        Raises ValidationError before any network call for a bad phone or
        amount, and GatewayError for any token or STK push failure.
        """
        phone = validate_phone(phone)
        amount = validate_amount(amount)

        try:
            token = await self.gateway_credentials.get_access_token()
            request = build_stk_push_request(
                shortcode=self.settings.daraja_shortcode,
                passkey=self.settings.daraja_passkey,
                phone=phone,
                amount=amount,
                callback_url=self.settings.callback_url,
                now=self._clock(),
            )
            return await self.gateway.submit_stk_push(request, token)
        except GatewayError:
            raise
        except RelayError as e:
            raise GatewayError(str(e)) from e
        except Exception as e:
            logger.exception("Unexpected error initiating STK push")
            raise GatewayError("Unexpected gateway failure") from e

    # ------------------------------------------------------------------
    # Callback
    # ------------------------------------------------------------------

    def ingest_callback(self, body: CallbackBody, schedule: Scheduler) -> Dict[str, Any]:
        """
        Hand persistence to `schedule` and return the acknowledgment Daraja expects.

        `schedule(fn, *args)` must run the work after the response is sent
        (FastAPI's BackgroundTasks.add_task does). Nothing here touches the network.
        """
        schedule(self.persist_callback, body)
        return dict(ACK_RESPONSE)

    async def persist_callback(self, body: CallbackBody) -> Optional[PaymentRecord]:
        """Store one PaymentRecord for a callback. Failures are logged, never raised."""
        try:
            data = decode_callback_body(body)
            logger.info("M-PESA callback received: %s", data)

            result = parse_stk_callback(data)
            if isinstance(body, bytes):
                raw_payload = body.decode("utf-8")
            elif isinstance(body, str):
                raw_payload = body
            else:
                raw_payload = json.dumps(data)
            record = PaymentRecord(
                phone=result.phone,
                amount=result.amount,
                success=result.success,
                raw_payload=raw_payload,
            )

            token = await self.store_credentials.get_access_token()
            await self.store.put_document(self.settings.firestore_collection, record.to_fields(), token)
        except Exception:
            logger.exception("Error storing M-PESA callback")
            return None

        logger.info(
            "Stored payment phone=%s amount=%s success=%s checkout=%s",
            record.phone, record.amount, record.success, result.checkout_request_id,
        )
        return record

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    async def check_status(self, phone: Optional[str]) -> Dict[str, bool]:
        if not phone:
            return {"paid": False}

        try:
            token = await self.store_credentials.get_access_token()
            documents = await self.store.list_documents(
                self.settings.firestore_collection,
                token,
                page_size=self.settings.status_page_size,
            )
        except Exception:
            logger.exception("Payment status lookup failed for phone=%s", phone)
            return {"paid": False}

        paid = any(doc.get("phone") == phone and record_is_successful(doc) for doc in documents)
        logger.info("Payment status phone=%s paid=%s (checked %d records)", phone, paid, len(documents))
        return {"paid": paid}
