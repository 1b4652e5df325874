"""Error taxonomy and HTTP error mapping for the payment relay."""
from typing import Any, Dict, Tuple
import logging

logger = logging.getLogger(__name__)


class RelayError(Exception):
    status_code = 500
    public_message = "An internal error occurred"

    def __init__(self, message: str = "", *, payload: Dict[str, Any] = None) -> None:
        super().__init__(message or self.public_message)
        self.payload = payload or {}


class ValidationError(RelayError):
    """Bad phone/amount shape. The message is safe to show to the caller."""

    status_code = 400

    @property
    def public_message(self) -> str:
        return str(self)


class GatewayError(RelayError):
    """Daraja OAuth or STK push failure."""

    status_code = 500
    public_message = "Payment gateway request failed"


class StoreError(RelayError):
    """Firestore failure. Never surfaced to callers."""

    status_code = 500
    public_message = "Payment store unavailable"


class ErrorHandler:
    def handle_exception(self, exc: Exception, context: Dict[str, Any] = None) -> Tuple[int, Dict[str, Any]]:
        if isinstance(exc, ValidationError):
            logger.info("Rejected request: %s context=%s", exc, context or {})
            return exc.status_code, {"error": exc.public_message}

        if isinstance(exc, RelayError):
            logger.error("%s: %s context=%s", type(exc).__name__, exc, context or {}, exc_info=True)
            return exc.status_code, {"error": exc.public_message}

        logger.error("Unhandled exception in payment relay: %s", exc, exc_info=True)
        return 500, {"error": RelayError.public_message}
