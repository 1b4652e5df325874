"""
Firestore REST documents client.

Talks to https://firestore.googleapis.com/v1 with a bearer token obtained
from a service account (see google_auth.py). Plain Python values are
converted to and from Firestore typed values here so the rest of the code
never sees the wire format.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Union

import httpx

from src.error_handler import StoreError
from src.integrations.contracts.interfaces import DocumentStore

logger = logging.getLogger(__name__)

FIRESTORE_BASE_URL = "https://firestore.googleapis.com/v1"


def encode_value(value: Any) -> Dict[str, Any]:
    if value is None:
        return {"nullValue": None}
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return {"timestampValue": value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")}
    if isinstance(value, dict):
        return {"mapValue": {"fields": encode_fields(value)}}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(v) for v in value]}}
    return {"stringValue": str(value)}


def encode_fields(fields: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    return {name: encode_value(value) for name, value in fields.items()}


def decode_value(value: Dict[str, Any]) -> Any:
    if "stringValue" in value:
        return value["stringValue"]
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "timestampValue" in value:
        return value["timestampValue"]
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields") or {})
    if "arrayValue" in value:
        return [decode_value(v) for v in value["arrayValue"].get("values") or []]
    return None


def decode_fields(fields: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    return {name: decode_value(value) for name, value in (fields or {}).items()}


class FirestoreClient(DocumentStore):
    def __init__(
        self,
        project_id: Union[str, Callable[[], str]],
        database: str = "(default)",
        base_url: str = FIRESTORE_BASE_URL,
        timeout_seconds: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._project_id = project_id
        self.database = database
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def project_id(self) -> str:
        """Resolved on use; a callable source may raise StoreError."""
        if callable(self._project_id):
            return self._project_id()
        return self._project_id

    def collection_url(self, collection: str) -> str:
        return f"{self.base_url}/projects/{self.project_id}/databases/{self.database}/documents/{collection}"

    async def _request(self, method: str, url: str, access_token: str, **kwargs: Any) -> Dict[str, Any]:
        headers = {"Authorization": f"Bearer {access_token}"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                response = await client.request(method, url, headers=headers, **kwargs)
                response.raise_for_status()
                return response.json() if response.content else {}
        except httpx.HTTPStatusError as e:
            logger.error("HTTP error from Firestore: %s %s", e.response.status_code, e.response.text)
            raise StoreError(f"Firestore {method} failed with {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.error("Request error connecting to Firestore: %s", e)
            raise StoreError(f"Firestore {method} failed") from e
        except ValueError as e:
            raise StoreError("Firestore returned a non-JSON body") from e

    async def put_document(self, collection: str, fields: Dict[str, Any], access_token: str) -> Dict[str, Any]:
        data = await self._request(
            "POST",
            self.collection_url(collection),
            access_token,
            json={"fields": encode_fields(fields)},
        )
        logger.debug("Created Firestore document %s", data.get("name"))
        return data

    async def list_documents(self, collection: str, access_token: str, page_size: int = 50) -> List[Dict[str, Any]]:
        data = await self._request(
            "GET",
            self.collection_url(collection),
            access_token,
            params={"pageSize": page_size, "orderBy": "timestamp desc"},
        )
        documents = data.get("documents") or []
        return [decode_fields(doc.get("fields") or {}) for doc in documents if isinstance(doc, dict)]
