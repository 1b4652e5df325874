"""
Google service-account tokens for the Firestore REST API.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

import google.auth.exceptions
import google.auth.transport.requests
from google.oauth2 import service_account

from src.error_handler import StoreError
from src.integrations.contracts.interfaces import CredentialProvider
from src.utils.config_loader import decode_service_account

logger = logging.getLogger(__name__)

DATASTORE_SCOPES = ["https://www.googleapis.com/auth/datastore"]


class ServiceAccountTokenProvider(CredentialProvider):
    """
    Exchanges service-account credentials for a datastore-scoped bearer token.

    The base64 blob is decoded on first use, so a bad credential surfaces as
    StoreError inside store calls rather than when the relay is built.
    google-auth refreshes synchronously over `requests`, so the refresh runs
    in a worker thread to keep the event loop free.
    """

    def __init__(self, service_account_blob: str, scopes: Optional[List[str]] = None) -> None:
        self._blob = service_account_blob
        self._scopes = scopes or list(DATASTORE_SCOPES)
        self._info: Optional[Dict[str, Any]] = None
        self._credentials = None
        self._request = google.auth.transport.requests.Request()

    def service_account_info(self) -> Dict[str, Any]:
        if self._info is None:
            try:
                self._info = decode_service_account(self._blob)
            except ValueError as exc:
                logger.error("Invalid Firebase service account: %s", exc)
                raise StoreError("Invalid Firebase service account") from exc
        return self._info

    def get_project_id(self) -> str:
        return self.service_account_info()["project_id"]

    def _load_credentials(self):
        if self._credentials is None:
            try:
                self._credentials = service_account.Credentials.from_service_account_info(
                    self.service_account_info(), scopes=self._scopes
                )
            except (ValueError, KeyError, google.auth.exceptions.GoogleAuthError) as exc:
                raise StoreError("Invalid Firebase service account") from exc
        return self._credentials

    def _refresh(self) -> str:
        credentials = self._load_credentials()
        if not credentials.valid:
            try:
                credentials.refresh(self._request)
            except google.auth.exceptions.GoogleAuthError as exc:
                logger.error("Failed to refresh Google access token: %s", exc)
                raise StoreError("Google token refresh failed") from exc
        return credentials.token

    async def get_access_token(self) -> str:
        return await asyncio.to_thread(self._refresh)
