import base64
import json

import google.auth.exceptions
import pytest

from src.error_handler import StoreError
from src.integrations.clients.real_http import google_auth
from src.integrations.clients.real_http.google_auth import DATASTORE_SCOPES, ServiceAccountTokenProvider

INFO = {"type": "service_account", "project_id": "youth-reg"}
BLOB = base64.b64encode(json.dumps(INFO).encode("utf-8")).decode("ascii")


class FakeCredentials:
    def __init__(self, fail=False):
        self.valid = False
        self.token = None
        self.refreshes = 0
        self.requests = []
        self._fail = fail

    def refresh(self, request):
        self.refreshes += 1
        self.requests.append(request)
        if self._fail:
            raise google.auth.exceptions.RefreshError("invalid_grant")
        self.token = f"ya29.token-{self.refreshes}"
        self.valid = True


def _patch_credentials(monkeypatch, creds):
    seen = {}

    def fake_from_info(info, scopes=None):
        seen["info"] = info
        seen["scopes"] = scopes
        return creds

    monkeypatch.setattr(google_auth.service_account.Credentials, "from_service_account_info", fake_from_info)
    return seen


@pytest.mark.asyncio
async def test_token_is_scoped_for_datastore(monkeypatch):
    creds = FakeCredentials()
    seen = _patch_credentials(monkeypatch, creds)
    provider = ServiceAccountTokenProvider(BLOB)

    assert await provider.get_access_token() == "ya29.token-1"
    assert seen["info"] == INFO
    assert seen["scopes"] == DATASTORE_SCOPES
    assert provider.get_project_id() == "youth-reg"


@pytest.mark.asyncio
async def test_valid_token_is_not_refreshed_again(monkeypatch):
    creds = FakeCredentials()
    _patch_credentials(monkeypatch, creds)
    provider = ServiceAccountTokenProvider(BLOB)

    await provider.get_access_token()
    creds.valid = False
    await provider.get_access_token()
    await provider.get_access_token()

    assert creds.refreshes == 2
    assert creds.requests[0] is creds.requests[1]


@pytest.mark.asyncio
async def test_refresh_failure_raises_store_error(monkeypatch):
    _patch_credentials(monkeypatch, FakeCredentials(fail=True))

    with pytest.raises(StoreError):
        await ServiceAccountTokenProvider(BLOB).get_access_token()


@pytest.mark.asyncio
async def test_incomplete_service_account_raises_store_error():
    with pytest.raises(StoreError):
        await ServiceAccountTokenProvider(BLOB).get_access_token()


@pytest.mark.asyncio
@pytest.mark.parametrize("blob", ["", "!!!not-base64!!!", base64.b64encode(b"{}").decode("ascii")])
async def test_malformed_blob_fails_on_use_not_on_construction(blob):
    provider = ServiceAccountTokenProvider(blob)

    with pytest.raises(StoreError):
        provider.get_project_id()
    with pytest.raises(StoreError):
        await provider.get_access_token()
