import logging
from functools import lru_cache

from src.integrations.clients.mocks.daraja import MockDarajaGateway, StaticTokenProvider
from src.integrations.clients.mocks.firestore import InMemoryDocumentStore
from src.integrations.clients.real_http.daraja import DarajaClient, DarajaOAuthProvider
from src.integrations.clients.real_http.firestore import FirestoreClient
from src.integrations.clients.real_http.google_auth import ServiceAccountTokenProvider
from src.integrations.policy.relay_service import RelayService
from src.utils.config_loader import RelaySettings, load_relay_settings

logger = logging.getLogger(__name__)


def build_relay_service(settings: RelaySettings) -> RelayService:
    """
    Wire mock or real clients. Nothing is decoded or fetched here: a bad
    Firebase credential only fails the store calls, which the relay swallows.
    """
    if not settings.use_real_integrations():
        logger.warning("Using MOCK Daraja gateway and in-memory document store.")
        return RelayService(
            settings=settings,
            gateway=MockDarajaGateway(),
            gateway_credentials=StaticTokenProvider(),
            store=InMemoryDocumentStore(),
            store_credentials=StaticTokenProvider(),
        )

    store_credentials = ServiceAccountTokenProvider(settings.firebase_service_account)
    return RelayService(
        settings=settings,
        gateway=DarajaClient(settings.daraja_base_url, timeout_seconds=settings.http_timeout_seconds),
        gateway_credentials=DarajaOAuthProvider(
            settings.daraja_base_url,
            settings.daraja_consumer_key,
            settings.daraja_consumer_secret,
            timeout_seconds=settings.http_timeout_seconds,
        ),
        store=FirestoreClient(store_credentials.get_project_id, timeout_seconds=settings.http_timeout_seconds),
        store_credentials=store_credentials,
    )


@lru_cache(maxsize=1)
def get_settings() -> RelaySettings:
    return load_relay_settings()


@lru_cache(maxsize=1)
def get_relay_service() -> RelayService:
    return build_relay_service(get_settings())
