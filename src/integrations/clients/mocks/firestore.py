"""
Firestore — MOCK document store.

Keeps documents in memory (reset on restart). Documents are stored as plain
field mappings, newest last, and listed newest first like the real client.
"""

import logging
from collections import defaultdict
from typing import Any, Dict, List

from src.integrations.contracts.interfaces import DocumentStore

logger = logging.getLogger(__name__)


class InMemoryDocumentStore(DocumentStore):
    def __init__(self):
        self._collections: Dict[str, List[Dict[str, Any]]] = defaultdict(list)

    def documents(self, collection: str) -> List[Dict[str, Any]]:
        return list(self._collections[collection])

    async def put_document(self, collection: str, fields: Dict[str, Any], access_token: str) -> Dict[str, Any]:
        documents = self._collections[collection]
        documents.append(dict(fields))
        name = f"mock/{collection}/{len(documents)}"
        logger.info("[FIRESTORE MOCK] Stored %s", name)
        return {"name": name}

    async def list_documents(self, collection: str, access_token: str, page_size: int = 50) -> List[Dict[str, Any]]:
        return [dict(doc) for doc in reversed(self._collections[collection])][:page_size]
