"""
Disaster record stores
======================
Two interchangeable backends for the single ``disasters`` collection:

- MemoryDisasterStore     : in-process dict, for local runs and tests
- FirestoreDisasterStore  : Google Cloud Firestore via firebase-admin

Both speak plain snake_case documents.  Every returned document carries its
store-assigned ``id``.  All methods are blocking; async callers run them in a
worker thread.
"""

import copy
import logging
import threading
import uuid
from contextlib import contextmanager
from typing import Dict, List, Optional

import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core.exceptions import GoogleAPIError, NotFound
from google.cloud.firestore_v1.base_query import FieldFilter

from .config import Settings
from .errors import TransportError

logger = logging.getLogger(__name__)


class DisasterStore:
    """Interface shared by the store backends."""

    backend = "abstract"

    def insert(self, doc: Dict) -> Dict:
        raise NotImplementedError

    def get(self, doc_id: str) -> Optional[Dict]:
        raise NotImplementedError

    def list(self, tag: Optional[str] = None) -> List[Dict]:
        raise NotImplementedError

    def update(self, doc_id: str, fields: Dict, audit_entry: Dict) -> Optional[Dict]:
        """Replace ``fields`` and append ``audit_entry`` in one write.

        Returns the updated document, or None if ``doc_id`` does not exist.
        """
        raise NotImplementedError

    def delete(self, doc_id: str) -> bool:
        raise NotImplementedError

    def close(self):
        pass


class MemoryDisasterStore(DisasterStore):
    """Stores disaster records in a dict guarded by a lock."""

    backend = "memory"

    def __init__(self):
        self._docs: Dict[str, Dict] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _out(doc_id: str, doc: Dict) -> Dict:
        return {"id": doc_id, **copy.deepcopy(doc)}

    # ── mutate ──

    def insert(self, doc: Dict) -> Dict:
        doc_id = f"dis_{uuid.uuid4().hex[:12]}"
        with self._lock:
            self._docs[doc_id] = copy.deepcopy(doc)
            return self._out(doc_id, self._docs[doc_id])

    def update(self, doc_id: str, fields: Dict, audit_entry: Dict) -> Optional[Dict]:
        with self._lock:
            doc = self._docs.get(doc_id)
            if doc is None:
                return None
            doc.update(copy.deepcopy(fields))
            doc.setdefault("audit_trail", []).append(dict(audit_entry))
            return self._out(doc_id, doc)

    def delete(self, doc_id: str) -> bool:
        with self._lock:
            return self._docs.pop(doc_id, None) is not None

    # ── read ──

    def get(self, doc_id: str) -> Optional[Dict]:
        with self._lock:
            doc = self._docs.get(doc_id)
            return self._out(doc_id, doc) if doc is not None else None

    def list(self, tag: Optional[str] = None) -> List[Dict]:
        with self._lock:
            out = [self._out(k, v) for k, v in self._docs.items()]
        if tag is not None:
            out = [d for d in out if tag in d.get("tags", [])]
        return out

    @property
    def count(self) -> int:
        return len(self._docs)


@contextmanager
def _firestore_errors(action: str):
    try:
        yield
    except GoogleAPIError as e:
        logger.error(f"Firestore {action} failed: {e}")
        raise TransportError("Document store request failed", details=str(e)) from e


class FirestoreDisasterStore(DisasterStore):
    """Stores disaster records as documents in one Firestore collection."""

    backend = "firestore"

    def __init__(self, client, collection: str = "disasters"):
        self._client = client
        self._collection = client.collection(collection)

    @classmethod
    def from_settings(cls, settings: Settings) -> "FirestoreDisasterStore":
        try:
            app = firebase_admin.get_app()
        except ValueError:
            if settings.firebase_credentials:
                cred = credentials.Certificate(settings.firebase_credentials)
            else:
                cred = credentials.ApplicationDefault()
            options = {"projectId": settings.firebase_project_id} if settings.firebase_project_id else None
            app = firebase_admin.initialize_app(cred, options)
        logger.info(f"✓ Firestore connected (collection={settings.firestore_collection})")
        return cls(firestore.client(app), settings.firestore_collection)

    @staticmethod
    def _out(snapshot) -> Dict:
        return {"id": snapshot.id, **(snapshot.to_dict() or {})}

    def insert(self, doc: Dict) -> Dict:
        ref = self._collection.document()
        with _firestore_errors("insert"):
            ref.set(doc)
        return {"id": ref.id, **doc}

    def get(self, doc_id: str) -> Optional[Dict]:
        with _firestore_errors("get"):
            snapshot = self._collection.document(doc_id).get()
        return self._out(snapshot) if snapshot.exists else None

    def list(self, tag: Optional[str] = None) -> List[Dict]:
        query = self._collection
        if tag is not None:
            query = query.where(filter=FieldFilter("tags", "array_contains", tag))
        with _firestore_errors("list"):
            return [self._out(s) for s in query.stream()]

    def update(self, doc_id: str, fields: Dict, audit_entry: Dict) -> Optional[Dict]:
        ref = self._collection.document(doc_id)
        with _firestore_errors("update"):
            try:
                ref.update({**fields, "audit_trail": firestore.ArrayUnion([audit_entry])})
            except NotFound:
                return None
        return self.get(doc_id)

    def delete(self, doc_id: str) -> bool:
        ref = self._collection.document(doc_id)
        with _firestore_errors("delete"):
            if not ref.get().exists:
                return False
            ref.delete()
        return True

    def close(self):
        self._client.close()


def make_store(settings: Settings) -> DisasterStore:
    if settings.store_backend == "firestore":
        return FirestoreDisasterStore.from_settings(settings)
    return MemoryDisasterStore()
