from typing import Dict, Any, List, Optional, Tuple
from firebase_admin import firestore
from google.cloud.firestore_v1 import FieldFilter, Query
from google.api_core import exceptions as google_exceptions
import logging

from .collections import COLLECTION_SCHEMAS, schema_key
from .firestore_client import get_firestore_client

logger = logging.getLogger(__name__)

# Error string returned by update_document_if_version when the stored version moved on
VERSION_CONFLICT = "version_conflict"
DOCUMENT_NOT_FOUND = "Document not found"


class _VersionMismatch(Exception):
    pass


class DatabaseService:
    """
    Thin async adapter over Firestore.

    Every call returns a tuple instead of raising:
      get_document     -> (success, document or None, error)
      query_documents  -> (success, documents, error)
      create_document  -> (success, document_id, error)
      update_document  -> (success, error)
      delete_document  -> (success, error)

    A missing document is a successful get that returns None. Documents are
    plain dicts with the Firestore id under '_doc_id' (and 'id' when the
    stored data has none). Collection names may be subcollection paths such
    as 'rooms/1-101/equipment'.
    """

    def __init__(self):
        self._client = None

    @property
    def db(self):
        if self._client is None:
            self._client = get_firestore_client()
        return self._client

    def server_timestamp(self):
        """Sentinel replaced by the server's commit time on write."""
        return firestore.SERVER_TIMESTAMP

    def _to_dict(self, snapshot) -> Dict[str, Any]:
        data = snapshot.to_dict() or {}
        data['_doc_id'] = snapshot.id
        data.setdefault('id', snapshot.id)
        return data

    def _validate(self, collection: str, data: Dict[str, Any]) -> Optional[str]:
        schema = COLLECTION_SCHEMAS.get(schema_key(collection))
        if not schema:
            return None
        missing = [field for field in schema['required'] if data.get(field) in (None, '')]
        if missing:
            return f"Missing required fields for {collection}: {', '.join(missing)}"
        return None

    async def get_document(self, collection: str, document_id: str) -> Tuple[bool, Optional[Dict[str, Any]], Optional[str]]:
        try:
            snapshot = self.db.collection(collection).document(document_id).get()
            if not snapshot.exists:
                return True, None, None
            return True, self._to_dict(snapshot), None
        except Exception as e:
            logger.error(f"[Firestore] get {collection}/{document_id} failed: {e}")
            return False, None, str(e)

    async def query_documents(
        self,
        collection: str,
        filters: Optional[List[Tuple[str, str, Any]]] = None,
        order_by: Optional[List[Tuple[str, str]]] = None,
        limit: Optional[int] = None
    ) -> Tuple[bool, List[Dict[str, Any]], Optional[str]]:
        try:
            query = self.db.collection(collection)
            for field, op, value in filters or []:
                query = query.where(filter=FieldFilter(field, op, value))
            for field, direction in order_by or []:
                firestore_direction = Query.DESCENDING if direction.lower() == 'desc' else Query.ASCENDING
                query = query.order_by(field, direction=firestore_direction)
            if limit:
                query = query.limit(limit)

            return True, [self._to_dict(doc) for doc in query.stream()], None
        except Exception as e:
            logger.error(f"[Firestore] query {collection} {filters or []} failed: {e}")
            return False, [], str(e)

    async def create_document(
        self,
        collection: str,
        data: Dict[str, Any],
        document_id: Optional[str] = None,
        validate: bool = True
    ) -> Tuple[bool, Optional[str], Optional[str]]:
        if validate:
            error = self._validate(collection, data)
            if error:
                return False, None, error
        try:
            collection_ref = self.db.collection(collection)
            if document_id:
                collection_ref.document(document_id).set(data)
                return True, document_id, None
            _, doc_ref = collection_ref.add(data)
            return True, doc_ref.id, None
        except Exception as e:
            logger.error(f"[Firestore] create in {collection} failed: {e}")
            return False, None, str(e)

    async def update_document(
        self,
        collection: str,
        document_id: str,
        data: Dict[str, Any],
        validate: bool = False
    ) -> Tuple[bool, Optional[str]]:
        """Partial merge of `data` into an existing document."""
        try:
            self.db.collection(collection).document(document_id).update(data)
            return True, None
        except google_exceptions.NotFound:
            return False, DOCUMENT_NOT_FOUND
        except Exception as e:
            logger.error(f"[Firestore] update {collection}/{document_id} failed: {e}")
            return False, str(e)

    async def update_document_if_version(
        self,
        collection: str,
        document_id: str,
        data: Dict[str, Any],
        expected_version: int,
        version_field: str = 'records_version'
    ) -> Tuple[bool, Optional[str]]:
        """
        Partial merge guarded by an integer version field.

        The stored version (missing counts as 0) must equal `expected_version`;
        the write bumps it by one. Returns (False, VERSION_CONFLICT) when
        another writer got there first.
        """
        doc_ref = self.db.collection(collection).document(document_id)

        @firestore.transactional
        def _txn(transaction):
            snapshot = doc_ref.get(transaction=transaction)
            if not snapshot.exists:
                raise google_exceptions.NotFound(DOCUMENT_NOT_FOUND)
            current = (snapshot.to_dict() or {}).get(version_field) or 0
            if current != expected_version:
                raise _VersionMismatch()
            transaction.update(doc_ref, {**data, version_field: current + 1})

        try:
            _txn(self.db.transaction())
            return True, None
        except _VersionMismatch:
            logger.info(f"[Firestore] version conflict on {collection}/{document_id} (expected {expected_version})")
            return False, VERSION_CONFLICT
        except google_exceptions.NotFound:
            return False, DOCUMENT_NOT_FOUND
        except Exception as e:
            logger.error(f"[Firestore] versioned update {collection}/{document_id} failed: {e}")
            return False, str(e)

    async def delete_document(self, collection: str, document_id: str) -> Tuple[bool, Optional[str]]:
        try:
            self.db.collection(collection).document(document_id).delete()
            return True, None
        except Exception as e:
            logger.error(f"[Firestore] delete {collection}/{document_id} failed: {e}")
            return False, str(e)

    async def list_document_ids(self, collection: str) -> Tuple[bool, List[str], Optional[str]]:
        """Ids of every document in a collection, without reading their data."""
        try:
            return True, [ref.id for ref in self.db.collection(collection).list_documents()], None
        except Exception as e:
            logger.error(f"[Firestore] list ids of {collection} failed: {e}")
            return False, [], str(e)


database_service = DatabaseService()
