"""
Firestore EntityStore.

Collections map one-to-one onto Firestore collections and record ids onto
document ids. Writes inside ``atomic()`` are buffered in a WriteBatch and
committed together.

Equality filters and ordering run server-side; inequality filters are
evaluated while streaming so that ``order_by`` never has to start with the
inequality field. The history queries need a composite index on
(asset_id, kind, created_at).
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional, Sequence

from google.api_core import exceptions as gcp_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from assettrail.config import config
from assettrail.errors import PersistenceError
from assettrail.records import HISTORY, collection_for, from_document, record_id, to_document
from assettrail.store.base import EQ, EntityStore, Filter

STORE_ERRORS = (gcp_exceptions.GoogleAPICallError, gcp_exceptions.RetryError)


class FirestoreEntityStore(EntityStore):

    transactional = True

    def __init__(self, client, timeout: Optional[float] = None):
        self.client = client
        self.timeout = timeout if timeout is not None else config.STORE_TIMEOUT_SECONDS
        self._local = threading.local()
        self.logger = logging.getLogger("store.FirestoreEntityStore")

    def _collection(self, name: str):
        return self.client.collection(name)

    def get(self, collection: str, record_id: str) -> Optional[Any]:
        try:
            snapshot = self._collection(collection).document(record_id).get(timeout=self.timeout)
        except STORE_ERRORS as exc:
            raise self._failure(f"get {collection}/{record_id}", exc)
        if not snapshot.exists:
            return None
        return from_document(collection, snapshot.to_dict())

    def find(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Any]:
        query = self._collection(collection)
        streamed_filters = []
        for f in filters:
            if f.op == EQ:
                query = query.where(filter=FieldFilter(f.field, "==", f.value))
            else:
                streamed_filters.append(f)
        if order_by:
            direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
            query = query.order_by(order_by, direction=direction)
        if limit is not None and not streamed_filters:
            query = query.limit(limit)

        results = []
        try:
            for snapshot in query.stream(timeout=self.timeout):
                doc = snapshot.to_dict()
                if not all(f.matches(doc) for f in streamed_filters):
                    continue
                results.append(from_document(collection, doc))
                if limit is not None and len(results) >= limit:
                    break
        except STORE_ERRORS as exc:
            raise self._failure(f"find {collection}", exc)
        return results

    def save(self, record: Any) -> Any:
        record = self.stamp(record)
        collection = collection_for(record)
        ref = self._collection(collection).document(record_id(record))
        doc = to_document(record)
        # History is insert-only: create() fails if the event id already exists
        insert_only = collection == HISTORY

        batch = getattr(self._local, "batch", None)
        if batch is not None:
            if insert_only:
                batch.create(ref, doc)
            else:
                batch.set(ref, doc)
            return record

        try:
            if insert_only:
                ref.create(doc, timeout=self.timeout)
            else:
                ref.set(doc, timeout=self.timeout)
        except STORE_ERRORS as exc:
            raise self._failure(f"save {collection}", exc)
        return record

    @contextmanager
    def atomic(self) -> Iterator[None]:
        if getattr(self._local, "batch", None) is not None:
            # Nested: the outermost block commits
            yield
            return

        self._local.batch = self.client.batch()
        try:
            yield
            batch = self._local.batch
            self._local.batch = None
            try:
                batch.commit(timeout=self.timeout)
            except STORE_ERRORS as exc:
                raise self._failure("commit batch", exc)
        finally:
            self._local.batch = None

    def _failure(self, action: str, exc: Exception) -> PersistenceError:
        self.logger.error(f"Firestore failed to {action}: {exc}")
        return PersistenceError(f"Could not {action}: {exc.__class__.__name__}")
