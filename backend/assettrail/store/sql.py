"""
SQL EntityStore backed by SQLAlchemy sessions.

Transactional: writes issued inside ``atomic()`` are flushed and committed
together, so an asset update and its history row land or fail as one.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DbSession

from assettrail.db.postgres import get_db_session
from assettrail.errors import PersistenceError
from assettrail.models import AssetHistoryRow, AssetRow, UserRow
from assettrail.records import ASSETS, HISTORY, USERS, collection_for
from assettrail.store.base import EQ, NE, EntityStore, Filter

ROW_TYPES = {
    USERS: UserRow,
    ASSETS: AssetRow,
    HISTORY: AssetHistoryRow,
}


class SqlEntityStore(EntityStore):

    transactional = True

    def __init__(self, session_factory: Optional[Callable[[], DbSession]] = None):
        self._session_factory = session_factory or get_db_session
        self._local = threading.local()
        self.logger = logging.getLogger("store.SqlEntityStore")

    @property
    def db(self) -> DbSession:
        return self._session_factory()

    @property
    def _depth(self) -> int:
        return getattr(self._local, "depth", 0)

    def get(self, collection: str, record_id: str) -> Optional[Any]:
        row_type = ROW_TYPES[collection]
        try:
            row = self.db.get(row_type, record_id)
        except SQLAlchemyError as exc:
            raise self._failure(f"get {collection}/{record_id}", exc)
        return row.to_record() if row is not None else None

    def find(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Any]:
        row_type = ROW_TYPES[collection]
        query = self.db.query(row_type)
        for f in filters:
            column = getattr(row_type, f.field)
            if f.op == EQ:
                query = query.filter(column == f.value)
            elif f.op == NE:
                query = query.filter(column != f.value)
            else:
                raise ValueError(f"Unsupported filter operator: {f.op}")
        if order_by:
            column = getattr(row_type, order_by)
            query = query.order_by(column.desc() if descending else column.asc())
        if limit is not None:
            query = query.limit(limit)
        try:
            rows = query.all()
        except SQLAlchemyError as exc:
            raise self._failure(f"find {collection}", exc)
        return [row.to_record() for row in rows]

    def save(self, record: Any) -> Any:
        record = self.stamp(record)
        collection = collection_for(record)
        row = ROW_TYPES[collection].from_record(record)
        try:
            if collection == HISTORY:
                # Insert only: a duplicate event id is an error, never an overwrite
                self.db.add(row)
            else:
                self.db.merge(row)
            if self._depth:
                self.db.flush()
            else:
                self.db.commit()
        except SQLAlchemyError as exc:
            raise self._failure(f"save {collection}", exc)
        return record

    @contextmanager
    def atomic(self) -> Iterator[None]:
        depth = self._depth
        self._local.depth = depth + 1
        try:
            yield
            if depth == 0:
                try:
                    self.db.commit()
                except SQLAlchemyError as exc:
                    raise self._failure("commit", exc)
        except BaseException:
            if depth == 0:
                self.db.rollback()
            raise
        finally:
            self._local.depth = depth

    def _failure(self, action: str, exc: Exception) -> PersistenceError:
        self.logger.error(f"SQL store failed to {action}: {exc}")
        if not self._depth:
            self.db.rollback()
        return PersistenceError(f"Could not {action}: {exc.__class__.__name__}")
