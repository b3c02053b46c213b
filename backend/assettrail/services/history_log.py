"""
HistoryLogWriter: append-only asset history.

Events are never updated or deleted. The writer checks only that an event
is one of the two known shapes with its required references.
"""

import logging
from typing import Optional

from assettrail.errors import ValidationError
from assettrail.records import AssignmentEvent, HistoryEvent, StatusChangeEvent
from assettrail.store import EntityStore, get_entity_store


class HistoryLogWriter:
    """
    Append-only writer for AssignmentEvent and StatusChangeEvent records.

    Usage:
        writer = HistoryLogWriter(store)
        stored = writer.append(event)
        stored.created_at  # assigned by the store
    """

    def __init__(self, store: Optional[EntityStore] = None):
        self._store = store
        self.logger = logging.getLogger("service.HistoryLogWriter")

    @property
    def store(self) -> EntityStore:
        if self._store is None:
            self._store = get_entity_store()
        return self._store

    def append(self, event: HistoryEvent) -> HistoryEvent:
        """
        Append an event to the asset's history.

        This is INSERT-only; events are never updated or deleted.
        """
        self.validate(event)
        stored = self.store.save(event)
        self.logger.info(f"Appended {stored.kind} event {stored.event_id} for asset {stored.asset_id}")
        return stored

    def validate(self, event: HistoryEvent) -> None:
        """Raise ValidationError unless the event is a complete known variant."""
        if isinstance(event, AssignmentEvent):
            missing = [
                name for name in ("asset_id", "assigned_to", "handover_date", "assigned_by")
                if not getattr(event, name)
            ]
        elif isinstance(event, StatusChangeEvent):
            missing = [
                name for name in ("asset_id", "new_status", "changed_by", "change_date")
                if not getattr(event, name)
            ]
            if (event.previous_user is None) != (event.unassigned_date is None):
                raise ValidationError("previous_user and unassigned_date must be set together")
        else:
            raise ValidationError(f"Not a history event: {type(event).__name__}")

        if missing:
            raise ValidationError(f"{event.kind} event is missing: {', '.join(missing)}")
