"""
Asset history table: append-only audit ledger.

One table, two row types selected by the ``kind`` discriminator
(single-table inheritance), mirroring the AssignmentEvent and
StatusChangeEvent records. Rows are inserted and never updated.
"""

from sqlalchemy import Column, String, DateTime, Date, Index

from assettrail.db.postgres import Base
from assettrail.records import AssetStatus, AssignmentEvent, StatusChangeEvent, HistoryEvent


class AssetHistoryRow(Base):
    __tablename__ = "asset_history"

    event_id = Column(String(64), primary_key=True)
    asset_id = Column(String(64), nullable=False)
    kind = Column(String(20), nullable=False)  # assignment | status_change
    created_at = Column(DateTime, nullable=False)

    # Shared by both kinds
    previous_user = Column(String(64), nullable=True)

    # Assignment
    assigned_to = Column(String(64), nullable=True)
    assigned_by = Column(String(64), nullable=True)
    handover_date = Column(Date, nullable=True)

    # Status change
    new_status = Column(String(20), nullable=True)
    previous_status = Column(String(20), nullable=True)
    changed_by = Column(String(64), nullable=True)
    change_date = Column(DateTime, nullable=True)
    unassigned_date = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_asset_history_asset_created", "asset_id", "created_at"),
    )

    __mapper_args__ = {
        "polymorphic_on": kind,
    }

    def to_record(self) -> HistoryEvent:
        raise NotImplementedError

    @staticmethod
    def from_record(event: HistoryEvent) -> "AssetHistoryRow":
        if isinstance(event, AssignmentEvent):
            return AssignmentRow(
                event_id=event.event_id,
                asset_id=event.asset_id,
                created_at=event.created_at,
                assigned_to=event.assigned_to,
                assigned_by=event.assigned_by,
                handover_date=event.handover_date,
                previous_user=event.previous_user,
            )
        if isinstance(event, StatusChangeEvent):
            return StatusChangeRow(
                event_id=event.event_id,
                asset_id=event.asset_id,
                created_at=event.created_at,
                new_status=event.new_status.value,
                previous_status=event.previous_status.value if event.previous_status else None,
                changed_by=event.changed_by,
                change_date=event.change_date,
                previous_user=event.previous_user,
                unassigned_date=event.unassigned_date,
            )
        raise TypeError(f"Not a history event: {type(event).__name__}")


class AssignmentRow(AssetHistoryRow):
    __mapper_args__ = {"polymorphic_identity": AssignmentEvent.kind}

    def to_record(self) -> AssignmentEvent:
        return AssignmentEvent(
            event_id=self.event_id,
            asset_id=self.asset_id,
            assigned_to=self.assigned_to,
            handover_date=self.handover_date,
            assigned_by=self.assigned_by,
            previous_user=self.previous_user,
            created_at=self.created_at,
        )


class StatusChangeRow(AssetHistoryRow):
    __mapper_args__ = {"polymorphic_identity": StatusChangeEvent.kind}

    def to_record(self) -> StatusChangeEvent:
        return StatusChangeEvent(
            event_id=self.event_id,
            asset_id=self.asset_id,
            new_status=AssetStatus.parse(self.new_status),
            previous_status=AssetStatus.parse(self.previous_status) if self.previous_status else None,
            changed_by=self.changed_by,
            change_date=self.change_date,
            previous_user=self.previous_user,
            unassigned_date=self.unassigned_date,
            created_at=self.created_at,
        )
