"""
Asset table: current state of every tracked item.
"""

from sqlalchemy import CheckConstraint, Column, String, DateTime, Date, Integer, Text

from assettrail.db.postgres import Base
from assettrail.records import Asset, AssetStatus


class AssetRow(Base):
    __tablename__ = "asset"

    asset_id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    category_id = Column(String(64), nullable=True)
    serial_number = Column(String(255), nullable=False)
    status = Column(String(20), default=AssetStatus.FREE.value, nullable=False, index=True)
    quantity = Column(Integer, default=1, nullable=False)
    remark = Column(Text, nullable=True)

    # Weak references: no FK, deleted users must not break the asset
    assignee_id = Column(String(64), nullable=True, index=True)
    handover_date = Column(Date, nullable=True)
    created_by = Column(String(64), nullable=True)

    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_asset_quantity_positive"),
        CheckConstraint("(assignee_id IS NULL) = (handover_date IS NULL)", name="ck_asset_holder_pair"),
    )

    def to_record(self) -> Asset:
        return Asset(
            asset_id=self.asset_id,
            name=self.name,
            category_id=self.category_id,
            serial_number=self.serial_number,
            status=AssetStatus.parse(self.status),
            quantity=self.quantity,
            remark=self.remark,
            assignee_id=self.assignee_id,
            handover_date=self.handover_date,
            created_by=self.created_by,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_record(cls, asset: Asset) -> "AssetRow":
        return cls(
            asset_id=asset.asset_id,
            name=asset.name,
            category_id=asset.category_id,
            serial_number=asset.serial_number,
            status=asset.status.value,
            quantity=asset.quantity,
            remark=asset.remark,
            assignee_id=asset.assignee_id,
            handover_date=asset.handover_date,
            created_by=asset.created_by,
            created_at=asset.created_at,
            updated_at=asset.updated_at,
        )
