"""
AssetLifecycleService: assignment and status changes for assets.

Every mutation is two writes, the asset's new state and one history event,
issued inside ``store.atomic()``. On a transactional store they commit
together; otherwise a failed history append after a successful asset write
is reported as PartialWriteError and left for an operator to reconcile.

Status state machine: any status may move to any other. The only enforced
rule is that entering ``free`` releases the current holder.

Callers are expected to have checked permissions (see PermissionService);
the acting user's id is passed explicitly to every mutation.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Union

from assettrail.errors import NotFound, PartialWriteError, PersistenceError, ValidationError
from assettrail.records import (
    ASSETS,
    USERS,
    Asset,
    AssetStatus,
    AssignmentEvent,
    HistoryEvent,
    StatusChangeEvent,
    new_id,
    parse_date,
    utcnow,
)
from assettrail.services.history_log import HistoryLogWriter
from assettrail.services.previous_holder import PreviousHolderResolver
from assettrail.store import EQ, EntityStore, Filter, get_entity_store

DETAIL_FIELDS = ("name", "category_id", "serial_number", "quantity", "remark")


class AssetLifecycleService:
    """
    Orchestrates asset mutations and their audit trail.

    Usage:
        service = AssetLifecycleService(store)
        service.assign(asset_id, user_id, "2024-01-10", acting_admin_id=admin_id)
        service.change_status(asset_id, "free", acting_admin_id=admin_id)
    """

    def __init__(
        self,
        store: Optional[EntityStore] = None,
        resolver: Optional[PreviousHolderResolver] = None,
        history: Optional[HistoryLogWriter] = None,
    ):
        self.store = store or get_entity_store()
        self.resolver = resolver or PreviousHolderResolver(self.store)
        self.history = history or HistoryLogWriter(self.store)
        self.logger = logging.getLogger("service.AssetLifecycleService")

    # -------------------------------------------------------------------------
    # Core operations
    # -------------------------------------------------------------------------

    def assign(
        self,
        asset_id: str,
        user_id: str,
        handover_date: Union[date, str],
        acting_admin_id: str,
    ) -> AssignmentEvent:
        """
        Hand an asset over to a user.

        The previous holder is taken from the asset's live state or, failing
        that, reconstructed from the history log. The asset ends up ``using``
        with the new assignee and handover date.
        """
        _require("user_id", user_id)
        _require("acting_admin_id", acting_admin_id)
        handover = parse_date(handover_date, "handover_date")

        asset = self.get_asset(asset_id)
        if self.store.get(USERS, user_id) is None:
            raise NotFound("User", user_id)

        previous_user_id = self.resolver.resolve(asset, user_id)

        asset.hand_over(user_id, handover)
        event = AssignmentEvent(
            event_id=new_id(),
            asset_id=asset.asset_id,
            assigned_to=user_id,
            previous_user=previous_user_id,
            handover_date=handover,
            assigned_by=acting_admin_id,
        )
        stored = self._persist(asset, event)
        self.logger.info(
            f"Asset {asset.asset_id} assigned to {user_id} by {acting_admin_id} "
            f"(previous holder: {previous_user_id})"
        )
        return stored

    def change_status(
        self,
        asset_id: str,
        new_status: Union[AssetStatus, str],
        acting_admin_id: str,
    ) -> StatusChangeEvent:
        """
        Set an asset's status label.

        Entering ``free`` from any other status always releases the holder,
        even when the caller only meant to relabel the asset.
        """
        status = AssetStatus.parse(new_status)
        _require("acting_admin_id", acting_admin_id)

        asset = self.get_asset(asset_id)
        return self._apply_status(asset, status, acting_admin_id)

    def _apply_status(self, asset: Asset, status: AssetStatus, acting_admin_id: str) -> StatusChangeEvent:
        previous_status = asset.status

        released_user_id = None
        if status == AssetStatus.FREE and previous_status != AssetStatus.FREE:
            released_user_id = asset.release()
        asset.status = status

        now = utcnow()
        event = StatusChangeEvent(
            event_id=new_id(),
            asset_id=asset.asset_id,
            new_status=status,
            previous_status=previous_status,
            changed_by=acting_admin_id,
            change_date=now,
            previous_user=released_user_id,
            unassigned_date=now if released_user_id else None,
        )
        stored = self._persist(asset, event)
        self.logger.info(
            f"Asset {asset.asset_id} status {previous_status.value} -> {status.value} "
            f"by {acting_admin_id}"
            + (f" (released {released_user_id})" if released_user_id else "")
        )
        return stored

    # -------------------------------------------------------------------------
    # Asset records
    # -------------------------------------------------------------------------

    def get_asset(self, asset_id: str) -> Asset:
        _require("asset_id", asset_id)
        asset = self.store.get(ASSETS, asset_id)
        if asset is None:
            raise NotFound("Asset", asset_id)
        return asset

    def list_assets(
        self,
        status: Union[AssetStatus, str, None] = None,
        category_id: Optional[str] = None,
        assignee_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Asset]:
        """Assets matching every given filter, most recently updated first."""
        filters = []
        if status is not None:
            filters.append(Filter("status", EQ, AssetStatus.parse(status).value))
        if category_id is not None:
            filters.append(Filter("category_id", EQ, category_id))
        if assignee_id is not None:
            filters.append(Filter("assignee_id", EQ, assignee_id))
        return self.store.find(ASSETS, filters=filters, order_by="updated_at", descending=True, limit=limit)

    def create_asset(
        self,
        name: str,
        serial_number: str,
        acting_admin_id: str,
        category_id: Optional[str] = None,
        status: Union[AssetStatus, str] = AssetStatus.FREE,
        quantity: Any = 1,
        remark: Optional[str] = None,
    ) -> Asset:
        """
        Register a new asset.

        An asset cannot be created already ``using``: a holder is only ever
        set through assign(), which also records the handover.
        """
        _require("acting_admin_id", acting_admin_id)
        status = AssetStatus.parse(status)
        if status == AssetStatus.USING:
            raise ValidationError("Create the asset first, then assign it to a user")

        asset = Asset(
            asset_id=new_id(),
            name=_clean_detail("name", name),
            category_id=_clean_detail("category_id", category_id),
            serial_number=_clean_detail("serial_number", serial_number),
            status=status,
            quantity=_clean_detail("quantity", quantity),
            remark=_clean_detail("remark", remark),
            created_by=acting_admin_id,
        )
        asset.check_invariants()
        asset = self.store.save(asset)
        self.logger.info(f"Created asset {asset.asset_id} ({asset.serial_number}) by {acting_admin_id}")
        return asset

    def update_details(self, asset_id: str, acting_admin_id: str, changes: Dict[str, Any]) -> Asset:
        """
        Edit descriptive attributes of an asset.

        Every field is validated before anything is written. A ``status``
        different from the current one is recorded as a status change, and
        the edited fields are saved with that same write.
        """
        _require("acting_admin_id", acting_admin_id)
        unknown = set(changes) - set(DETAIL_FIELDS) - {"status"}
        if unknown:
            raise ValidationError(f"Unknown asset fields: {', '.join(sorted(unknown))}")

        changes = dict(changes)
        status = changes.pop("status", None)
        status = AssetStatus.parse(status) if status is not None else None
        cleaned = {name: _clean_detail(name, value) for name, value in changes.items()}

        asset = self.get_asset(asset_id)
        for field_name, value in cleaned.items():
            setattr(asset, field_name, value)

        if status is not None and status != asset.status:
            self._apply_status(asset, status, acting_admin_id)
            return self.get_asset(asset_id)

        if not cleaned:
            return asset

        asset.check_invariants()
        asset = self.store.save(asset)
        self.logger.info(f"Updated asset {asset.asset_id} fields {sorted(cleaned)} by {acting_admin_id}")
        return asset

    def assets_for_user(self, user_id: str) -> List[Asset]:
        """Assets currently held by a user."""
        _require("user_id", user_id)
        return self.store.find(ASSETS, filters=[Filter("assignee_id", EQ, user_id)])

    # -------------------------------------------------------------------------
    # Write protocol
    # -------------------------------------------------------------------------

    def _persist(self, asset: Asset, event: HistoryEvent) -> HistoryEvent:
        asset.check_invariants()
        self.history.validate(event)
        asset_written = False
        try:
            with self.store.atomic():
                self.store.save(asset)
                asset_written = True
                return self.history.append(event)
        except PersistenceError as exc:
            if asset_written and not self.store.transactional:
                self.logger.error(
                    f"Asset {asset.asset_id} was updated but its {event.kind} event "
                    f"{event.event_id} was not recorded: {exc.message}"
                )
                raise PartialWriteError(
                    f"Asset {asset.asset_id} was updated but the history entry could not be written",
                    asset_id=asset.asset_id,
                    asset_written=True,
                ) from exc
            raise


def _require(field_name: str, value: Any) -> None:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field_name} is required")


def _clean_detail(field_name: str, value: Any) -> Any:
    """Validate one descriptive field and return its stored form."""
    if field_name == "quantity":
        return _parse_quantity(value)
    if field_name in ("name", "serial_number"):
        _require(field_name, value)
    elif value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")
    return value.strip()


def _parse_quantity(value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"Invalid quantity: {value!r}")
    try:
        quantity = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid quantity: {value!r}")
    if quantity < 1 or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError("quantity must be an integer >= 1")
    return quantity

