"""
Asset API endpoints.

Provides endpoints for:
- Listing, creating, fetching and editing assets
- Assigning an asset to a user
- Changing an asset's status
- Reading an asset's audit trail
- Listing the assets a user currently holds

The caller's identity comes from the X-User-Id header, set by the auth
gateway in front of this service.
"""

from flask import Blueprint, request, jsonify

from assettrail.errors import AssetTrailError, PermissionDenied, ValidationError
from assettrail.records import HistoryEvent
from assettrail.services import (
    AssetLifecycleService,
    HistoryQueryService,
    PermissionService,
)
from assettrail.store import get_entity_store


bp = Blueprint("assets", __name__, url_prefix="/api/v1")

DEFAULT_LIST_LIMIT = 100
MAX_LIST_LIMIT = 1000


def get_current_user_id():
    """Get current user ID from request headers."""
    user_id = request.headers.get("X-User-Id", "").strip()
    return user_id or None


def require_caller() -> str:
    user_id = get_current_user_id()
    if not user_id:
        raise PermissionDenied("User not authenticated")
    return user_id


def format_event_for_response(event: HistoryEvent) -> dict:
    """Short view of a freshly written history event."""
    return {
        "event_id": event.event_id,
        "type": event.kind,
        "created_at": event.created_at.isoformat() if event.created_at else None,
    }


@bp.errorhandler(AssetTrailError)
def handle_asset_trail_error(error: AssetTrailError):
    status = error.http_status
    if isinstance(error, PermissionDenied) and not get_current_user_id():
        status = 401
    return jsonify(error.to_dict()), status


def _services():
    store = get_entity_store()
    return AssetLifecycleService(store), PermissionService(store)


# =============================================================================
# Asset records
# =============================================================================

@bp.route("/assets", methods=["GET"])
def list_assets():
    """
    List assets, most recently updated first.

    Admins see every asset; other users only the assets they hold.
    Query: ?status=...&category_id=...&limit=N
    """
    caller_id = require_caller()
    lifecycle, permissions = _services()

    assignee_id = None if permissions.is_admin(caller_id) else caller_id
    assets = lifecycle.list_assets(
        status=request.args.get("status") or None,
        category_id=request.args.get("category_id") or None,
        assignee_id=assignee_id,
        limit=_parse_limit(request.args.get("limit")),
    )
    return jsonify({"ok": True, "assets": [asset.to_dict() for asset in assets]})


def _parse_limit(value) -> int:
    if value is None or value == "":
        return DEFAULT_LIST_LIMIT
    try:
        limit = int(value)
    except ValueError:
        raise ValidationError(f"Invalid limit: {value!r}")
    if not 1 <= limit <= MAX_LIST_LIMIT:
        raise ValidationError(f"limit must be between 1 and {MAX_LIST_LIMIT}")
    return limit


@bp.route("/assets", methods=["POST"])
def create_asset():
    """Register a new asset (admin only)."""
    caller_id = require_caller()
    lifecycle, permissions = _services()
    permissions.ensure_admin(caller_id)

    data = request.get_json(silent=True) or {}
    asset = lifecycle.create_asset(
        name=data.get("name"),
        serial_number=data.get("serial_number"),
        category_id=data.get("category_id"),
        status=data.get("status", "free"),
        quantity=data.get("quantity", 1),
        remark=data.get("remark"),
        acting_admin_id=caller_id,
    )
    return jsonify({"ok": True, "asset": asset.to_dict()}), 201


@bp.route("/assets/<asset_id>", methods=["GET"])
def get_asset(asset_id: str):
    caller_id = require_caller()
    lifecycle, permissions = _services()
    permissions.ensure_can_view_asset(caller_id, asset_id)
    return jsonify({"ok": True, "asset": lifecycle.get_asset(asset_id).to_dict()})


@bp.route("/assets/<asset_id>", methods=["PATCH"])
def update_asset(asset_id: str):
    """
    Edit descriptive fields (admin only).

    A changed "status" is recorded as a status change in the history.
    """
    caller_id = require_caller()
    lifecycle, permissions = _services()
    permissions.ensure_admin(caller_id)

    data = request.get_json(silent=True) or {}
    asset = lifecycle.update_details(asset_id, caller_id, data)
    return jsonify({"ok": True, "asset": asset.to_dict()})


# =============================================================================
# Lifecycle
# =============================================================================

@bp.route("/assets/<asset_id>/assign", methods=["POST"])
def assign_asset(asset_id: str):
    """
    Assign an asset to a user (admin only).

    Body: {"user_id": "...", "handover_date": "YYYY-MM-DD"}
    """
    caller_id = require_caller()
    lifecycle, permissions = _services()
    permissions.ensure_admin(caller_id)

    data = request.get_json(silent=True) or {}
    event = lifecycle.assign(
        asset_id,
        data.get("user_id"),
        data.get("handover_date"),
        acting_admin_id=caller_id,
    )
    return jsonify({
        "ok": True,
        "event": format_event_for_response(event),
        "previous_user": event.previous_user,
    })


@bp.route("/assets/<asset_id>/status", methods=["POST"])
def change_asset_status(asset_id: str):
    """
    Change an asset's status (admin only).

    Body: {"status": "free" | "using" | "maintenance" | "retired"}
    """
    caller_id = require_caller()
    lifecycle, permissions = _services()
    permissions.ensure_admin(caller_id)

    data = request.get_json(silent=True) or {}
    event = lifecycle.change_status(asset_id, data.get("status"), acting_admin_id=caller_id)
    return jsonify({
        "ok": True,
        "event": format_event_for_response(event),
        "released_user": event.previous_user,
    })


@bp.route("/assets/<asset_id>/history", methods=["GET"])
def get_asset_history(asset_id: str):
    """Audit trail of an asset, newest first (admin or current assignee)."""
    caller_id = require_caller()
    store = get_entity_store()
    PermissionService(store).ensure_can_view_history(caller_id, asset_id)

    history = HistoryQueryService(store).get_history(asset_id)
    return jsonify({"ok": True, "asset_id": asset_id, "history": history})


@bp.route("/users/<user_id>/assets", methods=["GET"])
def get_assets_for_user(user_id: str):
    """Assets a user currently holds (admin, or the user themselves)."""
    caller_id = require_caller()
    lifecycle, permissions = _services()
    if caller_id != user_id:
        permissions.ensure_admin(caller_id)

    assets = lifecycle.assets_for_user(user_id)
    return jsonify({"ok": True, "assets": [asset.to_dict() for asset in assets]})
