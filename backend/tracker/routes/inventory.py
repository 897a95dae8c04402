# Overview: Flask API routes for shop inventory levels.

from flask import Blueprint, current_app, jsonify, request

from ..extensions import db
from ..services import inventory_service
from ..services.errors import TrackerError


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


def _truthy(value: str | None) -> bool:
    return (value or "").lower() in {"1", "true", "yes"}


@inventory_bp.get("")
def list_inventory_route():
    """
    List inventory, out-of-stock first.

    Query: out_of_stock=1 to keep only quantity <= 0; search=<text> to match
    product title, variant title or SKU.
    """
    items = inventory_service.list_inventory(
        db.session,
        out_of_stock_only=_truthy(request.args.get("out_of_stock")),
        search=request.args.get("search", ""),
    )
    return jsonify({"inventory": [i.to_dict() for i in items]}), 200


@inventory_bp.get("/stats")
def inventory_stats_route():
    return jsonify(inventory_service.inventory_stats(db.session).to_dict()), 200


@inventory_bp.put("")
def load_inventory_route():
    """Bulk upsert. Body: {"inventory": [{"variantId", "inventoryQuantity", ...}]}"""
    try:
        records = inventory_service.parse_inventory(request.get_json(silent=True) or {})
        count = inventory_service.bulk_upsert_inventory(db.session, records)
        return jsonify({"upserted_count": count}), 200
    except TrackerError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to load inventory")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.delete("")
def clear_inventory_route():
    try:
        deleted = inventory_service.clear_inventory(db.session)
        return jsonify({"deleted_count": deleted}), 200
    except TrackerError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to clear inventory")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.get("/<path:variant_id>")
def get_inventory_route(variant_id: str):
    item = inventory_service.get_inventory(db.session, variant_id)
    if item is None:
        return jsonify({"error": "Inventory record not found", "code": "not_found"}), 404
    return jsonify({"inventory": item.to_dict()}), 200
