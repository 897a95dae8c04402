# Overview: Flask API routes for orders and archival.

from flask import Blueprint, current_app, jsonify, request

from ..extensions import db
from ..services import order_service
from ..services.errors import TrackerError


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


def _truthy(value: str | None) -> bool:
    return (value or "").lower() in {"1", "true", "yes"}


@orders_bp.get("")
def list_orders_route():
    include_archived = _truthy(request.args.get("include_archived"))
    orders = order_service.list_orders(db.session, include_archived=include_archived)
    return jsonify({"orders": [o.to_dict(include_line_items=True) for o in orders]}), 200


@orders_bp.get("/archived")
def list_archived_orders_route():
    orders = order_service.list_archived_orders(db.session)
    return jsonify({"orders": [o.to_dict(include_line_items=True) for o in orders]}), 200


@orders_bp.delete("/archived")
def delete_archived_orders_route():
    """Permanently delete archived orders. Not reversible."""
    try:
        deleted = order_service.delete_archived(db.session)
        return jsonify({"deleted_count": deleted, "message": f"Deleted {deleted} archived order(s)"}), 200
    except TrackerError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to delete archived orders")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/archive-fulfilled")
def archive_all_fulfilled_route():
    try:
        count = order_service.archive_all_fulfilled(db.session)
        return jsonify({"archived_count": count, "message": f"Archived {count} fulfilled order(s)"}), 200
    except TrackerError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to archive fulfilled orders")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/unarchive-all")
def unarchive_all_route():
    try:
        count = order_service.unarchive_all(db.session)
        return jsonify({"unarchived_count": count, "message": f"Restored {count} order(s)"}), 200
    except TrackerError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to unarchive orders")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/<path:order_id>")
def get_order_route(order_id: str):
    order = order_service.get_order(db.session, order_id)
    if order is None:
        return jsonify({"error": "Order not found", "code": "not_found"}), 404
    return jsonify({"order": order.to_dict(include_line_items=True)}), 200


@orders_bp.post("/<path:order_id>/archive")
def archive_order_route(order_id: str):
    try:
        result = order_service.archive(db.session, order_id)
        message = "Order already archived" if result.already_archived else "Order archived successfully"
        return jsonify({"message": message, "already_archived": result.already_archived}), 200
    except TrackerError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to archive order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/<path:order_id>/unarchive")
def unarchive_order_route(order_id: str):
    try:
        result = order_service.unarchive(db.session, order_id)
        message = "Order is not archived" if result.not_archived else "Order restored successfully"
        return jsonify({"message": message, "not_archived": result.not_archived, "status": result.status}), 200
    except TrackerError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to unarchive order")
        return jsonify({"error": "Internal server error"}), 500
