# Overview: Flask API routes for running a sync, reading sync history and the auto-sync settings.

from flask import Blueprint, current_app, jsonify, request

from ..extensions import db
from ..services import settings_service, sync_service
from ..services.errors import TrackerError
from ..services.order_source import FileOrderSource, PayloadOrderSource


sync_bp = Blueprint("sync", __name__, url_prefix="/api/sync")


@sync_bp.post("")
def run_sync_route():
    """
    Run one sync cycle.

    A JSON body ({"orders": [...]}) is used as the order source; without one
    the configured ORDER_SOURCE_PATH export is read.
    """
    payload = request.get_json(silent=True)
    if payload:
        source = PayloadOrderSource(payload)
    else:
        path = current_app.config.get("ORDER_SOURCE_PATH")
        if not path:
            return jsonify({"error": "No order payload and ORDER_SOURCE_PATH is not configured"}), 400
        source = FileOrderSource(path)

    try:
        result = sync_service.run_sync(db.session, source)
        return jsonify(result.to_dict()), 200
    except TrackerError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to sync orders")
        return jsonify({"error": "Internal server error"}), 500


@sync_bp.get("/history")
def sync_history_route():
    limit = request.args.get("limit", type=int) or current_app.config.get("SYNC_HISTORY_LIMIT", 10)
    entries = sync_service.get_sync_history(db.session, limit=limit)
    return jsonify({"history": [e.to_dict() for e in entries]}), 200


@sync_bp.get("/settings")
def get_sync_settings_route():
    settings = settings_service.get_auto_sync_settings(db.session)
    return jsonify(settings.to_dict()), 200


@sync_bp.put("/settings")
def save_sync_settings_route():
    """Body: {"enabled": bool, "interval_minutes": int >= 1}"""
    data = request.get_json(silent=True) or {}
    try:
        settings = settings_service.save_auto_sync_settings(
            db.session,
            enabled=bool(data.get("enabled", False)),
            interval_minutes=data.get("interval_minutes"),
        )
        return jsonify(settings.to_dict()), 200
    except TrackerError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to save sync settings")
        return jsonify({"error": "Internal server error"}), 500
