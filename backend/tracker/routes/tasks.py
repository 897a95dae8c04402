# Overview: Flask API routes for production tasks; parses input and returns JSON responses.

from flask import Blueprint, current_app, jsonify, request

from ..extensions import db
from ..services import production_service, task_service
from ..services.errors import TrackerError


tasks_bp = Blueprint("tasks", __name__, url_prefix="/api/tasks")


def _store_url():
    return current_app.config.get("SHOPIFY_STORE_URL")


@tasks_bp.get("")
def list_tasks_route():
    tasks = task_service.list_tasks(db.session)
    return jsonify({"tasks": [t.to_dict() for t in tasks]}), 200


@tasks_bp.get("/<path:variant_id>")
def get_task_route(variant_id: str):
    task = task_service.get_task(db.session, variant_id)
    if task is None:
        return jsonify({"error": "Task not found", "code": "not_found"}), 404
    return jsonify({"task": task.to_dict()}), 200


@tasks_bp.post("/<path:variant_id>/produced")
def mark_produced_route(variant_id: str):
    """
    Record produced units for a variant and allocate them to the oldest orders.

    Body: {"quantity": <positive int>}
    """
    data = request.get_json(silent=True) or {}
    try:
        result = production_service.mark_produced(db.session, variant_id, data.get("quantity"))
        return jsonify(result.to_dict(store_url=_store_url())), 200
    except TrackerError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to mark produced")
        return jsonify({"error": "Internal server error"}), 500


@tasks_bp.post("/<path:variant_id>/complete")
def mark_complete_route(variant_id: str):
    try:
        result = production_service.mark_complete(db.session, variant_id)
        return jsonify(result.to_dict(store_url=_store_url())), 200
    except TrackerError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to mark task complete")
        return jsonify({"error": "Internal server error"}), 500


@tasks_bp.post("/<path:variant_id>/reset")
def reset_task_route(variant_id: str):
    try:
        result = production_service.reset_task(db.session, variant_id)
        return jsonify(result.to_dict()), 200
    except TrackerError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception:
        current_app.logger.exception("Failed to reset task")
        return jsonify({"error": "Internal server error"}), 500
