# Overview: JSON response helpers shared by the route modules.

from flask import jsonify

from .services.results import ActionResult


def action_response(result: ActionResult, success_status: int = 200):
    """{success, message, data?}; 200 (or ``success_status``) on success, 400 otherwise."""
    return jsonify(result.to_dict()), (success_status if result.success else 400)


def not_found(message: str):
    return jsonify({"error": message}), 404


def server_error():
    return jsonify({"error": "Internal server error"}), 500
