# vaultclash/routes.py
from flask import Blueprint, jsonify, request

from . import state
from .engine.errors import ChannelError
from .engine.models import PublishedMoveRecord

battle_bp = Blueprint("battle", __name__, url_prefix="/battle")


@battle_bp.route("/rounds/<round_id>/moves", methods=["POST"])
def publish_move(round_id):
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict) or not payload.get("actor_id"):
        return jsonify({"error": "actor_id is required"}), 400
    record = PublishedMoveRecord.from_dict(payload)
    record.processed_by = []
    try:
        record_id = state.channel.publish_move(round_id, record)
    except ChannelError as exc:
        return jsonify({"error": str(exc)}), 409
    return jsonify({"id": record_id}), 201


@battle_bp.route("/rounds/<round_id>/moves", methods=["GET"])
def poll_moves(round_id):
    self_id = request.args.get("self")
    if not self_id:
        return jsonify({"error": "self is required"}), 400
    records = state.channel.poll_unprocessed_moves(round_id, self_id)
    records.sort(key=lambda r: r.timestamp)
    return jsonify({"moves": [r.to_dict() for r in records]})


@battle_bp.route("/moves/<record_id>/processed", methods=["POST"])
def mark_processed(record_id):
    payload = request.get_json(silent=True) or {}
    self_id = payload.get("self")
    if not self_id:
        return jsonify({"error": "self is required"}), 400
    try:
        state.channel.mark_processed(record_id, self_id)
    except ChannelError as exc:
        return jsonify({"error": str(exc)}), 404
    return jsonify({"id": record_id, "processed_by": self_id})


@battle_bp.route("/moves/<name>", methods=["GET"])
def get_move(name):
    if not state.catalog.has_move(name) and name not in state.override_records:
        return jsonify({"error": f"unknown move '{name}'"}), 404
    return jsonify(state.catalog.describe(name))


@battle_bp.route("/overrides/<name>", methods=["PUT"])
def put_override(name):
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"error": "override must be a JSON object"}), 400
    state.override_records[name] = payload
    state.catalog.cache.invalidate()
    return jsonify(state.catalog.describe(name))


@battle_bp.route("/overrides/<name>", methods=["DELETE"])
def delete_override(name):
    if state.override_records.pop(name, None) is None:
        return jsonify({"error": f"no override for '{name}'"}), 404
    state.catalog.cache.invalidate()
    return "", 204
