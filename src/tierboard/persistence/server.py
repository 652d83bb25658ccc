import logging

from flask import Flask, Response, jsonify, request

from tierboard.persistence.errors import PlacementValidationError, RankingNotFoundError
from tierboard.persistence.protocols import PersistenceService
from tierboard.persistence.wire import (
    MAX_PLACEMENTS,
    display_settings_from_dict,
    ranking_base_to_dict,
    validate_placements,
)

logger = logging.getLogger(__name__)


def create_persistence_app(service: PersistenceService, *, max_placements: int = MAX_PLACEMENTS) -> Flask:
    """Create a Flask app exposing a ``PersistenceService`` over JSON.

    GET /api/rankings/<id> returns the effective base. PUT .../placements and
    PUT .../overlay replace the whole document. Unknown rankings are 404 and
    malformed bodies are 400.
    """
    app = Flask(__name__)

    @app.errorhandler(RankingNotFoundError)
    def not_found(error: RankingNotFoundError) -> tuple[Response, int]:
        return jsonify({"error": str(error)}), 404

    @app.errorhandler(PlacementValidationError)
    def invalid(error: PlacementValidationError) -> tuple[Response, int]:
        return jsonify({"error": error.message}), 400

    @app.route("/api/rankings/<ranking_id>", methods=["GET"])
    def get_ranking(ranking_id: str) -> Response:
        return jsonify(ranking_base_to_dict(service.get_effective_base(ranking_id)))

    @app.route("/api/rankings/<ranking_id>/placements", methods=["PUT"])
    def put_placements(ranking_id: str) -> tuple[Response, int]:
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            raise PlacementValidationError("Request body must be a JSON object")
        placements = validate_placements(body.get("placements"), max_placements=max_placements)
        service.replace_placements(ranking_id, placements)
        logger.info("Saved %d placements for ranking %s", len(placements), ranking_id)
        return jsonify({"success": True}), 200

    @app.route("/api/rankings/<ranking_id>/overlay", methods=["PUT"])
    def put_overlay(ranking_id: str) -> tuple[Response, int]:
        body = request.get_json(silent=True)
        if not isinstance(body, dict) or "displaySettings" not in body:
            return jsonify({"error": "displaySettings is required"}), 400
        raw = body["displaySettings"]
        if raw is not None and not isinstance(raw, dict):
            return jsonify({"error": "displaySettings must be an object or null"}), 400
        try:
            overlay = display_settings_from_dict(raw) if raw is not None else None
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            return jsonify({"error": f"Malformed displaySettings: {e}"}), 400
        service.replace_overlay(ranking_id, overlay)
        logger.info("Saved overlay for ranking %s", ranking_id)
        return jsonify({"success": True}), 200

    return app
