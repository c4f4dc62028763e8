import os
import logging
from flask import Flask, request, jsonify

from shared.errors import CollaboratorUnavailable, InvalidInput
from .config import config
from .facade import EnrichmentService

logger = logging.getLogger(__name__)


def create_app(config_name: str = None, service: EnrichmentService = None) -> Flask:
    """Application factory for the bracket view service."""
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config[config_name])
    app.json.sort_keys = app.config['JSON_SORT_KEYS']

    # Store the service on app for access in routes
    app.enrichment = service or EnrichmentService.from_config(app.config)

    register_error_handlers(app)
    register_api_routes(app)

    return app


def register_error_handlers(app: Flask):
    """Map enrichment failures onto JSON error responses."""

    @app.errorhandler(InvalidInput)
    def handle_invalid_input(e: InvalidInput):
        return jsonify({'error': e.reason, 'field': e.field}), 400

    @app.errorhandler(CollaboratorUnavailable)
    def handle_collaborator_unavailable(e: CollaboratorUnavailable):
        logger.error(f"{e.service} request failed: {e.reason}")
        if e.status_code == 404:
            return jsonify({'error': 'Not found', 'detail': e.reason}), 404
        return jsonify({'error': e.reason, 'service': e.service}), 502


def register_api_routes(app: Flask):
    """Register API routes."""

    @app.route('/api/v1/health', methods=['GET'])
    def api_health():
        return jsonify({
            'status': 'healthy',
            'stats_annotation': app.enrichment.stats is not None
        })

    @app.route('/api/v1/qualification', methods=['GET'])
    def api_qualification():
        """Qualification system explanation, optionally for one round code."""
        return jsonify(app.enrichment.qualification(request.args.get('round_code')))

    # ==================== Tournament views ====================

    @app.route('/api/v1/tournaments/<tournament_id>', methods=['GET'])
    def api_get_tournament(tournament_id: str):
        """Full tournament snapshot with names, profiles and Statsbook data."""
        return jsonify(app.enrichment.tournament(tournament_id))

    @app.route('/api/v1/tournaments/<tournament_id>/bracket', methods=['GET'])
    def api_get_bracket(tournament_id: str):
        """Bracket grouped by round with progress, champions and standings."""
        return jsonify(app.enrichment.bracket(tournament_id))

    @app.route('/api/v1/tournaments/<tournament_id>/bracket/round', methods=['GET'])
    def api_get_bracket_round(tournament_id: str):
        """Games of one round, optionally restricted to winners or losers."""
        return jsonify(app.enrichment.bracket_round(
            tournament_id,
            request.args.get('round'),
            request.args.get('bracket_type', 'all')
        ))

    @app.route('/api/v1/tournaments/<tournament_id>/standings', methods=['GET'])
    def api_get_standings(tournament_id: str):
        return jsonify(app.enrichment.standings(tournament_id))

    # ==================== Games ====================

    @app.route('/api/v1/tournaments/<tournament_id>/games', methods=['GET'])
    def api_list_games(tournament_id: str):
        return jsonify(app.enrichment.games(tournament_id))

    @app.route('/api/v1/tournaments/<tournament_id>/games/<game_id>', methods=['GET'])
    def api_get_game(tournament_id: str, game_id: str):
        return jsonify(app.enrichment.game(tournament_id, game_id))

    # ==================== Players ====================

    @app.route('/api/v1/tournaments/<tournament_id>/players', methods=['GET'])
    def api_list_players(tournament_id: str):
        return jsonify(app.enrichment.players(tournament_id))

    @app.route('/api/v1/tournaments/<tournament_id>/players/<player_id>', methods=['GET'])
    def api_get_player(tournament_id: str, player_id: str):
        return jsonify(app.enrichment.player(tournament_id, player_id))

    # ==================== Locations ====================

    @app.route('/api/v1/tournaments/<tournament_id>/locations', methods=['GET'])
    def api_list_locations(tournament_id: str):
        return jsonify(app.enrichment.locations(tournament_id))

    @app.route('/api/v1/tournaments/<tournament_id>/locations/<location_id>', methods=['GET'])
    def api_get_location(tournament_id: str, location_id: str):
        return jsonify(app.enrichment.location(tournament_id, location_id))
