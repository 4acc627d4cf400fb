"""
JSON API for the tournament bracket engine.

Thin layer over TournamentManager: parses request bodies, maps engine
errors to status codes, and serializes tournaments with to_dict().
"""
import os
import logging
from flask import Flask, request, jsonify

from bracket.errors import TournamentError, InvalidInput
from bracket.models import TOURNAMENT_STATUSES
from bracket.store import TournamentStore
from bracket.tournament import (
    TournamentManager,
    get_playable_matches,
    get_round_names,
    get_tournament_winner,
    resolve_team_slot,
)

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('TOURNAMENT_DATA_DIR', os.path.join(BASE_DIR, 'data'))

logging.basicConfig(level=os.environ.get('LOG_LEVEL', 'INFO'))

_manager = None


def get_manager() -> TournamentManager:
    """Lazily build the manager so tests can point DATA_DIR elsewhere first."""
    global _manager
    if _manager is None or _manager.store.data_dir != DATA_DIR:
        _manager = TournamentManager(TournamentStore(DATA_DIR))
    return _manager


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidInput('Request body must be a JSON object')
    return data


def _match_view(match, tournament) -> dict:
    view = match.to_dict()
    view['team1_name'] = resolve_team_slot(match.team1, tournament)
    view['team2_name'] = resolve_team_slot(match.team2, tournament)
    return view


@app.errorhandler(TournamentError)
def handle_tournament_error(error):
    app.logger.info(f'{type(error).__name__}: {error.message}')
    return jsonify({'error': error.message}), error.status_code


@app.route('/api/tournaments', methods=['POST'])
def api_create_tournament():
    data = _json_body()
    team_names = data.get('team_names')
    if not isinstance(team_names, list):
        raise InvalidInput('team_names must be a list')
    team_names = [str(name).strip() for name in team_names]
    if any(not name for name in team_names):
        raise InvalidInput('Team names must not be blank')
    if len(set(team_names)) != len(team_names):
        raise InvalidInput('Team names must be unique')

    tournament = get_manager().create_tournament(
        data.get('name', 'Tournament'),
        data.get('type', 'single-elimination'),
        team_names,
        seeding_method=data.get('seeding_method', 'manual'),
        question_sets_by_round=data.get('question_sets_by_round'),
        dataset_id=data.get('dataset_id', ''),
    )
    return jsonify(tournament.to_dict()), 201


@app.route('/api/tournaments', methods=['GET'])
def api_list_tournaments():
    status = request.args.get('status')
    if status and status not in TOURNAMENT_STATUSES:
        raise InvalidInput(f'Unknown status: {status}')
    tournaments = get_manager().list_tournaments(status or None)
    return jsonify({'tournaments': [
        {
            'tournament_id': t.tournament_id,
            'name': t.name,
            'type': t.type,
            'status': t.status,
            'team_count': len(t.team_names),
            'created_at': t.created_at,
            'updated_at': t.updated_at,
        }
        for t in tournaments
    ]})


@app.route('/api/tournaments/<tournament_id>', methods=['GET'])
def api_get_tournament(tournament_id):
    tournament = get_manager().get_tournament(tournament_id)
    return jsonify(tournament.to_dict())


@app.route('/api/tournaments/<tournament_id>', methods=['DELETE'])
def api_delete_tournament(tournament_id):
    get_manager().delete_tournament(tournament_id)
    return jsonify({'success': True})


@app.route('/api/tournaments/<tournament_id>/matches/<match_id>/result', methods=['POST'])
def api_record_result(tournament_id, match_id):
    data = _json_body()
    try:
        team1_score = int(data['team1_score'])
        team2_score = int(data['team2_score'])
    except (KeyError, TypeError, ValueError):
        raise InvalidInput('team1_score and team2_score must be integers')

    tournament = get_manager().record_match_result(
        tournament_id, match_id, team1_score, team2_score,
        played_locally=bool(data.get('played_locally', True)),
    )
    return jsonify(tournament.to_dict())


@app.route('/api/tournaments/<tournament_id>/playable', methods=['GET'])
def api_playable_matches(tournament_id):
    tournament = get_manager().get_tournament(tournament_id)
    matches = sorted(get_playable_matches(tournament), key=lambda m: m.quiz_number)
    return jsonify({'matches': [_match_view(m, tournament) for m in matches]})


@app.route('/api/tournaments/<tournament_id>/winner', methods=['GET'])
def api_tournament_winner(tournament_id):
    tournament = get_manager().get_tournament(tournament_id)
    return jsonify({'status': tournament.status, 'winner': get_tournament_winner(tournament)})


@app.route('/api/tournaments/<tournament_id>/repair', methods=['POST'])
def api_repair_tournament(tournament_id):
    tournament = get_manager().repair_tournament(tournament_id)
    return jsonify(tournament.to_dict())


@app.route('/api/round-names', methods=['GET'])
def api_round_names():
    try:
        team_count = int(request.args.get('count', 0))
    except ValueError:
        raise InvalidInput('count must be an integer')
    tournament_type = request.args.get('type', 'single-elimination')
    names = get_round_names(team_count, tournament_type)
    return jsonify({'round_names': names, 'round_count': len(names)})


if __name__ == '__main__':
    app.run(debug=os.environ.get('FLASK_DEBUG') == '1', port=int(os.environ.get('PORT', 5000)))
