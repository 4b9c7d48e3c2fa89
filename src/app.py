"""
Flask JSON API for Bracket Runner.

Builds brackets, records winners, keeps saved tournaments and serves
read-only share links. All bracket logic lives in bracket.elimination.
"""
import os
import uuid
import logging
from flask import Flask, request, jsonify, url_for
from bracket.models import Contestant, Tournament
from bracket.elimination import (
    InvalidInputError,
    generate_bracket,
    advance_winner,
    change_match_winner,
    update_match_report,
    get_matches_by_round,
    get_active_matches,
    get_round_label,
    move_contestant,
)
from bracket.persistence import TournamentRepository, PHASE_TOURNAMENT, PHASE_COMPLETE
from bracket.sharing import ShareService
from bracket.storage import FileStore

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('BRACKET_DATA_DIR', os.path.join(BASE_DIR, 'data'))
SAVES_DIR = os.path.join(DATA_DIR, 'saves')
SHARED_DIR = os.path.join(DATA_DIR, 'shared-tournaments')
MAX_SAVED_TOURNAMENTS = int(os.environ.get('MAX_SAVED_TOURNAMENTS', '10'))

if os.environ.get('BRACKET_LOG_LEVEL'):
    app.logger.setLevel(os.environ['BRACKET_LOG_LEVEL'].upper())
    logging.getLogger('bracket').setLevel(os.environ['BRACKET_LOG_LEVEL'].upper())


def get_repository() -> TournamentRepository:
    """Repository over the saves directory (re-read so tests can point it elsewhere)."""
    return TournamentRepository(FileStore(SAVES_DIR), max_saved=MAX_SAVED_TOURNAMENTS)


def get_share_service() -> ShareService:
    return ShareService(FileStore(SHARED_DIR))


def parse_contestants(names) -> tuple:
    """Turn submitted names into contestants. Returns (contestants, error)."""
    if not isinstance(names, list):
        return None, 'Contestants must be a list of names'
    contestants = []
    seen = set()
    for raw in names:
        name = str(raw).strip() if raw is not None else ''
        if not name:
            continue
        if name.lower() in seen:
            return None, f'Duplicate contestant name: {name}'
        seen.add(name.lower())
        contestants.append(Contestant(id=str(uuid.uuid4()), name=name))
    if len(contestants) < 2:
        return None, 'Tournament requires at least 2 contestants'
    return contestants, None


def _load_saved(tournament_id):
    try:
        return get_repository().load(tournament_id)
    except ValueError:
        return None


def _not_found():
    return jsonify({'success': False, 'error': 'Tournament not found'}), 404


def _phase_for(tournament: Tournament) -> str:
    return PHASE_COMPLETE if tournament.is_complete else PHASE_TOURNAMENT


@app.route('/api/tournaments', methods=['POST'])
def api_create_tournament():
    """Build a bracket from a list of names and save it.

    mode: "random" shuffles the seeds, "ordered" keeps the submitted order.
    """
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'success': False, 'error': 'No data provided'}), 400

    contestants, error = parse_contestants(data.get('contestants', []))
    if error:
        return jsonify({'success': False, 'error': error}), 400

    mode = data.get('mode', 'random')
    if mode not in ('random', 'ordered'):
        return jsonify({'success': False, 'error': f'Unknown mode: {mode}'}), 400

    try:
        tournament = generate_bracket(contestants, shuffle=(mode == 'random'))
    except InvalidInputError as e:
        return jsonify({'success': False, 'error': str(e)}), 400

    saved = get_repository().save(data.get('name', ''), tournament, PHASE_TOURNAMENT, contestants)
    app.logger.info(f'Created tournament {tournament.id} with {len(contestants)} contestants')
    return jsonify(saved.to_dict()), 201


@app.route('/api/tournaments', methods=['GET'])
def api_list_tournaments():
    return jsonify([saved.to_dict() for saved in get_repository().list()])


@app.route('/api/tournaments/<tournament_id>', methods=['GET'])
def api_get_tournament(tournament_id):
    saved = _load_saved(tournament_id)
    if saved is None:
        return _not_found()
    return jsonify(saved.to_dict())


@app.route('/api/tournaments/<tournament_id>', methods=['DELETE'])
def api_delete_tournament(tournament_id):
    saved = _load_saved(tournament_id)
    if saved is None:
        return _not_found()
    get_repository().delete(tournament_id)
    app.logger.info(f'Deleted tournament {tournament_id}')
    return jsonify({'success': True})


@app.route('/api/tournaments/<tournament_id>/rounds/<int:round_number>', methods=['GET'])
def api_round_matches(tournament_id, round_number):
    saved = _load_saved(tournament_id)
    if saved is None:
        return _not_found()
    tournament = saved.tournament
    if round_number < 1 or round_number > tournament.total_rounds:
        return jsonify({'success': False, 'error': 'Round not found'}), 404
    return jsonify({
        'round': round_number,
        'name': get_round_label(tournament, round_number),
        'matches': [m.to_dict() for m in get_matches_by_round(tournament, round_number)],
    })


@app.route('/api/tournaments/<tournament_id>/active', methods=['GET'])
def api_active_matches(tournament_id):
    saved = _load_saved(tournament_id)
    if saved is None:
        return _not_found()
    return jsonify([m.to_dict() for m in get_active_matches(saved.tournament)])


@app.route('/api/tournaments/<tournament_id>/matches/<match_id>/winner', methods=['POST'])
def api_select_winner(tournament_id, match_id):
    """Record a winner. A finished match gets its winner changed and dependents reset."""
    saved = _load_saved(tournament_id)
    if saved is None:
        return _not_found()

    tournament = saved.tournament
    match = tournament.matches.get(match_id)
    if match is None:
        return jsonify({'success': False, 'error': 'Match not found'}), 404
    if match.is_bye or not (match.is_finished or match.is_ready):
        return jsonify({'success': False, 'error': 'Match is not ready'}), 400

    data = request.get_json(silent=True) or {}
    contestant_id = data.get('contestant_id')
    winner = next((c for c in (match.contestant1, match.contestant2)
                   if c is not None and c.id == contestant_id), None)
    if winner is None:
        return jsonify({'success': False, 'error': 'Winner must be one of the match contestants'}), 400

    if match.is_finished:
        updated = change_match_winner(tournament, match_id, winner)
    else:
        updated = advance_winner(tournament, match_id, winner)

    saved = get_repository().auto_save(updated, _phase_for(updated), saved.contestants)
    if updated.is_complete:
        app.logger.info(f'Tournament {tournament_id} complete, winner {updated.winner.name}')
    return jsonify(saved.to_dict())


@app.route('/api/tournaments/<tournament_id>/matches/<match_id>/report', methods=['POST'])
def api_update_report(tournament_id, match_id):
    saved = _load_saved(tournament_id)
    if saved is None:
        return _not_found()
    if match_id not in saved.tournament.matches:
        return jsonify({'success': False, 'error': 'Match not found'}), 404

    data = request.get_json(silent=True) or {}
    report = data.get('report', '')
    if not isinstance(report, str):
        return jsonify({'success': False, 'error': 'Report must be text'}), 400

    updated = update_match_report(saved.tournament, match_id, report)
    saved = get_repository().save(saved.name, updated, saved.phase, saved.contestants)
    return jsonify(saved.to_dict())


@app.route('/api/seed-order/move', methods=['POST'])
def api_move_seed():
    """Manual bracket setup: move one contestant within a seed order."""
    data = request.get_json(silent=True) or {}
    try:
        contestants = [Contestant.from_dict(c) for c in data.get('contestants', [])]
        order = move_contestant(contestants, int(data.get('from')), int(data.get('to')))
    except (InvalidInputError, KeyError, TypeError, ValueError) as e:
        return jsonify({'success': False, 'error': str(e) or 'Invalid seed move'}), 400
    return jsonify([c.to_dict() for c in order])


@app.route('/api/tournament/share', methods=['POST'])
def api_share_tournament():
    data = request.get_json(silent=True)
    if not data or not data.get('id'):
        return jsonify({'success': False, 'error': 'Invalid tournament data'}), 400
    try:
        tournament = Tournament.from_dict(data)
        share_id = get_share_service().share(tournament)
    except (InvalidInputError, KeyError, TypeError, ValueError) as e:
        app.logger.warning(f'Error sharing tournament: {e}')
        return jsonify({'success': False, 'error': 'Invalid tournament data'}), 400

    return jsonify({
        'success': True,
        'share_id': share_id,
        'share_url': url_for('api_get_shared_tournament', share_id=share_id, _external=True),
    })


@app.route('/api/tournament/<share_id>', methods=['GET'])
def api_get_shared_tournament(share_id):
    tournament = get_share_service().get(share_id)
    if tournament is None:
        return jsonify({'success': False, 'error': 'Tournament not found or not public'}), 404
    return jsonify(tournament.to_dict())


if __name__ == '__main__':
    app.run(debug=True, port=5000)
