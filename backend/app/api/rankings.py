from flask import Blueprint, jsonify, request, current_app
from app import socketio
from app.services.rankings import Contention, InvalidInput, StoreUnavailable


rankings = Blueprint('rankings', __name__)


def _engine():
    return current_app.extensions['rankings']


@rankings.route('', methods=['GET'])
def list_rankings():
    try:
        entries = _engine().list()
    except StoreUnavailable as exc:
        current_app.logger.error(f"[rankings-list] store unavailable: {exc}")
        return jsonify({'rankings': [], 'error': 'Rankings store unavailable'}), 503
    return jsonify({'rankings': [e.to_dict() for e in entries]})


@rankings.route('', methods=['POST'])
def submit_score():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'Missing fields'}), 400

    try:
        result = _engine().submit(
            data.get('id'),
            data.get('name'),
            data.get('score'),
            depth=data.get('depth'),
        )
    except InvalidInput as exc:
        return jsonify({'error': str(exc), 'fields': exc.fields}), 400
    except Contention as exc:
        return jsonify({'error': 'Leaderboard is busy, please retry', 'attempts': exc.attempts}), 409
    except StoreUnavailable as exc:
        current_app.logger.error(f"[rankings-submit] store unavailable: {exc}")
        return jsonify({'error': 'Rankings store unavailable'}), 503

    entries = [e.to_dict() for e in result.entries]

    # Emit live update to everyone watching the board
    socketio.emit('rankings_update', {'rankings': entries}, to='rankings', namespace='/ws')

    return jsonify({'success': True, 'rank': result.rank, 'rankings': entries})
