from datetime import datetime, timezone

from flask import Blueprint, jsonify, request, current_app
from scoredraft.api import params


fixtures = Blueprint('fixtures', __name__)


@fixtures.route('/fixtures', methods=['GET'])
def list_fixtures():
    gw = params.gameweek(request.args.get('gameweek'))
    items = current_app.extensions['football_data'].fixtures(gw)
    payload = {
        'generated_at': datetime.now(timezone.utc).isoformat(),
        'gameweek': gw,
        'fixtures': items,
    }
    if not items:
        payload['note'] = 'No fixtures published for this gameweek yet.'
    return jsonify(payload)


@fixtures.route('/current-gameweek', methods=['GET'])
def current_gameweek():
    gw = current_app.extensions['football_data'].current_gameweek()
    return jsonify({'current_gameweek': gw})
