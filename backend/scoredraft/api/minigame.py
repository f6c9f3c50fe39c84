from flask import Blueprint, jsonify, request, current_app
from scoredraft import socketio
from scoredraft.api import params
from scoredraft.models import GameSession, GoldenLock, Pick, ScoreRecord, SessionState
from scoredraft.services.minigame.golden import lock_golden
from scoredraft.services.minigame.lifecycle import (
    ensure_startable,
    get_session,
    join_lobby,
    leave_lobby,
    start_session,
)
from scoredraft.services.minigame.picks import submit_pick
from scoredraft.services.minigame.scoring import recalculate_session
from scoredraft.services.minigame.turns import draft_schedule, turn_slot


minigame = Blueprint('minigame', __name__)


def _body():
    return request.get_json(silent=True) or {}


def _field(data, name, legacy=None):
    # Older web clients post camelCase keys (roomCode, leaderUid, fixtureId)
    value = data.get(name)
    if value is None and legacy:
        value = data.get(legacy)
    return value


def _room_and_gw(data):
    return params.room_code(_field(data, 'room_code', 'roomCode')), params.gameweek(data.get('gw'))


def _emit_state(room_code, gw, state=None):
    socketio.emit(
        'state_update',
        {'room_code': room_code, 'gameweek': gw, 'state': state},
        to=f"session:{room_code}:{gw}",
        namespace='/ws',
    )


def session_view(session: GameSession) -> dict:
    """Client view of a session: turn pointer, picks, locks and scores."""
    payload = session.to_dict()
    players = payload['players']
    fixtures = payload['fixture_ids']
    revealed = session.state == SessionState.REVEAL.value

    slot = turn_slot(players, fixtures, session.current_turn) if session.state == SessionState.DRAFT.value else None
    payload['active_player'] = slot.player if slot else None
    payload['active_fixture_id'] = slot.fixture_id if slot else None
    payload['schedule'] = [
        {'turn': s.turn, 'fixture_id': s.fixture_id, 'uid': s.player}
        for s in draft_schedule(players, fixtures)
    ]
    payload['lobby'] = [e.to_dict() for e in sorted(session.lobby, key=lambda e: e.joined_at)]
    payload['picks'] = [
        p.to_dict() for p in Pick.query.filter_by(session_id=session.id).order_by(Pick.id).all()
    ]
    locks = GoldenLock.query.filter_by(session_id=session.id).order_by(GoldenLock.id).all()
    payload['golden'] = [g.to_dict(reveal=revealed) for g in locks]
    payload['locked_count'] = sum(1 for g in locks if g.locked)
    payload['scores'] = [
        r.to_dict() for r in ScoreRecord.query.filter_by(session_id=session.id).order_by(ScoreRecord.uid).all()
    ]
    return payload


@minigame.route('/lobby/join', methods=['POST'])
def lobby_join():
    data = _body()
    rc, gw = _room_and_gw(data)
    user_uid = params.uid(data.get('uid'))
    session = join_lobby(rc, gw, user_uid)
    _emit_state(rc, gw, session.state)
    return jsonify({'ok': True, 'lobby': [e.to_dict() for e in session.lobby]})


@minigame.route('/lobby/leave', methods=['POST'])
def lobby_leave():
    data = _body()
    rc, gw = _room_and_gw(data)
    user_uid = params.uid(data.get('uid'))
    leave_lobby(rc, gw, user_uid)
    _emit_state(rc, gw)
    return jsonify({'ok': True})


@minigame.route('/start', methods=['POST'])
def start_game():
    data = _body()
    rc, gw = _room_and_gw(data)
    leader_uid = params.uid(_field(data, 'leader_uid', 'leaderUid'), field='leaderUid')
    ensure_startable(rc, gw, leader_uid)
    # Fixtures come from upstream before the transaction opens
    fixture_ids = current_app.extensions['football_data'].fixture_ids(gw)
    session = start_session(rc, gw, leader_uid, None, fixture_ids)
    _emit_state(rc, gw, session.state)
    return jsonify({'ok': True, 'game': session_view(session)})


@minigame.route('/pick', methods=['POST'])
def pick():
    data = _body()
    rc, gw = _room_and_gw(data)
    user_uid = params.uid(data.get('uid'))
    session, _ = submit_pick(rc, gw, user_uid, data.get('score'))
    _emit_state(rc, gw, session.state)
    return jsonify({'ok': True, 'game': session_view(session)})


@minigame.route('/golden', methods=['POST'])
def golden():
    data = _body()
    rc, gw = _room_and_gw(data)
    user_uid = params.uid(data.get('uid'))
    fx_id = params.fixture_id(_field(data, 'fixture_id', 'fixtureId'))
    session, _ = lock_golden(rc, gw, user_uid, fx_id, data.get('score'))
    _emit_state(rc, gw, session.state)
    return jsonify({'ok': True, 'game': session_view(session)})


@minigame.route('/score', methods=['POST'])
def score():
    data = _body()
    rc, gw = _room_and_gw(data)
    scored = recalculate_session(rc, gw)
    if scored:
        _emit_state(rc, gw)
        return jsonify({'ok': True, 'scored': scored})
    return jsonify({'ok': True, 'scored': 0, 'message': 'No finished results yet.'})


@minigame.route('/<string:room_code>/<int:gw>/state', methods=['GET'])
def get_state(room_code, gw):
    rc = params.room_code(room_code)
    gw = params.gameweek(gw)
    return jsonify(session_view(get_session(rc, gw)))
