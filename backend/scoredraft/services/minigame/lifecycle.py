import json
import random
from typing import Dict, List, Optional, Sequence, Tuple

from flask import current_app

from scoredraft import db
from scoredraft.errors import (
    AlreadyStarted,
    NoFixtures,
    NotAMember,
    NotEnoughPlayers,
    NotFoundError,
    NotLeader,
    WrongPhase,
)
from scoredraft.models import GameSession, LobbyEntry, Room, SessionState, utcnow
from scoredraft.services.store import run_transaction
from .turns import total_turns

# event -> (required source state, resulting state)
TRANSITIONS: Dict[str, Tuple[SessionState, SessionState]] = {
    'start': (SessionState.LOBBY, SessionState.DRAFT),
    'draft_complete': (SessionState.DRAFT, SessionState.GOLDEN),
    'golden_complete': (SessionState.GOLDEN, SessionState.REVEAL),
}

PHASE_MESSAGES = {
    SessionState.DRAFT: 'Game not in DRAFT',
    SessionState.GOLDEN: 'Not in GOLDEN phase',
}


def require_state(session: GameSession, state: SessionState) -> None:
    if session.state != state.value:
        raise WrongPhase(PHASE_MESSAGES.get(state, f'Game not in {state.value}'))


def transition(session: GameSession, event: str) -> None:
    source, target = TRANSITIONS[event]
    if session.state != source.value:
        raise WrongPhase(f'Cannot {event} from {session.state}')
    session.state = target.value
    current_app.logger.info(
        f"[transition] room={session.room.code} gw={session.gameweek} {source.value} -> {target.value} ({event})"
    )


def seeded_shuffle(players: Sequence[str], seed: int) -> List[str]:
    order = list(players)
    random.Random(seed).shuffle(order)
    return order


def get_room(room_code: str) -> Room:
    room = Room.query.filter_by(code=room_code).first()
    if not room:
        raise NotFoundError('Room not found')
    return room


def find_session(room: Room, gameweek: int) -> Optional[GameSession]:
    return GameSession.query.filter_by(room_id=room.id, gameweek=gameweek).first()


def get_session(room_code: str, gameweek: int) -> GameSession:
    session = find_session(get_room(room_code), gameweek)
    if not session:
        raise NotFoundError('Game not found')
    return session


def _check_can_start(room: Room, gameweek: int, leader_uid: str) -> Optional[GameSession]:
    if room.leader_uid != leader_uid:
        raise NotLeader('Not leader')
    session = find_session(room, gameweek)
    if session and session.state != SessionState.LOBBY.value:
        raise AlreadyStarted('Game already started')
    return session


def ensure_startable(room_code: str, gameweek: int, leader_uid: str) -> None:
    """Leader and phase checks, run before any upstream fetch for a start."""
    _check_can_start(get_room(room_code), gameweek, leader_uid)


def _roster(room: Room, session: Optional[GameSession]) -> List[str]:
    if not session:
        return []
    members = room.member_uids()
    return sorted(e.uid for e in session.lobby if e.uid in members)


def start_session(
    room_code: str,
    gameweek: int,
    leader_uid: str,
    participants: Optional[Sequence[str]],
    fixture_ids: Sequence[int],
    seed: Optional[int] = None,
) -> GameSession:
    """Move a room's gameweek from LOBBY into DRAFT.

    The turn order is a seeded shuffle of the sorted participants, recorded
    once together with its seed and never recomputed. With ``participants``
    None the lobby roster is read inside the transaction, so a lobby join
    that commits first is part of the draft.
    """
    min_players = int(current_app.config.get('MIN_PLAYERS', 2))
    max_fixtures = int(current_app.config.get('MAX_FIXTURES_PER_SESSION', 10))
    if seed is None:
        seed = current_app.config.get('DRAFT_SHUFFLE_SEED')
    if seed is None:
        seed = random.SystemRandom().randrange(2 ** 31)
    fixtures = [int(f) for f in fixture_ids][:max_fixtures]

    def work():
        room = get_room(room_code)
        session = _check_can_start(room, gameweek, leader_uid)
        if participants is None:
            players = _roster(room, session)
        else:
            players = sorted(set(participants))
        if len(players) < min_players:
            raise NotEnoughPlayers(f'Need at least {min_players} players in lobby')
        if not fixtures:
            raise NoFixtures('No fixtures for this GW')

        if session is None:
            session = GameSession(room=room, gameweek=gameweek, state=SessionState.LOBBY.value)
            db.session.add(session)
        order = seeded_shuffle(players, seed)
        transition(session, 'start')
        session.leader_uid = leader_uid
        session.play_order = json.dumps(order)
        session.fixture_ids = json.dumps(fixtures)
        session.order_seed = seed
        session.current_turn = 0
        session.total_turns = total_turns(order, fixtures)
        session.started_at = utcnow()
        session.touch()
        # Lobby presence is meaningless once the draft order is fixed
        session.lobby.clear()
        return session

    session = run_transaction(work, label=f'start {room_code}/gw{gameweek}')
    current_app.logger.info(
        f"[start] room={room_code} gw={gameweek} players={len(session.players)} fixtures={len(fixtures)} seed={seed}"
    )
    return session


def join_lobby(room_code: str, gameweek: int, uid: str) -> GameSession:
    """Enter (or heartbeat) the gameweek lobby, creating the LOBBY session if needed."""

    def work():
        room = get_room(room_code)
        member = next((m for m in room.members if m.uid == uid), None)
        if not member:
            raise NotAMember()
        session = find_session(room, gameweek)
        if session is None:
            session = GameSession(room=room, gameweek=gameweek, state=SessionState.LOBBY.value)
            db.session.add(session)
        elif session.state != SessionState.LOBBY.value:
            raise AlreadyStarted('Game already started')
        entry = next((e for e in session.lobby if e.uid == uid), None)
        if entry is None:
            session.lobby.append(LobbyEntry(uid=uid, display_name=member.display_name))
        else:
            entry.display_name = member.display_name
            entry.last_seen_at = utcnow()
        session.touch()
        return session

    return run_transaction(work, label=f'lobby-join {room_code}/gw{gameweek}')


def leave_lobby(room_code: str, gameweek: int, uid: str) -> None:
    def work():
        session = get_session(room_code, gameweek)
        if session.state != SessionState.LOBBY.value:
            return
        entry = next((e for e in session.lobby if e.uid == uid), None)
        if entry is not None:
            session.lobby.remove(entry)
            session.touch()

    run_transaction(work, label=f'lobby-leave {room_code}/gw{gameweek}')
