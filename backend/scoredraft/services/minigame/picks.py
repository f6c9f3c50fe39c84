import re
from typing import Tuple

from flask import current_app

from scoredraft import db
from scoredraft.errors import AlreadyPicked, DraftComplete, NotYourTurn, ScoreTaken, ValidationError
from scoredraft.models import GameSession, Pick, SessionState
from .lifecycle import get_session, require_state, transition
from scoredraft.services.store import run_transaction
from .turns import turn_slot

SCORE_RE = re.compile(r'^(\d{1,3})-(\d{1,3})$')


def normalize_score(raw) -> str:
    """Validate an "H-A" score and return its canonical text ("02-1" -> "2-1")."""
    m = SCORE_RE.match(str(raw if raw is not None else '').strip())
    if not m:
        raise ValidationError('Bad score')
    return f'{int(m.group(1))}-{int(m.group(2))}'


def submit_pick(room_code: str, gameweek: int, uid: str, score: str) -> Tuple[GameSession, Pick]:
    """Record the acting player's prediction for the fixture currently being drafted.

    All checks run against one read of the session inside the transaction;
    the session row is rewritten with the advanced turn, so of two racing
    submissions only one commits and the other re-reads and fails.
    """
    sc = normalize_score(score)

    def work():
        session = get_session(room_code, gameweek)
        require_state(session, SessionState.DRAFT)
        if session.current_turn >= session.total_turns:
            raise DraftComplete('Draft already complete')
        slot = turn_slot(session.players, session.fixtures, session.current_turn)
        if slot is None:
            raise DraftComplete('Draft already complete')
        if slot.player != uid:
            raise NotYourTurn('Not your turn')

        if Pick.query.filter_by(session_id=session.id, fixture_id=slot.fixture_id, score=sc).first():
            raise ScoreTaken('Score already taken for this fixture')
        if Pick.query.filter_by(session_id=session.id, uid=uid, fixture_id=slot.fixture_id).first():
            raise AlreadyPicked('You already picked this fixture')

        pick = Pick(session_id=session.id, uid=uid, fixture_id=slot.fixture_id, score=sc)
        db.session.add(pick)
        session.current_turn = session.current_turn + 1
        session.touch()
        if session.current_turn >= session.total_turns:
            transition(session, 'draft_complete')
        return session, pick

    session, pick = run_transaction(work, label=f'pick {room_code}/gw{gameweek}')
    current_app.logger.info(
        f"[pick] room={room_code} gw={gameweek} uid={uid} fixture={pick.fixture_id} score={pick.score} "
        f"turn={session.current_turn}/{session.total_turns}"
    )
    return session, pick
