from typing import Tuple

from flask import current_app

from scoredraft import db
from scoredraft.errors import AlreadyLocked, InvalidGoldenReference, MissingPlayersOrFixtures
from scoredraft.models import GameSession, GoldenLock, Pick, SessionState
from .lifecycle import get_session, require_state, transition
from .picks import normalize_score
from scoredraft.services.store import run_transaction


def lock_golden(room_code: str, gameweek: int, uid: str, fixture_id: int, score: str) -> Tuple[GameSession, bool]:
    """Lock one of the player's own picks as their golden (double points) pick.

    Every read that decides the outcome, including every player's lock
    status, happens before the first write. The locked count is recomputed
    from that read on each attempt, so whichever transaction commits the last
    lock is the one that moves the session to REVEAL.

    Returns the session and whether this call completed the quorum.
    """
    sc = normalize_score(score)

    def work():
        # reads
        session = get_session(room_code, gameweek)
        require_state(session, SessionState.GOLDEN)
        players = session.players
        if not players:
            raise MissingPlayersOrFixtures('No players in game')

        pick = Pick.query.filter_by(session_id=session.id, uid=uid, fixture_id=fixture_id).first()
        if not pick:
            raise InvalidGoldenReference('You must choose golden from your own picks')
        if pick.score != sc:
            raise InvalidGoldenReference('Golden must match your pick score')

        locks = {
            g.uid: g
            for g in GoldenLock.query.filter(
                GoldenLock.session_id == session.id, GoldenLock.uid.in_(players)
            ).all()
        }
        existing = locks.get(uid)
        if existing is not None and existing.locked:
            raise AlreadyLocked('Golden already locked')
        locked_before = sum(1 for g in locks.values() if g.locked)

        # writes
        if existing is None:
            existing = GoldenLock(session_id=session.id, uid=uid)
            db.session.add(existing)
        existing.fixture_id = pick.fixture_id
        existing.score = pick.score
        existing.locked = True
        session.touch()
        completed = locked_before + 1 >= len(players)
        if completed:
            transition(session, 'golden_complete')
        return session, completed

    session, completed = run_transaction(work, label=f'golden {room_code}/gw{gameweek}')
    current_app.logger.info(
        f"[golden] room={room_code} gw={gameweek} uid={uid} fixture={fixture_id} quorum={'yes' if completed else 'no'}"
    )
    return session, completed
