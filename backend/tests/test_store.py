import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from conftest import bump_version, commit_elsewhere
from scoredraft import db
from scoredraft.errors import NotYourTurn, TransientStoreError
from scoredraft.models import GameSession, Room, SessionState
from scoredraft.services.store import run_transaction


@pytest.fixture()
def session_id(flask_app):
    room = Room(code='WXYZ', leader_uid='alice')
    db.session.add(room)
    db.session.flush()
    s = GameSession(room_id=room.id, gameweek=3, state=SessionState.DRAFT.value, total_turns=4)
    db.session.add(s)
    db.session.commit()
    return s.id


def test_loser_rereads_the_winners_commit(session_id):
    seen = []

    def work():
        s = db.session.get(GameSession, session_id)
        seen.append(s.current_turn)
        if len(seen) == 1:
            # Another writer commits between our read and our write
            commit_elsewhere(bump_version(session_id, current_turn=s.current_turn + 1))
        s.current_turn = s.current_turn + 1
        return s.current_turn

    result = run_transaction(work, label='test')

    assert seen == [0, 1]
    assert result == 2
    db.session.expire_all()
    assert db.session.get(GameSession, session_id).current_turn == 2


def test_gives_up_after_max_attempts(session_id):
    calls = []

    def work():
        calls.append(1)
        raise OperationalError('UPDATE game_session', {}, Exception('database is locked'))

    with pytest.raises(TransientStoreError) as exc:
        run_transaction(work, max_attempts=3)
    assert len(calls) == 3
    assert exc.value.status_code == 503


def test_domain_errors_roll_back_and_are_not_retried(session_id):
    calls = []

    def work():
        calls.append(1)
        s = db.session.get(GameSession, session_id)
        s.current_turn = 99
        raise NotYourTurn('Not your turn')

    with pytest.raises(NotYourTurn):
        run_transaction(work)
    assert len(calls) == 1
    assert db.session.get(GameSession, session_id).current_turn == 0


def test_unique_violation_is_treated_as_a_race(session_id):
    calls = []

    def work():
        calls.append(1)
        db.session.add(Room(code='WXYZ', leader_uid='bob'))

    with pytest.raises(TransientStoreError):
        run_transaction(work, max_attempts=2)
    assert len(calls) == 2


def test_other_integrity_errors_are_not_retried(session_id):
    calls = []

    def work():
        calls.append(1)
        db.session.add(Room(code=None, leader_uid='bob'))

    with pytest.raises(IntegrityError):
        run_transaction(work, max_attempts=3)
    assert len(calls) == 1
    assert Room.query.count() == 1
