import pytest

from conftest import bump_version, commit_elsewhere, draft_all
from scoredraft.errors import NotYourTurn
from scoredraft.models import GameSession, GoldenLock, LobbyEntry, Pick
from scoredraft.services.minigame.golden import lock_golden
from scoredraft.services.minigame.picks import submit_pick


def test_pick_that_loses_the_race_sees_the_winner(client, started, interleave):
    code, game = started
    first = game['players'][0]

    def rival(session_id):
        # the same player's other request wins turn 0
        commit_elsewhere(
            Pick.__table__.insert().values(session_id=session_id, uid=first, fixture_id=101, score='3-3'),
            bump_version(session_id, current_turn=1),
        )

    fired = interleave(rival)
    with pytest.raises(NotYourTurn):
        submit_pick(code, 1, first, '1-0')
    assert fired

    session = GameSession.query.one()
    assert session.current_turn == 1
    assert [(p.uid, p.score) for p in Pick.query.all()] == [(first, '3-3')]

    state = client.get(f'/api/game/{code}/1/state').get_json()
    assert state['active_player'] == game['players'][1]


def test_golden_quorum_survives_a_concurrent_lock(client, started, interleave):
    code, game = started
    state = draft_all(client, code)
    a, b, c = game['players']
    picks = {(p['uid'], p['fixture_id']): p['score'] for p in state['picks']}

    res = client.post('/api/game/golden', json={
        'room_code': code, 'gw': 1, 'uid': a, 'fixture_id': 101, 'score': picks[(a, 101)],
    })
    assert res.get_json()['game']['state'] == 'GOLDEN'

    def rival(session_id):
        # c locks while b's request is between its reads and its write
        commit_elsewhere(
            GoldenLock.__table__.insert().values(
                session_id=session_id, uid=c, fixture_id=101, score=picks[(c, 101)], locked=True,
            ),
            bump_version(session_id),
        )

    fired = interleave(rival)
    session, completed = lock_golden(code, 1, b, 102, picks[(b, 102)])
    assert fired
    assert completed is True
    assert session.state == 'REVEAL'

    view = client.get(f'/api/game/{code}/1/state').get_json()
    assert view['state'] == 'REVEAL'
    assert view['locked_count'] == 3
    assert {g['uid']: g['fixture_id'] for g in view['golden']} == {a: 101, b: 102, c: 101}

    late = client.post('/api/game/golden', json={
        'room_code': code, 'gw': 1, 'uid': c, 'fixture_id': 101, 'score': picks[(c, 101)],
    })
    assert late.get_json()['code'] == 'WRONG_PHASE'


def test_start_drafts_a_player_who_joined_during_the_start(client, lobby, interleave):
    code = lobby(uids=('alice', 'bob'))
    assert client.post(f'/api/rooms/{code}/join', json={'uid': 'cara', 'display_name': 'Cara'}).status_code == 200

    def rival(session_id):
        commit_elsewhere(
            LobbyEntry.__table__.insert().values(session_id=session_id, uid='cara', display_name='Cara'),
            bump_version(session_id),
        )

    fired = interleave(rival)
    res = client.post('/api/game/start', json={'room_code': code, 'gw': 1, 'leader_uid': 'alice'})
    assert res.status_code == 200, res.get_json()
    assert fired

    game = res.get_json()['game']
    assert sorted(game['players']) == ['alice', 'bob', 'cara']
    assert game['total_turns'] == 6
    assert LobbyEntry.query.count() == 0
