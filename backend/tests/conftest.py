import os
import sys
import pytest

# Ensure the backend root (containing the `scoredraft` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from scoredraft import create_app, db, socketio
from scoredraft.errors import UpstreamError
from scoredraft.models import GameSession


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = 'DEBUG'
    CORS_ORIGINS = ['http://localhost:3000']
    FOOTBALL_DATA_API_KEY = 'test-key'
    MIN_PLAYERS = 2
    MAX_FIXTURES_PER_SESSION = 10
    TX_MAX_ATTEMPTS = 3
    DRAFT_SHUFFLE_SEED = 7


class FakeFootballData:
    """Stands in for the football-data.org client: fixtures and results per gameweek."""

    def __init__(self):
        self.fixture_map = {}
        self.result_map = {}
        self.current = 1
        self.fail = False

    def set_fixtures(self, gameweek, ids):
        self.fixture_map[gameweek] = list(ids)

    def set_results(self, gameweek, results):
        self.result_map[gameweek] = dict(results)

    def _check(self):
        if self.fail:
            raise UpstreamError('Failed to load fixtures')

    def fixtures(self, gameweek):
        self._check()
        results = self.result_map.get(gameweek, {})
        return [
            {
                'fixture_id': fid,
                'gameweek': gameweek,
                'status': 'FINISHED' if fid in results else 'TIMED',
                'result': results.get(fid),
            }
            for fid in self.fixture_map.get(gameweek, [])
        ]

    def fixture_ids(self, gameweek):
        return [f['fixture_id'] for f in self.fixtures(gameweek)]

    def results(self, gameweek):
        self._check()
        return dict(self.result_map.get(gameweek, {}))

    def current_gameweek(self, today=None):
        self._check()
        return self.current


@pytest.fixture()
def flask_app(tmp_path):
    # A file database gives every engine connection its own handle, so a
    # competing writer can commit while a request transaction is open
    class FileConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'scoredraft.db'}"

    application = create_app(FileConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import scoredraft.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def football(flask_app):
    fake = FakeFootballData()
    fake.set_fixtures(1, [101, 102])
    flask_app.extensions['football_data'] = fake
    return fake


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


@pytest.fixture()
def lobby(client, football):
    """Room ABCD led by alice, with alice, bob and cara waiting in the GW1 lobby."""
    def _make(uids=('alice', 'bob', 'cara'), code='ABCD', gw=1):
        leader = uids[0]
        res = client.post('/api/rooms', json={'code': code, 'uid': leader, 'display_name': leader.title()})
        assert res.status_code == 201
        for u in uids[1:]:
            assert client.post(f'/api/rooms/{code}/join', json={'uid': u, 'display_name': u.title()}).status_code == 200
        for u in uids:
            assert client.post('/api/game/lobby/join', json={'room_code': code, 'gw': gw, 'uid': u}).status_code == 200
        return code
    return _make


@pytest.fixture()
def started(client, lobby):
    """A started GW1 draft: returns (room_code, state payload)."""
    code = lobby()
    res = client.post('/api/game/start', json={'room_code': code, 'gw': 1, 'leader_uid': 'alice'})
    assert res.status_code == 200, res.get_json()
    return code, res.get_json()['game']


@pytest.fixture()
def interleave(monkeypatch):
    """Commit a competing write the first time a transaction touches a session row.

    ``touch`` runs after a service has done its reads and before it commits,
    so the rival lands exactly between the two.
    """
    def _install(rival):
        original = GameSession.touch
        fired = []

        def touch(self):
            if not fired:
                fired.append(self.id)
                rival(self.id)
            original(self)

        monkeypatch.setattr(GameSession, 'touch', touch)
        return fired
    return _install


def commit_elsewhere(*statements):
    """Run Core statements on a separate connection and commit them."""
    with db.engine.begin() as conn:
        for stmt in statements:
            conn.execute(stmt)


def bump_version(session_id, **values):
    table = GameSession.__table__
    return table.update().where(table.c.id == session_id).values(version_id=table.c.version_id + 1, **values)


def draft_all(client, code, gw=1):
    """Play every draft turn with distinct scores; returns the final state."""
    state = client.get(f'/api/game/{code}/{gw}/state').get_json()
    while state['state'] == 'DRAFT':
        turn = state['current_turn']
        res = client.post('/api/game/pick', json={
            'room_code': code, 'gw': gw, 'uid': state['active_player'], 'score': f'{turn}-0',
        })
        assert res.status_code == 200, res.get_json()
        state = res.get_json()['game']
    return state
