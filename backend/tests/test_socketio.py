def _connected(sio_client):
    if not sio_client.is_connected('/ws'):
        sio_client.connect(namespace='/ws')
    assert sio_client.is_connected('/ws')
    # Flush any initial events
    sio_client.get_received('/ws')
    return sio_client


def test_socket_connect_and_join(sio_client):
    _connected(sio_client)

    sio_client.emit('join_session', {'room_code': 'abcd', 'gameweek': 1}, namespace='/ws')
    received = sio_client.get_received('/ws')
    joined = [pkt for pkt in received if pkt['name'] == 'joined']
    assert joined
    assert joined[0]['args'][0] == {'room': 'session:ABCD:1'}


def test_join_requires_room_and_gameweek(sio_client):
    _connected(sio_client)
    sio_client.emit('join_session', {'room_code': 'ABCD'}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'error' for pkt in received)


def test_ping_pong(sio_client):
    _connected(sio_client)
    sio_client.emit('ping', {'n': 1}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'pong' and pkt['args'][0] == {'n': 1} for pkt in received)


def test_state_update_after_pick(sio_client, client, started):
    code, game = started
    _connected(sio_client)
    sio_client.emit('join_session', {'room_code': code, 'gameweek': 1}, namespace='/ws')
    sio_client.get_received('/ws')  # flush

    res = client.post('/api/game/pick', json={
        'room_code': code, 'gw': 1, 'uid': game['active_player'], 'score': '1-0',
    })
    assert res.status_code == 200

    events = [e for e in sio_client.get_received('/ws') if e['name'] == 'state_update']
    assert events
    assert events[-1]['args'][0] == {'room_code': code, 'gameweek': 1, 'state': 'DRAFT'}


def test_no_update_for_other_sessions_or_after_leave(sio_client, client, lobby):
    code = lobby()
    _connected(sio_client)
    sio_client.emit('join_session', {'room_code': code, 'gameweek': 2}, namespace='/ws')
    sio_client.get_received('/ws')

    client.post('/api/game/lobby/join', json={'room_code': code, 'gw': 1, 'uid': 'bob'})
    assert not [e for e in sio_client.get_received('/ws') if e['name'] == 'state_update']

    sio_client.emit('join_session', {'room_code': code, 'gameweek': 1}, namespace='/ws')
    sio_client.emit('leave_session', {'room_code': code, 'gameweek': 1}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'left' for pkt in received)

    client.post('/api/game/lobby/join', json={'room_code': code, 'gw': 1, 'uid': 'cara'})
    assert not [e for e in sio_client.get_received('/ws') if e['name'] == 'state_update']
