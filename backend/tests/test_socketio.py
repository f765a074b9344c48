from dotsboxes import socketio, socketio_events
from dotsboxes.services.games import operations, sync


def _events(sio_client, name):
    return [pkt['args'][0] for pkt in sio_client.get_received('/ws') if pkt['name'] == name]


def _connected(flask_app):
    return socketio.test_client(flask_app, namespace='/ws')


def test_socket_connect_and_join_gets_snapshot(sio_client, client):
    code = client.post('/api/games/create', json={'nickname': 'Alice'}).get_json()['session_id']
    assert sio_client.is_connected('/ws')
    sio_client.get_received('/ws')

    sio_client.emit('join_game', {'game_code': code.lower()}, namespace='/ws')
    received = sio_client.get_received('/ws')
    names = [pkt['name'] for pkt in received]
    assert 'joined' in names
    snapshots = [pkt['args'][0] for pkt in received if pkt['name'] == 'state_update']
    assert len(snapshots) == 1
    assert snapshots[0]['sessionId'] == code
    assert snapshots[0]['phase'] == 'lobby'


def test_join_unknown_game_emits_error(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('join_game', {'game_code': 'NOPE'}, namespace='/ws')
    errors = _events(sio_client, 'error')
    assert errors and errors[0]['code'] == 'SessionNotFound'


def test_ping(sio_client):
    sio_client.emit('ping', {'n': 1}, namespace='/ws')
    assert {'n': 1} in _events(sio_client, 'pong')


def test_move_broadcasts_snapshot_to_attached_clients(flask_app, client, started_game):
    code, a, b = started_game
    watcher_a = _connected(flask_app)
    watcher_b = _connected(flask_app)
    watcher_a.emit('join_game', {'game_code': code, 'player_id': a}, namespace='/ws')
    watcher_b.emit('join_game', {'game_code': code, 'player_id': b}, namespace='/ws')
    joined_version = _events(watcher_b, 'state_update')[-1]['version']
    watcher_a.get_received('/ws')

    res = client.post(f'/api/games/{code}/move', json={'player_id': a, 'edge': {'dir': 'h', 'r': 0, 'c': 0}})
    assert res.status_code == 200

    for watcher in (watcher_a, watcher_b):
        updates = _events(watcher, 'state_update')
        assert len(updates) == 1
        snap = updates[0]
        assert snap['version'] == joined_version + 1
        assert snap['activePlayerId'] == b
        assert snap['board']['edges']['h'][0][0] == a
    watcher_a.disconnect(namespace='/ws')
    watcher_b.disconnect(namespace='/ws')


def test_rejected_move_is_not_broadcast(flask_app, client, started_game):
    code, a, b = started_game
    watcher = _connected(flask_app)
    watcher.emit('join_game', {'game_code': code}, namespace='/ws')
    watcher.get_received('/ws')
    res = client.post(f'/api/games/{code}/move', json={'player_id': b, 'edge': {'dir': 'h', 'r': 0, 'c': 0}})
    assert res.status_code == 409
    assert _events(watcher, 'state_update') == []
    watcher.disconnect(namespace='/ws')


def test_action_move_acks(flask_app, started_game):
    code, a, b = started_game
    player = _connected(flask_app)
    player.emit('join_game', {'game_code': code, 'player_id': a}, namespace='/ws')
    player.get_received('/ws')

    ack = player.emit('action', {'type': 'move', 'data': {'edge': {'dir': 'v', 'r': 0, 'c': 0}}},
                      namespace='/ws', callback=True)
    assert ack['ok'] is True
    assert ack['scored'] is False
    assert _events(player, 'state_update')[-1]['activePlayerId'] == b

    ack = player.emit('action', {'type': 'move', 'data': {'edge': {'dir': 'v', 'r': 1, 'c': 0}}},
                      namespace='/ws', callback=True)
    assert ack == {'ok': False, 'error': 'It is not your turn', 'code': 'NotYourTurn', 'context': {'active_player_id': b}}

    ack = player.emit('action', {'game_code': code, 'type': 'dance', 'data': {}}, namespace='/ws', callback=True)
    assert ack['ok'] is False and ack['code'] == 'BadRequest'
    player.disconnect(namespace='/ws')


def test_disconnect_keeps_player_seated(flask_app, client, started_game):
    code, a, b = started_game
    player = _connected(flask_app)
    player.emit('join_game', {'game_code': code, 'player_id': b}, namespace='/ws')
    player.disconnect(namespace='/ws')

    state = client.get(f'/api/games/{code}/state').get_json()
    assert [p['id'] for p in state['players']] == [a, b]
    assert state['phase'] == 'playing'

    # Reconnect: a fresh snapshot arrives before anything else matters
    client.post(f'/api/games/{code}/move', json={'player_id': a, 'edge': {'dir': 'h', 'r': 0, 'c': 0}})
    again = _connected(flask_app)
    again.emit('join_game', {'game_code': code, 'player_id': b}, namespace='/ws')
    snap = _events(again, 'state_update')[-1]
    assert snap['activePlayerId'] == b
    assert snap['board']['edges']['h'][0][0] == a
    again.disconnect(namespace='/ws')


def test_last_leave_ends_session(flask_app, client):
    created = client.post('/api/games/create', json={'nickname': 'Alice'}).get_json()
    code = created['session_id']
    watcher = _connected(flask_app)
    watcher.emit('join_game', {'game_code': code}, namespace='/ws')
    watcher.get_received('/ws')

    player = _connected(flask_app)
    player.emit('join_game', {'game_code': code, 'player_id': created['player_id']}, namespace='/ws')
    ack = player.emit('action', {'type': 'leave', 'data': {}}, namespace='/ws', callback=True)
    assert ack == {'ok': True, 'session_ended': True}

    ended = _events(watcher, 'session_ended')
    assert ended == [{'game_code': code}]
    assert client.get(f'/api/games/{code}/state').status_code == 404
    watcher.disconnect(namespace='/ws')
    player.disconnect(namespace='/ws')


def test_join_reads_snapshot_after_entering_room(flask_app, started_game, monkeypatch):
    code, a, b = started_game
    real_join_room = socketio_events.join_room

    def move_lands_first(room, *args, **kwargs):
        # A move committed just before the socket is in the room
        operations.submit_move(code, a, {'dir': 'h', 'r': 0, 'c': 0})
        real_join_room(room, *args, **kwargs)

    monkeypatch.setattr(socketio_events, 'join_room', move_lands_first)
    watcher = _connected(flask_app)
    watcher.emit('join_game', {'game_code': code, 'player_id': b}, namespace='/ws')
    latest = operations.get_snapshot(code)
    snap = _events(watcher, 'state_update')[-1]
    assert snap['version'] == latest['version']
    assert snap['board']['edges']['h'][0][0] == a
    assert snap['activePlayerId'] == b
    watcher.disconnect(namespace='/ws')


def test_join_with_unknown_player_is_refused(sio_client, client):
    code = client.post('/api/games/create', json={'nickname': 'Alice'}).get_json()['session_id']
    sio_client.get_received('/ws')
    sio_client.emit('join_game', {'game_code': code, 'player_id': 'ghost'}, namespace='/ws')
    received = sio_client.get_received('/ws')
    errors = [pkt['args'][0] for pkt in received if pkt['name'] == 'error']
    assert errors and errors[0]['code'] == 'PlayerNotFound'
    assert not any(pkt['name'] == 'state_update' for pkt in received)


def test_ready_action_requires_a_boolean(flask_app, client):
    created = client.post('/api/games/create', json={'nickname': 'Alice'}).get_json()
    code = created['session_id']
    guest = client.post('/api/games/join', json={'session_id': code, 'nickname': 'Bob'}).get_json()['player_id']
    player = _connected(flask_app)
    player.emit('join_game', {'game_code': code, 'player_id': guest}, namespace='/ws')
    ack = player.emit('action', {'type': 'ready', 'data': {'ready': 'false'}}, namespace='/ws', callback=True)
    assert ack['ok'] is False and ack['code'] == 'BadRequest'
    ack = player.emit('action', {'type': 'ready', 'data': {'ready': True}}, namespace='/ws', callback=True)
    assert ack == {'ok': True}
    assert operations.get_snapshot(code)['players'][1]['ready'] is True
    player.disconnect(namespace='/ws')


def test_session_ended_is_sent_from_a_background_task(flask_app, client, monkeypatch):
    created = client.post('/api/games/create', json={'nickname': 'Alice'}).get_json()
    tasks = []
    monkeypatch.setitem(flask_app.config, 'TESTING', False)
    monkeypatch.setattr(socketio, 'start_background_task', lambda fn, *args: tasks.append((fn, args)))

    assert operations.leave(created['session_id'], created['player_id']) is True
    assert tasks == [(sync._send_ended, (created['session_id'],))]
