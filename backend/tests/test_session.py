from soleil.events import ResponseStatus
from soleil.services.games.scheduler import Phase


def test_connect_admits_until_full(make_session, transport):
    session = make_session()
    assert session.on_connect('a') is True
    assert session.pending == {'a'}
    session.on_join('a', 'Alice')
    session.on_join('b', 'Bob')
    assert session.pending == set()

    assert session.on_connect('c') is False
    assert transport.sent[-1][:2] == ('c', 'connection_refused')
    assert transport.disconnected == ['c']
    assert session.roster.size() == 2


def test_join_broadcasts_and_welcomes(make_session, transport):
    session = make_session()
    session.on_connect('a')
    player = session.on_join('a', 'Alice')

    assert player.name == 'Alice'
    assert transport.broadcasts == [('player_joined', {'name': 'Alice'})]
    assert transport.sent == [('a', 'welcome', {'message': 'Bienvenue Alice !'})]


def test_join_when_full_is_refused(make_session, transport):
    session = make_session()
    session.on_join('a', 'Alice')
    session.on_join('b', 'Bob')
    assert session.on_join('c', 'Cara') is None
    assert session.roster.size() == 2
    assert ('c', 'connection_refused') in [(sid, name) for sid, name, _ in transport.sent]
    assert transport.disconnected == ['c']
    assert transport.names().count('player_joined') == 2


def test_second_join_from_same_connection_is_ignored(make_session, transport):
    session = make_session(max_players=3, min_players=3)
    session.on_join('a', 'Alice')
    assert session.on_join('a', 'Alice again') is None
    assert session.roster.size() == 1
    assert transport.names() == ['player_joined']


def test_quorum_starts_countdown(make_session, transport, manual_timer):
    session = make_session()
    session.on_join('a', 'Alice')
    assert session.scheduler.phase == Phase.IDLE
    session.on_join('b', 'Bob')
    assert session.scheduler.phase == Phase.COUNTDOWN
    assert transport.names() == ['player_joined', 'player_joined', 'start_game', 'countdown']
    assert len(manual_timer.pending) == 1


def test_two_round_game(make_session, transport, manual_timer, scripted_random):
    # Alice is the mover in round 1, Bob in round 2
    session = make_session(rng=scripted_random([0, 1, 1, 0]))
    session.on_join('a', 'Alice')
    session.on_join('b', 'Bob')
    manual_timer.run_until_idle()

    names = transport.names()
    first_round = names.index('new_round')
    assert names[:first_round].count('start_game') == 1
    assert names[:first_round].count('countdown') == 6
    assert names.count('new_round') == 2
    assert names.count('end_game') == 1

    end = transport.payloads('end_game')[0]
    assert end['round_actuel'] == 2
    assert end['joueurs'] == [{'nom': 'Alice', 'score': 1}, {'nom': 'Bob', 'score': 1}]
    assert all(entry['score'] >= 1 for entry in end['joueurs'])
    assert end['perdant'] == 'a'
    assert session.scheduler.phase == Phase.IDLE


def test_response_forwarded_to_scheduler(make_session, transport, manual_timer):
    session = make_session()
    session.on_join('a', 'Alice')
    session.on_join('b', 'Bob')
    for _ in range(5):
        manual_timer.fire_next()

    session.on_response('b', ResponseStatus.FAILURE)
    failed = transport.payloads('player_failed')
    assert failed == [{'playerId': 'b', 'score': session.roster.get('b').score}]
    assert session.scheduler.state.current_round == 2


def test_disconnect_broadcasts_and_aborts(make_session, transport, manual_timer):
    session = make_session()
    session.on_join('a', 'Alice')
    session.on_join('b', 'Bob')
    for _ in range(5):
        manual_timer.fire_next()

    session.on_disconnect('b')

    assert ('player_left', {'name': 'Bob'}) in transport.broadcasts
    assert transport.names()[-1] == 'game_aborted'
    assert session.scheduler.phase == Phase.IDLE
    manual_timer.run_until_idle()
    assert transport.names()[-1] == 'game_aborted'


def test_disconnect_all_players_returns_to_idle(make_session, transport, manual_timer):
    session = make_session()
    session.on_join('a', 'Alice')
    session.on_join('b', 'Bob')
    session.on_disconnect('a')
    session.on_disconnect('b')
    assert session.roster.size() == 0
    assert session.scheduler.phase == Phase.IDLE
    assert transport.names().count('game_aborted') == 1
    manual_timer.run_until_idle()
    assert 'new_round' not in transport.names()


def test_disconnect_above_quorum_keeps_round_running(make_session, transport, manual_timer):
    session = make_session(max_players=3)
    session.on_join('a', 'Alice')
    session.on_join('b', 'Bob')
    session.on_join('c', 'Cara')
    for _ in range(5):
        manual_timer.fire_next()

    session.on_disconnect('c')
    assert 'game_aborted' not in transport.names()
    manual_timer.run_until_idle()
    end = transport.payloads('end_game')[0]
    assert end['nombre_joueur_dans_la_partie'] == 2


def test_disconnect_unknown_connection(make_session, transport):
    session = make_session()
    session.on_connect('a')
    session.on_disconnect('a')
    session.on_disconnect('never-seen')
    assert session.pending == set()
    assert transport.broadcasts == []


def test_message_relay(make_session, transport):
    session = make_session()
    session.on_join('a', 'Alice')
    session.on_message('a', 'salut')
    session.on_message('z', 'hello')
    assert transport.payloads('message') == [
        {'text': 'salut', 'from': 'Alice'},
        {'text': 'hello', 'from': 'anonyme'},
    ]


def test_play_again_needs_every_vote(make_session, transport, manual_timer):
    session = make_session()
    session.on_join('a', 'Alice')
    session.on_join('b', 'Bob')
    manual_timer.run_until_idle()
    assert session.scheduler.phase == Phase.IDLE

    session.on_play_again('a')
    assert transport.payloads('play_again') == [{'votes': 1, 'needed': 2}]
    assert transport.names().count('start_game') == 1

    session.on_play_again('b')
    assert transport.names().count('start_game') == 2
    assert session.scheduler.phase == Phase.COUNTDOWN
    assert session.replay_votes == set()
    assert [p.score for p in session.roster.all()] == [0, 0]


def test_play_again_ignored_during_game(make_session, transport):
    session = make_session()
    session.on_join('a', 'Alice')
    session.on_join('b', 'Bob')
    session.on_play_again('a')
    assert transport.payloads('play_again') == []


def test_snapshot(make_session):
    session = make_session()
    session.on_connect('x')
    session.on_join('a', 'Alice')
    snap = session.snapshot()
    assert snap['phase'] == 'idle'
    assert snap['players'] == [{'id': 'a', 'name': 'Alice', 'score': 0}]
    assert snap['player_count'] == 1
    assert snap['max_players'] == 2
    assert snap['pending_connections'] == 1
