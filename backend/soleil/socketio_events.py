from flask import current_app, request
from flask_socketio import emit
from soleil import socketio
from soleil.events import (
    ChatMessage,
    ErrorNotice,
    Inbound,
    JoinGame,
    RoundResponse,
)
from soleil.exceptions import InvalidPayload
from soleil.services.games import GameSession

EXTENSION_KEY = 'soleil'


class SocketIOTransport:
    """Broadcast primitive backed by the shared Socket.IO server."""

    def __init__(self, sio, namespace: str):
        self.sio = sio
        self.namespace = namespace

    def broadcast(self, event) -> None:
        self.sio.emit(event.event.value, event.to_dict(), namespace=self.namespace)

    def send(self, sid: str, event) -> None:
        self.sio.emit(event.event.value, event.to_dict(), to=sid, namespace=self.namespace)

    def disconnect(self, sid: str) -> None:
        self.sio.server.disconnect(sid, namespace=self.namespace)


def background_timer(delay, callback):
    """One-shot timer on a Socket.IO background task."""
    def _worker():
        socketio.sleep(delay)
        callback()

    socketio.start_background_task(_worker)


def _disabled_timer(delay, callback):
    # Timers never fire in tests unless ENABLE_SCHEDULER_IN_TESTS is set
    return None


def _session() -> GameSession:
    return current_app.extensions[EXTENSION_KEY]


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _reply_error(exc: InvalidPayload) -> None:
    current_app.logger.info(f"[bad-payload] sid={_get_sid()} {exc}")
    notice = ErrorNotice(message=str(exc))
    emit(notice.event.value, notice.to_dict())


def handle_connect(auth=None):
    # A refused socket is already disconnected by the session
    _session().on_connect(_get_sid())


def handle_disconnect(*args):
    _session().on_disconnect(_get_sid())


def handle_join_game(data):
    try:
        join = JoinGame.from_payload(data)
    except InvalidPayload as exc:
        _reply_error(exc)
        return
    _session().on_join(_get_sid(), join.player_name)


def handle_response(data):
    try:
        response = RoundResponse.from_payload(data)
    except InvalidPayload as exc:
        _reply_error(exc)
        return
    _session().on_response(_get_sid(), response.status)


def handle_message(data):
    try:
        message = ChatMessage.from_payload(data)
    except InvalidPayload as exc:
        _reply_error(exc)
        return
    _session().on_message(_get_sid(), message.text)


def handle_play_again(data=None):
    _session().on_play_again(_get_sid())


def register_socketio_handlers(flask_app, timer=None) -> GameSession:
    """Create the app's game session and register Socket.IO event handlers.

    Handlers are registered on SOCKETIO_NAMESPACE ('/ws' by default).
    """
    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/ws')
    if timer is None:
        testing = flask_app.config.get('TESTING') and not flask_app.config.get('ENABLE_SCHEDULER_IN_TESTS')
        timer = _disabled_timer if testing else background_timer

    session = GameSession.from_config(
        flask_app.config,
        SocketIOTransport(socketio, namespace),
        timer,
        logger=flask_app.logger,
    )
    flask_app.extensions[EXTENSION_KEY] = session

    socketio.on_event(Inbound.CONNECT.value, handle_connect, namespace=namespace)
    socketio.on_event(Inbound.DISCONNECT.value, handle_disconnect, namespace=namespace)
    socketio.on_event(Inbound.JOIN_GAME.value, handle_join_game, namespace=namespace)
    socketio.on_event(Inbound.RESPONSE.value, handle_response, namespace=namespace)
    socketio.on_event(Inbound.MESSAGE.value, handle_message, namespace=namespace)
    socketio.on_event(Inbound.PLAY_AGAIN.value, handle_play_again, namespace=namespace)
    return session
