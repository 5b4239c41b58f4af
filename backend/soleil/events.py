"""Wire schemas for Socket.IO events.

Every inbound and outbound event is a small typed record tagged with its
event name, so handlers never pass untyped dicts around. Outbound records
serialize themselves with ``to_dict`` using the field names clients expect.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional

from soleil.exceptions import InvalidPayload

MAX_NAME_LENGTH = 24
MAX_MESSAGE_LENGTH = 500


class Inbound(str, Enum):
    CONNECT = 'connect'
    DISCONNECT = 'disconnect'
    JOIN_GAME = 'join_game'
    RESPONSE = 'response'
    MESSAGE = 'message'
    PLAY_AGAIN = 'play_again'


class Outbound(str, Enum):
    PLAYER_JOINED = 'player_joined'
    PLAYER_LEFT = 'player_left'
    WELCOME = 'welcome'
    START_GAME = 'start_game'
    COUNTDOWN = 'countdown'
    NEW_ROUND = 'new_round'
    PLAYER_MOVED = 'player_moved'
    PLAYER_FAILED = 'player_failed'
    END_GAME = 'end_game'
    GAME_ABORTED = 'game_aborted'
    CONNECTION_REFUSED = 'connection_refused'
    MESSAGE = 'message'
    PLAY_AGAIN = 'play_again'
    ERROR = 'error'


class ResponseStatus(str, Enum):
    SUCCESS = 'success'
    FAILURE = 'failure'


# ---- Inbound ----

@dataclass(frozen=True)
class JoinGame:
    player_name: str

    @classmethod
    def from_payload(cls, data: Any) -> 'JoinGame':
        name = (data or {}).get('playerName') if isinstance(data, dict) else None
        if not isinstance(name, str) or not name.strip():
            raise InvalidPayload(Inbound.JOIN_GAME.value, 'playerName is required')
        return cls(player_name=name.strip()[:MAX_NAME_LENGTH])


@dataclass(frozen=True)
class RoundResponse:
    status: ResponseStatus

    @classmethod
    def from_payload(cls, data: Any) -> 'RoundResponse':
        raw = (data or {}).get('status') if isinstance(data, dict) else None
        try:
            return cls(status=ResponseStatus(raw))
        except ValueError:
            raise InvalidPayload(Inbound.RESPONSE.value, "status must be 'success' or 'failure'")


@dataclass(frozen=True)
class ChatMessage:
    text: str

    @classmethod
    def from_payload(cls, data: Any) -> 'ChatMessage':
        # Older clients send the bare string
        text = data.get('text') if isinstance(data, dict) else data
        if not isinstance(text, str) or not text.strip():
            raise InvalidPayload(Inbound.MESSAGE.value, 'text is required')
        return cls(text=text.strip()[:MAX_MESSAGE_LENGTH])


# ---- Outbound ----

@dataclass(frozen=True)
class PlayerJoined:
    event: ClassVar[Outbound] = Outbound.PLAYER_JOINED
    name: str

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name}


@dataclass(frozen=True)
class PlayerLeft:
    event: ClassVar[Outbound] = Outbound.PLAYER_LEFT
    name: str

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name}


@dataclass(frozen=True)
class Welcome:
    event: ClassVar[Outbound] = Outbound.WELCOME
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {'message': self.message}


@dataclass(frozen=True)
class StartGame:
    event: ClassVar[Outbound] = Outbound.START_GAME
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {'message': self.message}


@dataclass(frozen=True)
class Countdown:
    event: ClassVar[Outbound] = Outbound.COUNTDOWN
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {'count': self.count}


@dataclass(frozen=True)
class NewRound:
    event: ClassVar[Outbound] = Outbound.NEW_ROUND
    joueurs: List[Dict[str, Any]]
    round_actuel: int
    nombre_joueur_dans_la_partie: int
    position: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'joueurs': list(self.joueurs),
            'round_actuel': self.round_actuel,
            'nombre_joueur_dans_la_partie': self.nombre_joueur_dans_la_partie,
            'position': self.position,
        }


@dataclass(frozen=True)
class PlayerMoved:
    event: ClassVar[Outbound] = Outbound.PLAYER_MOVED
    player: str

    def to_dict(self) -> Dict[str, Any]:
        return {'player': self.player}


@dataclass(frozen=True)
class PlayerFailed:
    event: ClassVar[Outbound] = Outbound.PLAYER_FAILED
    player_id: str
    score: int

    def to_dict(self) -> Dict[str, Any]:
        return {'playerId': self.player_id, 'score': self.score}


@dataclass(frozen=True)
class EndGame:
    event: ClassVar[Outbound] = Outbound.END_GAME
    joueurs: List[Dict[str, Any]]
    round_actuel: int
    nombre_joueur_dans_la_partie: int
    perdant: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'joueurs': list(self.joueurs),
            'round_actuel': self.round_actuel,
            'nombre_joueur_dans_la_partie': self.nombre_joueur_dans_la_partie,
            'perdant': self.perdant,
        }


@dataclass(frozen=True)
class GameAborted:
    event: ClassVar[Outbound] = Outbound.GAME_ABORTED
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {'message': self.message}


@dataclass(frozen=True)
class ConnectionRefused:
    event: ClassVar[Outbound] = Outbound.CONNECTION_REFUSED
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {'message': self.message}


@dataclass(frozen=True)
class RelayedMessage:
    event: ClassVar[Outbound] = Outbound.MESSAGE
    text: str
    sender: str

    def to_dict(self) -> Dict[str, Any]:
        return {'text': self.text, 'from': self.sender}


@dataclass(frozen=True)
class PlayAgainVotes:
    event: ClassVar[Outbound] = Outbound.PLAY_AGAIN
    votes: int
    needed: int

    def to_dict(self) -> Dict[str, Any]:
        return {'votes': self.votes, 'needed': self.needed}


@dataclass(frozen=True)
class ErrorNotice:
    event: ClassVar[Outbound] = Outbound.ERROR
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {'message': self.message}
