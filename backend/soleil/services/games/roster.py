import random
from typing import Dict, List, Optional

from soleil.exceptions import RosterEmpty, RosterFull


class Player:
    def __init__(self, connection_id: str, name: str):
        self.connection_id = connection_id
        self.name = name
        self.score = 0

    def to_dict(self):
        return {
            'id': self.connection_id,
            'name': self.name,
            'score': self.score,
        }

    def __repr__(self):
        return f"<Player {self.connection_id} {self.name!r} score={self.score}>"


class Roster:
    """Seated players keyed by connection id.

    Membership only changes through ``join`` and ``leave``.
    """

    def __init__(self, max_players: int = 2, rng: Optional[random.Random] = None):
        self.max_players = max_players
        self._players: Dict[str, Player] = {}
        self._rng = rng or random.Random()

    def join(self, connection_id: str, name: str) -> Player:
        if len(self._players) >= self.max_players:
            raise RosterFull(self.max_players)
        player = Player(connection_id, name)
        self._players[connection_id] = player
        return player

    def leave(self, connection_id: str) -> Optional[Player]:
        return self._players.pop(connection_id, None)

    def get(self, connection_id: str) -> Optional[Player]:
        return self._players.get(connection_id)

    def all(self) -> List[Player]:
        return list(self._players.values())

    def size(self) -> int:
        return len(self._players)

    def is_full(self) -> bool:
        return len(self._players) >= self.max_players

    def pick_random(self) -> str:
        # Sample the live membership on every call
        ids = list(self._players)
        if not ids:
            raise RosterEmpty()
        return ids[self._rng.randrange(len(ids))]

    def __contains__(self, connection_id):
        return connection_id in self._players

    def __len__(self):
        return len(self._players)
