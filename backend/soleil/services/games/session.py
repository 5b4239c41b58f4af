import logging
import random
import threading
from typing import Any, Dict, Optional

from soleil.events import (
    ConnectionRefused,
    PlayAgainVotes,
    PlayerJoined,
    PlayerLeft,
    RelayedMessage,
    ResponseStatus,
    Welcome,
)
from soleil.exceptions import RosterFull
from .roster import Player, Roster
from .scheduler import ADVANCE_ON_QUORUM, RoundScheduler, TimerFactory


class GameSession:
    """The single owned game: roster, round scheduler and admission policy.

    ``transport`` must provide ``broadcast(event)``, ``send(sid, event)`` and
    ``disconnect(sid)``. Every entry point and every timer callback runs under
    one re-entrant lock, so at most one mutation is in flight.
    """

    def __init__(
        self,
        transport,
        start_timer: TimerFactory,
        *,
        max_players: int = 2,
        min_players: int = 2,
        max_rounds: int = 5,
        countdown_sec: int = 5,
        round_duration_sec: float = 5,
        advance_policy: str = ADVANCE_ON_QUORUM,
        rng: Optional[random.Random] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.transport = transport
        self.logger = logger or logging.getLogger(__name__)
        self._lock = threading.RLock()
        self._start_timer = start_timer
        rng = rng or random.Random()
        self.roster = Roster(max_players, rng=rng)
        self.scheduler = RoundScheduler(
            self.roster,
            transport.broadcast,
            self._locked_timer,
            min_players=min_players,
            max_rounds=max_rounds,
            countdown_sec=countdown_sec,
            round_duration_sec=round_duration_sec,
            advance_policy=advance_policy,
            rng=rng,
            logger=self.logger,
        )
        # Connected sockets that have not sent join_game yet
        self.pending = set()
        self.replay_votes = set()

    @classmethod
    def from_config(cls, config, transport, start_timer, logger=None, rng=None):
        return cls(
            transport,
            start_timer,
            max_players=int(config.get('MAX_PLAYERS', 2)),
            min_players=int(config.get('MIN_PLAYERS', 2)),
            max_rounds=int(config.get('MAX_ROUNDS', 5)),
            countdown_sec=int(config.get('COUNTDOWN_SEC', 5)),
            round_duration_sec=float(config.get('ROUND_DURATION_SEC', 5)),
            advance_policy=config.get('RESPONSE_ADVANCE_POLICY', ADVANCE_ON_QUORUM),
            rng=rng,
            logger=logger,
        )

    def _locked_timer(self, delay, callback):
        def _fire():
            with self._lock:
                callback()
        return self._start_timer(delay, _fire)

    def _refuse(self, sid: str) -> None:
        self.logger.warning(f"[admission] refused sid={sid} players={self.roster.size()}/{self.roster.max_players}")
        self.pending.discard(sid)
        self.transport.send(sid, ConnectionRefused(message='La partie est complète, réessayez plus tard.'))
        self.transport.disconnect(sid)

    # ---- Transport notifications ----

    def on_connect(self, sid: str) -> bool:
        with self._lock:
            if self.roster.is_full():
                self._refuse(sid)
                return False
            self.pending.add(sid)
            return True

    def on_join(self, sid: str, name: str) -> Optional[Player]:
        with self._lock:
            if sid in self.roster:
                self.logger.info(f"[join-ignored] sid={sid} already seated")
                return None
            try:
                player = self.roster.join(sid, name)
            except RosterFull:
                self._refuse(sid)
                return None
            self.pending.discard(sid)
            self.logger.info(f"[join] sid={sid} name={name} players={self.roster.size()}")
            self.transport.broadcast(PlayerJoined(name=player.name))
            self.transport.send(sid, Welcome(message=f'Bienvenue {player.name} !'))
            if self.scheduler.check_quorum():
                self.replay_votes.clear()
            return player

    def on_response(self, sid: str, status: ResponseStatus) -> None:
        with self._lock:
            self.scheduler.handle_response(sid, status)

    def on_disconnect(self, sid: str) -> None:
        with self._lock:
            self.pending.discard(sid)
            self.replay_votes.discard(sid)
            player = self.roster.leave(sid)
            if player is None:
                return
            self.logger.info(f"[leave] sid={sid} name={player.name} players={self.roster.size()}")
            self.transport.broadcast(PlayerLeft(name=player.name))
            self.scheduler.on_roster_shrunk()

    def on_message(self, sid: str, text: str) -> None:
        with self._lock:
            player = self.roster.get(sid)
            sender = player.name if player else 'anonyme'
            self.transport.broadcast(RelayedMessage(text=text, sender=sender))

    def on_play_again(self, sid: str) -> None:
        with self._lock:
            if sid not in self.roster or self.scheduler.in_progress:
                return
            self.replay_votes.add(sid)
            needed = self.roster.size()
            self.transport.broadcast(PlayAgainVotes(votes=len(self.replay_votes), needed=needed))
            if self.replay_votes >= {p.connection_id for p in self.roster.all()}:
                if self.scheduler.check_quorum():
                    self.replay_votes.clear()

    def abort_game(self, reason: str) -> bool:
        with self._lock:
            return self.scheduler.abort_game(reason)

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            payload = self.scheduler.snapshot()
            payload.update({
                'players': [p.to_dict() for p in self.roster.all()],
                'player_count': self.roster.size(),
                'max_players': self.roster.max_players,
                'min_players': self.scheduler.min_players,
                'pending_connections': len(self.pending),
                'replay_votes': len(self.replay_votes),
            })
            return payload
