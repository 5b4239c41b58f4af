import logging
import random
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from soleil.events import (
    Countdown,
    EndGame,
    GameAborted,
    NewRound,
    PlayerFailed,
    PlayerMoved,
    ResponseStatus,
    StartGame,
)
from soleil.exceptions import RosterEmpty
from . import scoring
from .roster import Roster

POSITIONS = ('debout', 'assis', 'accroupi', 'bras_leves')

ADVANCE_ON_QUORUM = 'quorum'
ADVANCE_ON_ALL_RESPONDED = 'all_responded'

# delay in seconds, zero-arg callback
TimerFactory = Callable[[float, Callable[[], None]], Any]
Broadcast = Callable[[Any], None]


class Phase(str, Enum):
    IDLE = 'idle'
    COUNTDOWN = 'countdown'
    ROUND_ACTIVE = 'round_active'
    ROUND_RESOLVED = 'round_resolved'
    GAME_ENDED = 'game_ended'


IN_PROGRESS = (Phase.COUNTDOWN, Phase.ROUND_ACTIVE, Phase.ROUND_RESOLVED)


class RoundState:
    """Process-wide round record.

    ``token`` only ever grows; ``active_timer`` holds the token of the single
    timer allowed to act, or None.
    """

    def __init__(self):
        self.token = 0
        self.reset()

    def reset(self):
        self.phase = Phase.IDLE
        self.current_round = 0
        self.game_started = False
        self.position: Optional[str] = None
        self.active_timer: Optional[int] = None
        self.responders = set()


class RoundScheduler:
    """Countdown, round and game-end transitions for one game session.

    Timers are armed through ``start_timer``; each callback carries the
    token it was armed with and does nothing once a newer timer replaced it
    or the game was aborted.
    """

    def __init__(
        self,
        roster: Roster,
        broadcast: Broadcast,
        start_timer: TimerFactory,
        *,
        min_players: int = 2,
        max_rounds: int = 5,
        countdown_sec: int = 5,
        round_duration_sec: float = 5,
        advance_policy: str = ADVANCE_ON_QUORUM,
        rng: Optional[random.Random] = None,
        logger: Optional[logging.Logger] = None,
    ):
        if advance_policy not in (ADVANCE_ON_QUORUM, ADVANCE_ON_ALL_RESPONDED):
            raise ValueError(f"Unknown response advance policy: {advance_policy}")
        self.roster = roster
        self.broadcast = broadcast
        self.start_timer = start_timer
        self.min_players = min_players
        self.max_rounds = max_rounds
        self.countdown_sec = countdown_sec
        self.round_duration_sec = round_duration_sec
        self.advance_policy = advance_policy
        self.rng = rng or random.Random()
        self.logger = logger or logging.getLogger(__name__)
        self.state = RoundState()
        self.history: List[Dict[str, Any]] = []
        self.last_result: Optional[Dict[str, Any]] = None

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def in_progress(self) -> bool:
        return self.state.phase in IN_PROGRESS

    # ---- Timers ----

    def _arm(self, delay: float, action: Callable, *args) -> int:
        self.state.token += 1
        token = self.state.token
        self.state.active_timer = token
        self.logger.info(
            f"[timer-set] token={token} action={action.__name__} round={self.state.current_round} delay={delay}s"
        )
        self.start_timer(delay, lambda: self._fire(token, action, args))
        return token

    def _fire(self, token: int, action: Callable, args) -> None:
        if token != self.state.active_timer:
            self.logger.info(
                f"[timer-stale] token={token} active={self.state.active_timer} action={action.__name__}"
            )
            return
        self.state.active_timer = None
        self.logger.info(f"[timer-fire] token={token} action={action.__name__} round={self.state.current_round}")
        action(*args)

    def _cancel_timer(self) -> None:
        self.state.active_timer = None

    # ---- Transitions ----

    def check_quorum(self) -> bool:
        """Start the countdown when the roster reaches MIN_PLAYERS while idle."""
        if self.state.phase != Phase.IDLE:
            return False
        if self.roster.size() < self.min_players:
            return False
        self._begin_countdown()
        return True

    def _begin_countdown(self) -> None:
        scoring.reset_scores(self.roster)
        self.history = []
        self.last_result = None
        self.state.phase = Phase.COUNTDOWN
        self.logger.info(f"[countdown] players={self.roster.size()} from={self.countdown_sec}")
        self.broadcast(StartGame(message='La partie commence !'))
        self._tick(self.countdown_sec)

    def _tick(self, count: int) -> None:
        self.broadcast(Countdown(count=count))
        if count <= 0:
            self._start_round()
        else:
            self._arm(1, self._tick, count - 1)

    def _start_round(self) -> None:
        # A new round never coexists with the previous round's timer
        self._cancel_timer()
        try:
            mover = self.roster.pick_random()
        except RosterEmpty:
            self.logger.warning(f"[round-start] no player left for round {self.state.current_round + 1}")
            self.abort_game('Plus aucun joueur dans la partie')
            return

        state = self.state
        state.game_started = True
        state.current_round += 1
        state.phase = Phase.ROUND_ACTIVE
        state.position = self.rng.choice(POSITIONS)
        state.responders = set()
        scoring.increment(self.roster, mover, 1)

        self.history.append({
            'round': state.current_round,
            'position': state.position,
            'mover': mover,
            'resolved_by': None,
            'moved': None,
            'failures': [],
        })
        self.logger.info(
            f"[round-start] round={state.current_round}/{self.max_rounds} position={state.position} mover={mover}"
        )
        self.broadcast(NewRound(
            joueurs=[
                {
                    'nom': p.name,
                    'score': p.score,
                    'max_round': self.max_rounds,
                    'position': state.position,
                    'round_actuel': state.current_round,
                }
                for p in self.roster.all()
            ],
            round_actuel=state.current_round,
            nombre_joueur_dans_la_partie=self.roster.size(),
            position=state.position,
        ))
        self._arm(self.round_duration_sec, self._on_round_timer)

    def _on_round_timer(self) -> None:
        self.state.phase = Phase.ROUND_RESOLVED
        try:
            moved = self.roster.pick_random()
        except RosterEmpty:
            self.logger.warning(f"[round-end] no player left in round {self.state.current_round}")
            self.abort_game('Plus aucun joueur dans la partie')
            return
        player = self.roster.get(moved)
        if self.history:
            self.history[-1]['resolved_by'] = 'timer'
            self.history[-1]['moved'] = moved
        self.broadcast(PlayerMoved(player=player.name))
        self._advance()

    def handle_response(self, connection_id: str, status: ResponseStatus) -> None:
        if self.state.phase != Phase.ROUND_ACTIVE:
            self.logger.info(f"[response-ignored] sid={connection_id} phase={self.state.phase.value}")
            return
        if connection_id not in self.roster:
            return
        # Only all_responded counts one response per player per round
        if self.advance_policy == ADVANCE_ON_ALL_RESPONDED and connection_id in self.state.responders:
            self.logger.info(f"[response-duplicate] sid={connection_id} round={self.state.current_round}")
            return
        self.state.responders.add(connection_id)

        if status == ResponseStatus.FAILURE:
            scoring.increment(self.roster, connection_id, 1)
            if self.history:
                self.history[-1]['failures'].append(connection_id)
            self.broadcast(PlayerFailed(
                player_id=connection_id,
                score=scoring.score_of(self.roster, connection_id),
            ))

        if self._response_closes_round():
            self.state.phase = Phase.ROUND_RESOLVED
            if self.history:
                self.history[-1]['resolved_by'] = 'response'
            self.logger.info(f"[round-end] round={self.state.current_round} closed by response from {connection_id}")
            self._advance()

    def _response_closes_round(self) -> bool:
        if self.advance_policy == ADVANCE_ON_ALL_RESPONDED:
            seated = {p.connection_id for p in self.roster.all()}
            return bool(seated) and seated <= self.state.responders
        return self.roster.size() == self.min_players

    def _advance(self) -> None:
        self._cancel_timer()
        if self.state.current_round < self.max_rounds:
            self._start_round()
        else:
            self._end_game()

    def _end_game(self) -> None:
        self.state.phase = Phase.GAME_ENDED
        result = EndGame(
            joueurs=scoring.standings(self.roster),
            round_actuel=self.state.current_round,
            nombre_joueur_dans_la_partie=self.roster.size(),
            perdant=scoring.loser(self.roster),
        )
        self.last_result = result.to_dict()
        self.logger.info(
            f"[game-end] rounds={result.round_actuel} players={result.nombre_joueur_dans_la_partie} loser={result.perdant}"
        )
        self.broadcast(result)
        self.state.reset()

    def abort_game(self, reason: str) -> bool:
        """Drop any game in progress back to IDLE, invalidating pending timers."""
        if not self.in_progress:
            return False
        self.logger.info(
            f"[game-abort] phase={self.state.phase.value} round={self.state.current_round} reason={reason}"
        )
        self._cancel_timer()
        self.state.reset()
        self.broadcast(GameAborted(message=reason))
        return True

    def on_roster_shrunk(self) -> None:
        if self.in_progress and self.roster.size() < self.min_players:
            self.abort_game('Pas assez de joueurs pour continuer')

    def snapshot(self) -> Dict[str, Any]:
        return {
            'phase': self.state.phase.value,
            'current_round': self.state.current_round,
            'max_rounds': self.max_rounds,
            'game_started': self.state.game_started,
            'position': self.state.position,
            'timer_pending': self.state.active_timer is not None,
            'history': [dict(entry, failures=list(entry['failures'])) for entry in self.history],
            'last_result': self.last_result,
        }
