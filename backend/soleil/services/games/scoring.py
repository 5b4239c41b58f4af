from typing import Any, Dict, List, Optional

from .roster import Roster


def increment(roster: Roster, connection_id: str, amount: int = 1) -> None:
    """Add ``amount`` to a player's score.

    A player who disconnected mid-round is simply skipped.
    """
    player = roster.get(connection_id)
    if player is None:
        return
    player.score += amount


def score_of(roster: Roster, connection_id: str) -> Optional[int]:
    player = roster.get(connection_id)
    return player.score if player else None


def loser(roster: Roster) -> Optional[str]:
    """Connection id holding the strictly lowest score.

    Ties go to the first player met in roster iteration order. None when the
    roster is empty.
    """
    lowest = None
    for player in roster.all():
        if lowest is None or player.score < lowest.score:
            lowest = player
    return lowest.connection_id if lowest else None


def standings(roster: Roster) -> List[Dict[str, Any]]:
    return [{'nom': p.name, 'score': p.score} for p in roster.all()]


def reset_scores(roster: Roster) -> None:
    for player in roster.all():
        player.score = 0
