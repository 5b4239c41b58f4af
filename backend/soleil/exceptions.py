"""Game errors.

Raised by the roster and the event parsers; the session coordinator turns
them into unicast notifications so nothing reaches the transport layer.
"""


class SoleilError(Exception):
    """Base class for every game error."""
    pass


class RosterFull(SoleilError):
    """Admission denied: the roster already holds MAX_PLAYERS players."""
    def __init__(self, max_players):
        self.max_players = max_players
        super().__init__(f"Roster is full ({max_players} players)")


class RosterEmpty(SoleilError):
    """Random selection requested on an empty roster.

    The scheduler only runs while quorum is met, so this is a logic error.
    """
    def __init__(self):
        super().__init__("No player available for random selection")


class InvalidPayload(SoleilError):
    """An inbound event carried a missing or malformed field."""
    def __init__(self, event, message):
        self.event = event
        super().__init__(f"{event}: {message}")
