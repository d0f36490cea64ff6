"""
Bracket engine failures.

Every failure the engine reports is a BracketError subclass. Services raise
these and never translate them; the web layer maps them to status codes.
A round that is still in progress is a normal outcome, not an error.
"""


class BracketError(Exception):
    """Base class for all engine failures"""

    pass


class InvalidInputError(BracketError):
    """Fewer than 2 items to seed, or a malformed item list / seeding permutation"""

    pass


class WorldCupNotFoundError(BracketError):
    def __init__(self, worldcup_id: int):
        super().__init__(f"World cup {worldcup_id} not found")
        self.worldcup_id = worldcup_id


class TournamentNotFoundError(BracketError):
    def __init__(self, tournament_id: int):
        super().__init__(f"Tournament {tournament_id} not found")
        self.tournament_id = tournament_id


class MatchNotFoundError(BracketError):
    def __init__(self, match_id: int, tournament_id: int):
        super().__init__(f"Match {match_id} not found in tournament {tournament_id}")
        self.match_id = match_id
        self.tournament_id = tournament_id


class TournamentAlreadyCompletedError(BracketError):
    def __init__(self, tournament_id: int):
        super().__init__(f"Tournament {tournament_id} is already completed")
        self.tournament_id = tournament_id


class MatchAlreadyResolvedError(BracketError):
    def __init__(self, match_id: int):
        super().__init__(f"Match {match_id} is already resolved")
        self.match_id = match_id


class InvalidWinnerError(BracketError):
    def __init__(self, match_id: int, winner_id: int):
        super().__init__(f"Item {winner_id} is not a participant of match {match_id}")
        self.match_id = match_id
        self.winner_id = winner_id
