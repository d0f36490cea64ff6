from worldcup.models.item import BYE_TITLE, WorldCupItem
from worldcup.models.match import Match
from worldcup.models.tournament import Tournament
from worldcup.models.worldcup import WorldCup

__all__ = [
    "BYE_TITLE",
    "WorldCup",
    "WorldCupItem",
    "Tournament",
    "Match",
]
