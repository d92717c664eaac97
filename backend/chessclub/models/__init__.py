from chessclub.models.match import Match
from chessclub.models.player import Player
from chessclub.models.schedule import Schedule

__all__ = [
    "Player",
    "Schedule",
    "Match",
]
