"""gridxo package exposing the tic-tac-toe engine and the web application."""

from .ai import ComputerPlayer, Difficulty, select_move
from .game import DRAW, IN_PROGRESS, Draw, GameOverError, InProgress, Won, evaluate
from .ui import app

__all__ = [
    "ComputerPlayer",
    "DRAW",
    "Difficulty",
    "Draw",
    "GameOverError",
    "IN_PROGRESS",
    "InProgress",
    "Won",
    "app",
    "evaluate",
    "select_move",
]
