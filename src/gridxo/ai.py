"""Computer opponent for tic-tac-toe: random, heuristic and alpha-beta minimax."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence
import logging
import math
import random

from .game import (
    CENTER,
    CORNERS,
    EMPTY,
    PLAYERS,
    WINNING_LINES,
    Draw,
    GameOverError,
    Player,
    TicTacToeGame,
    Won,
    empty_cells,
    evaluate,
    opponent,
    validate_board,
)

logger = logging.getLogger(__name__)

WIN_SCORE = 10
LOSS_SCORE = -10
DRAW_SCORE = 0

# Share of MEDIUM moves that use the heuristic rather than a random cell.
MEDIUM_SMART_RATE = 0.5

# Process-wide source used when no rng is injected.
_DEFAULT_RNG = random.Random()


class Difficulty(str, Enum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


# ---- public API ----


def select_move(
    board: Sequence[str],
    difficulty: Difficulty,
    computer_symbol: Player,
    rng: Optional[random.Random] = None,
) -> int:
    """Pick the computer's next cell on ``board``.

    ``board`` is never modified. ``rng`` defaults to one process-wide
    ``random.Random``; pass a seeded one for reproducible EASY
    and MEDIUM play. Raises :class:`GameOverError` when the board is already
    won or full.
    """
    validate_board(board)
    if computer_symbol not in PLAYERS:
        raise ValueError(f"Unknown player symbol {computer_symbol!r}")
    difficulty = Difficulty(difficulty)

    outcome = evaluate(board)
    if outcome.is_terminal:
        raise GameOverError("No valid moves available: board is already decided")

    if difficulty is Difficulty.EASY:
        move = random_move(board, rng)
    elif difficulty is Difficulty.MEDIUM:
        if _source(rng).random() < MEDIUM_SMART_RATE:
            move = heuristic_move(board, computer_symbol, rng)
        else:
            move = random_move(board, rng)
    else:
        move = best_move(board, computer_symbol)

    logger.debug("%s move for %s: %d", difficulty.value, computer_symbol, move)
    return move


def random_move(board: Sequence[str], rng: Optional[random.Random] = None) -> int:
    return _source(rng).choice(empty_cells(board))


def heuristic_move(
    board: Sequence[str], player: Player, rng: Optional[random.Random] = None
) -> int:
    """One-ply rules: win, block, centre, random corner, random cell."""
    win = _completing_cell(board, player)
    if win is not None:
        return win
    block = _completing_cell(board, opponent(player))
    if block is not None:
        return block
    if board[CENTER] == EMPTY:
        return CENTER
    corners = [i for i in CORNERS if board[i] == EMPTY]
    if corners:
        return _source(rng).choice(corners)
    return random_move(board, rng)


def best_move(board: Sequence[str], player: Player) -> int:
    """Exhaustive alpha-beta search; ties go to the lowest index."""
    cells: List[str] = list(board)
    best_score = -math.inf
    chosen: Optional[int] = None
    for idx in empty_cells(cells):
        cells[idx] = player
        score = _minimax(cells, player, False, -math.inf, math.inf)
        cells[idx] = EMPTY
        if score > best_score:
            best_score, chosen = score, idx
    if chosen is None:
        raise GameOverError("No valid moves available")
    return chosen


# ---- core search ----


def _minimax(
    cells: List[str],
    me: Player,
    maximizing: bool,
    alpha: float,
    beta: float,
) -> float:
    outcome = evaluate(cells)
    if isinstance(outcome, Won):
        return WIN_SCORE if outcome.player == me else LOSS_SCORE
    if isinstance(outcome, Draw):
        return DRAW_SCORE

    if maximizing:
        value = -math.inf
        for idx in empty_cells(cells):
            cells[idx] = me
            value = max(value, _minimax(cells, me, False, alpha, beta))
            cells[idx] = EMPTY
            alpha = max(alpha, value)
            if beta <= alpha:
                break
        return value

    opp = opponent(me)
    value = math.inf
    for idx in empty_cells(cells):
        cells[idx] = opp
        value = min(value, _minimax(cells, me, True, alpha, beta))
        cells[idx] = EMPTY
        beta = min(beta, value)
        if beta <= alpha:
            break
    return value


def _source(rng: Optional[random.Random]) -> random.Random:
    return rng if rng is not None else _DEFAULT_RNG


def _completing_cell(board: Sequence[str], player: Player) -> Optional[int]:
    # First line (in WINNING_LINES order) with two of ``player`` and a gap.
    for line in WINNING_LINES:
        trio = [board[i] for i in line]
        if trio.count(player) == 2 and trio.count(EMPTY) == 1:
            return line[trio.index(EMPTY)]
    return None


# ---- session helper ----


@dataclass
class ComputerPlayer:
    """Computer side of a human-vs-computer game.

    Public surface used by ui.py:
      - ComputerPlayer(player="O", difficulty=Difficulty.HARD)
      - choose(game) -> cell index
    """

    player: Player
    difficulty: Difficulty = Difficulty.MEDIUM
    rng: Optional[random.Random] = field(default=None, repr=False)

    def choose(self, game: TicTacToeGame) -> int:
        if game.current_player != self.player:
            raise ValueError("It is not this AI player's turn")
        return select_move(game.cells, self.difficulty, self.player, self.rng)
