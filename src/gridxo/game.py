"""Core rules for classic 3x3 tic-tac-toe: outcomes, game state and scoring."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, Union

Player = str  # "X" or "O"
Board = List[str]
Line = Tuple[int, int, int]

X: Player = "X"
O: Player = "O"
EMPTY = " "
PLAYERS: Tuple[Player, Player] = (X, O)

# Rows top to bottom, columns left to right, then main and anti diagonal.
# Scan order decides which line is reported on a double-complete board.
WINNING_LINES: Tuple[Line, ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)

CENTER = 4
CORNERS: Tuple[int, ...] = (0, 2, 6, 8)


class GameOverError(ValueError):
    """Raised when a move is requested on a board that is already decided."""


# ---------- Outcomes ----------


@dataclass(frozen=True)
class InProgress:
    @property
    def is_terminal(self) -> bool:
        return False


@dataclass(frozen=True)
class Won:
    player: Player
    line: Line

    @property
    def is_terminal(self) -> bool:
        return True


@dataclass(frozen=True)
class Draw:
    @property
    def is_terminal(self) -> bool:
        return True


Outcome = Union[InProgress, Won, Draw]

IN_PROGRESS = InProgress()
DRAW = Draw()


# ---------- Board helpers ----------


def new_board() -> Board:
    return [EMPTY] * 9


def opponent(player: Player) -> Player:
    return O if player == X else X


def empty_cells(board: Sequence[str]) -> List[int]:
    return [i for i, c in enumerate(board) if c == EMPTY]


def validate_board(board: Sequence[str]) -> None:
    """Reject anything that is not 9 cells of 'X', 'O' or ' '."""
    if len(board) != 9:
        raise ValueError(f"Board must have 9 cells, got {len(board)}")
    for index, cell in enumerate(board):
        if cell not in (X, O, EMPTY):
            raise ValueError(f"Invalid value {cell!r} in cell {index}")


def evaluate(board: Sequence[str]) -> Outcome:
    """Return the outcome of ``board``.

    The first complete line in ``WINNING_LINES`` order wins; a full board with
    no complete line is a draw; anything else is still in progress.
    """
    for a, b, c in WINNING_LINES:
        v = board[a]
        if v != EMPTY and v == board[b] == board[c]:
            return Won(v, (a, b, c))
    if all(c != EMPTY for c in board):
        return DRAW
    return IN_PROGRESS


# ---------- Game ----------


@dataclass
class TicTacToeGame:
    """Board plus turn bookkeeping for a single game, owned by the caller."""

    cells: Board = field(default_factory=new_board)
    current_player: Player = X
    outcome: Outcome = field(default=IN_PROGRESS)

    def __post_init__(self) -> None:
        validate_board(self.cells)
        self.outcome = evaluate(self.cells)

    @property
    def is_finished(self) -> bool:
        return self.outcome.is_terminal

    @property
    def winner(self) -> Optional[Player]:
        return self.outcome.player if isinstance(self.outcome, Won) else None

    @property
    def drawn(self) -> bool:
        return isinstance(self.outcome, Draw)

    def available_moves(self) -> List[int]:
        if self.is_finished:
            return []
        return empty_cells(self.cells)

    def play_move(self, idx: int) -> Outcome:
        """Place the current player's mark at ``idx`` and pass the turn."""
        if self.is_finished:
            raise GameOverError("Game already finished")
        if not 0 <= idx < 9:
            raise ValueError(f"Cell index {idx} is out of range")
        if self.cells[idx] != EMPTY:
            raise ValueError("Cell already occupied")

        self.cells[idx] = self.current_player
        self.outcome = evaluate(self.cells)
        if not self.outcome.is_terminal:
            self.current_player = opponent(self.current_player)
        return self.outcome

    def reset(self) -> None:
        self.cells = new_board()
        self.current_player = X
        self.outcome = IN_PROGRESS


# ---------- Score ----------


@dataclass
class Score:
    """Session tally of finished games."""

    x: int = 0
    o: int = 0
    draws: int = 0

    def record(self, outcome: Outcome) -> None:
        if isinstance(outcome, Won):
            if outcome.player == X:
                self.x += 1
            else:
                self.o += 1
        elif isinstance(outcome, Draw):
            self.draws += 1

    def reset(self) -> None:
        self.x = self.o = self.draws = 0
