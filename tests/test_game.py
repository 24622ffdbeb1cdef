"""Unit tests for tic-tac-toe rules, game state and scoring."""

import itertools

import pytest

from gridxo.game import (
    DRAW,
    IN_PROGRESS,
    WINNING_LINES,
    GameOverError,
    Score,
    TicTacToeGame,
    Won,
    evaluate,
    new_board,
    validate_board,
)


def board(rows: str):
    """Build a board from a 9-char string, '.' for empty."""
    return [" " if c == "." else c for c in rows]


def test_empty_board_in_progress():
    assert evaluate(new_board()) == IN_PROGRESS
    assert not evaluate(new_board()).is_terminal


@pytest.mark.parametrize("line", WINNING_LINES)
@pytest.mark.parametrize("player", ["X", "O"])
def test_every_line_wins(line, player):
    cells = new_board()
    for i in line:
        cells[i] = player
    outcome = evaluate(cells)
    assert outcome == Won(player, line)
    assert outcome.is_terminal


def test_partial_boards_in_progress():
    assert evaluate(board("XX.OO....")) == IN_PROGRESS
    assert evaluate(board("XOXOXO...")) == IN_PROGRESS
    assert evaluate(board("XOX.O.O.X")) == IN_PROGRESS


def test_full_board_without_line_is_draw():
    outcome = evaluate(board("XOXXOOOXX"))
    assert outcome == DRAW
    assert outcome.is_terminal


def test_full_board_with_line_is_win_not_draw():
    assert evaluate(board("XXXOOXOXO")) == Won("X", (0, 1, 2))


def test_double_win_reports_row_before_column():
    # Row 0 and column 0 both complete for X.
    assert evaluate(board("XXXXOOXOO")) == Won("X", (0, 1, 2))


def test_double_win_reports_column_before_diagonal():
    assert evaluate(board("X..XX.X.X")) == Won("X", (0, 3, 6))


def test_double_win_reports_main_before_anti_diagonal():
    assert evaluate(board("X.X.X.X.X")) == Won("X", (0, 4, 8))


def test_illegal_double_owner_board_uses_scan_order():
    # Not reachable in play; O's row is scanned first.
    assert evaluate(board("OOOXXX...")) == Won("O", (0, 1, 2))


def test_evaluate_exhaustive_no_line_is_draw_or_in_progress():
    for cells in itertools.product("XO ", repeat=9):
        cells = list(cells)
        has_line = any(
            cells[a] != " " and cells[a] == cells[b] == cells[c]
            for a, b, c in WINNING_LINES
        )
        outcome = evaluate(cells)
        if has_line:
            assert isinstance(outcome, Won)
        elif " " in cells:
            assert outcome == IN_PROGRESS
        else:
            assert outcome == DRAW


def test_evaluate_does_not_mutate():
    cells = board("XX.OO....")
    evaluate(cells)
    assert cells == board("XX.OO....")


@pytest.mark.parametrize("bad", [["X"] * 8, ["X"] * 10, board("XX.OO...Z")])
def test_validate_board_rejects_malformed(bad):
    with pytest.raises(ValueError):
        validate_board(bad)


def test_game_alternates_players():
    game = TicTacToeGame()
    game.play_move(4)
    assert game.cells[4] == "X"
    assert game.current_player == "O"
    game.play_move(0)
    assert game.cells[0] == "O"
    assert game.current_player == "X"
    assert game.available_moves() == [1, 2, 3, 5, 6, 7, 8]


def test_game_rejects_occupied_and_out_of_range():
    game = TicTacToeGame()
    game.play_move(0)
    with pytest.raises(ValueError):
        game.play_move(0)
    with pytest.raises(ValueError):
        game.play_move(9)


def test_game_finishes_and_blocks_further_moves():
    game = TicTacToeGame()
    for idx in (0, 3, 1, 4, 2):
        game.play_move(idx)
    assert game.is_finished
    assert game.winner == "X"
    assert game.outcome == Won("X", (0, 1, 2))
    assert game.available_moves() == []
    with pytest.raises(GameOverError):
        game.play_move(5)


def test_game_reset_returns_to_fresh_board():
    game = TicTacToeGame()
    for idx in (0, 3, 1, 4, 2):
        game.play_move(idx)
    game.reset()
    assert game.cells == new_board()
    assert game.current_player == "X"
    assert not game.is_finished


def test_score_records_each_outcome():
    score = Score()
    score.record(Won("X", (0, 1, 2)))
    score.record(Won("O", (2, 4, 6)))
    score.record(Won("O", (0, 3, 6)))
    score.record(DRAW)
    score.record(IN_PROGRESS)
    assert (score.x, score.o, score.draws) == (1, 2, 1)
    score.reset()
    assert (score.x, score.o, score.draws) == (0, 0, 0)
