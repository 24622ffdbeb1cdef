"""FastAPI-powered web UI for playing tic-tac-toe in the browser."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Literal, Optional

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
)

from .ai import ComputerPlayer, Difficulty
from .game import O, X, Draw, Player, Score, TicTacToeGame, Won, opponent

logger = logging.getLogger(__name__)


class GameMode(str, Enum):
    COMPUTER = "computer"
    PLAYER = "player"


@dataclass
class GameSession:
    """Container for an active match, its score and optional AI opponent."""

    game: TicTacToeGame
    mode: GameMode
    names: Dict[Player, str]
    ai: Optional[ComputerPlayer] = None
    score: Score = field(default_factory=Score)
    move_log: List[Dict[str, int | str]] = field(default_factory=list)
    ai_pending: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    last_active: float = field(default_factory=lambda: time.time())


SESSIONS: Dict[str, GameSession] = {}
app = FastAPI(title="gridxo", description="Tic-tac-toe played in the browser")


# Seconds the computer "thinks" before answering, for pacing only.
AI_THINK_DELAY: Dict[Difficulty, float] = {
    Difficulty.EASY: 0.4,
    Difficulty.MEDIUM: 0.6,
    Difficulty.HARD: 0.8,
}
NAME_MAX_LENGTH = 12
DEFAULT_NAMES: Dict[str, str] = {"x": "PLAYER 1", "o": "PLAYER 2"}
COMPUTER_NAMES = ("YOU", "AI")
SESSION_TTL_SECONDS = 60 * 60  # 1 hour without requests


class PlayerNames(BaseModel):
    """Display names for the X and O sides of a two-player match."""

    x: str = DEFAULT_NAMES["x"]
    o: str = DEFAULT_NAMES["o"]

    @field_validator("x", "o")
    @classmethod
    def normalize_name(cls, value: str, info: ValidationInfo) -> str:
        cleaned = value.strip().upper()[:NAME_MAX_LENGTH]
        return cleaned or DEFAULT_NAMES[info.field_name]


class NewGameRequest(BaseModel):
    """Request payload for starting a new match."""

    model_config = ConfigDict(populate_by_name=True)

    mode: GameMode = GameMode.COMPUTER
    difficulty: Difficulty = Field(
        default=Difficulty.MEDIUM,
        description="Computer strength, ignored in two-player mode",
    )
    player_symbol: Literal["X", "O"] = Field(
        default="X",
        alias="playerSymbol",
        description="Side the human plays against the computer; X moves first",
    )
    player_names: PlayerNames = Field(
        default_factory=PlayerNames, alias="playerNames"
    )


class MoveRequest(BaseModel):
    """Request payload for submitting a move on an existing game."""

    model_config = ConfigDict(populate_by_name=True)

    cell_index: int = Field(alias="cellIndex", ge=0, le=8)


class RematchRequest(BaseModel):
    """Optional settings to change between games of the same match."""

    model_config = ConfigDict(populate_by_name=True)

    difficulty: Optional[Difficulty] = None
    player_symbol: Optional[Literal["X", "O"]] = Field(
        default=None,
        alias="playerSymbol",
        description="Switch the human's side against the computer",
    )


def _cleanup_sessions() -> None:
    """Forget sessions that have seen no requests for a while."""

    now = time.time()
    expired = [
        session_id
        for session_id, session in list(SESSIONS.items())
        if now - session.last_active >= SESSION_TTL_SECONDS
    ]
    for session_id in expired:
        SESSIONS.pop(session_id, None)
    if expired:
        logger.info("Expired %d idle session(s)", len(expired))


def _computer_side(
    human: Player, difficulty: Difficulty
) -> tuple[Dict[Player, str], ComputerPlayer]:
    computer = opponent(human)
    names = {human: COMPUTER_NAMES[0], computer: COMPUTER_NAMES[1]}
    return names, ComputerPlayer(player=computer, difficulty=difficulty)


def _create_session(request: NewGameRequest) -> tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    _cleanup_sessions()
    ai: Optional[ComputerPlayer] = None
    if request.mode is GameMode.COMPUTER:
        names, ai = _computer_side(request.player_symbol, request.difficulty)
    else:
        names = {X: request.player_names.x, O: request.player_names.o}

    session = GameSession(game=TicTacToeGame(), mode=request.mode, names=names, ai=ai)
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    logger.info(
        "Created %s session %s%s",
        request.mode.value,
        session_id,
        f" ({ai.difficulty.value}, computer plays {ai.player})" if ai else "",
    )
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        session = SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc
    session.last_active = time.time()
    return session


def _computer_to_move(session: GameSession) -> bool:
    game = session.game
    return bool(
        session.ai
        and not game.is_finished
        and game.current_player == session.ai.player
    )


def _record_if_finished(game_id: str, session: GameSession) -> None:
    outcome = session.game.outcome
    if not outcome.is_terminal:
        return
    session.score.record(outcome)
    if isinstance(outcome, Won):
        logger.info(
            "Session %s: %s wins on line %s",
            game_id,
            session.names[outcome.player],
            outcome.line,
        )
    else:
        logger.info("Session %s: draw", game_id)


def _run_ai_turn(game_id: str) -> None:
    session = SESSIONS.get(game_id)
    if not session or not session.ai:
        return

    time.sleep(max(0.0, AI_THINK_DELAY.get(session.ai.difficulty, 0.0)))

    with session.lock:
        try:
            if not _computer_to_move(session):
                return
            ai = session.ai
            cell_index = ai.choose(session.game)
            session.game.play_move(cell_index)
            session.move_log.append({"player": ai.player, "cellIndex": cell_index})
            _record_if_finished(game_id, session)
        finally:
            session.ai_pending = False


def _schedule_ai_turn(
    game_id: str,
    session: GameSession,
    background_tasks: Optional[BackgroundTasks],
) -> None:
    # Caller holds session.lock.
    if _computer_to_move(session):
        session.ai_pending = True
        if background_tasks is not None:
            background_tasks.add_task(_run_ai_turn, game_id)


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        game = session.game
        outcome = game.outcome
        if isinstance(outcome, Won):
            status = "won"
        elif isinstance(outcome, Draw):
            status = "draw"
        else:
            status = "in_progress"

        state: Dict[str, object] = {
            "id": game_id,
            "mode": session.mode.value,
            "difficulty": session.ai.difficulty.value if session.ai else None,
            "computerSymbol": session.ai.player if session.ai else None,
            "board": [c if c in ("X", "O") else "" for c in game.cells],
            "currentPlayer": game.current_player,
            "status": status,
            "winner": game.winner,
            "winningLine": list(outcome.line) if isinstance(outcome, Won) else [],
            "drawn": game.drawn,
            "names": dict(session.names),
            "score": {
                "x": session.score.x,
                "o": session.score.o,
                "draws": session.score.draws,
            },
            "availableMoves": game.available_moves(),
            "moveLog": list(session.move_log),
            "aiPending": session.ai_pending,
        }
        if session.move_log:
            state["lastMove"] = session.move_log[-1]
        return state


def _apply_player_move(
    game_id: str,
    session: GameSession,
    cell_index: int,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    with session.lock:
        game = session.game
        if game.is_finished:
            raise HTTPException(status_code=400, detail="Game already finished")

        if session.ai_pending:
            raise HTTPException(status_code=400, detail="AI is completing its move")

        if session.ai and game.current_player == session.ai.player:
            raise HTTPException(status_code=400, detail="It is not your turn")

        player = game.current_player
        try:
            game.play_move(cell_index)
        except ValueError as exc:
            logger.info("Session %s: rejected move %d: %s", game_id, cell_index, exc)
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        session.move_log.append({"player": player, "cellIndex": cell_index})
        _record_if_finished(game_id, session)
        _schedule_ai_turn(game_id, session, background_tasks)


@app.post("/api/game")
def create_game(
    request: NewGameRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    game_id, session = _create_session(request)
    with session.lock:
        _schedule_ai_turn(game_id, session, background_tasks)
    return _serialize_session(game_id, session)


@app.get("/api/game/{game_id}")
def get_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/move")
def make_move(
    game_id: str, request: MoveRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    session = _get_session(game_id)
    _apply_player_move(game_id, session, request.cell_index, background_tasks)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/rematch")
def rematch(
    game_id: str,
    background_tasks: BackgroundTasks,
    request: Optional[RematchRequest] = None,
) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        if session.ai_pending:
            raise HTTPException(status_code=400, detail="AI is completing its move")
        if request and request.difficulty is not None:
            if not session.ai:
                raise HTTPException(
                    status_code=400, detail="Two-player games have no difficulty"
                )
            session.ai.difficulty = request.difficulty
        if request and request.player_symbol is not None:
            if not session.ai:
                raise HTTPException(
                    status_code=400, detail="Two-player games have no side choice"
                )
            if request.player_symbol == session.ai.player:
                # The x/o tally no longer matches YOU/AI once sides swap.
                session.names, session.ai = _computer_side(
                    request.player_symbol, session.ai.difficulty
                )
                session.score.reset()
                logger.info(
                    "Session %s: computer now plays %s", game_id, session.ai.player
                )
        session.game.reset()
        session.move_log.clear()
        _schedule_ai_turn(game_id, session, background_tasks)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/score/reset")
def reset_score(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        session.score.reset()
    return _serialize_session(game_id, session)


@app.delete("/api/game/{game_id}")
def end_game(game_id: str) -> Dict[str, object]:
    _get_session(game_id)
    SESSIONS.pop(game_id, None)
    logger.info("Closed session %s", game_id)
    return {"id": game_id, "closed": True}


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    return HTML_PAGE


HTML_PAGE = """<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>gridxo</title>
    <link rel=\"preconnect\" href=\"https://fonts.googleapis.com\" />
    <link rel=\"preconnect\" href=\"https://fonts.gstatic.com\" crossorigin />
    <link
      href=\"https://fonts.googleapis.com/css2?family=Press+Start+2P&display=swap\"
      rel=\"stylesheet\"
    />
    <style>
      :root {
        color-scheme: dark;
        font-family: 'Press Start 2P', ui-monospace, monospace;
        --x: #ff3c7e;
        --o: #27e1ff;
        --draw: #ffd24a;
        --panel: rgba(10, 14, 32, 0.92);
      }
      * {
        box-sizing: border-box;
      }
      body {
        margin: 0;
        min-height: 100vh;
        display: flex;
        justify-content: center;
        align-items: center;
        background: #05060f;
        color: #e8ecff;
        overflow: hidden;
      }
      .grid-bg {
        position: fixed;
        inset: 0;
        background-image:
          linear-gradient(rgba(39, 225, 255, 0.06) 1px, transparent 1px),
          linear-gradient(90deg, rgba(39, 225, 255, 0.06) 1px, transparent 1px);
        background-size: 40px 40px;
        pointer-events: none;
      }
      .hidden {
        display: none !important;
      }
      .panel {
        position: relative;
        background: var(--panel);
        border: 2px solid rgba(39, 225, 255, 0.35);
        border-radius: 6px;
        padding: 2rem 1.75rem;
        width: min(440px, 94vw);
        text-align: center;
        box-shadow: 0 0 40px rgba(39, 225, 255, 0.15);
      }
      h1 {
        margin: 0 0 1.5rem;
        font-size: 1.4rem;
        letter-spacing: 0.1em;
      }
      h1 .x {
        color: var(--x);
      }
      h1 .o {
        color: var(--o);
      }
      h2 {
        font-size: 0.8rem;
        margin: 0 0 1.25rem;
        color: rgba(232, 236, 255, 0.75);
      }
      .btn {
        display: block;
        width: 100%;
        margin: 0.65rem 0;
        padding: 0.9rem 1rem;
        font: inherit;
        font-size: 0.7rem;
        color: inherit;
        background: transparent;
        border: 2px solid rgba(232, 236, 255, 0.4);
        border-radius: 4px;
        cursor: pointer;
        transition: transform 0.12s ease, border-color 0.12s ease;
      }
      .btn:hover:not(:disabled) {
        transform: translateY(-2px);
        border-color: var(--o);
      }
      .btn:disabled {
        opacity: 0.4;
        cursor: not-allowed;
      }
      .btn-primary {
        border-color: var(--x);
        color: var(--x);
      }
      .btn-row {
        display: flex;
        gap: 0.6rem;
      }
      .btn-row .btn.selected {
        border-color: var(--draw);
        color: var(--draw);
      }
      .diff-easy {
        color: #6dff8c;
      }
      .diff-medium {
        color: var(--draw);
      }
      .diff-hard {
        color: var(--x);
      }
      label {
        display: block;
        text-align: left;
        font-size: 0.6rem;
        margin: 1rem 0 0.4rem;
      }
      input {
        width: 100%;
        padding: 0.7rem;
        font: inherit;
        font-size: 0.7rem;
        text-transform: uppercase;
        color: inherit;
        background: rgba(255, 255, 255, 0.04);
        border: 2px solid rgba(232, 236, 255, 0.25);
        border-radius: 4px;
      }
      #loading-text {
        font-size: 1.2rem;
        letter-spacing: 0.2em;
        margin-bottom: 1.5rem;
      }
      .progress {
        height: 12px;
        border: 2px solid var(--o);
        border-radius: 2px;
        overflow: hidden;
      }
      .progress-fill {
        height: 100%;
        width: 0;
        background: var(--o);
      }
      #loading-pct {
        margin-top: 0.8rem;
        font-size: 0.6rem;
      }
      .header {
        display: flex;
        align-items: center;
        justify-content: space-between;
        margin-bottom: 1.2rem;
        font-size: 0.6rem;
      }
      .header .btn {
        width: auto;
        margin: 0;
        padding: 0.4rem 0.7rem;
      }
      .badge {
        padding: 0.35rem 0.5rem;
        border: 1px solid currentColor;
        border-radius: 3px;
      }
      .scoreboard {
        display: flex;
        justify-content: space-between;
        margin-bottom: 1.1rem;
      }
      .score-item {
        flex: 1;
        display: flex;
        flex-direction: column;
        gap: 0.5rem;
        padding: 0.5rem 0;
        font-size: 0.55rem;
        border-bottom: 2px solid transparent;
      }
      .score-item.active {
        border-bottom-color: var(--draw);
      }
      .score-num {
        font-size: 1.1rem;
      }
      .score-item.x .score-num {
        color: var(--x);
      }
      .score-item.o .score-num {
        color: var(--o);
      }
      .score-item.draw .score-num {
        color: var(--draw);
      }
      #status {
        min-height: 1.2rem;
        font-size: 0.7rem;
        margin: 0 0 1rem;
      }
      #status.win {
        color: #6dff8c;
      }
      #status.lose {
        color: var(--x);
      }
      #status.draw {
        color: var(--draw);
      }
      #message {
        min-height: 1rem;
        font-size: 0.5rem;
        color: var(--x);
      }
      .board {
        position: relative;
        display: grid;
        grid-template-columns: repeat(3, 1fr);
        gap: 6px;
        aspect-ratio: 1;
        margin-bottom: 1rem;
      }
      .board.thinking {
        opacity: 0.7;
      }
      .cell {
        font: inherit;
        font-size: 2rem;
        background: rgba(255, 255, 255, 0.03);
        border: 2px solid rgba(39, 225, 255, 0.25);
        border-radius: 4px;
        color: inherit;
        cursor: pointer;
      }
      .cell:disabled {
        cursor: default;
      }
      .cell.x {
        color: var(--x);
        text-shadow: 0 0 12px var(--x);
      }
      .cell.o {
        color: var(--o);
        text-shadow: 0 0 12px var(--o);
      }
      .cell.hoverable:hover {
        background: rgba(255, 255, 255, 0.08);
      }
      .win-line {
        position: absolute;
        height: 6px;
        background: var(--draw);
        box-shadow: 0 0 14px var(--draw);
        border-radius: 3px;
        pointer-events: none;
      }
    </style>
  </head>
  <body>
    <div class=\"grid-bg\" aria-hidden=\"true\"></div>

    <section id=\"loading-screen\" class=\"panel hidden\">
      <p id=\"loading-text\">LOADING</p>
      <div class=\"progress\"><div id=\"loading-fill\" class=\"progress-fill\"></div></div>
      <p id=\"loading-pct\">0%</p>
    </section>

    <section id=\"menu-screen\" class=\"panel hidden\">
      <h1><span class=\"x\">TIC</span> TAC <span class=\"o\">TOE</span></h1>
      <button id=\"menu-two-player\" class=\"btn btn-primary\">&#9876; 2 PLAYER</button>
      <button id=\"menu-computer\" class=\"btn\">&#129302; VS COMPUTER</button>
      <button id=\"menu-music\" class=\"btn\">&#9835; SOUND: ON</button>
    </section>

    <section id=\"names-screen\" class=\"panel hidden\">
      <h2>ENTER PLAYER NAMES</h2>
      <label for=\"name-x\">PLAYER 1 (X)</label>
      <input id=\"name-x\" maxlength=\"12\" placeholder=\"PLAYER 1\" value=\"PLAYER 1\" />
      <label for=\"name-o\">PLAYER 2 (O)</label>
      <input id=\"name-o\" maxlength=\"12\" placeholder=\"PLAYER 2\" value=\"PLAYER 2\" />
      <button id=\"start-two-player\" class=\"btn btn-primary\">&#9654; START GAME</button>
      <button class=\"btn back-to-menu\">- BACK -</button>
    </section>

    <section id=\"difficulty-screen\" class=\"panel hidden\">
      <h2>SELECT DIFFICULTY</h2>
      <button class=\"btn diff-easy\" data-difficulty=\"EASY\">EASY</button>
      <button class=\"btn diff-medium\" data-difficulty=\"MEDIUM\">MEDIUM</button>
      <button class=\"btn diff-hard\" data-difficulty=\"HARD\">HARD</button>
      <h2>PLAY AS</h2>
      <div class=\"btn-row\">
        <button class=\"btn symbol-choice selected\" data-symbol=\"X\">X (FIRST)</button>
        <button class=\"btn symbol-choice\" data-symbol=\"O\">O</button>
      </div>
      <button class=\"btn back-to-menu\">- BACK -</button>
    </section>

    <section id=\"game-screen\" class=\"panel hidden\">
      <div class=\"header\">
        <button id=\"game-back\" class=\"btn\">&#10094;</button>
        <span id=\"mode-label\"></span>
        <span id=\"difficulty-badge\" class=\"badge\"></span>
      </div>
      <div class=\"scoreboard\">
        <div id=\"score-x\" class=\"score-item x\">
          <span id=\"score-x-name\"></span><span id=\"score-x-num\" class=\"score-num\">0</span>
        </div>
        <div class=\"score-item draw\">
          <span>DRAW</span><span id=\"score-draw-num\" class=\"score-num\">0</span>
        </div>
        <div id=\"score-o\" class=\"score-item o\">
          <span id=\"score-o-name\"></span><span id=\"score-o-num\" class=\"score-num\">0</span>
        </div>
      </div>
      <p id=\"status\"></p>
      <div id=\"board\" class=\"board\"></div>
      <p id=\"message\"></p>
      <div class=\"btn-row\">
        <button id=\"rematch\" class=\"btn\">&#8634; REMATCH</button>
        <button id=\"change\" class=\"btn\">&#9881; CHANGE</button>
      </div>
      <button id=\"reset-score\" class=\"btn\">RESET SCORE</button>
    </section>

    <script>
      const SESSION_KEY = 'gridxo_loaded';
      const LOADING_MS = 5000;
      const GLITCH_CHARS = '!@#$%^&*<>?/|[]{}~X0';
      const CELL_CENTERS = [
        [16.67, 16.67], [50, 16.67], [83.33, 16.67],
        [16.67, 50], [50, 50], [83.33, 50],
        [16.67, 83.33], [50, 83.33], [83.33, 83.33],
      ];

      const screens = {
        loading: document.getElementById('loading-screen'),
        menu: document.getElementById('menu-screen'),
        names: document.getElementById('names-screen'),
        difficulty: document.getElementById('difficulty-screen'),
        game: document.getElementById('game-screen'),
      };
      const boardContainer = document.getElementById('board');
      const statusEl = document.getElementById('status');
      const messageEl = document.getElementById('message');
      const musicButton = document.getElementById('menu-music');

      let gameId = null;
      let gameState = null;
      let pollHandle = null;
      let isRequestPending = false;
      let playerSymbol = 'X';
      let soundOn = true;
      let lastMoveCount = 0;

      /* ---- sound: one AudioContext owned by the page ---- */
      let audioCtx = null;

      function getAudioCtx() {
        if (!audioCtx) {
          audioCtx = new (window.AudioContext || window.webkitAudioContext)();
        }
        if (audioCtx.state === 'suspended') audioCtx.resume();
        return audioCtx;
      }

      function tone(type, from, to, gain, start, length) {
        const ctx = getAudioCtx();
        const osc = ctx.createOscillator();
        const amp = ctx.createGain();
        osc.connect(amp);
        amp.connect(ctx.destination);
        osc.type = type;
        const t0 = ctx.currentTime + start;
        osc.frequency.setValueAtTime(from, t0);
        if (to !== from) osc.frequency.exponentialRampToValueAtTime(to, t0 + length * 0.7);
        amp.gain.setValueAtTime(gain, t0);
        amp.gain.exponentialRampToValueAtTime(0.001, t0 + length);
        osc.start(t0);
        osc.stop(t0 + length);
      }

      const sounds = {
        click: () => tone('sine', 800, 400, 0.3, 0, 0.08),
        placeX: () => tone('square', 440, 660, 0.2, 0, 0.15),
        placeO: () => tone('sine', 550, 330, 0.2, 0, 0.15),
        win: () => [523, 659, 784, 1047].forEach((f, i) => tone('square', f, f, 0.25, i * 0.12, 0.25)),
        lose: () => [400, 350, 280, 220].forEach((f, i) => tone('sawtooth', f, f, 0.2, i * 0.13, 0.2)),
        draw: () => [440, 440, 330].forEach((f, i) => tone('triangle', f, f, 0.2, i * 0.15, 0.2)),
      };

      function play(name) {
        if (!soundOn) return;
        try {
          sounds[name]();
        } catch (error) {
          console.warn('Sound unavailable', error);
        }
      }

      /* ---- screens ---- */
      function show(name) {
        Object.values(screens).forEach((el) => el.classList.add('hidden'));
        screens[name].classList.remove('hidden');
      }

      function runLoading() {
        const textEl = document.getElementById('loading-text');
        const fillEl = document.getElementById('loading-fill');
        const pctEl = document.getElementById('loading-pct');
        const start = Date.now();
        show('loading');

        const glitch = window.setInterval(() => {
          textEl.textContent = 'LOADING'
            .split('')
            .map((ch) => (Math.random() < 0.35
              ? GLITCH_CHARS[Math.floor(Math.random() * GLITCH_CHARS.length)]
              : ch))
            .join('');
          window.setTimeout(() => { textEl.textContent = 'LOADING'; }, 120);
        }, 900);

        const tick = () => {
          const elapsed = Date.now() - start;
          const raw = elapsed / LOADING_MS;
          const eased = raw < 0.85 ? raw * 1.1 : 0.935 + (raw - 0.85) * 0.43;
          const pct = Math.min(100, Math.round(eased * 100));
          fillEl.style.width = `${pct}%`;
          pctEl.textContent = `${pct}%`;
          if (elapsed < LOADING_MS) {
            requestAnimationFrame(tick);
            return;
          }
          fillEl.style.width = '100%';
          pctEl.textContent = '100%';
          window.clearInterval(glitch);
          window.setTimeout(() => {
            sessionStorage.setItem(SESSION_KEY, 'true');
            show('menu');
          }, 300);
        };
        requestAnimationFrame(tick);
      }

      /* ---- API ---- */
      async function api(path, options = {}) {
        const response = await fetch(path, {
          headers: { 'Content-Type': 'application/json' },
          ...options,
        });
        const payload = await response.json().catch(() => ({}));
        if (!response.ok) {
          const detail = typeof payload?.detail === 'string' ? payload.detail : 'Request failed';
          throw new Error(detail);
        }
        return payload;
      }

      function stopPolling() {
        if (pollHandle !== null) {
          clearTimeout(pollHandle);
          pollHandle = null;
        }
      }

      function ensurePolling() {
        if (pollHandle !== null) return;
        pollHandle = window.setTimeout(pollState, 250);
      }

      async function pollState() {
        pollHandle = null;
        if (!gameId) return;
        try {
          setState(await api(`/api/game/${gameId}`));
        } catch (error) {
          console.error('Polling failed', error);
        }
      }

      async function startGame(body) {
        if (isRequestPending) return;
        isRequestPending = true;
        stopPolling();
        messageEl.textContent = '';
        try {
          gameState = null;
          lastMoveCount = 0;
          const data = await api('/api/game', { method: 'POST', body: JSON.stringify(body) });
          show('game');
          setState(data);
        } catch (error) {
          messageEl.textContent = error.message;
        } finally {
          isRequestPending = false;
        }
      }

      async function sendMove(cellIndex) {
        if (!gameState || gameState.status !== 'in_progress' || isRequestPending) return;
        if (gameState.aiPending || gameState.currentPlayer === gameState.computerSymbol) return;
        isRequestPending = true;
        messageEl.textContent = '';
        try {
          setState(await api(`/api/game/${gameId}/move`, {
            method: 'POST',
            body: JSON.stringify({ cellIndex }),
          }));
        } catch (error) {
          messageEl.textContent = error.message;
        } finally {
          isRequestPending = false;
        }
      }

      async function rematch(settings = {}) {
        if (!gameId) return;
        try {
          lastMoveCount = 0;
          setState(await api(`/api/game/${gameId}/rematch`, {
            method: 'POST',
            body: JSON.stringify(settings),
          }));
        } catch (error) {
          messageEl.textContent = error.message;
        }
      }

      async function leaveGame() {
        stopPolling();
        if (gameId) {
          await api(`/api/game/${gameId}`, { method: 'DELETE' }).catch(() => null);
        }
        gameId = null;
        gameState = null;
        delete screens.difficulty.dataset.changing;
        show('menu');
      }

      function selectSymbol(symbol) {
        playerSymbol = symbol;
        document.querySelectorAll('.symbol-choice').forEach((button) => {
          button.classList.toggle('selected', button.dataset.symbol === symbol);
        });
      }

      /* ---- rendering ---- */
      function setState(data) {
        const previous = gameState;
        gameId = data.id;
        gameState = data;
        announce(previous);
        render();
        if (gameState.aiPending) {
          ensurePolling();
        } else {
          stopPolling();
        }
      }

      function announce(previous) {
        const moves = gameState.moveLog.length;
        if (moves > lastMoveCount) {
          play(gameState.moveLog[moves - 1].player === 'X' ? 'placeX' : 'placeO');
        }
        lastMoveCount = moves;
        if (!previous || previous.status !== 'in_progress' || gameState.status === 'in_progress') {
          return;
        }
        if (gameState.status === 'draw') {
          play('draw');
        } else if (gameState.mode === 'computer' && gameState.winner === gameState.computerSymbol) {
          play('lose');
        } else {
          play('win');
        }
      }

      function statusText() {
        const names = gameState.names;
        if (gameState.status === 'draw') return ["IT'S A DRAW!", 'draw'];
        if (gameState.status === 'won') {
          if (gameState.mode === 'computer') {
            return gameState.winner === gameState.computerSymbol
              ? ['AI WINS!', 'lose']
              : ['YOU WIN!', 'win'];
          }
          return [`${names[gameState.winner]} WINS!`, 'win'];
        }
        if (gameState.aiPending) return ['AI THINKING...', ''];
        const current = gameState.currentPlayer;
        if (gameState.mode === 'computer') return [`YOUR TURN (${current})`, ''];
        return [`${names[current]} (${current})`, ''];
      }

      function render() {
        if (!gameState) return;
        const computer = gameState.mode === 'computer';
        document.getElementById('mode-label').textContent = computer ? 'VS COMPUTER' : '2 PLAYER';
        const badge = document.getElementById('difficulty-badge');
        badge.textContent = gameState.difficulty || '';
        badge.className = computer ? `badge diff-${gameState.difficulty.toLowerCase()}` : 'hidden';
        document.getElementById('change').textContent = computer ? 'CHANGE' : 'PLAYERS';

        document.getElementById('score-x-name').textContent = gameState.names.X;
        document.getElementById('score-o-name').textContent = gameState.names.O;
        document.getElementById('score-x-num').textContent = gameState.score.x;
        document.getElementById('score-o-num').textContent = gameState.score.o;
        document.getElementById('score-draw-num').textContent = gameState.score.draws;
        const live = gameState.status === 'in_progress';
        document.getElementById('score-x').classList.toggle('active', live && gameState.currentPlayer === 'X');
        document.getElementById('score-o').classList.toggle('active', live && gameState.currentPlayer === 'O');

        const [text, tone] = statusText();
        statusEl.textContent = text;
        statusEl.className = tone;

        const humanTurn = live && !gameState.aiPending && gameState.currentPlayer !== gameState.computerSymbol;
        boardContainer.classList.toggle('thinking', gameState.aiPending);
        boardContainer.innerHTML = '';
        gameState.board.forEach((cell, index) => {
          const button = document.createElement('button');
          button.className = `cell ${cell ? cell.toLowerCase() : ''}`;
          button.textContent = cell;
          button.disabled = Boolean(cell) || !humanTurn;
          if (!button.disabled) button.classList.add('hoverable');
          button.addEventListener('click', () => sendMove(index));
          boardContainer.appendChild(button);
        });
        if (gameState.winningLine.length) {
          boardContainer.appendChild(winLine(gameState.winningLine));
        }
        document.getElementById('rematch').disabled = gameState.aiPending;
      }

      function winLine(line) {
        const [x1, y1] = CELL_CENTERS[line[0]];
        const [x2, y2] = CELL_CENTERS[line[2]];
        const dx = x2 - x1;
        const dy = y2 - y1;
        const el = document.createElement('div');
        el.className = 'win-line';
        el.style.left = `${(x1 + x2) / 2}%`;
        el.style.top = `${(y1 + y2) / 2}%`;
        el.style.width = `${Math.sqrt(dx * dx + dy * dy) + 18}%`;
        el.style.transform = `translate(-50%, -50%) rotate(${Math.atan2(dy, dx) * 180 / Math.PI}deg)`;
        return el;
      }

      /* ---- wiring ---- */
      document.querySelectorAll('button').forEach((button) => {
        button.addEventListener('click', () => play('click'));
      });
      document.getElementById('menu-two-player').addEventListener('click', () => show('names'));
      document.getElementById('menu-computer').addEventListener('click', () => show('difficulty'));
      document.querySelectorAll('.back-to-menu').forEach((button) => {
        button.addEventListener('click', () => {
          if (screens.difficulty.dataset.changing) {
            delete screens.difficulty.dataset.changing;
            show('game');
            return;
          }
          show('menu');
        });
      });
      musicButton.addEventListener('click', () => {
        soundOn = !soundOn;
        musicButton.innerHTML = soundOn ? '&#9835; SOUND: ON' : '&#9835; SOUND: OFF';
      });
      document.getElementById('start-two-player').addEventListener('click', () => {
        startGame({
          mode: 'player',
          playerNames: {
            x: document.getElementById('name-x').value,
            o: document.getElementById('name-o').value,
          },
        });
      });
      document.querySelectorAll('#names-screen input').forEach((input) => {
        input.addEventListener('input', () => { input.value = input.value.toUpperCase(); });
        input.addEventListener('keydown', (event) => {
          if (event.key === 'Enter') document.getElementById('start-two-player').click();
        });
      });
      document.querySelectorAll('.symbol-choice').forEach((button) => {
        button.addEventListener('click', () => selectSymbol(button.dataset.symbol));
      });
      document.querySelectorAll('[data-difficulty]').forEach((button) => {
        button.addEventListener('click', () => {
          const difficulty = button.dataset.difficulty;
          if (screens.difficulty.dataset.changing) {
            delete screens.difficulty.dataset.changing;
            if (gameId && gameState?.mode === 'computer') {
              show('game');
              rematch({ difficulty, playerSymbol });
              return;
            }
          }
          startGame({ mode: 'computer', difficulty, playerSymbol });
        });
      });
      document.getElementById('rematch').addEventListener('click', () => rematch());
      document.getElementById('change').addEventListener('click', async () => {
        if (gameState?.mode === 'computer') {
          screens.difficulty.dataset.changing = 'true';
          selectSymbol(gameState.computerSymbol === 'X' ? 'O' : 'X');
          show('difficulty');
          return;
        }
        await leaveGame();
        show('names');
      });
      document.getElementById('reset-score').addEventListener('click', async () => {
        if (!gameId) return;
        try {
          setState(await api(`/api/game/${gameId}/score/reset`, { method: 'POST' }));
        } catch (error) {
          messageEl.textContent = error.message;
        }
      });
      document.getElementById('game-back').addEventListener('click', leaveGame);

      if (sessionStorage.getItem(SESSION_KEY) === 'true') {
        show('menu');
      } else {
        runLoading();
      }
    </script>
  </body>
</html>
"""
