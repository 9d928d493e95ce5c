"""
UCI (Universal Chess Interface) protocol handler.

UCI is the standard text-based protocol that allows chess GUIs and testing
tools (like cutechess-cli) to communicate with chess engines. The engine
reads commands from stdin and writes responses to stdout. All output lines
must be flushed immediately — GUI programs won't block waiting for a newline.

Protocol overview:
    GUI → Engine: uci, isready, ucinewgame, setoption, position, go, stop, quit
    Engine → GUI: id name, id author, option, uciok, readyok, info, bestmove

Playing strength is chosen with the Difficulty option:
    setoption name Difficulty value Hard
"go depth N" overrides the difficulty's depth for a single search. Clock
parameters (wtime, btime, movetime, ...) are accepted and ignored: the engine
searches to a fixed depth.

Threading model:
    The UCI loop runs on the main thread and never blocks on the search.
    When the GUI sends "go", we spawn a daemon thread to run the search. The
    search itself cannot be interrupted, so "stop" waits for the running
    search to reply with its bestmove.

Critical rule: NEVER print to stdout except for valid UCI responses.
Debug output must go to stderr or be suppressed entirely.
"""

import sys
import os
import threading
import time

# ---------------------------------------------------------------------------
# Path setup: make 'engine' importable when this script is run directly as
# `python interface/uci.py` from the repo root.
# ---------------------------------------------------------------------------
_REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _REPO_ROOT not in sys.path:
    sys.path.insert(0, _REPO_ROOT)

import chess
from engine.constants import CHECKMATE_SCORE, DEFAULT_DIFFICULTY
from engine.difficulty import Difficulty, UnknownDifficultyError
from engine.search import get_best_move

ENGINE_NAME = "Grandmaster Chess"
ENGINE_AUTHOR = "Grandmaster Chess Project"

# Scores this close to CHECKMATE_SCORE are reported as "score mate N".
_MATE_WINDOW = 1_000


def _send(line: str) -> None:
    """
    Write a line to stdout and flush immediately.

    Args:
        line: The UCI response line to send (without trailing newline).
    """
    print(line, flush=True)


def _log(message: str) -> None:
    """
    Write a debug/error message to stderr.

    In UCI mode, stdout is reserved for valid protocol messages.

    Args:
        message: The log message (without trailing newline).
    """
    print(message, file=sys.stderr, flush=True)


def format_score(score: int, turn: chess.Color) -> str:
    """
    Format an absolute engine score as a UCI "score" value.

    UCI scores are relative to the side to move, while the engine's scores
    are positive for White, so Black's scores are negated.

    Args:
        score: Absolute centipawn score (positive favors White).
        turn:  Side to move in the searched position.

    Returns:
        "cp <n>" or, for forced mates, "mate <moves>" (negative when the
        side to move is getting mated).
    """
    relative = score if turn == chess.WHITE else -score
    if abs(relative) >= CHECKMATE_SCORE - _MATE_WINDOW:
        plies = CHECKMATE_SCORE - abs(relative)
        moves = (plies + 1) // 2
        return f"mate {moves if relative > 0 else -moves}"
    return f"cp {relative}"


class UciHandler:
    """
    Stateful handler for the UCI protocol.

    Holds the current board position and difficulty, and manages the search
    thread lifecycle. The main UCI loop creates one instance and dispatches
    commands to it.

    Attributes:
        board:         The current board position, updated by "position".
        difficulty:    Playing strength, updated by "setoption".
        search_thread: The active search thread, or None.
    """

    def __init__(self) -> None:
        self.board: chess.Board = chess.Board()
        self.difficulty: Difficulty = Difficulty.parse(DEFAULT_DIFFICULTY)
        self.search_thread: threading.Thread | None = None

    # -----------------------------------------------------------------------
    # Command handlers
    # -----------------------------------------------------------------------

    def handle_uci(self) -> None:
        """Identify the engine and advertise the Difficulty option."""
        _send(f"id name {ENGINE_NAME}")
        _send(f"id author {ENGINE_AUTHOR}")
        levels = " ".join(f"var {level.value}" for level in Difficulty)
        _send(f"option name Difficulty type combo default {self.difficulty.value} {levels}")
        _send("uciok")

    def handle_isready(self) -> None:
        """Respond to the "isready" synchronization barrier."""
        _send("readyok")

    def handle_ucinewgame(self) -> None:
        """Wait for any running search and reset the board."""
        self._wait_search()
        self.board = chess.Board()

    def handle_setoption(self, tokens: list[str]) -> None:
        """
        Parse a "setoption" command.

        Format:
            setoption name <id> [value <x>]

        Only the Difficulty option is supported. Unknown options are ignored
        and an unknown difficulty leaves the current level unchanged; both
        are reported on stderr.

        Args:
            tokens: The command tokens with "setoption" already stripped.
        """
        if "name" not in tokens:
            _log("uci: setoption without name")
            return
        name_idx = tokens.index("name")
        if "value" in tokens:
            value_idx = tokens.index("value")
            name = " ".join(tokens[name_idx + 1:value_idx])
            value = " ".join(tokens[value_idx + 1:])
        else:
            name = " ".join(tokens[name_idx + 1:])
            value = ""

        if name.lower() != "difficulty":
            _log(f"uci: ignoring unknown option: {name!r}")
            return

        try:
            self.difficulty = Difficulty.parse(value)
        except UnknownDifficultyError as e:
            _log(f"uci: {e}")

    def handle_position(self, tokens: list[str]) -> None:
        """
        Parse and apply a "position" command.

        Command formats:
            position startpos
            position startpos moves e2e4 e7e5 ...
            position fen <FEN>
            position fen <FEN> moves e2e4 e7e5 ...

        Args:
            tokens: The command tokens with "position" already stripped.
                    tokens[0] is "startpos" or "fen".
        """
        try:
            if not tokens:
                return

            if tokens[0] == "startpos":
                board = chess.Board()
                move_tokens = tokens[2:] if len(tokens) > 1 and tokens[1] == "moves" else []
            elif tokens[0] == "fen":
                # FEN strings have 6 space-separated fields; find where "moves" appears
                if "moves" in tokens:
                    moves_idx = tokens.index("moves")
                    fen = " ".join(tokens[1:moves_idx])
                    move_tokens = tokens[moves_idx + 1:]
                else:
                    fen = " ".join(tokens[1:])
                    move_tokens = []
                board = chess.Board(fen)
            else:
                _log(f"uci: unknown position type: {tokens[0]}")
                return

            # Replay the move list to reach the current position.
            for uci_move in move_tokens:
                move = chess.Move.from_uci(uci_move)
                if move in board.legal_moves:
                    board.push(move)
                else:
                    _log(f"uci: illegal move in position command: {uci_move}")
                    break

            self.board = board

        except ValueError as e:
            _log(f"uci: error in position command: {e}")

    def handle_go(self, tokens: list[str]) -> None:
        """
        Parse a "go" command and start the search in a background thread.

        Supported parameters:
            depth <n> — search exactly n plies, ignoring the difficulty depth

        The board is copied before the thread starts so that a following
        "position" command cannot race with the search.

        Args:
            tokens: The command tokens with "go" already stripped.
        """
        self._wait_search()

        depth = self._parse_go_depth(tokens)
        board_copy = self.board.copy()
        difficulty = self.difficulty

        def search_and_reply() -> None:
            """Run the search and emit the UCI info + bestmove lines."""
            try:
                start = time.monotonic()
                move, score, searched, nodes = get_best_move(board_copy, difficulty, depth=depth)
                elapsed_ms = max(1, int((time.monotonic() - start) * 1000))

                if move is not None:
                    nps = nodes * 1000 // elapsed_ms
                    _send(
                        f"info depth {searched} score {format_score(score, board_copy.turn)} "
                        f"nodes {nodes} nps {nps} time {elapsed_ms}"
                    )
                    _send(f"bestmove {move.uci()}")
                else:
                    # No legal moves: the game is over (checkmate or stalemate).
                    _send("bestmove (none)")

            except Exception as e:
                _log(f"search error: {type(e).__name__}: {e}")
                _send("bestmove (none)")

        self.search_thread = threading.Thread(target=search_and_reply, daemon=True)
        self.search_thread.start()

    def handle_stop(self) -> None:
        """Wait for the running search; it replies with its bestmove."""
        self._wait_search()

    def handle_quit(self) -> None:
        """Wait for the running search and exit the process."""
        self._wait_search()
        sys.exit(0)

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    def _wait_search(self) -> None:
        """Join the current search thread, if any."""
        if self.search_thread is not None and self.search_thread.is_alive():
            self.search_thread.join()
        self.search_thread = None

    @staticmethod
    def _parse_go_depth(tokens: list[str]) -> int | None:
        """
        Extract "depth <n>" from "go" command tokens.

        Args:
            tokens: The go command tokens (with "go" stripped).

        Returns:
            The requested depth, or None to use the difficulty's depth.
        """
        if "depth" not in tokens:
            return None
        idx = tokens.index("depth")
        try:
            return max(0, int(tokens[idx + 1]))
        except (ValueError, IndexError):
            _log("uci: malformed go depth, using difficulty depth")
            return None


def run_uci_loop() -> None:
    """
    Main UCI protocol loop.

    Reads lines from stdin and dispatches each command to the UciHandler.
    Runs until the "quit" command is received or stdin is closed.

    Each command is wrapped in a try/except so that a bug in one command
    handler does not crash the engine. Errors are logged to stderr and the
    loop continues.
    """
    handler = UciHandler()

    for raw_line in sys.stdin:
        line = raw_line.strip()
        if not line:
            continue

        tokens = line.split()
        command = tokens[0]
        args = tokens[1:]

        try:
            if command == "uci":
                handler.handle_uci()
            elif command == "isready":
                handler.handle_isready()
            elif command == "ucinewgame":
                handler.handle_ucinewgame()
            elif command == "setoption":
                handler.handle_setoption(args)
            elif command == "position":
                handler.handle_position(args)
            elif command == "go":
                handler.handle_go(args)
            elif command == "stop":
                handler.handle_stop()
            elif command == "quit":
                handler.handle_quit()
            else:
                # Unknown commands are ignored per the UCI specification.
                _log(f"uci: ignoring unknown command: {command!r}")

        except Exception as e:
            _log(f"uci: unhandled error for command {command!r}: {e}")

    handler._wait_search()


if __name__ == "__main__":
    run_uci_loop()
