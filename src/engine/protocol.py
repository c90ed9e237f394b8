"""
UCI protocol helpers
-----

Stateless functions composing engine commands and parsing the matching response lines, built only on the
EngineProcess primitives. The engine, not this module, keeps track of the position that was set.

Caller input (FENs, moves) is validated before anything is written to the engine.
"""

import logging
import re
from typing import Iterable, Mapping, Optional

from src.chess.fen import assert_fen_validity
from src.chess.moves import Move
from src.core.config import EngineSettings, OptionValue
from src.core.exceptions import ChessError, ProcessError, ValidationError
from src.engine.process import EngineProcess

_log = logging.getLogger(__name__)

# --- WIRE FORMAT ---
FEN_PREFIX = "Fen: "
BEST_MOVE_TOKEN = "bestmove"
NO_MOVE = "(none)"
PERFT_MOVE_PATTERN = re.compile(r"([a-h][1-8][a-h][1-8][qrbn]?): ([0-9]+)")
PERFT_SUMMARY_PREFIX = "Nodes searched:"
READY_TOKEN = "readyok"
UCI_OK_TOKEN = "uciok"
ID_PREFIX = "id "


def initialize(process: EngineProcess, timeout: Optional[float] = None) -> dict[str, str]:
    """Handshake: send 'uci' and wait for 'uciok'. Returns what the engine said about itself (name, author)."""
    engine_id: dict[str, str] = {}

    def consume(line: str) -> bool:
        if line.startswith(ID_PREFIX):
            key, _, value = line[len(ID_PREFIX) :].partition(" ")
            engine_id[key] = value
        return line.strip() != UCI_OK_TOKEN

    process.exchange("uci", consume, timeout)
    _log.info("Engine [%s] identified itself as %s", process.name, engine_id.get("name", "<unknown>"))
    return engine_id


def start_new_game(process: EngineProcess) -> None:
    """Tell the engine the next positions belong to a different game."""
    process.send("ucinewgame")


def set_position(process: EngineProcess, fen: str, moves: Iterable[Move] = ()) -> None:
    """Set the position in the engine: the base FEN plus the moves played from it, in order."""
    assert_fen_validity(fen)
    command = f"position fen {fen}"
    uci_moves = [move.to_uci() for move in moves]
    if uci_moves:
        command += " moves " + " ".join(uci_moves)
    process.send(command)


def get_position(process: EngineProcess, timeout: Optional[float] = None) -> str:
    """Ask the engine to show its board and pick the FEN out of it."""
    found: list[str] = []

    def consume(line: str) -> bool:
        if line.startswith(FEN_PREFIX):
            found.append(line[len(FEN_PREFIX) :].strip())
            return False
        return True

    with process.exclusive():
        process.exchange("d", consume, timeout)
        # 'd' keeps printing after the FEN (key, checkers)
        wait_for_ready(process, timeout)
    return found[0]


def get_best_move(
    process: EngineProcess, depth: int, timeout: Optional[float] = None
) -> Optional[Move]:
    """Depth bounded search. None when the engine has no move to play (mate or stalemate)."""
    _assert_depth(depth)
    best: list[Optional[Move]] = []

    def consume(line: str) -> bool:
        tokens = line.split()
        if tokens and tokens[0] == BEST_MOVE_TOKEN:
            if len(tokens) < 2:
                raise ProcessError(f"Engine [{process.name}] sent a best move line without a move: {line!r}")
            best.append(None if tokens[1] == NO_MOVE else Move.from_uci(tokens[1]))
            return False
        return True

    process.exchange(f"go depth {depth}", consume, timeout)
    return best[0]


def get_all_moves_rating(
    process: EngineProcess, depth: int, timeout: Optional[float] = None
) -> dict[Move, int]:
    """
    Enumerate every legal move with the perft node count below it.
    ---

    Sends 'go perft <depth>' and collects '<move>: <count>' lines until the 'Nodes searched' summary, then
    waits for 'readyok' so whatever the engine prints after the summary is not left for the next request.
    Moves are returned in ascending move order.
    """
    _assert_depth(depth)
    ratings: dict[Move, int] = {}

    def consume(line: str) -> bool:
        if line.startswith(PERFT_SUMMARY_PREFIX):
            return False
        match = PERFT_MOVE_PATTERN.fullmatch(line.strip())
        if match:
            ratings[Move.from_uci(match.group(1))] = int(match.group(2))
        return True

    with process.exclusive():
        process.exchange(f"go perft {depth}", consume, timeout)
        # the summary can be followed by blank lines
        wait_for_ready(process, timeout)
    return dict(sorted(ratings.items()))


def get_legal_moves(process: EngineProcess, depth: int = 1, timeout: Optional[float] = None) -> list[Move]:
    """Only the moves of `get_all_moves_rating()`, the counts are dropped."""
    return list(get_all_moves_rating(process, depth, timeout))


def wait_for_ready(process: EngineProcess, timeout: Optional[float] = None) -> None:
    """Send 'isready' and block until the engine acknowledges with 'readyok'."""
    process.exchange("isready", lambda line: line.strip() != READY_TOKEN, timeout)


def set_option(process: EngineProcess, name: str, value: OptionValue) -> None:
    if not name.strip():
        raise ValidationError("Option name cannot be empty")
    process.send(f"setoption name {name} value {_format_option_value(value)}")


def set_options(process: EngineProcess, options: Mapping[str, OptionValue]) -> None:
    """Set several options in a row, without another caller's command in between."""
    with process.exclusive():
        for name, value in options.items():
            set_option(process, name, value)


def launch_engine(settings: EngineSettings) -> EngineProcess:
    """Start an engine, do the UCI handshake and apply the configured options. Ready to use afterwards."""
    process = EngineProcess.from_settings(settings)
    process.start()
    try:
        initialize(process)
        set_options(process, settings.options)
        wait_for_ready(process)
    except ChessError:
        process.close()
        raise
    return process


def _format_option_value(value: OptionValue) -> str:
    # UCI check options are spelled lower case
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _assert_depth(depth: int) -> None:
    if depth < 1:
        raise ValidationError(f"Search depth must be at least 1, got {depth}")
