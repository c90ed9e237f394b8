"""
Custom exceptions used across layers.

Everything raised on purpose by this package derives from ChessError, so callers can catch the whole family at once.
"""


class ChessError(Exception):
    """Top-level exception of the package"""


# --- VALIDATION (raised before any I/O happens) ---
class ValidationError(ChessError):
    """Text or value supplied by the caller is malformed."""


class InvalidFENError(ValidationError):
    pass


class InvalidSquareError(ValidationError):
    pass


class InvalidMoveNotationError(ValidationError):
    pass


class InvalidMoveHashError(ValidationError):
    pass


# --- CHESSBOARD STATE ---
class IllegalMoveError(ChessError):
    """The move is not in the current set of legal moves. The chessboard is left untouched."""


class ObjectDisposedError(ChessError):
    """Operation on a chessboard or engine process that has already been disposed."""


# --- ENGINE PROCESS ---
class ProcessError(ChessError):
    """Anything that went wrong with the external engine process."""


class ProcessStartError(ProcessError):
    pass


class AlreadyRunningError(ProcessError):
    pass


class WriteError(ProcessError):
    """Could not write to the engine's standard input (the pipe is closed)."""


class EngineTerminatedError(ProcessError):
    """The engine exited while a response was still expected."""


class ProtocolTimeoutError(ChessError):
    """A request/response exchange did not finish within its time bound."""


# --- PERSISTENCE ---
class RepositoryError(ChessError):
    pass
