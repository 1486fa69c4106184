"""
Error taxonomy shared by the engine, the game layer and the HTTP surface.

Every error carries a short wire ``code`` (reported to API clients next to
the human-readable message) and the HTTP status the web layer answers with.
Errors are raised before any state is touched, so a caller that catches one
still holds exactly the objects it had before the call.
"""


class ChessVisionError(Exception):
    """Base class for all expected failures."""

    code: str = "InternalError"
    status_code: int = 500


class InvalidInputError(ChessVisionError):
    """Malformed position encoding, square name, or out-of-range setting."""

    code = "InvalidInput"
    status_code = 400


class IllegalMoveError(ChessVisionError):
    """The rules oracle rejected a submitted move."""

    code = "IllegalMove"
    status_code = 400


class InvalidSessionError(ChessVisionError):
    """A finished session was used for another move or resignation."""

    code = "InvalidSession"
    status_code = 400


class SessionNotFoundError(InvalidSessionError):
    """No session (or analysis record) is stored under the requested id."""

    status_code = 404


class NoLegalMovesError(ChessVisionError):
    """
    The search was asked to move in a terminal position.

    Callers must check terminal status first, so seeing this error means a
    caller broke its contract.
    """

    code = "NoLegalMoves"
    status_code = 500


class EngineTimeoutError(ChessVisionError):
    """
    The search exhausted its time budget.

    Raised deep inside the tree and caught by the iterative-deepening loop,
    which falls back to the last completed iteration. It never reaches API
    clients.
    """

    code = "EngineTimeout"
