# craftworks/errors.py
"""
Error kinds raised by the handoff and governance engines.

HTTP mapping used by the API layer:
    InvalidArgument   -> 400
    NotFound          -> 404
    InvalidTransition -> 409
    SchemaRejected    -> 422
"""

from typing import Optional


class CraftworksError(Exception):
    """Base exception for control plane errors."""
    pass


class InvalidArgument(CraftworksError, ValueError):
    """Raised on malformed or out-of-range input."""
    pass


class NotFound(CraftworksError, LookupError):
    """Raised when an operation references an unknown handoff."""
    pass


class InvalidTransition(CraftworksError):
    """
    Raised when the handoff state machine rejects an edge.

    `terminal` is True when the source state is terminal, which callers
    can use to tell "already finished" apart from a plain illegal edge.
    """

    def __init__(
        self,
        message: str,
        from_state: Optional[str] = None,
        to_state: Optional[str] = None,
        terminal: bool = False,
    ):
        super().__init__(message)
        self.from_state = from_state
        self.to_state = to_state
        self.terminal = terminal


class SchemaRejected(CraftworksError):
    """Reserved for structured context attachments that fail validation."""
    pass
