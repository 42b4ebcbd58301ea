"""AnchoringError — base exception class for all btc-anchoring errors."""

from __future__ import annotations


class AnchoringError(Exception):
    """Base error for all anchoring operations.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code string.
    """

    def __init__(self, message: str, *, code: str = "anchoring-error") -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class DecodeError(AnchoringError):
    """Hex or binary data cannot be parsed into a transaction."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="decode-error")


class PreconditionError(AnchoringError):
    """The transaction builder was asked to build from an incomplete or unfundable state.

    Attributes:
        missing: Names of the builder fields that were never set.
    """

    def __init__(self, message: str, *, missing: tuple[str, ...] = ()) -> None:
        super().__init__(message, code="precondition-failed")
        self.missing = missing
