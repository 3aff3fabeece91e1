"""
Error types shared by every layer.

Core code raises these; the CLI and the drill server are the only places that
turn them into user-facing output.
"""


class HashcardsError(Exception):
    """Base class for all hashcards errors."""


class ParserError(HashcardsError):
    """
    A structural error in a deck file.

    Attributes:
        message: Human-readable description of the problem.
        source_path: Label of the file being parsed.
        line_num: 0-based line number; reported 1-based.
    """

    def __init__(self, message: str, source_path: str, line_num: int):
        self.message = message
        self.source_path = source_path
        self.line_num = line_num
        super().__init__(str(self))

    @property
    def line(self) -> int:
        return self.line_num + 1

    def __str__(self) -> str:
        return f"{self.message} Location: {self.source_path}:{self.line}"


class DecodeError(HashcardsError, ValueError):
    """Invalid textual form of a grade, hash, date or timestamp."""


class SessionError(HashcardsError):
    """An action was requested that the drill session cannot perform."""


class StoreError(HashcardsError):
    """The performance store could not be read or written."""
