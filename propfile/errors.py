"""Exceptions raised while reading .properties input.

All of them subclass ValueError. I/O and decoding errors from the
underlying stream (OSError, UnicodeDecodeError) are never wrapped.
"""

from __future__ import annotations


class ParseError(ValueError):
    """Input does not follow the .properties grammar."""

    def __init__(self, message: str, line: int | None = None, column: int | None = None) -> None:
        self.line = line
        self.column = column
        if line is not None and column is not None:
            message = f"{message} (line {line}, column {column})"
        elif line is not None:
            message = f"{message} (line {line})"
        super().__init__(message)


class MalformedEscapeError(ParseError):
    """A \\uXXXX escape without four hex digits, or a backslash at end of input."""

    def __init__(
        self,
        message: str,
        character: str = "",
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        self.character = character
        super().__init__(message, line, column)


class DuplicateKeyError(ParseError):
    """A key occurred twice while reading with DuplicateKeyResolution.THROW."""

    def __init__(self, key: str, line: int | None = None, column: int | None = None) -> None:
        self.key = key
        super().__init__(f"Duplicate key: {key!r}", line, column)
