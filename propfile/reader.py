"""
Properties Reader - State machine parser for .properties input.

Parsing is a single pass over the character stream:
  - Every character is classified (end of input, terminator, whitespace,
    one of the structural characters, or anything else)
  - A fixed transition table maps (state, class) to (next state, action)
  - Actions accumulate key/value characters or store the finished pair
  - Escapes are decoded as characters are accumulated

The destination store is any mutable mapping. With
DuplicateKeyResolution.THROW a repeated key raises DuplicateKeyError;
pairs stored before an error stay in the store.

Adjacent surrogate code units are joined when a pair is stored, so a
non-BMP character written as \\uD83D\\uDE00 reads back as one character.
A Python str that already holds two separate surrogates (such as
"\\ud83d\\ude00") therefore does not round trip; it reads back joined.
"""

from __future__ import annotations

import enum
import io
import logging
import os
import re
from collections.abc import MutableMapping
from typing import IO

from propfile.errors import DuplicateKeyError, MalformedEscapeError, ParseError
from propfile.properties import Properties
from propfile.source import END_OF_INPUT, CharacterSource
from propfile.spec import (
    DECODE_ESCAPES, HEX_DIGITS, MAX_FILE_SIZE, UNICODE_ESCAPE, WHITESPACE,
    DuplicateKeyResolution,
)

logger = logging.getLogger(__name__)

_SURROGATE = re.compile("[\ud800-\udfff]")


class State(enum.Enum):
    START = "start"
    COMMENT = "comment"
    KEY = "key"
    KEY_ESCAPE = "key_escape"
    KEY_WS = "key_ws"
    BEFORE_SEPARATOR = "before_separator"
    AFTER_SEPARATOR = "after_separator"
    VALUE = "value"
    VALUE_ESCAPE = "value_escape"
    VALUE_WS = "value_ws"
    FINISH = "finish"


class Match(enum.Enum):
    """Input classes that are not a single literal character."""

    END_OF_INPUT = "end_of_input"
    TERMINATOR = "terminator"
    WHITESPACE = "whitespace"
    ANY = "any"


class Action(enum.Enum):
    ADD_TO_KEY = "add_to_key"
    ADD_TO_VALUE = "add_to_value"
    STORE_PROPERTY = "store_property"
    ESCAPE = "escape"
    IGNORE = "ignore"


# state -> ordered (match, next state, action) rows; the first matching row wins.
# A match is either a Match member or a literal character. ANY is always last.
TRANSITIONS: dict[State, tuple[tuple[Match | str, State, Action], ...]] = {
    State.START: (
        (Match.END_OF_INPUT, State.FINISH, Action.IGNORE),
        (Match.TERMINATOR, State.START, Action.IGNORE),
        ("#", State.COMMENT, Action.IGNORE),
        ("!", State.COMMENT, Action.IGNORE),
        (Match.WHITESPACE, State.START, Action.IGNORE),
        ("\\", State.KEY_ESCAPE, Action.ESCAPE),
        (":", State.AFTER_SEPARATOR, Action.IGNORE),
        ("=", State.AFTER_SEPARATOR, Action.IGNORE),
        (Match.ANY, State.KEY, Action.ADD_TO_KEY),
    ),
    State.COMMENT: (
        (Match.END_OF_INPUT, State.FINISH, Action.IGNORE),
        (Match.TERMINATOR, State.START, Action.IGNORE),
        (Match.ANY, State.COMMENT, Action.IGNORE),
    ),
    State.KEY: (
        (Match.END_OF_INPUT, State.FINISH, Action.STORE_PROPERTY),
        (Match.TERMINATOR, State.START, Action.STORE_PROPERTY),
        (Match.WHITESPACE, State.BEFORE_SEPARATOR, Action.IGNORE),
        ("\\", State.KEY_ESCAPE, Action.ESCAPE),
        (":", State.AFTER_SEPARATOR, Action.IGNORE),
        ("=", State.AFTER_SEPARATOR, Action.IGNORE),
        (Match.ANY, State.KEY, Action.ADD_TO_KEY),
    ),
    State.KEY_ESCAPE: (
        (Match.TERMINATOR, State.KEY_WS, Action.IGNORE),
        (Match.ANY, State.KEY, Action.ADD_TO_KEY),
    ),
    State.KEY_WS: (
        (Match.END_OF_INPUT, State.FINISH, Action.STORE_PROPERTY),
        (Match.TERMINATOR, State.START, Action.STORE_PROPERTY),
        (Match.WHITESPACE, State.KEY_WS, Action.IGNORE),
        ("\\", State.KEY_ESCAPE, Action.ESCAPE),
        (":", State.AFTER_SEPARATOR, Action.IGNORE),
        ("=", State.AFTER_SEPARATOR, Action.IGNORE),
        (Match.ANY, State.KEY, Action.ADD_TO_KEY),
    ),
    State.BEFORE_SEPARATOR: (
        (Match.END_OF_INPUT, State.FINISH, Action.STORE_PROPERTY),
        (Match.TERMINATOR, State.START, Action.STORE_PROPERTY),
        (Match.WHITESPACE, State.BEFORE_SEPARATOR, Action.IGNORE),
        ("\\", State.VALUE_ESCAPE, Action.ESCAPE),
        (":", State.AFTER_SEPARATOR, Action.IGNORE),
        ("=", State.AFTER_SEPARATOR, Action.IGNORE),
        (Match.ANY, State.VALUE, Action.ADD_TO_VALUE),
    ),
    State.AFTER_SEPARATOR: (
        (Match.END_OF_INPUT, State.FINISH, Action.STORE_PROPERTY),
        (Match.TERMINATOR, State.START, Action.STORE_PROPERTY),
        (Match.WHITESPACE, State.AFTER_SEPARATOR, Action.IGNORE),
        ("\\", State.VALUE_ESCAPE, Action.ESCAPE),
        (Match.ANY, State.VALUE, Action.ADD_TO_VALUE),
    ),
    State.VALUE: (
        (Match.END_OF_INPUT, State.FINISH, Action.STORE_PROPERTY),
        (Match.TERMINATOR, State.START, Action.STORE_PROPERTY),
        ("\\", State.VALUE_ESCAPE, Action.ESCAPE),
        (Match.ANY, State.VALUE, Action.ADD_TO_VALUE),
    ),
    State.VALUE_ESCAPE: (
        (Match.TERMINATOR, State.VALUE_WS, Action.IGNORE),
        (Match.ANY, State.VALUE, Action.ADD_TO_VALUE),
    ),
    State.VALUE_WS: (
        (Match.END_OF_INPUT, State.FINISH, Action.STORE_PROPERTY),
        (Match.TERMINATOR, State.START, Action.STORE_PROPERTY),
        (Match.WHITESPACE, State.VALUE_WS, Action.IGNORE),
        ("\\", State.VALUE_ESCAPE, Action.ESCAPE),
        (Match.ANY, State.VALUE, Action.ADD_TO_VALUE),
    ),
}


def _join_surrogates(text: str) -> str:
    """Combine \\uD83D\\uDE00 style surrogate pairs into single characters."""
    if not _SURROGATE.search(text):
        return text
    return text.encode("utf-16-le", "surrogatepass").decode("utf-16-le", "surrogatepass")


class PropertiesReader:
    """
    Parses .properties input into a mutable mapping.

    Usage:
        props = {}
        with open("app.properties", "rb") as f:
            PropertiesReader(props).parse(f)

        # Reject repeated keys
        reader = PropertiesReader(props, DuplicateKeyResolution.THROW)
        reader.parse(io.BytesIO(data), encoding="utf-8")

    One instance holds per-parse state; do not share it between threads.
    """

    def __init__(
        self,
        store: MutableMapping[str, str],
        duplicate_key_resolution: DuplicateKeyResolution = DuplicateKeyResolution.OVERWRITE,
    ) -> None:
        self.store = store
        self.duplicate_key_resolution = duplicate_key_resolution
        self._source: CharacterSource | None = None
        self._key: list[str] = []
        self._value: list[str] = []
        self._escaped = False
        self._pair_line: int | None = None

    def parse(self, stream: IO[bytes] | IO[str], encoding: str | None = None) -> MutableMapping[str, str]:
        """Read every pair from `stream` into the store and return the store.

        `encoding` applies to binary streams (ISO-8859-1 if omitted).
        """
        self._source = CharacterSource(stream, encoding)
        self._key = []
        self._value = []
        self._escaped = False
        self._pair_line = None

        state = State.START
        while state is not State.FINISH:
            ch = self._source.next()
            for match, next_state, action in TRANSITIONS[state]:
                if self._matches(match, ch):
                    self._do_action(action, ch)
                    state = next_state
                    break
            else:
                # Unreachable while every row ends in Match.ANY
                raise ParseError(
                    f"Unexpected character {ch!r} in state {state.value}",
                    self._source.line, self._source.column,
                )
        return self.store

    def _matches(self, match: Match | str, ch: str) -> bool:
        if match is Match.END_OF_INPUT:
            return ch == END_OF_INPUT
        if match is Match.TERMINATOR:
            return self._is_terminator(ch)
        if match is Match.WHITESPACE:
            return ch in WHITESPACE
        if match is Match.ANY:
            return True
        return ch == match

    def _is_terminator(self, ch: str) -> bool:
        """True for "\\n" and "\\r"; a "\\n" right after "\\r" is consumed too."""
        if ch == "\r":
            if self._source.peek() == "\n":
                self._source.next()
            return True
        return ch == "\n"

    def _do_action(self, action: Action, ch: str) -> None:
        if self._pair_line is None and action in (Action.ADD_TO_KEY, Action.ADD_TO_VALUE, Action.ESCAPE):
            # Line the pair starts on, for error messages
            self._pair_line = self._source.line
        if action is Action.ADD_TO_KEY:
            self._key.append(self._escaped_char(ch))
            self._escaped = False
        elif action is Action.ADD_TO_VALUE:
            self._value.append(self._escaped_char(ch))
            self._escaped = False
        elif action is Action.STORE_PROPERTY:
            self._store_property()
        elif action is Action.ESCAPE:
            self._escaped = True
        else:
            self._escaped = False

    def _store_property(self) -> None:
        key = _join_surrogates("".join(self._key))
        value = _join_surrogates("".join(self._value))

        if key in self.store:
            if self.duplicate_key_resolution is DuplicateKeyResolution.THROW:
                raise DuplicateKeyError(key, self._pair_line)
            logger.debug("Overwriting duplicate key %r", key)
        self.store[key] = value
        logger.debug("Stored property %r", key)

        self._key = []
        self._value = []
        self._escaped = False
        self._pair_line = None

    def _escaped_char(self, ch: str) -> str:
        """Decode `ch` if it follows an escape marker, otherwise return it."""
        if not self._escaped:
            return ch
        if ch == END_OF_INPUT:
            raise MalformedEscapeError(
                "Unterminated escape at end of input",
                ch, self._source.line, self._source.column,
            )
        if ch == UNICODE_ESCAPE:
            return self._read_unicode_escape()
        return DECODE_ESCAPES.get(ch, ch)

    def _read_unicode_escape(self) -> str:
        """Read the four hex digits of a \\uXXXX escape.

        A backslash and terminator between the digits is skipped together
        with the leading whitespace of the next line.
        """
        code = 0
        digits = 0
        while digits < 4:
            ch = self._source.next()
            if ch in HEX_DIGITS:
                code = code * 16 + int(ch, 16)
                digits += 1
                continue
            if ch == "\\" and self._is_terminator(self._source.next()):
                while self._source.peek() in WHITESPACE:
                    self._source.next()
                continue
            if ch == END_OF_INPUT:
                raise MalformedEscapeError(
                    "Truncated \\uXXXX escape at end of input",
                    ch, self._source.line, self._source.column,
                )
            raise MalformedEscapeError(
                f"Invalid character {ch!r} in \\uXXXX escape",
                ch, self._source.line, self._source.column,
            )
        return chr(code)


def load(
    stream: IO[bytes] | IO[str],
    encoding: str | None = None,
    duplicate_key_resolution: DuplicateKeyResolution = DuplicateKeyResolution.OVERWRITE,
) -> dict[str, str]:
    """Parse a stream into a new dict."""
    store: dict[str, str] = {}
    PropertiesReader(store, duplicate_key_resolution).parse(stream, encoding)
    return store


def loads(
    data: bytes | str,
    encoding: str | None = None,
    duplicate_key_resolution: DuplicateKeyResolution = DuplicateKeyResolution.OVERWRITE,
) -> dict[str, str]:
    """Parse bytes (decoded with `encoding`) or an already decoded string."""
    stream = io.StringIO(data, newline="") if isinstance(data, str) else io.BytesIO(data)
    return load(stream, encoding, duplicate_key_resolution)


def read(
    path: str | os.PathLike,
    encoding: str | None = None,
    duplicate_key_resolution: DuplicateKeyResolution = DuplicateKeyResolution.OVERWRITE,
    max_size: int = MAX_FILE_SIZE,
) -> Properties:
    """Read a .properties file into a new Properties."""
    return Properties.read(path, encoding, duplicate_key_resolution, max_size=max_size)
