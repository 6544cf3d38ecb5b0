"""
Java .properties Format
=======================

Layout:
    # comment                    <- '#' or '!' at line start, runs to end of line
    ! another comment
    key=value                    <- '=' separator
    key: value                   <- ':' separator, whitespace around it is folded
    key value                    <- whitespace alone separates key from value
    long.value = first, \\        <- backslash before the terminator continues the line;
                 second          <- leading whitespace of the next line is dropped
    \\#not.a.comment = x          <- escaped marker, part of the key

Terminators:
    "\\n", "\\r" or "\\r\\n". End of input also ends the last line.

Escapes (reader):
    \\t \\r \\n \\f     tab, carriage return, line feed, form feed
    \\uXXXX         16-bit code unit, exactly four hex digits
    \\<other>       the character itself (\\\\, \\ , \\:, \\=, \\#, \\!)

Escapes (writer):
    - '#' and '!' are escaped at every position, not only at line start
    - space is escaped everywhere in a key, and only as the first character of a value
    - ':', '=' and '\\' are always escaped
    - anything outside printable ASCII is written as \\uXXXX (uppercase hex),
      so the output bytes are identical in any ASCII-compatible encoding

Output:
    Optional "# <comment>" line, optional "# <timestamp>" line, then one
    "key=value" line per pair in store order. Lines end with "\\r\\n".
"""

from __future__ import annotations

import enum

# Default encoding: bytes 0-255 map one to one to U+0000-U+00FF
DEFAULT_ENCODING = "iso-8859-1"

# Read size for the character source (bytes or characters per read call)
READ_CHUNK_SIZE = 4096

# Safety limit for the path based helpers (load from / write to a file name)
MAX_FILE_SIZE = 100 * 1024 * 1024  # 100MB

# Structural characters
COMMENT_HASH = "#"
COMMENT_PLING = "!"
COMMENT_MARKERS = frozenset({COMMENT_HASH, COMMENT_PLING})
ESCAPE = "\\"
SEPARATORS = frozenset({":", "="})
WHITESPACE = frozenset({" ", "\t", "\f"})
HEX_DIGITS = frozenset("0123456789abcdefABCDEF")

# Writer output
KEY_VALUE_SEPARATOR = "="
LINE_SEPARATOR = "\r\n"
TIMESTAMP_FORMAT = "%a %b %d %H:%M:%S %Z %Y"  # same shape as java.util.Date.toString()

# Reader: character after a backslash -> decoded character ('u' is handled separately)
DECODE_ESCAPES = {
    "t": "\t",
    "r": "\r",
    "n": "\n",
    "f": "\f",
}
UNICODE_ESCAPE = "u"

# Writer: characters with a fixed escaped form (space is positional, see escape_text)
ENCODE_ESCAPES = {
    "#": "\\#",
    "!": "\\!",
    "\t": "\\t",
    "\n": "\\n",
    "\f": "\\f",
    "\r": "\\r",
    ":": "\\:",
    "=": "\\=",
    "\\": "\\\\",
}


class DuplicateKeyResolution(enum.Enum):
    """What the reader does when a key is stored a second time."""

    OVERWRITE = "overwrite"  # last one wins
    THROW = "throw"          # raise DuplicateKeyError


def _unicode_escape(ch: str) -> str:
    """Escape one character as \\uXXXX per UTF-16 code unit (two for non-BMP)."""
    units = ch.encode("utf-16-be", "surrogatepass")
    return "".join(
        f"\\u{int.from_bytes(units[i:i + 2], 'big'):04X}"
        for i in range(0, len(units), 2)
    )


def escape_text(text: str, is_key: bool) -> str:
    """Escape a key or value so that the reader returns exactly `text`.

    The result only contains printable ASCII.
    """
    out = []
    for i, ch in enumerate(text):
        escaped = ENCODE_ESCAPES.get(ch)
        if escaped is not None:
            out.append(escaped)
        elif ch == " ":
            out.append("\\ " if is_key or i == 0 else " ")
        elif " " < ch < "\x7f":
            out.append(ch)
        else:
            out.append(_unicode_escape(ch))
    return "".join(out)


def escape_key(key: str) -> str:
    """Escape a key for output."""
    return escape_text(key, is_key=True)


def escape_value(value: str) -> str:
    """Escape a value for output."""
    return escape_text(value, is_key=False)


def escape_comment(comment: str) -> str:
    """Make comment text safe for a single '# ' line.

    Tab and printable ASCII are kept, everything else becomes \\uXXXX.
    Line breaks are not handled here; the writer splits on them first.
    """
    return "".join(
        ch if ch == "\t" or " " <= ch < "\x7f" else _unicode_escape(ch)
        for ch in comment
    )
