"""
Character source for the .properties reader.

Turns a byte stream into single characters with an incremental decoder,
and keeps one character of lookahead so the reader can merge "\\r\\n".
The stream is read in chunks and never closed here.
"""

from __future__ import annotations

import codecs
import io
from typing import IO

from propfile.spec import DEFAULT_ENCODING, READ_CHUNK_SIZE

# Returned by next()/peek() once the stream is exhausted
END_OF_INPUT = ""


def _decoder_encoding(encoding: str | None) -> str:
    """Resolve the decoder to use. Explicit UTF-8 drops a leading BOM."""
    name = codecs.lookup(encoding or DEFAULT_ENCODING).name
    if name == "utf-8":
        return "utf-8-sig"
    return name


class CharacterSource:
    """
    Reads characters one at a time from a binary or text stream.

    Binary streams are decoded with `encoding` (ISO-8859-1 by default);
    text streams (io.TextIOBase, or any stream whose read() returns str,
    such as codecs.StreamReader) are already decoded and `encoding` is ignored.
    """

    def __init__(
        self,
        stream: IO[bytes] | IO[str],
        encoding: str | None = None,
        chunk_size: int = READ_CHUNK_SIZE,
    ) -> None:
        self._stream = stream
        self._chunk_size = chunk_size
        if isinstance(stream, io.TextIOBase):
            self._decoder = None
        else:
            # Streams outside the io hierarchy (codecs.StreamReader) may still
            # return str; _fill checks each chunk
            self._decoder = codecs.getincrementaldecoder(_decoder_encoding(encoding))()
        self._buffer = ""
        self._pos = 0
        self._eof = False
        self._saved: str | None = None
        self._previous = END_OF_INPUT
        # Position of the last character returned by next() (1-based)
        self.line = 1
        self.column = 0

    def _fill(self) -> bool:
        """Refill the buffer. Returns False once the stream is exhausted."""
        while not self._eof:
            chunk = self._stream.read(self._chunk_size)
            if self._decoder is None or isinstance(chunk, str):
                text = chunk
            else:
                # final=True on the empty read flushes (or rejects) a truncated sequence
                text = self._decoder.decode(chunk, final=not chunk)
            if not chunk:
                self._eof = True
            if text:
                self._buffer = text
                self._pos = 0
                return True
        return False

    def _read_char(self) -> str:
        if self._pos >= len(self._buffer) and not self._fill():
            return END_OF_INPUT
        ch = self._buffer[self._pos]
        self._pos += 1
        return ch

    def next(self) -> str:
        """Consume and return the next character, or END_OF_INPUT."""
        if self._saved is not None:
            ch = self._saved
            self._saved = None
        else:
            ch = self._read_char()

        if ch == "\n":
            if self._previous != "\r":
                self.line += 1
            self.column = 0
        elif ch == "\r":
            self.line += 1
            self.column = 0
        elif ch:
            self.column += 1
        self._previous = ch
        return ch

    def peek(self) -> str:
        """Return the next character without consuming it."""
        if self._saved is None:
            self._saved = self._read_char()
        return self._saved
