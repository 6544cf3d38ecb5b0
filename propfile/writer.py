"""
Properties Writer - Serializes a mapping to .properties format.

Output:
  1. "# <comment>" lines, if a comment is given (one per comment line)
  2. "# <timestamp>" line, unless output_timestamp is False
  3. One "key=value" line per pair, in the mapping's iteration order

Keys and values are escaped so the output is printable ASCII only.
Every line ends with "\\r\\n". No sorting or deduplication is done.
"""

from __future__ import annotations

import codecs
import io
import logging
import os
import re
import tempfile
from collections.abc import Iterator, Mapping
from datetime import datetime
from typing import IO

from propfile.spec import (
    COMMENT_HASH, DEFAULT_ENCODING, KEY_VALUE_SEPARATOR, LINE_SEPARATOR,
    TIMESTAMP_FORMAT, escape_comment, escape_key, escape_value,
)

logger = logging.getLogger(__name__)

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


class PropertiesWriter:
    """
    Writes the pairs of a mapping as .properties text.

    Usage:
        writer = PropertiesWriter({"db.host": "localhost"}, output_timestamp=False)
        with open("app.properties", "wb") as f:
            writer.write(f, comment="Generated settings")

        data = writer.serialize()
    """

    def __init__(self, store: Mapping[str, str], output_timestamp: bool = True) -> None:
        self.store = store
        self.output_timestamp = output_timestamp

    def lines(self, comment: str | None = None) -> Iterator[str]:
        """Yield output lines without terminators."""
        if comment is not None:
            for line in _LINE_BREAK.split(comment):
                yield f"{COMMENT_HASH} {escape_comment(line)}"

        if self.output_timestamp:
            stamp = datetime.now().astimezone().strftime(TIMESTAMP_FORMAT)
            yield f"{COMMENT_HASH} {escape_comment(stamp)}"

        for key, value in self.store.items():
            yield f"{escape_key(str(key))}{KEY_VALUE_SEPARATOR}{escape_value(str(value))}"

    def write(
        self,
        stream: IO[bytes] | IO[str],
        comment: str | None = None,
        encoding: str | None = None,
    ) -> int:
        """Write to an open stream. Returns bytes (binary) or characters (text) written.

        The stream is flushed but not closed.
        """
        text_mode = isinstance(stream, (io.TextIOBase, codecs.StreamWriter, codecs.StreamReaderWriter))
        encoder = None if text_mode else codecs.getincrementalencoder(encoding or DEFAULT_ENCODING)()
        written = 0
        count = 0
        for line in self.lines(comment):
            data = line + LINE_SEPARATOR
            if encoder is not None:
                data = encoder.encode(data)
            stream.write(data)
            written += len(data)
            count += 1
        stream.flush()
        logger.debug("Wrote %d lines (%d pairs)", count, len(self.store))
        return written

    def serialize(self, comment: str | None = None, encoding: str | None = None) -> bytes:
        """Serialize to bytes."""
        buf = io.BytesIO()
        self.write(buf, comment, encoding)
        return buf.getvalue()

    @staticmethod
    def write_file(
        store: Mapping[str, str],
        path: str | os.PathLike,
        comment: str | None = None,
        encoding: str | None = None,
        output_timestamp: bool = True,
        mode: int = 0o644,
    ) -> int:
        """Write a mapping to a file atomically. Returns bytes written.

        Data goes to a temporary file in the target directory which is then
        renamed over `path`, so the target is never partially written.
        """
        data = PropertiesWriter(store, output_timestamp).serialize(comment, encoding)
        path = os.fspath(path)
        dir_name = os.path.dirname(os.path.abspath(path)) or "."
        fd, tmp_path = tempfile.mkstemp(dir=dir_name, suffix=".properties.tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, mode)
            os.replace(tmp_path, path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
        logger.debug("Wrote %s (%d bytes)", path, len(data))
        return len(data)


def dump(
    store: Mapping[str, str],
    stream: IO[bytes] | IO[str],
    comment: str | None = None,
    encoding: str | None = None,
    output_timestamp: bool = True,
) -> int:
    """Write a mapping to an open stream."""
    return PropertiesWriter(store, output_timestamp).write(stream, comment, encoding)


def dumps(
    store: Mapping[str, str],
    comment: str | None = None,
    output_timestamp: bool = True,
) -> str:
    """Serialize a mapping to a string."""
    buf = io.StringIO(newline="")
    PropertiesWriter(store, output_timestamp).write(buf, comment)
    return buf.getvalue()
