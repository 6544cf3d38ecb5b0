"""
Properties - In-memory key/value store for a .properties file.
"""

from __future__ import annotations

import os
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import IO

from propfile.spec import MAX_FILE_SIZE, DuplicateKeyResolution


class Properties(dict):
    """
    A dict of string keys and values with optional fallback defaults.

    Defaults are kept separate: they answer get_property() and appear in
    property_names(), but are never written by store()/write().

    Usage:
        props = Properties.read("app.properties")
        host = props.get_property("db.host", "localhost")
        props.set_property("db.port", "5432")
        props.write("app.properties", comment="Updated by deploy")
    """

    def __init__(self, *args, defaults: Mapping[str, str] | None = None, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.defaults = defaults

    def get_property(self, key: str, default: str | None = None) -> str | None:
        """Own value, then the defaults, then `default`."""
        if key in self:
            return self[key]
        if self.defaults is not None and key in self.defaults:
            return self.defaults[key]
        return default

    def set_property(self, key: str, value: str) -> str | None:
        """Set a value. Returns the previous own value, if any."""
        old = self.get(key)
        self[key] = value
        return old

    def property_names(self) -> Iterator[str]:
        """All keys, defaults included, each once."""
        names = dict.fromkeys(self.defaults or ())
        names.update(dict.fromkeys(self))
        return iter(names)

    def load(
        self,
        stream: IO[bytes] | IO[str],
        encoding: str | None = None,
        duplicate_key_resolution: DuplicateKeyResolution = DuplicateKeyResolution.OVERWRITE,
    ) -> Properties:
        """Read pairs from an open stream into this instance."""
        from propfile.reader import PropertiesReader
        PropertiesReader(self, duplicate_key_resolution).parse(stream, encoding)
        return self

    def store(
        self,
        stream: IO[bytes] | IO[str],
        comment: str | None = None,
        encoding: str | None = None,
        output_timestamp: bool = True,
    ) -> int:
        """Write this instance to an open stream. Returns bytes/chars written."""
        from propfile.writer import PropertiesWriter
        return PropertiesWriter(self, output_timestamp).write(stream, comment, encoding)

    @classmethod
    def read(
        cls,
        path: str | os.PathLike,
        encoding: str | None = None,
        duplicate_key_resolution: DuplicateKeyResolution = DuplicateKeyResolution.OVERWRITE,
        defaults: Mapping[str, str] | None = None,
        max_size: int = MAX_FILE_SIZE,
    ) -> Properties:
        """Read a .properties file."""
        path = Path(path)
        file_size = path.stat().st_size
        if file_size > max_size:
            raise ValueError(
                f"File size {file_size} exceeds maximum {max_size} bytes. "
                f"Pass max_size= to override."
            )
        props = cls(defaults=defaults)
        with open(path, "rb") as f:
            props.load(f, encoding, duplicate_key_resolution)
        return props

    def write(
        self,
        path: str | os.PathLike,
        comment: str | None = None,
        encoding: str | None = None,
        output_timestamp: bool = True,
    ) -> int:
        """Write to a file atomically. Returns bytes written."""
        from propfile.writer import PropertiesWriter
        return PropertiesWriter.write_file(self, path, comment, encoding, output_timestamp)

    def to_bytes(self, comment: str | None = None, encoding: str | None = None) -> bytes:
        """Serialize without a timestamp line."""
        from propfile.writer import PropertiesWriter
        return PropertiesWriter(self, output_timestamp=False).serialize(comment, encoding)

    def __repr__(self) -> str:
        return f"Properties({dict.__repr__(self)}, defaults={self.defaults!r})"
