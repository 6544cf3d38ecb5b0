"""
propfile Stress Tests
=====================
Large inputs, many keys, long continuations and chunk boundaries.

Run:
    python -m pytest tests/test_stress.py -v --tb=short
"""

from __future__ import annotations

import io
import time

import pytest

from propfile import Properties, PropertiesReader, PropertiesWriter, loads
from propfile.source import END_OF_INPUT, CharacterSource


def _sample_store(n: int) -> dict[str, str]:
    return {
        f"section{i % 17}.key {i}:\u00e9": f" value #{i} = \u4e2d\U0001F600\\ {'x' * (i % 50)}"
        for i in range(n)
    }


# ---------------------------------------------------------------------------
# Many keys
# ---------------------------------------------------------------------------

class TestManyKeys:

    def test_10000_keys_roundtrip(self):
        store = _sample_store(10_000)
        data = PropertiesWriter(store).serialize(comment="stress")
        loaded = loads(data)
        assert loaded == store
        assert list(loaded) == list(store)

    def test_many_duplicates(self):
        data = b"".join(b"k=%d\n" % i for i in range(5000))
        assert loads(data) == {"k": "4999"}


# ---------------------------------------------------------------------------
# Large values
# ---------------------------------------------------------------------------

class TestLargeValues:

    def test_1mb_value(self):
        value = "abc\u00e9" * 256 * 1024
        props = Properties({"big": value})
        assert loads(props.to_bytes()) == {"big": value}

    def test_long_continuation(self):
        parts = [f"part{i}" for i in range(2000)]
        data = ("k = " + ", \\\n      ".join(parts) + "\n").encode("ascii")
        assert loads(data) == {"k": ", ".join(parts)}

    def test_deep_backslashes(self):
        value = "\\" * 1001
        assert loads(PropertiesWriter({"k": value}).serialize()) == {"k": value}

    def test_many_unicode_escapes(self):
        value = "".join(chr(c) for c in range(0x100, 0x3000))
        assert loads(PropertiesWriter({"k": value}).serialize()) == {"k": value}

    def test_all_bmp_outside_surrogates(self):
        value = "".join(chr(c) for c in range(0xD800)) + "".join(chr(c) for c in range(0xE000, 0x10000))
        store = {"k": value}
        assert loads(PropertiesWriter(store, output_timestamp=False).serialize()) == store


# ---------------------------------------------------------------------------
# Chunk boundaries
# ---------------------------------------------------------------------------

class TestChunkBoundaries:

    @pytest.mark.parametrize("chunk_size", [1, 2, 3, 7, 4096])
    def test_utf8_chunking(self, chunk_size):
        text = "\u00e9\u4e2d\U0001F600=\u00fc\r\nb=\u0436\n" * 50
        src = CharacterSource(io.BytesIO(text.encode("utf-8")), "utf-8", chunk_size=chunk_size)
        chars = []
        while (ch := src.next()) != END_OF_INPUT:
            chars.append(ch)
        assert "".join(chars) == text

    def test_crlf_split_across_reads(self):
        # "\r" ends one 4096 byte read and "\n" starts the next
        line = b"k=" + b"v" * 4093 + b"\r"
        data = line + b"\nnext=1\n"
        assert loads(data) == {"k": "v" * 4093, "next": "1"}

    def test_unicode_escape_split_across_reads(self):
        data = b"k=" + b"x" * 4090 + b"\\u00E9\n"
        assert loads(data) == {"k": "x" * 4090 + "\u00e9"}


# ---------------------------------------------------------------------------
# Throughput
# ---------------------------------------------------------------------------

class TestThroughput:

    def test_parse_speed(self):
        data = b"".join(b"key.%d = value number %d\n" % (i, i) for i in range(20_000))
        start = time.perf_counter()
        store = {}
        PropertiesReader(store).parse(io.BytesIO(data))
        elapsed = time.perf_counter() - start
        assert len(store) == 20_000
        # Generous bound; catches accidental quadratic behavior
        assert elapsed < 30
