"""
Unit Tests - Test individual components in isolation.
"""

import io

import pytest

from propfile.errors import DuplicateKeyError, MalformedEscapeError, ParseError
from propfile.properties import Properties
from propfile.source import END_OF_INPUT, CharacterSource
from propfile.spec import (
    DEFAULT_ENCODING,
    LINE_SEPARATOR,
    WHITESPACE,
    DuplicateKeyResolution,
    escape_comment,
    escape_key,
    escape_text,
    escape_value,
)


# =============================================================================
# Spec constants
# =============================================================================

class TestSpec:

    def test_default_encoding_is_latin1(self):
        assert DEFAULT_ENCODING == "iso-8859-1"

    def test_line_separator(self):
        assert LINE_SEPARATOR == "\r\n"

    def test_whitespace(self):
        assert WHITESPACE == {" ", "\t", "\f"}
        assert END_OF_INPUT not in WHITESPACE

    def test_default_resolution(self):
        assert DuplicateKeyResolution("overwrite") is DuplicateKeyResolution.OVERWRITE
        assert DuplicateKeyResolution("throw") is DuplicateKeyResolution.THROW


# =============================================================================
# Escape codec (encode side)
# =============================================================================

class TestEscapeText:

    def test_plain_ascii_untouched(self):
        assert escape_key("db.host") == "db.host"
        assert escape_value("localhost:5432") == "localhost\\:5432"

    def test_leading_backslash(self):
        assert escape_key("\\first") == "\\\\first"

    def test_space_in_key_always_escaped(self):
        assert escape_key(" first") == "\\ first"
        assert escape_key("a b") == "a\\ b"

    def test_space_in_value_only_first(self):
        assert escape_value(" lead  mid ") == "\\ lead  mid "
        assert escape_value("a b") == "a b"

    def test_comment_markers_escaped_everywhere(self):
        assert escape_key("#key") == "\\#key"
        assert escape_key("a#b!c") == "a\\#b\\!c"
        assert escape_value("x # y") == "x \\# y"

    def test_separators_escaped(self):
        assert escape_key("k:=") == "k\\:\\="
        assert escape_value("a=b:c") == "a\\=b\\:c"

    def test_control_shorthands(self):
        assert escape_value("a\tb\nc\fd\re") == "a\\tb\\nc\\fd\\re"

    def test_tab_first_in_value(self):
        assert escape_value("\tx") == "\\tx"

    def test_other_characters_as_unicode(self):
        assert escape_value("\x00\x1f\x7fé") == "\\u0000\\u001F\\u007F\\u00E9"

    def test_cyrillic(self):
        assert escape_value("Привет") == "\\u041F\\u0440\\u0438\\u0432\\u0435\\u0442"

    def test_non_bmp_as_surrogate_pair(self):
        assert escape_value("\U0001F600") == "\\uD83D\\uDE00"

    def test_output_is_printable_ascii(self):
        escaped = escape_text("ключ = значение\t \x01 #!", is_key=True)
        assert all(" " <= c < "\x7f" for c in escaped)

    def test_empty(self):
        assert escape_key("") == ""
        assert escape_value("") == ""


class TestEscapeComment:

    def test_ascii_kept(self):
        assert escape_comment("Generated: a=b # c") == "Generated: a=b # c"

    def test_tab_kept(self):
        assert escape_comment("a\tb") == "a\tb"

    def test_non_ascii_escaped(self):
        assert escape_comment("café") == "caf\\u00E9"


# =============================================================================
# Errors
# =============================================================================

class TestErrors:

    def test_parse_error_is_value_error(self):
        assert issubclass(ParseError, ValueError)
        assert issubclass(MalformedEscapeError, ParseError)
        assert issubclass(DuplicateKeyError, ParseError)

    def test_position_in_message(self):
        e = ParseError("bad", line=3, column=7)
        assert str(e) == "bad (line 3, column 7)"
        assert e.line == 3
        assert e.column == 7

    def test_line_only(self):
        assert str(ParseError("bad", line=2)) == "bad (line 2)"

    def test_no_position(self):
        assert str(ParseError("bad")) == "bad"

    def test_duplicate_key(self):
        e = DuplicateKeyError("a", line=2)
        assert e.key == "a"
        assert "'a'" in str(e)

    def test_malformed_escape_character(self):
        e = MalformedEscapeError("Invalid", "G", 1, 5)
        assert e.character == "G"


# =============================================================================
# Character source
# =============================================================================

class TestCharacterSource:

    def test_next_and_end(self):
        src = CharacterSource(io.BytesIO(b"ab"))
        assert src.next() == "a"
        assert src.next() == "b"
        assert src.next() == END_OF_INPUT
        assert src.next() == END_OF_INPUT

    def test_peek_does_not_consume(self):
        src = CharacterSource(io.BytesIO(b"xy"))
        assert src.peek() == "x"
        assert src.peek() == "x"
        assert src.next() == "x"
        assert src.peek() == "y"
        assert src.next() == "y"
        assert src.peek() == END_OF_INPUT

    def test_latin1_default(self):
        src = CharacterSource(io.BytesIO(b"\xe9\xff"))
        assert src.next() == "é"
        assert src.next() == "ÿ"

    def test_multibyte_across_chunks(self):
        data = "Привет".encode("utf-8")
        src = CharacterSource(io.BytesIO(data), "utf-8", chunk_size=1)
        chars = []
        while (ch := src.next()) != END_OF_INPUT:
            chars.append(ch)
        assert "".join(chars) == "Привет"

    def test_utf8_bom_dropped(self):
        src = CharacterSource(io.BytesIO(b"\xef\xbb\xbfk"), "UTF8")
        assert src.next() == "k"

    def test_bom_kept_for_latin1(self):
        src = CharacterSource(io.BytesIO(b"\xef\xbb\xbfk"))
        assert src.next() == "ï"

    def test_truncated_sequence_raises(self):
        src = CharacterSource(io.BytesIO(b"a\xd0"), "utf-8")
        assert src.next() == "a"
        with pytest.raises(UnicodeDecodeError):
            src.next()

    def test_unknown_encoding(self):
        with pytest.raises(LookupError):
            CharacterSource(io.BytesIO(b""), "no-such-encoding")

    def test_text_stream(self):
        src = CharacterSource(io.StringIO("é"), encoding="ascii")
        assert src.next() == "é"
        assert src.next() == END_OF_INPUT

    def test_line_and_column(self):
        src = CharacterSource(io.BytesIO(b"ab\r\ncd\re"))
        src.next()
        src.next()
        assert (src.line, src.column) == (1, 2)
        src.next()  # \r
        src.next()  # \n
        src.next()  # c
        assert (src.line, src.column) == (2, 1)
        src.next()  # d
        src.next()  # \r
        src.next()  # e
        assert (src.line, src.column) == (3, 1)

    def test_stream_not_closed(self):
        stream = io.BytesIO(b"a")
        src = CharacterSource(stream)
        while src.next() != END_OF_INPUT:
            pass
        assert not stream.closed


# =============================================================================
# Properties store
# =============================================================================

class TestProperties:

    def test_is_a_dict(self):
        props = Properties({"a": "1"})
        assert props == {"a": "1"}
        assert isinstance(props, dict)

    def test_get_property(self):
        props = Properties({"a": "1"})
        assert props.get_property("a") == "1"
        assert props.get_property("missing") is None
        assert props.get_property("missing", "x") == "x"

    def test_defaults(self):
        props = Properties({"a": "1"}, defaults={"a": "0", "b": "2"})
        assert props.get_property("a") == "1"
        assert props.get_property("b") == "2"
        assert "b" not in props
        assert len(props) == 1

    def test_set_property_returns_old(self):
        props = Properties()
        assert props.set_property("a", "1") is None
        assert props.set_property("a", "2") == "1"
        assert props["a"] == "2"

    def test_property_names(self):
        props = Properties({"a": "1", "c": "3"}, defaults={"b": "2", "a": "0"})
        assert sorted(props.property_names()) == ["a", "b", "c"]

    def test_property_names_without_defaults(self):
        assert list(Properties({"x": "1"}).property_names()) == ["x"]

    def test_load_and_store(self):
        props = Properties().load(io.BytesIO(b"a=1\nb=2\n"))
        assert props == {"a": "1", "b": "2"}

        out = io.BytesIO()
        props.store(out, output_timestamp=False)
        assert out.getvalue() == b"a=1\r\nb=2\r\n"

    def test_store_skips_defaults(self):
        props = Properties({"a": "1"}, defaults={"b": "2"})
        assert props.to_bytes() == b"a=1\r\n"

    def test_load_throw(self):
        with pytest.raises(DuplicateKeyError):
            Properties().load(io.BytesIO(b"a=1\na=2\n"), duplicate_key_resolution=DuplicateKeyResolution.THROW)

    def test_read_write(self, tmp_path):
        path = tmp_path / "app.properties"
        props = Properties({"key": "value", "späce key": "ü"})
        nbytes = props.write(path, comment="test")
        assert nbytes == path.stat().st_size

        loaded = Properties.read(path)
        assert loaded == props

    def test_read_with_defaults(self, tmp_path):
        path = tmp_path / "app.properties"
        path.write_bytes(b"a=1\n")
        loaded = Properties.read(path, defaults={"b": "2"})
        assert loaded.get_property("b") == "2"

    def test_read_size_limit(self, tmp_path):
        path = tmp_path / "big.properties"
        path.write_bytes(b"a=" + b"x" * 100)
        with pytest.raises(ValueError, match="exceeds maximum"):
            Properties.read(path, max_size=10)

    def test_repr(self):
        r = repr(Properties({"a": "1"}, defaults={"b": "2"}))
        assert "Properties" in r
        assert "'a'" in r
        assert "defaults" in r

    def test_module_level_read(self, tmp_path):
        from propfile import read

        path = tmp_path / "app.properties"
        path.write_bytes(b"a=1\na=2\n")
        props = read(path)
        assert isinstance(props, Properties)
        assert props == {"a": "2"}
        with pytest.raises(DuplicateKeyError):
            read(path, duplicate_key_resolution=DuplicateKeyResolution.THROW)
