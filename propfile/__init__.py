"""
propfile - Java .properties reader and writer.

Byte compatible with the reference format: comments, ':'/'='/whitespace
separators, line continuation and backslash/unicode escapes.
"""

__version__ = "0.1.0"

from propfile.spec import DEFAULT_ENCODING, DuplicateKeyResolution
from propfile.errors import ParseError, MalformedEscapeError, DuplicateKeyError
from propfile.reader import PropertiesReader, load, loads, read
from propfile.writer import PropertiesWriter, dump, dumps
from propfile.properties import Properties
