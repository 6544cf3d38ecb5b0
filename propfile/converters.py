"""
Properties Converters - Convert to/from JSON and CSV.

Every format goes both ways:
  - to_json / from_json   flat JSON object of string values
  - to_csv / from_csv     "key,value" rows under a header row
"""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Mapping

from propfile.properties import Properties
from propfile.spec import MAX_FILE_SIZE


# =============================================================================
# JSON
# =============================================================================

def to_json(props: Mapping[str, str], indent: int = 2, sort_keys: bool = False) -> str:
    """Convert properties to a JSON object string."""
    return json.dumps(dict(props), indent=indent, sort_keys=sort_keys, ensure_ascii=False) + "\n"


def from_json(json_str: str) -> Properties:
    """Create properties from a JSON object string.

    Only a flat object of string values is accepted; nested values are
    rejected rather than flattened.
    """
    data = json.loads(json_str)

    if not isinstance(data, dict):
        raise ValueError("Invalid properties JSON: expected a JSON object at top level")

    props = Properties()
    for key, val in data.items():
        if not isinstance(val, str):
            raise ValueError(
                f"Invalid properties JSON: value for {key!r} must be a string, "
                f"got {type(val).__name__}"
            )
        props[key] = val
    return props


# =============================================================================
# CSV
# =============================================================================

def _escape_csv_formula(value: str) -> str:
    """Escape CSV formula injection characters (=, +, -, @, tab, CR, ;).

    Checks the first non-whitespace character so spreadsheet applications
    do not evaluate the cell.
    """
    stripped = value.lstrip()
    if stripped and stripped[0] in ("=", "+", "-", "@", "\t", "\r", ";"):
        return "'" + value
    return value


def to_csv(props: Mapping[str, str], escape_formulas: bool = True) -> str:
    """
    Convert properties to CSV: a "key,value" header, then one row per pair.

    Formula escaping is on by default; it is lossy for values starting
    with a formula character, so pass escape_formulas=False for round trips.
    """
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(["key", "value"])
    for key, val in props.items():
        if escape_formulas:
            key, val = _escape_csv_formula(key), _escape_csv_formula(val)
        writer.writerow([key, val])
    return buf.getvalue()


def from_csv(csv_str: str) -> Properties:
    """Create properties from CSV with a "key,value" header row.

    Rows with fewer than two fields are skipped.
    """
    # Values may be long; raise the field limit for the duration of the parse
    old_limit = csv.field_size_limit()
    csv.field_size_limit(MAX_FILE_SIZE)
    try:
        reader = csv.reader(io.StringIO(csv_str, newline=""))
        next(reader, None)  # Skip header row

        props = Properties()
        for row in reader:
            if len(row) < 2:
                continue
            props[row[0]] = row[1]
        return props
    finally:
        csv.field_size_limit(old_limit)


# =============================================================================
# Auto-detect and convert
# =============================================================================

CONVERTERS_TO = {
    "json": to_json,
    "csv": to_csv,
}

CONVERTERS_FROM = {
    "json": from_json,
    "csv": from_csv,
}


def convert_to(props: Mapping[str, str], fmt: str) -> str:
    """Convert properties to the specified format."""
    converter = CONVERTERS_TO.get(fmt.lower())
    if converter is None:
        raise ValueError(f"Unknown format: {fmt}. Supported: {list(CONVERTERS_TO.keys())}")
    return converter(props)


def convert_from(data: str, fmt: str) -> Properties:
    """Create properties from data in the specified format."""
    converter = CONVERTERS_FROM.get(fmt.lower())
    if converter is None:
        raise ValueError(f"Unknown format: {fmt}. Supported: {list(CONVERTERS_FROM.keys())}")
    return converter(data)
