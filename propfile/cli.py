"""
propfile CLI - Command-line interface for Java .properties files.

Commands:
  propfile inspect  - List the keys and values of a .properties file
  propfile get      - Print the value of one key
  propfile set      - Set a key (file is rewritten)
  propfile unset    - Remove a key (file is rewritten)
  propfile validate - Parse a file, optionally rejecting duplicate keys
  propfile format   - Rewrite a file in canonical escaped form
  propfile convert  - Convert to/from JSON, CSV
  propfile encrypt  - Encrypt a .properties file with AES-256-GCM
  propfile decrypt  - Decrypt an encrypted .properties file
  propfile view     - Browse a .properties file (TUI)

Environment:
  PROPFILE_ENCODING          default --encoding (ISO-8859-1 if unset)
  PROPFILE_LOG_LEVEL         log level when -v is not given (default WARNING)
  PROPFILE_ENCRYPT_PASSWORD  password for encrypt/decrypt when -p is not given
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from propfile.errors import ParseError
from propfile.spec import MAX_FILE_SIZE, DuplicateKeyResolution

logger = logging.getLogger("propfile")


def _setup_logging(verbose: bool) -> None:
    level = "DEBUG" if verbose else os.environ.get("PROPFILE_LOG_LEVEL", "WARNING").upper()
    if not isinstance(logging.getLevelName(level), int):
        _fail(f"Unknown log level in PROPFILE_LOG_LEVEL: {level!r}")
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _fail(message: str) -> None:
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def _reject_traversal(output: str) -> None:
    if ".." in Path(output).parts:
        _fail("Output path must not contain '..' (path traversal)")


def _load(path: str, encoding: str | None, strict: bool = False):
    """Read a file, turning parse/IO errors into a CLI failure."""
    from propfile.properties import Properties

    resolution = DuplicateKeyResolution.THROW if strict else DuplicateKeyResolution.OVERWRITE
    try:
        return Properties.read(path, encoding=encoding, duplicate_key_resolution=resolution)
    except FileNotFoundError:
        _fail(f"File not found: {path}")
    except (ParseError, UnicodeError) as e:
        _fail(f"{path}: {e}")
    except ValueError as e:
        # Size limit
        _fail(str(e))


def cmd_inspect(args: argparse.Namespace) -> None:
    """List keys and values."""
    props = _load(args.path, args.encoding)
    print(f"{args.path}: {len(props)} properties")
    print()
    width = min(max((len(k) for k in props), default=0), 40)
    for key, val in props.items():
        # Truncate long values
        display = val if len(val) <= 72 else val[:69] + "..."
        print(f"  {key:{width}s}  {display!r}" if args.repr else f"  {key:{width}s}  {display}")


def cmd_get(args: argparse.Namespace) -> None:
    """Print the value of a key."""
    props = _load(args.path, args.encoding)
    value = props.get_property(args.key, args.default)
    if value is None:
        print(f"Key '{args.key}' not found.", file=sys.stderr)
        sys.exit(1)
    print(value)


def _rewrite(props, path: str, args: argparse.Namespace) -> int:
    output = args.output or path
    _reject_traversal(output)
    return props.write(
        output,
        comment=args.comment,
        encoding=args.encoding,
        output_timestamp=not args.no_timestamp,
    )


def cmd_set(args: argparse.Namespace) -> None:
    """Set a key and rewrite the file."""
    from propfile.properties import Properties

    if Path(args.path).exists():
        props = _load(args.path, args.encoding)
    else:
        props = Properties()
    old = props.set_property(args.key, args.value)
    _rewrite(props, args.path, args)
    if old is None:
        print(f"Added {args.key}")
    else:
        print(f"Updated {args.key}")


def cmd_unset(args: argparse.Namespace) -> None:
    """Remove a key and rewrite the file."""
    props = _load(args.path, args.encoding)
    if args.key not in props:
        print(f"Key '{args.key}' not found.", file=sys.stderr)
        sys.exit(1)
    del props[args.key]
    _rewrite(props, args.path, args)
    print(f"Removed {args.key}")


def cmd_validate(args: argparse.Namespace) -> None:
    """Parse a file and report problems."""
    from propfile.properties import Properties

    resolution = DuplicateKeyResolution.THROW if args.strict else DuplicateKeyResolution.OVERWRITE
    try:
        props = Properties.read(args.path, encoding=args.encoding, duplicate_key_resolution=resolution)
    except FileNotFoundError:
        print(f"FAIL: {args.path} not found")
        sys.exit(1)
    except (ParseError, UnicodeError) as e:
        # Parser errors carry line and column
        print(f"FAIL: parse error: {e}")
        sys.exit(1)
    except ValueError as e:
        # Size limit
        print(f"FAIL: {e}")
        sys.exit(1)
    print(f"OK: {args.path} ({len(props)} properties)")


def cmd_format(args: argparse.Namespace) -> None:
    """Rewrite a file with canonical escaping, optionally sorted."""
    from propfile.properties import Properties

    props = _load(args.path, args.encoding, strict=args.strict)
    if args.sort:
        props = Properties(sorted(props.items()))
    if args.check:
        # Comment lines (header, timestamp) are not compared
        current = [
            line for line in Path(args.path).read_bytes().split(b"\r\n")
            if line and not line.startswith((b"#", b"!"))
        ]
        expected = [line for line in props.to_bytes(encoding=args.encoding).split(b"\r\n") if line]
        if current != expected:
            print(f"{args.path}: not formatted")
            sys.exit(1)
        print(f"{args.path}: formatted")
        return
    nbytes = _rewrite(props, args.path, args)
    print(f"Formatted {args.output or args.path} ({nbytes} bytes)")


def _infer_format(filename: str) -> str | None:
    """Infer format from file extension."""
    ext_map = {".json": "json", ".csv": "csv", ".properties": "properties"}
    return ext_map.get(Path(filename).suffix.lower())


def cmd_convert(args: argparse.Namespace) -> None:
    """Convert to/from .properties."""
    from propfile.converters import convert_to, convert_from

    known_formats = {"json", "csv"}

    if args.format_or_input in known_formats and args.input:
        fmt = args.format_or_input
        input_file = args.input
    else:
        input_file = args.format_or_input
        # For "to": infer from -o flag since input is .properties
        # For "from": infer from input file extension
        if args.direction == "to":
            resolved = _infer_format(args.output) if args.output else None
        else:
            resolved = _infer_format(input_file)
        if resolved not in known_formats:
            print("Error: Cannot infer format. Specify explicitly:", file=sys.stderr)
            print(f"  propfile convert {args.direction} <json|csv> {input_file}", file=sys.stderr)
            sys.exit(1)
        fmt = resolved

    if args.direction == "from":
        input_path = Path(input_file)
        if not input_path.is_file():
            _fail(f"File not found: {input_file}")
        file_size = input_path.stat().st_size
        if file_size > MAX_FILE_SIZE:
            _fail(f"File size {file_size} exceeds maximum {MAX_FILE_SIZE} bytes")
        try:
            props = convert_from(input_path.read_text(encoding="utf-8"), fmt)
        except ValueError as e:
            _fail(f"{input_file}: {e}")
        output = args.output or input_path.stem + ".properties"
        _reject_traversal(output)
        nbytes = props.write(output, encoding=args.encoding, output_timestamp=not args.no_timestamp)
        print(f"Converted {input_file} -> {output} ({nbytes} bytes)")
    else:
        props = _load(input_file, args.encoding)
        result = convert_to(props, fmt)
        if args.output:
            _reject_traversal(args.output)
            Path(args.output).write_text(result, encoding="utf-8")
            print(f"Converted {input_file} -> {args.output}")
        else:
            print(result, end="")


def _password(args: argparse.Namespace, confirm: bool) -> str:
    password = args.password or os.environ.get("PROPFILE_ENCRYPT_PASSWORD", "")
    if not password:
        import getpass
        password = getpass.getpass("Password: ")
        if confirm and password != getpass.getpass("Confirm: "):
            _fail("Passwords do not match")
    if not password:
        _fail("Password cannot be empty")
    return password


def cmd_encrypt(args: argparse.Namespace) -> None:
    """Encrypt a .properties file with AES-256-GCM."""
    from propfile.security import encrypt_properties

    props = _load(args.path, args.encoding)
    password = _password(args, confirm=True)
    output = args.output or args.path + ".enc"
    _reject_traversal(output)
    encrypted = encrypt_properties(props, password)
    Path(output).write_bytes(encrypted)
    print(f"Encrypted {args.path} -> {output} ({len(encrypted)} bytes)")


def cmd_decrypt(args: argparse.Namespace) -> None:
    """Decrypt an encrypted .properties file."""
    from propfile.security import decrypt_properties, is_encrypted

    enc_path = Path(args.path)
    if not enc_path.is_file():
        _fail(f"File not found: {args.path}")
    file_size = enc_path.stat().st_size
    if file_size > MAX_FILE_SIZE:
        _fail(f"File size {file_size} exceeds maximum {MAX_FILE_SIZE} bytes")
    data = enc_path.read_bytes()
    if not is_encrypted(data):
        _fail(f"{args.path} is not an encrypted properties file")
    password = _password(args, confirm=False)

    try:
        props = decrypt_properties(data, password)
    except ImportError as e:
        _fail(str(e))
    except Exception:
        # Wrong password and corrupted payload look the same on purpose
        logger.debug("Decryption failed", exc_info=True)
        _fail("Decryption failed (wrong password or corrupted file)")

    output = args.output
    if not output:
        output = args.path.removesuffix(".enc") if args.path.endswith(".enc") else args.path + ".dec.properties"
    _reject_traversal(output)
    nbytes = props.write(output, encoding=args.encoding, output_timestamp=False)
    print(f"Decrypted {args.path} -> {output} ({nbytes} bytes)")


def cmd_view(args: argparse.Namespace) -> None:
    """Browse a .properties file in the TUI viewer."""
    try:
        from propfile.tui.viewer import run_viewer
    except ImportError:
        print(
            "TUI viewer requires the 'textual' package.\n"
            "Install it with: pip install \"propfile[tui]\"",
            file=sys.stderr,
        )
        sys.exit(1)
    run_viewer(args.path, encoding=args.encoding)


def _add_write_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("-o", "--output", help="Output path (default: overwrite input)")
    p.add_argument("-c", "--comment", help="Comment line written at the top of the file")
    p.add_argument("--no-timestamp", action="store_true", help="Do not write the timestamp comment")


def build_parser() -> argparse.ArgumentParser:
    from propfile import __version__

    parser = argparse.ArgumentParser(
        prog="propfile",
        description="propfile - read, edit and convert Java .properties files.",
    )
    parser.add_argument("--version", action="version", version=f"propfile {__version__}")
    parser.add_argument(
        "-e", "--encoding",
        default=os.environ.get("PROPFILE_ENCODING") or None,
        help="File encoding (default: ISO-8859-1, or $PROPFILE_ENCODING)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging to stderr")
    sub = parser.add_subparsers(dest="command")

    # inspect
    p_inspect = sub.add_parser("inspect", help="List keys and values")
    p_inspect.add_argument("path", help="Path to .properties file")
    p_inspect.add_argument("--repr", action="store_true", help="Show values with Python escaping")

    # get
    p_get = sub.add_parser("get", help="Print the value of a key")
    p_get.add_argument("path", help="Path to .properties file")
    p_get.add_argument("key", help="Key to look up")
    p_get.add_argument("-d", "--default", help="Value printed when the key is missing")

    # set
    p_set = sub.add_parser("set", help="Set a key (rewrites the file)")
    p_set.add_argument("path", help="Path to .properties file (created if missing)")
    p_set.add_argument("key", help="Key to set")
    p_set.add_argument("value", help="New value")
    _add_write_options(p_set)

    # unset
    p_unset = sub.add_parser("unset", help="Remove a key (rewrites the file)")
    p_unset.add_argument("path", help="Path to .properties file")
    p_unset.add_argument("key", help="Key to remove")
    _add_write_options(p_unset)

    # validate
    p_validate = sub.add_parser("validate", help="Validate a .properties file")
    p_validate.add_argument("path", help="Path to .properties file")
    p_validate.add_argument("--strict", action="store_true", help="Fail on duplicate keys")

    # format
    p_format = sub.add_parser("format", help="Rewrite in canonical escaped form")
    p_format.add_argument("path", help="Path to .properties file")
    p_format.add_argument("--sort", action="store_true", help="Sort keys")
    p_format.add_argument("--strict", action="store_true", help="Fail on duplicate keys")
    p_format.add_argument("--check", action="store_true", help="Only report whether the file is formatted")
    _add_write_options(p_format)

    # convert
    p_convert = sub.add_parser("convert", help="Convert to/from JSON or CSV")
    p_convert.add_argument("direction", choices=["to", "from"], help="Conversion direction")
    p_convert.add_argument("format_or_input", help="Format (json, csv) or input file")
    p_convert.add_argument("input", nargs="?", default=None, help="Input file path")
    p_convert.add_argument("-o", "--output", help="Output file path")
    p_convert.add_argument("--no-timestamp", action="store_true", help="Do not write the timestamp comment")

    # encrypt
    p_encrypt = sub.add_parser("encrypt", help="Encrypt a .properties file with AES-256-GCM")
    p_encrypt.add_argument("path", help="Path to .properties file")
    p_encrypt.add_argument("-p", "--password", help="Encryption password (prompted if omitted)")
    p_encrypt.add_argument("-o", "--output", help="Output path (default: <path>.enc)")

    # decrypt
    p_decrypt = sub.add_parser("decrypt", help="Decrypt an encrypted .properties file")
    p_decrypt.add_argument("path", help="Path to encrypted file")
    p_decrypt.add_argument("-p", "--password", help="Decryption password (prompted if omitted)")
    p_decrypt.add_argument("-o", "--output", help="Output path")

    # view
    p_view = sub.add_parser("view", help="Browse a .properties file (TUI)")
    p_view.add_argument("path", help="Path to .properties file")

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    if not args.command:
        parser.print_help()
        sys.exit(0)

    commands = {
        "inspect": cmd_inspect,
        "get": cmd_get,
        "set": cmd_set,
        "unset": cmd_unset,
        "validate": cmd_validate,
        "format": cmd_format,
        "convert": cmd_convert,
        "encrypt": cmd_encrypt,
        "decrypt": cmd_decrypt,
        "view": cmd_view,
    }

    try:
        commands[args.command](args)
    except OSError as e:
        _fail(str(e))


if __name__ == "__main__":
    main()
