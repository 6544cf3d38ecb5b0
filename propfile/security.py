"""
Properties Security - Encryption and content checksums.

Security features:
  - AES-256-GCM encryption with AAD binding for files holding credentials
  - Key derivation via PBKDF2 for password-based encryption
  - SHA-256 checksum over a length-prefixed canonical encoding of the pairs
    (independent of comments, timestamps, escaping style and key order)
"""

from __future__ import annotations

import hashlib
import hmac
import io
import os
import struct
from collections.abc import Mapping

from propfile.properties import Properties

# Plaintext header line of an encrypted file
ENCRYPTED_HEADER = b"#!PROPFILE-ENC/1.0\n"
_ENCRYPTED_PREFIX = b"#!PROPFILE-ENC/"

# AAD (Additional Authenticated Data) for AES-GCM binding
_AES_AAD = b"PROPFILE-ENC/1.0"

_SALT_SIZE = 16
_NONCE_SIZE = 12
_TAG_SIZE = 16


# =============================================================================
# Checksum
# =============================================================================

def checksum(props: Mapping[str, str]) -> str:
    """SHA-256 hex digest of the pairs, sorted by key.

    Each key and value is fed as a 4-byte big-endian length plus UTF-8
    bytes, so no choice of separator characters can collide.
    """
    h = hashlib.sha256()
    for key in sorted(props):
        for part in (key, props[key]):
            data = part.encode("utf-8", "surrogatepass")
            h.update(struct.pack(">I", len(data)))
            h.update(data)
    return h.hexdigest()


def verify_checksum(props: Mapping[str, str], expected: str) -> bool:
    """Constant-time comparison of checksum(props) against `expected`."""
    if not expected:
        return False
    return hmac.compare_digest(checksum(props), expected.lower())


# =============================================================================
# AES-256-GCM Encryption
# =============================================================================

def _derive_key(password: str, salt: bytes) -> bytes:
    """Derive a 256-bit key from a password using PBKDF2."""
    return hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt,
        iterations=600_000,  # OWASP recommended minimum
        dklen=32,
    )


def _aesgcm(key: bytes):
    try:
        from cryptography.hazmat.primitives.ciphers.aead import AESGCM
    except ImportError:
        raise ImportError(
            "The 'cryptography' package is required for encryption. "
            "Install it with: pip install \"propfile[crypto]\""
        )
    return AESGCM(key)


def encrypt_bytes(data: bytes, password: str) -> bytes:
    """
    Encrypt raw bytes with AES-256-GCM using a password.
    Returns: salt (16) + nonce (12) + ciphertext + tag (16)
    """
    salt = os.urandom(_SALT_SIZE)
    nonce = os.urandom(_NONCE_SIZE)
    key = _derive_key(password, salt)
    return salt + nonce + _aesgcm(key).encrypt(nonce, data, _AES_AAD)


def decrypt_bytes(encrypted: bytes, password: str) -> bytes:
    """
    Decrypt bytes produced by encrypt_bytes().
    Raises cryptography.exceptions.InvalidTag on a wrong password or tampering.
    """
    salt = encrypted[:_SALT_SIZE]
    nonce = encrypted[_SALT_SIZE:_SALT_SIZE + _NONCE_SIZE]
    ciphertext = encrypted[_SALT_SIZE + _NONCE_SIZE:]
    key = _derive_key(password, salt)
    return _aesgcm(key).decrypt(nonce, ciphertext, _AES_AAD)


def encrypt_properties(
    props: Mapping[str, str],
    password: str,
    comment: str | None = None,
) -> bytes:
    """
    Encrypt a set of properties.

    The pairs are serialized (no timestamp line) and encrypted; the result
    starts with a plaintext header line so tools can identify it.
    """
    from propfile.writer import PropertiesWriter

    plaintext = PropertiesWriter(props, output_timestamp=False).serialize(comment)
    return ENCRYPTED_HEADER + encrypt_bytes(plaintext, password)


def decrypt_properties(data: bytes, password: str) -> Properties:
    """Decrypt data produced by encrypt_properties()."""
    if not is_encrypted(data):
        raise ValueError("Data is not an encrypted properties file (missing header)")
    if b"\n" not in data:
        raise ValueError("Malformed encrypted properties file: missing header terminator")

    encrypted = data[data.index(b"\n") + 1:]
    minimum = _SALT_SIZE + _NONCE_SIZE + _TAG_SIZE
    if len(encrypted) < minimum:
        raise ValueError(
            f"Encrypted payload too short: {len(encrypted)} bytes "
            f"(minimum {minimum} bytes: salt + nonce + tag)"
        )

    plaintext = decrypt_bytes(encrypted, password)
    return Properties().load(io.BytesIO(plaintext))


def is_encrypted(data: bytes) -> bool:
    """Check if data is an encrypted properties file."""
    return data.startswith(_ENCRYPTED_PREFIX)
