"""Session encryption using AES-256-GCM with a machine-derived key."""

from __future__ import annotations

import base64
import binascii
import os
import socket
from pathlib import Path

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .errors import DecryptionError

KEY_SALT = b"linear-cli/session-key/v1"
KEY_ITERATIONS = 100_000
KEY_LENGTH = 32
_NONCE_SIZE = 12  # 96 bits, recommended for AES-GCM
_TAG_SIZE = 16


def derive_key(hostname: str | None = None, home: str | os.PathLike[str] | None = None) -> bytes:
    """Derive the 32-byte session key for this machine and user.

    The password is the hostname joined with the home directory path, so a session
    file copied to another machine or account will not decrypt there.
    """
    host = socket.gethostname() if hostname is None else hostname
    home_dir = str(Path.home() if home is None else home)
    password = f"{host}\x00{home_dir}".encode()
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=KEY_SALT,
        iterations=KEY_ITERATIONS,
    )
    return kdf.derive(password)


def encrypt(plaintext: bytes, key: bytes) -> bytes:
    """Encrypt and return base64(nonce + ciphertext + tag)."""
    nonce = os.urandom(_NONCE_SIZE)
    sealed = AESGCM(key).encrypt(nonce, plaintext, None)
    return base64.b64encode(nonce + sealed)


def decrypt(blob: bytes, key: bytes) -> bytes:
    """Reverse :func:`encrypt`; any failure raises a single generic DecryptionError."""
    try:
        raw = base64.b64decode(blob, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecryptionError("failed to decrypt session: malformed data") from exc
    if len(raw) < _NONCE_SIZE + _TAG_SIZE:
        raise DecryptionError("failed to decrypt session: malformed data")
    nonce, sealed = raw[:_NONCE_SIZE], raw[_NONCE_SIZE:]
    try:
        return AESGCM(key).decrypt(nonce, sealed, None)
    except InvalidTag as exc:
        raise DecryptionError("failed to decrypt session") from exc
