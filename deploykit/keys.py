"""Signing key files.

Key files hold a JSON object ``{"public": "<hex>", "secret": "<hex>"}`` with
raw 32-byte Ed25519 keys. Missing files are created with a fresh random pair;
existing files are read as-is and never rewritten.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from cryptography.hazmat.primitives.asymmetric import ed25519
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
)

from .config import ConfigurationError
from .model import KeyPair

logger = logging.getLogger(__name__)

KEY_HEX_LENGTH = 64


def generate_key_pair() -> KeyPair:
    private_key = ed25519.Ed25519PrivateKey.generate()
    secret = private_key.private_bytes(Encoding.Raw, PrivateFormat.Raw, NoEncryption())
    public = private_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
    return KeyPair(public=public.hex(), secret=secret.hex())


def read_key_file(path: str | Path) -> KeyPair:
    """Read a key pair from ``path``."""

    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigurationError(f"Unable to read key file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Key file {path} must contain a JSON object")
    public = data.get("public")
    secret = data.get("secret")
    for label, value in (("public", public), ("secret", secret)):
        if not isinstance(value, str) or len(value) != KEY_HEX_LENGTH:
            raise ConfigurationError(f"Key file {path} has an invalid '{label}' key")
        try:
            bytes.fromhex(value)
        except ValueError as exc:
            raise ConfigurationError(f"Key file {path} has a non-hex '{label}' key") from exc
    return KeyPair(public=public, secret=secret)


def load_or_create_key_pair(path: str | Path) -> KeyPair:
    """Return the keys stored at ``path``, generating and saving them if absent."""

    path = Path(path)
    if path.exists():
        return read_key_file(path)

    keys = generate_key_pair()
    path.parent.mkdir(parents=True, exist_ok=True)
    # Owner-only permissions; the file holds a secret key.
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as handle:
        json.dump(keys.to_jsonable(), handle)
    logger.info("Generated new key pair at %s", path)
    return keys
