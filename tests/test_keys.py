import json
import os
import stat
from pathlib import Path

import pytest
from cryptography.hazmat.primitives.asymmetric import ed25519

from deploykit.config import ConfigurationError
from deploykit.keys import load_or_create_key_pair, read_key_file


def test_creates_and_persists_missing_key_file(tmp_path: Path) -> None:
    path = tmp_path / "keys" / "wallet.keys.json"

    keys = load_or_create_key_pair(path)

    assert path.exists()
    stored = json.loads(path.read_text())
    assert stored == {"public": keys.public, "secret": keys.secret}
    private_key = ed25519.Ed25519PrivateKey.from_private_bytes(bytes.fromhex(keys.secret))
    assert private_key.public_key().public_bytes_raw().hex() == keys.public
    if os.name == "posix":
        assert stat.S_IMODE(path.stat().st_mode) == 0o600


def test_existing_key_file_is_reused_verbatim(tmp_path: Path) -> None:
    path = tmp_path / "giver.keys.json"
    content = json.dumps({"public": "ab" * 32, "secret": "cd" * 32})
    path.write_text(content)

    keys = load_or_create_key_pair(path)

    assert keys.public == "ab" * 32
    assert keys.secret == "cd" * 32
    assert path.read_text() == content


def test_second_load_returns_same_keys(tmp_path: Path) -> None:
    path = tmp_path / "k.json"
    assert load_or_create_key_pair(path) == load_or_create_key_pair(path)


@pytest.mark.parametrize(
    "content",
    [
        "not json",
        "[]",
        json.dumps({"public": "ab" * 32}),
        json.dumps({"public": "zz" * 32, "secret": "cd" * 32}),
        json.dumps({"public": "ab" * 31, "secret": "cd" * 32}),
    ],
)
def test_malformed_key_files_are_configuration_errors(tmp_path: Path, content: str) -> None:
    path = tmp_path / "bad.keys.json"
    path.write_text(content)

    with pytest.raises(ConfigurationError):
        read_key_file(path)
