import re

import pytest

from clipvault.ingest.object_key import new_object_key, random_token


def test_hex_key_layout():
    key = new_object_key("landscape")
    assert re.fullmatch(r"landscape/[0-9a-f]{64}\.mp4", key)


def test_base64url_key_layout():
    key = new_object_key("portrait", encoding="base64url")
    prefix, name = key.split("/", 1)
    assert prefix == "portrait"
    assert name.endswith(".mp4")
    token = name[: -len(".mp4")]
    assert len(token) == 43
    assert re.fullmatch(r"[A-Za-z0-9_-]+", token)


def test_keys_are_unique():
    keys = {new_object_key("other") for _ in range(200)}
    assert len(keys) == 200


def test_tokens_never_contain_delimiters():
    for _ in range(100):
        token = random_token(encoding="base64url")
        assert "," not in token and "/" not in token and "=" not in token


def test_unknown_orientation_rejected():
    with pytest.raises(ValueError):
        new_object_key("sideways")  # type: ignore[arg-type]


def test_unknown_encoding_rejected():
    with pytest.raises(ValueError):
        random_token(encoding="base32")  # type: ignore[arg-type]
