from __future__ import annotations

import pytest

from src.state.canonical import (
    DOMAIN_PREFIX,
    canonical_hex_fixed_allow_0x,
    canonical_json_bytes,
    domain_sep_bytes,
    encode_bytes,
    encode_uvarint,
    hex_to_bytes_allow_0x,
    sha256_hex,
)


def test_canonical_json_sorted_and_compact() -> None:
    assert canonical_json_bytes({"b": 1, "a": [1, 2]}) == b'{"a":[1,2],"b":1}'


def test_canonical_json_rejects_floats() -> None:
    with pytest.raises(TypeError):
        canonical_json_bytes({"amount": 1.0})
    with pytest.raises(TypeError):
        canonical_json_bytes([{"nested": [0.5]}])


def test_canonical_json_rejects_non_str_keys() -> None:
    with pytest.raises(TypeError):
        canonical_json_bytes({1: "x"})


def test_canonical_json_rejects_surrogates() -> None:
    with pytest.raises(TypeError):
        canonical_json_bytes({"k": "\ud800"})


def test_canonical_json_utf8() -> None:
    assert canonical_json_bytes("é") == '"é"'.encode("utf-8")


def test_domain_sep_shape() -> None:
    assert domain_sep_bytes("curve_trade_sig:local") == DOMAIN_PREFIX + b"curve_trade_sig:local:v1\x00"
    assert domain_sep_bytes("x", version=2).endswith(b":v2\x00")


@pytest.mark.parametrize("label", ["", "a\x00b", "ü"])
def test_domain_sep_rejects_bad_labels(label: str) -> None:
    with pytest.raises((TypeError, ValueError)):
        domain_sep_bytes(label)


def test_domain_sep_rejects_bad_version() -> None:
    with pytest.raises(ValueError):
        domain_sep_bytes("x", version=0)


@pytest.mark.parametrize(
    "value,encoded",
    [(0, b"\x00"), (1, b"\x01"), (127, b"\x7f"), (128, b"\x80\x01"), (300, b"\xac\x02")],
)
def test_uvarint(value: int, encoded: bytes) -> None:
    assert encode_uvarint(value) == encoded


def test_uvarint_rejects_negative() -> None:
    with pytest.raises(ValueError):
        encode_uvarint(-1)


def test_encode_bytes_length_prefixed() -> None:
    assert encode_bytes(b"abc") == b"\x03abc"
    with pytest.raises(TypeError):
        encode_bytes("abc")  # type: ignore[arg-type]


def test_hex_parsing() -> None:
    assert hex_to_bytes_allow_0x("0xABcd", name="h") == b"\xab\xcd"
    assert hex_to_bytes_allow_0x("abcd", name="h", nbytes=2) == b"\xab\xcd"
    for bad in ("", "0x", "abc", "0xzz"):
        with pytest.raises(ValueError):
            hex_to_bytes_allow_0x(bad, name="h")
    with pytest.raises(ValueError):
        hex_to_bytes_allow_0x("abcd", name="h", nbytes=3)
    with pytest.raises(TypeError):
        hex_to_bytes_allow_0x(1234, name="h")  # type: ignore[arg-type]


def test_canonical_hex_fixed() -> None:
    assert canonical_hex_fixed_allow_0x("AB" * 32, nbytes=32, name="h") == "0x" + "ab" * 32


def test_sha256_hex_prefixed() -> None:
    digest = sha256_hex(b"")
    assert digest == "0xe3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
