"""Tests for compact serialization parsing."""

import json

import pytest

from appstore_jws.jws import b64url_decode, b64url_encode, parse
from appstore_jws.types import ParseError, ParseStage

from conftest import b64url


def _header_segment(header) -> str:
    return b64url(json.dumps(header).encode("utf-8"))


class TestParse:
    @pytest.mark.parametrize(
        "token",
        ["", "abc", "a.b", "a.b.c.d", "a..c", ".b.c", "a.b.", "..", "a.b.c."],
    )
    def test_rejects_anything_but_three_non_empty_segments(self, token):
        with pytest.raises(ParseError) as info:
            parse(token)
        assert info.value.stage is ParseStage.SPLIT

    def test_rejects_non_string(self):
        with pytest.raises(ParseError) as info:
            parse(b"a.b.c")
        assert info.value.stage is ParseStage.SPLIT

    def test_rejects_undecodable_header(self):
        with pytest.raises(ParseError) as info:
            parse("!!!!.payload.signature")
        assert info.value.stage is ParseStage.HEADER_ENCODING

    def test_rejects_non_json_header(self):
        token = f"{b64url(b'not json')}.payload.signature"
        with pytest.raises(ParseError) as info:
            parse(token)
        assert info.value.stage is ParseStage.HEADER_JSON

    def test_deeply_nested_header_is_a_json_error(self):
        nested = b"[" * 100_000 + b"]" * 100_000
        with pytest.raises(ParseError) as info:
            parse(f"{b64url(nested)}.payload.signature")
        assert info.value.stage is ParseStage.HEADER_JSON

    @pytest.mark.parametrize(
        "header",
        [
            ["ES256"],
            {"x5c": ["a", "b", "c"]},
            {"alg": 256, "x5c": ["a", "b", "c"]},
            {"alg": "ES256"},
            {"alg": "ES256", "x5c": "a,b,c"},
            {"alg": "ES256", "x5c": ["a", 2, "c"]},
        ],
    )
    def test_rejects_malformed_header_fields(self, header):
        with pytest.raises(ParseError) as info:
            parse(f"{_header_segment(header)}.payload.signature")
        assert info.value.stage is ParseStage.HEADER_FIELDS

    def test_rejects_short_chain(self):
        header = {"alg": "ES256", "x5c": ["leaf", "intermediate"]}
        with pytest.raises(ParseError) as info:
            parse(f"{_header_segment(header)}.payload.signature")
        assert info.value.stage is ParseStage.CHAIN_LENGTH

    def test_preserves_raw_token_and_decodes_header(self):
        header = {"alg": "ES256", "x5c": ["leaf", "intermediate", "root"], "kid": "x"}
        token = f"{_header_segment(header)}.cGF5bG9hZA.c2ln"

        signed = parse(token)

        assert signed.raw == token
        assert signed.header.algorithm == "ES256"
        assert signed.header.x5c == ("leaf", "intermediate", "root")
        assert signed.payload_segment == "cGF5bG9hZA"
        assert signed.signature_segment == "c2ln"
        assert signed.signing_input == f"{_header_segment(header)}.cGF5bG9hZA".encode()

    def test_accepts_longer_chain(self):
        header = {"alg": "ES256", "x5c": ["a", "b", "c", "d"]}
        signed = parse(f"{_header_segment(header)}.p.s")
        assert len(signed.header.x5c) == 4


class TestBase64url:
    def test_encode_strips_padding(self):
        assert b64url_encode(b"\xfb\xff") == "-_8"

    def test_decode_accepts_padded_and_unpadded(self):
        assert b64url_decode("-_8") == b"\xfb\xff"
        assert b64url_decode("-_8=") == b"\xfb\xff"

    @pytest.mark.parametrize("encoded", ["a", "ab$c", "ab c"])
    def test_decode_is_strict(self, encoded):
        with pytest.raises(ValueError):
            b64url_decode(encoded)
