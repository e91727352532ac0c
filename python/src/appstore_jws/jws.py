# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

"""Compact JWS parsing.

An App Store signed payload is ``header.payload.signature``, each segment
base64url-encoded without padding. The header carries the signing
algorithm and the ``x5c`` certificate chain used to verify the signature.

Parsing is pure: it decodes the header and nothing else. Certificate and
signature checks live in :mod:`chain` and :mod:`verification`.
"""

from __future__ import annotations

import base64
import binascii
import json

from .types import Header, ParseError, ParseStage, SignedToken

# leaf, intermediate, root
_MIN_CHAIN_LENGTH = 3


def parse(token: str) -> SignedToken:
    """Parse a compact JWS string into a :class:`~types.SignedToken`.

    Parameters
    ----------
    token:
        The opaque ``header.payload.signature`` string.

    Returns
    -------
    SignedToken
        Holds the verbatim token and its decoded header.

    Raises
    ------
    ParseError
        With :attr:`~types.ParseError.stage` naming the step that failed.
    """
    if not isinstance(token, str):
        raise ParseError(
            ParseStage.SPLIT, f"expected str, got {type(token).__name__}"
        )

    segments = token.split(".")
    if len(segments) != 3 or not all(segments):
        raise ParseError(
            ParseStage.SPLIT,
            "token must have exactly three non-empty dot-separated segments",
        )

    try:
        header_bytes = b64url_decode(segments[0])
    except ValueError as exc:
        raise ParseError(ParseStage.HEADER_ENCODING, str(exc)) from exc

    try:
        raw_header = json.loads(header_bytes.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as exc:
        raise ParseError(ParseStage.HEADER_JSON, str(exc)) from exc

    return SignedToken(raw=token, header=_parse_header(raw_header))


def _parse_header(raw: object) -> Header:
    if not isinstance(raw, dict):
        raise ParseError(
            ParseStage.HEADER_FIELDS,
            f"header must be a JSON object, got {type(raw).__name__}",
        )

    algorithm = raw.get("alg")
    if not isinstance(algorithm, str):
        raise ParseError(ParseStage.HEADER_FIELDS, '"alg" must be a string')

    x5c = raw.get("x5c")
    if not isinstance(x5c, list) or not all(isinstance(c, str) for c in x5c):
        raise ParseError(
            ParseStage.HEADER_FIELDS, '"x5c" must be a list of strings'
        )

    if len(x5c) < _MIN_CHAIN_LENGTH:
        raise ParseError(
            ParseStage.CHAIN_LENGTH,
            f'"x5c" must hold at least {_MIN_CHAIN_LENGTH} certificates, '
            f"got {len(x5c)}",
        )

    return Header(algorithm=algorithm, x5c=tuple(x5c))


# ------------------------------------------------------------------
# Base64url utilities (shared with verification and issuance)
# ------------------------------------------------------------------


def b64url_encode(data: bytes) -> str:
    """Encode *data* as base64url without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(encoded: str) -> bytes:
    """Strictly decode a base64url string, with or without padding.

    Raises
    ------
    ValueError
        If *encoded* contains characters outside the base64url alphabet or
        has an impossible length.
    """
    stripped = encoded.rstrip("=")
    if len(stripped) % 4 == 1:
        raise ValueError(f"invalid base64url length {len(stripped)}")
    padded = stripped + "=" * (-len(stripped) % 4)
    try:
        return base64.b64decode(padded, altchars=b"-_", validate=True)
    except binascii.Error as exc:
        raise ValueError(f"invalid base64url: {exc}") from exc
