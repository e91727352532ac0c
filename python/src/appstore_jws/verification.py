# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

"""Signed payload verification and claims binding.

This module is the *consumption* counterpart to :mod:`credential`. It
provides the entry points used on notification and API response payloads:

``verify_and_bind``
    Full verification of one signed payload: algorithm check, ``x5c``
    chain validation, ES256 signature check, claims decoding and expiry
    enforcement. Returns the populated claims.

``verify_all``
    The same for an array of signed records, e.g. a transaction history
    page.

``check_expiry``
    Temporal checks on already-decoded claims. No cryptography.

Verification is strictly all-or-nothing. Every failure raises a
:class:`~types.VerificationError` subclass; there is no result object with
a "partially valid" state.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta
from typing import Iterable, TypeVar

from cryptography import x509
from jwt.algorithms import ECAlgorithm

from .chain import resolve_instant, validate_chain
from .claims import RegisteredClaims, bind_claims
from .jws import b64url_decode, parse
from .types import (
    SIGNING_ALGORITHM,
    ClaimsDecodeError,
    ClaimsNotYetValidError,
    ExpiredClaimsError,
    SignatureInvalidError,
    SignedToken,
    UnsupportedAlgorithmError,
)

C = TypeVar("C", bound=RegisteredClaims)

_ES256 = ECAlgorithm(ECAlgorithm.SHA256)


def verify_and_bind(
    token: str | SignedToken,
    claims_type: type[C] = RegisteredClaims,
    *,
    trust_anchor: x509.Certificate | None = None,
    now: datetime | None = None,
    leeway: float = 0,
) -> C:
    """Verify an App Store signed payload and bind its claims.

    Steps, in order:

    1. Parse the compact serialization (when *token* is a string).
    2. Reject any declared algorithm other than ES256, before any
       certificate or signature work.
    3. Validate the ``x5c`` chain against the trust anchor and take the
       leaf's public key.
    4. Verify the signature over the exact encoded ``header.payload``.
    5. Decode the payload into *claims_type*.
    6. Enforce ``exp`` and ``nbf`` via :func:`check_expiry`.

    Parameters
    ----------
    token:
        The raw token string or an already parsed
        :class:`~types.SignedToken`.
    claims_type:
        A :class:`~claims.RegisteredClaims` dataclass to populate.
    trust_anchor:
        Root certificate the chain must validate against. Defaults to the
        pinned Apple Root CA - G3.
    now:
        Reference instant for certificate and claims checks. Defaults to the
        current UTC time. Must be timezone-aware; a naive value raises
        ``ValueError``.
    leeway:
        Clock-skew allowance in seconds applied to ``exp`` and ``nbf``.

    Returns
    -------
    claims_type
        A fresh instance owned by the caller.

    Raises
    ------
    ParseError, UnsupportedAlgorithmError, CertificateError,
    ChainValidationError, SignatureInvalidError, ClaimsDecodeError,
    ExpiredClaimsError, ClaimsNotYetValidError
    """
    signed = parse(token) if isinstance(token, str) else token
    at = resolve_instant(now, "verify_and_bind")

    # --- Step 1: Algorithm, independent of any signature math. ---
    if signed.header.algorithm != SIGNING_ALGORITHM:
        raise UnsupportedAlgorithmError(signed.header.algorithm)

    # --- Step 2: Chain of trust. ---
    public_key = validate_chain(signed.header, trust_anchor=trust_anchor, now=at)

    # --- Step 3: Signature. ---
    try:
        signature = b64url_decode(signed.signature_segment)
    except ValueError as exc:
        raise SignatureInvalidError(
            f"verify_and_bind: undecodable signature segment: {exc}"
        ) from exc

    if not _ES256.verify(signed.signing_input, public_key, signature):
        raise SignatureInvalidError("verify_and_bind: ES256 signature is invalid")

    # --- Step 4: Claims. ---
    claims = bind_claims(claims_type, decode_payload(signed))

    # --- Step 5: Temporal claims. ---
    check_expiry(claims, now=at, leeway=leeway)
    return claims


def verify_all(
    tokens: Iterable[str],
    claims_type: type[C] = RegisteredClaims,
    **kwargs,
) -> list[C]:
    """Verify every token in *tokens*; the first failure propagates."""
    return [verify_and_bind(token, claims_type, **kwargs) for token in tokens]


def decode_payload(signed: SignedToken) -> dict:
    """Decode the payload segment of *signed* into a JSON object.

    Does not verify the signature. Only call this on a token that has
    already passed :func:`verify_and_bind`, or for diagnostics.

    Raises
    ------
    ClaimsDecodeError
        If the segment is not base64url-encoded UTF-8 JSON describing an
        object.
    """
    try:
        raw = b64url_decode(signed.payload_segment)
        payload = json.loads(raw.decode("utf-8"))
    except (ValueError, UnicodeDecodeError, RecursionError) as exc:
        raise ClaimsDecodeError(f"decode_payload: {exc}") from exc

    if not isinstance(payload, dict):
        raise ClaimsDecodeError(
            f"decode_payload: payload must be a JSON object, got {type(payload).__name__}"
        )
    return payload


def check_expiry(
    claims: RegisteredClaims,
    *,
    now: datetime | None = None,
    leeway: float = 0,
) -> None:
    """Enforce the ``exp`` and ``nbf`` claims.

    Claims without ``exp`` or ``nbf`` pass that check; many App Store
    payloads carry only domain timestamps.

    Raises
    ------
    ClaimsDecodeError
        If ``exp`` or ``nbf`` is present but not a number.
    ExpiredClaimsError
        If ``exp`` is at or before *now* (less *leeway*).
    ClaimsNotYetValidError
        If ``nbf`` is after *now* (plus *leeway*).
    """
    at = resolve_instant(now, "check_expiry")
    skew = timedelta(seconds=leeway)

    for name, value in (("exp", claims.expires_at), ("nbf", claims.not_before)):
        if value is not None and (
            isinstance(value, bool) or not isinstance(value, (int, float))
        ):
            raise ClaimsDecodeError(
                f"check_expiry: {name!r} must be a NumericDate, got {value!r}"
            )

    try:
        expiry = claims.expiry
        not_before = claims.not_valid_before
    except (OverflowError, OSError, ValueError) as exc:
        raise ClaimsDecodeError(f"check_expiry: NumericDate out of range: {exc}") from exc

    if expiry is not None and expiry <= at - skew:
        raise ExpiredClaimsError(expiry)

    if not_before is not None and not_before > at + skew:
        raise ClaimsNotYetValidError(
            f"check_expiry: claims not valid before {not_before.isoformat()}"
        )
