# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

"""Certificate chain extraction and validation for the ``x5c`` header.

Validation runs two independent checks and both must pass:

1. **Structural**: the leaf is issued by the intermediate, which is issued
   by the root, using only the certificates the token carries. This proves
   the chain is self-consistent, not that it belongs to Apple.
2. **Anchor**: the chain's root is checked against a trust set holding
   only the pinned anchor (see :mod:`anchor`). This is the actual security
   boundary: an attacker can mint a perfectly consistent three-certificate
   chain, but cannot make its root validate against Apple's key.

Nothing is cached. Every call re-validates the chain it is handed.
"""

from __future__ import annotations

import base64
import binascii
import logging
from datetime import datetime, timezone

from cryptography import x509
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import ec

from .anchor import apple_root_ca
from .types import (
    CertificateChain,
    CertificateError,
    ChainPosition,
    ChainValidationError,
    Header,
)

logger = logging.getLogger(__name__)


def extract_certificate(header: Header, position: ChainPosition | int) -> x509.Certificate:
    """Decode the DER certificate at *position* in ``header.x5c``.

    Raises
    ------
    CertificateError
        If the slot is missing, not standard base64, or not DER.
    """
    index = int(position)
    if index >= len(header.x5c):
        raise CertificateError(index, "missing from chain")

    try:
        der = base64.b64decode(header.x5c[index], validate=True)
    except binascii.Error as exc:
        raise CertificateError(index, f"invalid base64: {exc}") from exc

    try:
        cert = x509.load_der_x509_certificate(der)
        # Extensions are parsed lazily; force it so malformed ones fail here.
        cert.extensions
    except (ValueError, x509.DuplicateExtension) as exc:
        raise CertificateError(index, f"invalid DER certificate: {exc}") from exc
    return cert


def extract_chain(header: Header) -> CertificateChain:
    """Decode the leaf, intermediate and root certificates from *header*."""
    return CertificateChain(
        leaf=extract_certificate(header, ChainPosition.LEAF),
        intermediate=extract_certificate(header, ChainPosition.INTERMEDIATE),
        root=extract_certificate(header, ChainPosition.ROOT),
    )


def validate_chain(
    header: Header,
    *,
    trust_anchor: x509.Certificate | None = None,
    now: datetime | None = None,
) -> ec.EllipticCurvePublicKey:
    """Validate the ``x5c`` chain and return the leaf's public key.

    Parameters
    ----------
    header:
        The decoded token header.
    trust_anchor:
        Certificate the chain must be rooted in. Defaults to the pinned
        Apple Root CA - G3.
    now:
        Instant used for validity-window checks. Defaults to the current
        UTC time. Must be timezone-aware.

    Returns
    -------
    EllipticCurvePublicKey
        The P-256 key that signed the payload.

    Raises
    ------
    CertificateError
        If any of the three chain slots cannot be decoded.
    ChainValidationError
        If either the structural check or the anchor check fails.
    """
    anchor = trust_anchor if trust_anchor is not None else apple_root_ca()
    at = resolve_instant(now, "validate_chain")
    chain = extract_chain(header)

    # --- Check 1: the chain is internally consistent. ---
    _require_within_validity(chain.leaf, at, "leaf")
    _require_within_validity(chain.intermediate, at, "intermediate")
    _require_within_validity(chain.root, at, "root")
    _require_ca(chain.intermediate, "intermediate")
    _require_ca(chain.root, "root")
    _require_issued_by(chain.leaf, chain.intermediate, "leaf", "intermediate")
    _require_issued_by(chain.intermediate, chain.root, "intermediate", "root")

    # --- Check 2: the chain's root validates against the anchor alone. ---
    _require_within_validity(anchor, at, "trust anchor")
    if chain.root != anchor:
        _require_issued_by(chain.root, anchor, "root", "trust anchor")

    try:
        public_key = chain.leaf.public_key()
    except (ValueError, UnsupportedAlgorithm) as exc:
        raise ChainValidationError(
            f"validate_chain: unusable leaf public key: {exc}"
        ) from exc
    if not isinstance(public_key, ec.EllipticCurvePublicKey) or not isinstance(
        public_key.curve, ec.SECP256R1
    ):
        raise ChainValidationError(
            "validate_chain: leaf certificate does not carry a P-256 public key"
        )

    logger.debug(
        "validated x5c chain for %s", chain.leaf.subject.rfc4514_string()
    )
    return public_key


def resolve_instant(now: datetime | None, caller: str) -> datetime:
    """Return *now* as an aware UTC datetime, defaulting to the current time.

    Raises
    ------
    ValueError
        If *now* is naive; its timezone would be a guess.
    """
    if now is None:
        return datetime.now(tz=timezone.utc)
    if now.tzinfo is None or now.utcoffset() is None:
        raise ValueError(f"{caller}: now must be a timezone-aware datetime")
    return now.astimezone(timezone.utc)


# ------------------------------------------------------------------
# Internal helpers
# ------------------------------------------------------------------


def _require_issued_by(
    child: x509.Certificate,
    parent: x509.Certificate,
    child_name: str,
    parent_name: str,
) -> None:
    """Check the issuer name matches and the signature verifies under *parent*."""
    try:
        child.verify_directly_issued_by(parent)
    except InvalidSignature as exc:
        raise ChainValidationError(
            f"validate_chain: {child_name} signature does not verify "
            f"under the {parent_name} key"
        ) from exc
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise ChainValidationError(
            f"validate_chain: {child_name} is not issued by the {parent_name}: {exc}"
        ) from exc


def _require_ca(cert: x509.Certificate, name: str) -> None:
    try:
        constraints = cert.extensions.get_extension_for_class(x509.BasicConstraints)
    except x509.ExtensionNotFound as exc:
        raise ChainValidationError(
            f"validate_chain: {name} certificate has no basic constraints"
        ) from exc
    if not constraints.value.ca:
        raise ChainValidationError(
            f"validate_chain: {name} certificate is not a certificate authority"
        )


def _require_within_validity(cert: x509.Certificate, at: datetime, name: str) -> None:
    if at < cert.not_valid_before_utc:
        raise ChainValidationError(
            f"validate_chain: {name} certificate is not valid before "
            f"{cert.not_valid_before_utc.isoformat()}"
        )
    if at > cert.not_valid_after_utc:
        raise ChainValidationError(
            f"validate_chain: {name} certificate expired at "
            f"{cert.not_valid_after_utc.isoformat()}"
        )
