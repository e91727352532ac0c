# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

"""Shared value types and exceptions for the appstore-jws Python SDK."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from cryptography import x509

# The only signing algorithm accepted on the verification path and used
# for issuance: ECDSA P-256 with SHA-256.
SIGNING_ALGORITHM = "ES256"


class ParseStage(str, Enum):
    """Stage of compact-serialization parsing that rejected a token."""

    SPLIT = "split"
    HEADER_ENCODING = "header-encoding"
    HEADER_JSON = "header-json"
    HEADER_FIELDS = "header-fields"
    CHAIN_LENGTH = "chain-length"


class ChainPosition(int, Enum):
    """Fixed index of each certificate inside the ``x5c`` header."""

    LEAF = 0
    INTERMEDIATE = 1
    ROOT = 2


@dataclass(frozen=True)
class Header:
    """Decoded protected header of an App Store signed payload."""

    algorithm: str
    # Base64 (standard alphabet) DER certificates: leaf, intermediate, root.
    x5c: tuple[str, ...]


@dataclass(frozen=True)
class SignedToken:
    """A parsed compact JWS.

    ``raw`` is kept verbatim: the signature covers the exact encoded
    segments, never a re-serialization of the header.
    """

    raw: str
    header: Header

    @property
    def header_segment(self) -> str:
        return self.raw.split(".")[0]

    @property
    def payload_segment(self) -> str:
        return self.raw.split(".")[1]

    @property
    def signature_segment(self) -> str:
        return self.raw.split(".")[2]

    @property
    def signing_input(self) -> bytes:
        """ASCII bytes of ``header.payload``, the message the signature covers."""
        header, payload, _ = self.raw.split(".")
        return f"{header}.{payload}".encode("ascii")


@dataclass(frozen=True)
class CertificateChain:
    """The three certificates carried by a token, positionally fixed."""

    leaf: x509.Certificate
    intermediate: x509.Certificate
    root: x509.Certificate


@dataclass(frozen=True)
class Credential:
    """A signed outbound bearer token and the moment it stops being usable."""

    token: str
    expires_at: datetime

    def is_valid(self, now: datetime) -> bool:
        return self.expires_at > now


class AppStoreError(Exception):
    """Base class for every error raised by this package."""


class VerificationError(AppStoreError):
    """Raised when a signed payload cannot be trusted. Never partial."""


class ParseError(VerificationError):
    """Raised when a token is not a well-formed compact serialization."""

    def __init__(self, stage: ParseStage, message: str) -> None:
        self.stage = stage
        super().__init__(f"parse [{stage.value}]: {message}")


class CertificateError(VerificationError):
    """Raised when an ``x5c`` entry is missing or is not a DER certificate."""

    def __init__(self, position: int, message: str) -> None:
        self.position = position
        super().__init__(f"certificate x5c[{position}]: {message}")


class ChainValidationError(VerificationError):
    """Raised when the chain is inconsistent or not rooted in the trust anchor."""


class UnsupportedAlgorithmError(VerificationError):
    """Raised when the header declares anything other than ES256."""

    def __init__(self, algorithm: object) -> None:
        self.algorithm = algorithm
        super().__init__(
            f"unsupported signing algorithm {algorithm!r}; "
            f"only {SIGNING_ALGORITHM} is accepted"
        )


class SignatureInvalidError(VerificationError):
    """Raised when the signature does not match the header and payload."""


class ClaimsDecodeError(VerificationError):
    """Raised when the payload cannot be decoded into the requested claims."""


class ExpiredClaimsError(VerificationError):
    """Raised when the payload's ``exp`` claim is in the past."""

    def __init__(self, expired_at: datetime) -> None:
        self.expired_at = expired_at
        super().__init__(f"claims expired at {expired_at.isoformat()}")


class ClaimsNotYetValidError(VerificationError):
    """Raised when the payload's ``nbf`` claim is in the future."""


class ConfigurationError(AppStoreError):
    """Raised for unusable issuer configuration. Retrying cannot succeed."""


class SigningError(AppStoreError):
    """Raised when signing a credential fails. The caller may retry."""
