# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

"""appstore-jws: verification of App Store signed payloads and issuance of
App Store Server API credentials.

Quickstart
----------
Verify a signed transaction, notification or renewal-info payload:

>>> from appstore_jws import RegisteredClaims, claim, verify_and_bind
>>> @dataclass(frozen=True, kw_only=True)
... class TransactionClaims(RegisteredClaims):
...     transaction_id: str
...     bundle_id: str
>>> claims = verify_and_bind(signed_transaction, TransactionClaims)
>>> print(claims.transaction_id)
2000000123456789

Sign outbound API requests:

>>> from appstore_jws import CredentialIssuer, IssuerConfig
>>> issuer = CredentialIssuer(IssuerConfig.from_key_file("AuthKey.p8", ...))
>>> issuer.get()
'eyJhbGciOiJFUzI1NiIs...'
"""

from .anchor import APPLE_ROOT_CA_G3_PEM, apple_root_ca, load_trust_anchor
from .chain import extract_chain, validate_chain
from .claims import RegisteredClaims, bind_claims, claim
from .client import CredentialAuth, create_async_client, create_client
from .credential import CredentialIssuer, IssuerConfig, load_private_key
from .jws import parse
from .types import (
    AppStoreError,
    CertificateChain,
    CertificateError,
    ChainValidationError,
    ClaimsDecodeError,
    ClaimsNotYetValidError,
    ConfigurationError,
    Credential,
    ExpiredClaimsError,
    Header,
    ParseError,
    ParseStage,
    SignatureInvalidError,
    SignedToken,
    SigningError,
    UnsupportedAlgorithmError,
    VerificationError,
)
from .verification import check_expiry, verify_all, verify_and_bind

__all__ = [
    # Verification
    "parse",
    "verify_and_bind",
    "verify_all",
    "check_expiry",
    "validate_chain",
    "extract_chain",
    # Trust anchor
    "APPLE_ROOT_CA_G3_PEM",
    "apple_root_ca",
    "load_trust_anchor",
    # Claims
    "RegisteredClaims",
    "bind_claims",
    "claim",
    # Credential issuance
    "CredentialIssuer",
    "IssuerConfig",
    "load_private_key",
    "CredentialAuth",
    "create_client",
    "create_async_client",
    # Core types
    "Header",
    "SignedToken",
    "CertificateChain",
    "Credential",
    "ParseStage",
    # Exceptions
    "AppStoreError",
    "VerificationError",
    "ParseError",
    "CertificateError",
    "ChainValidationError",
    "UnsupportedAlgorithmError",
    "SignatureInvalidError",
    "ClaimsDecodeError",
    "ExpiredClaimsError",
    "ClaimsNotYetValidError",
    "ConfigurationError",
    "SigningError",
]
