# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

"""The pinned trust anchor: Apple Root CA - G3.

Downloaded from https://www.apple.com/certificateauthority/ and converted
with ``openssl x509 -inform DER -in AppleRootCA-G3.cer -outform PEM``.
"""

from __future__ import annotations

import functools

from cryptography import x509

from .types import ConfigurationError

APPLE_ROOT_CA_G3_PEM = b"""\
-----BEGIN CERTIFICATE-----
MIICQzCCAcmgAwIBAgIILcX8iNLFS5UwCgYIKoZIzj0EAwMwZzEbMBkGA1UEAwwS
QXBwbGUgUm9vdCBDQSAtIEczMSYwJAYDVQQLDB1BcHBsZSBDZXJ0aWZpY2F0aW9u
IEF1dGhvcml0eTETMBEGA1UECgwKQXBwbGUgSW5jLjELMAkGA1UEBhMCVVMwHhcN
MTQwNDMwMTgxOTA2WhcNMzkwNDMwMTgxOTA2WjBnMRswGQYDVQQDDBJBcHBsZSBS
b290IENBIC0gRzMxJjAkBgNVBAsMHUFwcGxlIENlcnRpZmljYXRpb24gQXV0aG9y
aXR5MRMwEQYDVQQKDApBcHBsZSBJbmMuMQswCQYDVQQGEwJVUzB2MBAGByqGSM49
AgEGBSuBBAAiA2IABJjpLz1AcqTtkyJygRMc3RCV8cWjTnHcFBbZDuWmBSp3ZHtf
TjjTuxxEtX/1H7YyYl3J6YRbTzBPEVoA/VhYDKX1DyxNB0cTddqXl5dvMVztK517
IDvYuVTZXpmkOlEKMaNCMEAwHQYDVR0OBBYEFLuw3qFYM4iapIqZ3r6966/ayySr
MA8GA1UdEwEB/wQFMAMBAf8wDgYDVR0PAQH/BAQDAgEGMAoGCCqGSM49BAMDA2gA
MGUCMQCD6cHEFl4aXTQY2e3v9GwOAEZLuN+yRhHFD/3meoyhpmvOwgPUnPWTxnS4
at+qIxUCMG1mihDK1A3UT82NQz60imOlM27jbdoXt2QfyFMm+YhidDkLF1vLUagM
6BgD56KyKA==
-----END CERTIFICATE-----
"""


@functools.lru_cache(maxsize=1)
def apple_root_ca() -> x509.Certificate:
    """Return the parsed Apple Root CA - G3 certificate.

    Parsed once per process. ``x509.Certificate`` is immutable, so the
    cached value is shared freely across threads.
    """
    return load_trust_anchor(APPLE_ROOT_CA_G3_PEM)


def load_trust_anchor(pem: bytes | str) -> x509.Certificate:
    """Load a PEM certificate to use as a trust anchor.

    Raises
    ------
    ConfigurationError
        If *pem* is not a PEM-encoded X.509 certificate.
    """
    if isinstance(pem, str):
        pem = pem.encode("utf-8")
    try:
        return x509.load_pem_x509_certificate(pem)
    except ValueError as exc:
        raise ConfigurationError(
            f"load_trust_anchor: not a PEM certificate: {exc}"
        ) from exc
