"""Shared fixtures: a throwaway P-256 PKI and compact JWS builders."""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID
from jwt.algorithms import ECAlgorithm

NOW = datetime.now(tz=timezone.utc).replace(microsecond=0)


def b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def der_b64(cert: x509.Certificate) -> str:
    return base64.b64encode(cert.public_bytes(serialization.Encoding.DER)).decode("ascii")


def make_cert(
    common_name: str,
    key: ec.EllipticCurvePrivateKey,
    *,
    issuer: x509.Certificate | None = None,
    issuer_key: ec.EllipticCurvePrivateKey | None = None,
    ca: bool = True,
    not_before: datetime = NOW - timedelta(days=1),
    not_after: datetime = NOW + timedelta(days=365),
) -> x509.Certificate:
    """Build a certificate; self-signed when *issuer* is omitted."""
    subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    return (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer.subject if issuer is not None else subject)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_after)
        .add_extension(x509.BasicConstraints(ca=ca, path_length=None), critical=True)
        .sign(issuer_key or key, hashes.SHA256())
    )


@dataclass
class Pki:
    root_key: ec.EllipticCurvePrivateKey
    root: x509.Certificate
    intermediate_key: ec.EllipticCurvePrivateKey
    intermediate: x509.Certificate
    leaf_key: ec.EllipticCurvePrivateKey
    leaf: x509.Certificate

    @property
    def x5c(self) -> list[str]:
        return [der_b64(self.leaf), der_b64(self.intermediate), der_b64(self.root)]

    @property
    def leaf_key_pem(self) -> bytes:
        return pkcs8_pem(self.leaf_key)


def build_pki(root_name: str = "Test Root CA") -> Pki:
    root_key = ec.generate_private_key(ec.SECP256R1())
    root = make_cert(root_name, root_key)
    intermediate_key = ec.generate_private_key(ec.SECP256R1())
    intermediate = make_cert(
        "Test Intermediate CA", intermediate_key, issuer=root, issuer_key=root_key
    )
    leaf_key = ec.generate_private_key(ec.SECP256R1())
    leaf = make_cert(
        "Test Receipt Signing",
        leaf_key,
        issuer=intermediate,
        issuer_key=intermediate_key,
        ca=False,
    )
    return Pki(root_key, root, intermediate_key, intermediate, leaf_key, leaf)


def pkcs8_pem(key: Any) -> bytes:
    return key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )


def compact(
    header: dict[str, Any],
    payload: dict[str, Any] | list | bytes,
    key: ec.EllipticCurvePrivateKey,
) -> str:
    """Encode and ES256-sign a token whatever the header declares."""
    if not isinstance(payload, bytes):
        payload = json.dumps(payload).encode("utf-8")
    signing_input = (
        b64url(json.dumps(header).encode("utf-8")) + "." + b64url(payload)
    )
    signature = ECAlgorithm(ECAlgorithm.SHA256).sign(signing_input.encode("ascii"), key)
    return signing_input + "." + b64url(signature)


@pytest.fixture(scope="session")
def pki() -> Pki:
    return build_pki()


@pytest.fixture(scope="session")
def rogue_pki() -> Pki:
    """A self-consistent chain whose root merely shares the real root's name."""
    return build_pki()


@pytest.fixture
def transaction_payload() -> dict[str, Any]:
    return {
        "iss": "appstore",
        "exp": int((NOW + timedelta(hours=1)).timestamp()),
        "iat": int(NOW.timestamp()),
        "transactionId": "2000000123456789",
        "bundleId": "com.example.app",
        "price": 990,
        "appAccountToken": "7d3a0f2e-1b4c-4a7e-9f0d-2c6b8e1a5f30",
    }


@pytest.fixture
def make_token(pki: Pki) -> Callable[..., str]:
    """Return a builder for tokens signed by the test leaf with the test chain."""

    def _make(
        payload: dict[str, Any] | list | bytes,
        *,
        alg: str = "ES256",
        x5c: list[str] | None = None,
        key: ec.EllipticCurvePrivateKey | None = None,
    ) -> str:
        header = {"alg": alg, "x5c": x5c if x5c is not None else pki.x5c}
        return compact(header, payload, key or pki.leaf_key)

    return _make
