# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

"""Typed claims and JSON payload binding.

Registered JWT claims are explicit named members of
:class:`RegisteredClaims`. Domain payloads subclass it as a dataclass and
add their own fields:

>>> @dataclass(frozen=True, kw_only=True)
... class TransactionClaims(RegisteredClaims):
...     transaction_id: str
...     bundle_id: str
...     price: int | None = None
...     app_account_token: str | None = claim("appAccountToken", default=None)

Fields map to JSON keys by camelCase conversion of the field name unless
:func:`claim` names the key explicitly.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, TypeVar

from .types import ClaimsDecodeError

_CLAIM_KEY = "claim"

C = TypeVar("C", bound="RegisteredClaims")


def claim(key: str, *, default: Any = dataclasses.MISSING) -> Any:
    """Declare a dataclass field bound to JSON key *key*.

    Without *default* the field is required, like a plain annotation.
    """
    return dataclasses.field(default=default, metadata={_CLAIM_KEY: key})


@dataclass(frozen=True, kw_only=True)
class RegisteredClaims:
    """The registered JWT claims (RFC 7519 section 4.1)."""

    issuer: str | None = claim("iss", default=None)
    subject: str | None = claim("sub", default=None)
    audience: str | list[str] | None = claim("aud", default=None)
    # NumericDate values: seconds since the epoch.
    expires_at: int | float | None = claim("exp", default=None)
    not_before: int | float | None = claim("nbf", default=None)
    issued_at: int | float | None = claim("iat", default=None)
    token_id: str | None = claim("jti", default=None)

    @property
    def expiry(self) -> datetime | None:
        return _from_numeric_date(self.expires_at)

    @property
    def not_valid_before(self) -> datetime | None:
        return _from_numeric_date(self.not_before)


def json_key(field: dataclasses.Field) -> str:
    """Return the JSON key a claims field is bound to."""
    explicit = field.metadata.get(_CLAIM_KEY)
    if explicit:
        return explicit
    head, *rest = field.name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def bind_claims(claims_type: type[C], payload: dict[str, Any]) -> C:
    """Populate *claims_type* from a decoded JSON payload.

    Keys without a matching field are ignored.

    Raises
    ------
    TypeError
        If *claims_type* is not a :class:`RegisteredClaims` dataclass.
    ClaimsDecodeError
        If *payload* is not an object or a required field is missing.
    """
    if not (
        isinstance(claims_type, type)
        and issubclass(claims_type, RegisteredClaims)
        and dataclasses.is_dataclass(claims_type)
    ):
        raise TypeError(
            f"bind_claims: {claims_type!r} is not a RegisteredClaims dataclass"
        )

    if not isinstance(payload, dict):
        raise ClaimsDecodeError(
            f"bind_claims: payload must be a JSON object, got {type(payload).__name__}"
        )

    kwargs = {}
    for field in dataclasses.fields(claims_type):
        if not field.init:
            continue
        key = json_key(field)
        if key in payload:
            kwargs[field.name] = payload[key]

    try:
        return claims_type(**kwargs)
    except TypeError as exc:
        raise ClaimsDecodeError(
            f"bind_claims: cannot build {claims_type.__name__}: {exc}"
        ) from exc


def _from_numeric_date(value: int | float | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc)
