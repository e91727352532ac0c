# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

"""httpx integration for authenticating App Store Server API requests.

The library does not wrap any endpoints. This module only attaches
credentials from a :class:`~credential.CredentialIssuer` to requests the
caller sends with its own ``httpx`` client:

>>> issuer = CredentialIssuer(config)
>>> async with create_async_client(issuer, sandbox=True) as http:
...     response = await http.get(f"/inApps/v1/transactions/{transaction_id}")
...     claims = verify_and_bind(
...         response.json()["signedTransactionInfo"], TransactionClaims
...     )
"""

from __future__ import annotations

import asyncio
from typing import Any, AsyncGenerator, Generator

import httpx

from .credential import CredentialIssuer

PRODUCTION_URL = "https://api.storekit.itunes.apple.com"
SANDBOX_URL = "https://api.storekit-sandbox.itunes.apple.com"


class CredentialAuth(httpx.Auth):
    """Sets ``Authorization: Bearer <token>`` from a credential issuer.

    A ``401`` response means Apple no longer accepts the cached token, e.g.
    after the key was revoked and re-issued, so the cache is dropped and
    the request is retried once with a freshly signed token.

    Signing takes the issuer lock and does ECDSA work, so the async flow
    runs it in a worker thread instead of on the event loop.
    """

    def __init__(self, issuer: CredentialIssuer) -> None:
        self._issuer = issuer

    def auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = f"Bearer {self._issuer.get()}"
        response = yield request

        if response.status_code == httpx.codes.UNAUTHORIZED:
            self._issuer.invalidate()
            request.headers["Authorization"] = f"Bearer {self._issuer.get()}"
            yield request

    async def async_auth_flow(
        self, request: httpx.Request
    ) -> AsyncGenerator[httpx.Request, httpx.Response]:
        token = await asyncio.to_thread(self._issuer.get)
        request.headers["Authorization"] = f"Bearer {token}"
        response = yield request

        if response.status_code == httpx.codes.UNAUTHORIZED:
            await asyncio.to_thread(self._issuer.invalidate)
            token = await asyncio.to_thread(self._issuer.get)
            request.headers["Authorization"] = f"Bearer {token}"
            yield request


def base_url(*, sandbox: bool = False) -> str:
    """Return the App Store Server API host for the chosen environment."""
    return SANDBOX_URL if sandbox else PRODUCTION_URL


def create_client(
    issuer: CredentialIssuer,
    *,
    sandbox: bool = False,
    **kwargs: Any,
) -> httpx.Client:
    """Build a synchronous client pre-wired with base URL, timeout and auth.

    Extra keyword arguments are passed to :class:`httpx.Client`, e.g. a
    test ``transport``.
    """
    return httpx.Client(**_client_options(issuer, sandbox, kwargs))


def create_async_client(
    issuer: CredentialIssuer,
    *,
    sandbox: bool = False,
    **kwargs: Any,
) -> httpx.AsyncClient:
    """Async counterpart of :func:`create_client`."""
    return httpx.AsyncClient(**_client_options(issuer, sandbox, kwargs))


def _client_options(
    issuer: CredentialIssuer, sandbox: bool, overrides: dict[str, Any]
) -> dict[str, Any]:
    options: dict[str, Any] = {
        "base_url": base_url(sandbox=sandbox),
        "timeout": issuer.config.timeout,
        "headers": {"Accept": "application/json"},
        "auth": CredentialAuth(issuer),
    }
    options.update(overrides)
    return options
