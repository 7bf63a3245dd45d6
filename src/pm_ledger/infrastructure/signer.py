"""WalletBridgeSigner — SignerProtocol backed by a wallet bridge over HTTP.

The wallet (and its keys) live outside this process. The bridge exposes:
  GET  /account         → {"address": "0x..."} | {"address": null} | 404
  POST /transactions    ← {"sender", "function", "type_arguments", "arguments"}
                        → {"hash": "0x..."}; 4xx when the user declines

No address means "not connected": write actions are never attempted. A bridge
that cannot be reached (or answers with an error or garbage) raises
WalletUnavailableError instead, so an outage is never mistaken for a
disconnected wallet.
"""

import logging

import httpx

from src.pm_common.errors import SigningRejectedError, WalletUnavailableError
from src.pm_ledger.domain.models import EntryFunctionPayload

logger = logging.getLogger(__name__)


class WalletBridgeSigner:
    def __init__(self, http: httpx.AsyncClient) -> None:
        self._http = http

    async def current_address(self) -> str | None:
        """Connected wallet address, or None when no wallet is connected."""
        try:
            response = await self._http.get("/account")
        except httpx.HTTPError as exc:
            raise WalletUnavailableError(f"unreachable: {exc!r}") from exc
        if response.status_code == 404:
            return None
        if response.is_error:
            raise WalletUnavailableError(f"HTTP {response.status_code} for /account")
        try:
            address = response.json().get("address")
        except (ValueError, AttributeError) as exc:
            raise WalletUnavailableError("malformed /account body") from exc
        return address or None

    async def sign_and_submit(self, payload: EntryFunctionPayload) -> str:
        try:
            sender = await self.current_address()
        except WalletUnavailableError as exc:
            raise SigningRejectedError(exc.message) from exc
        if sender is None:
            raise SigningRejectedError("wallet not connected")

        logger.info("Requesting signature for %s from %s", payload.function, sender)
        body = {"sender": sender, **payload.to_json()}
        try:
            response = await self._http.post("/transactions", json=body)
        except httpx.HTTPError as exc:
            raise SigningRejectedError(f"wallet bridge unreachable: {exc!r}") from exc
        if response.is_error:
            raise SigningRejectedError(f"wallet bridge returned HTTP {response.status_code}")
        try:
            tx_hash = response.json()["hash"]
        except (ValueError, KeyError, TypeError) as exc:
            raise SigningRejectedError("wallet bridge returned no transaction hash") from exc
        return str(tx_hash)
