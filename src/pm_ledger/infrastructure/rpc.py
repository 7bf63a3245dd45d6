"""LedgerRpcClient — thin async wrapper over the ledger node's REST API.

Endpoints used (relative to the node base URL, e.g. https://fullnode.../v1):
  POST /view                           — read-only view function call
  GET  /transactions/by_hash/{hash}    — 404 until the node has seen it,
                                         then type=pending_transaction until
                                         executed, then success=true|false

A view function that aborts comes back as HTTP 400 with a VM error in the
body; that case is raised as LedgerAbortError so callers can tell "the
resource does not exist" apart from transport failures.
"""

import asyncio
import logging
from typing import Any

import httpx

from src.pm_common.enums import WriteOutcome
from src.pm_common.errors import LedgerAbortError, ReadFailureError
from src.pm_ledger.domain.models import FinalityResult

logger = logging.getLogger(__name__)

_ABORT_ERROR_CODES = frozenset({"vm_error", "invalid_input"})


def _error_body(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


class LedgerRpcClient:
    """Concrete LedgerRpcProtocol over an httpx.AsyncClient bound to the node URL."""

    def __init__(self, http: httpx.AsyncClient) -> None:
        self._http = http

    async def view(self, function: str, arguments: list[Any]) -> list[Any]:
        body = {"function": function, "type_arguments": [], "arguments": arguments}
        try:
            response = await self._http.post("/view", json=body)
        except httpx.HTTPError as exc:
            raise ReadFailureError(f"{function}: {exc!r}") from exc

        if response.status_code == 400:
            err = _error_body(response)
            if err.get("error_code") in _ABORT_ERROR_CODES or "vm_error_code" in err:
                raise LedgerAbortError(function, str(err.get("message", "aborted")))
        if response.is_error:
            raise ReadFailureError(f"{function}: HTTP {response.status_code}")

        try:
            result = response.json()
        except ValueError as exc:
            raise ReadFailureError(f"{function}: invalid JSON") from exc
        if not isinstance(result, list):
            raise ReadFailureError(f"{function}: expected a list, got {type(result).__name__}")
        return result

    async def get_transaction(self, tx_hash: str) -> dict[str, Any] | None:
        """Return the transaction as the node reports it, or None if not yet known."""
        try:
            response = await self._http.get(f"/transactions/by_hash/{tx_hash}")
        except httpx.HTTPError as exc:
            raise ReadFailureError(f"transaction {tx_hash}: {exc!r}") from exc
        if response.status_code == 404:
            return None
        if response.is_error:
            raise ReadFailureError(f"transaction {tx_hash}: HTTP {response.status_code}")
        try:
            return response.json()
        except ValueError as exc:
            raise ReadFailureError(f"transaction {tx_hash}: invalid JSON") from exc

    async def wait_for_finality(
        self,
        tx_hash: str,
        timeout: float,
        poll_interval: float,
    ) -> FinalityResult:
        """Poll until the transaction is executed or `timeout` seconds elapse.

        Polling errors are not terminal: the transaction may still land, so
        only the deadline ends the wait (with outcome UNKNOWN).
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        while True:
            try:
                tx = await self.get_transaction(tx_hash)
            except ReadFailureError as exc:
                logger.debug("Finality poll for %s failed, retrying: %s", tx_hash, exc.message)
                tx = None

            if tx is not None and tx.get("type") != "pending_transaction":
                success = bool(tx.get("success"))
                vm_status = tx.get("vm_status")
                outcome = WriteOutcome.COMMITTED if success else WriteOutcome.REJECTED
                logger.info("Transaction %s finalized: %s (%s)", tx_hash, outcome.value, vm_status)
                return FinalityResult(outcome=outcome, tx_hash=tx_hash, vm_status=vm_status)

            remaining = deadline - loop.time()
            if remaining <= 0:
                logger.warning("Transaction %s not final after %.1fs", tx_hash, timeout)
                return FinalityResult(outcome=WriteOutcome.UNKNOWN, tx_hash=tx_hash)
            await asyncio.sleep(min(poll_interval, remaining))
