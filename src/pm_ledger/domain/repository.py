# src/pm_ledger/domain/repository.py
"""Collaborator Protocols — dependency inversion for testability.

Unit tests inject mocks that conform to these Protocols.
Infrastructure layer provides the real implementations.
"""

from typing import Any, Protocol

from src.pm_common.enums import MarketFunction, Side
from src.pm_ledger.domain.models import (
    EntryFunctionPayload,
    FinalityResult,
    Market,
    Position,
)


class LedgerRpcProtocol(Protocol):
    async def view(self, function: str, arguments: list[Any]) -> list[Any]: ...

    async def wait_for_finality(
        self,
        tx_hash: str,
        timeout: float,
        poll_interval: float,
    ) -> FinalityResult: ...


class SignerProtocol(Protocol):
    """Wallet connection + signing, owned by the external wallet."""

    async def current_address(self) -> str | None:
        """None when no wallet is connected; raises ReadFailureError if that cannot be determined."""
        ...

    async def sign_and_submit(self, payload: EntryFunctionPayload) -> str: ...


class LedgerReaderProtocol(Protocol):
    async def get_market(self, market_id: str) -> Market: ...

    async def get_position(self, market_id: str, participant: str) -> Position | None: ...

    async def get_pool_balance(self, market_id: str, side: Side) -> int: ...


class LedgerWriterProtocol(Protocol):
    async def submit(
        self,
        function: MarketFunction,
        arguments: list[Any],
    ) -> FinalityResult: ...
