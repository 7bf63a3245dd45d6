"""LedgerReadGateway — one typed view call per raw ledger entity.

Stateless: every call is a fresh round trip. Inputs are checked for
well-formedness only (non-empty identifiers); existence is the ledger's call.

Wire format notes:
  - u64/u128 arrive as decimal strings ("1500000000")
  - Option<T> arrives as {"vec": []} or {"vec": [x]}
  - Object<T> addresses may arrive wrapped as {"inner": "0x..."}
"""

import logging
from typing import Any

from src.pm_common.enums import MarketFunction, Side
from src.pm_common.errors import (
    InvalidIdentifierError,
    LedgerAbortError,
    MarketNotFoundError,
    ReadFailureError,
)
from src.pm_ledger.domain.models import Market, Position, function_id
from src.pm_ledger.domain.repository import LedgerRpcProtocol

logger = logging.getLogger(__name__)

_POOL_FUNCTIONS = {
    Side.A: MarketFunction.GET_A_POOL_BALANCE_AMOUNT,
    Side.B: MarketFunction.GET_B_POOL_BALANCE_AMOUNT,
}


# ---------------------------------------------------------------------------
# Wire decoders
# ---------------------------------------------------------------------------

def _require_id(value: str | None, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidIdentifierError(field)
    return value.strip()


def _u64(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"expected integer, got bool {value!r}")
    result = int(value)
    if result < 0:
        raise ValueError(f"expected unsigned integer, got {result}")
    return result


def _option(value: Any) -> Any:
    if isinstance(value, dict) and "vec" in value:
        vec = value["vec"]
        return vec[0] if vec else None
    return value


def _address(value: Any) -> str | None:
    if isinstance(value, dict):
        value = value.get("inner", value.get("id"))
    return str(value) if value is not None else None


def _first(result: list[Any], function: str) -> Any:
    if not result:
        raise ReadFailureError(f"{function}: empty result")
    return result[0]


def _decode_market(market_id: str, raw: dict[str, Any]) -> Market:
    winner = _option(raw.get("winning_side"))
    return Market(
        id=_address(raw.get("id")) or market_id,
        description=str(raw["description"]),
        create_time=_u64(raw["create_time"]),
        close_time=_u64(raw["close_time"]),
        open=bool(raw["status"]),
        winning_side=None if winner is None else Side.from_direction(bool(winner)),
        treasury=_address(raw.get("treasury")),
        pool_a_id=_address(raw.get("a_pool")),
        pool_b_id=_address(raw.get("b_pool")),
        total_a_effective_stake=_u64(raw.get("total_a_effective_stake", 0)),
        total_b_effective_stake=_u64(raw.get("total_b_effective_stake", 0)),
    )


def _decode_position(market_id: str, participant: str, raw: dict[str, Any]) -> Position:
    create_time = _option(raw.get("create_time"))
    return Position(
        market_id=market_id,
        player=_address(raw.get("player_address")) or participant,
        side=Side.from_direction(bool(raw["direction"])),
        stake_amount=_u64(raw["stake_amount"]),
        effective_stake=_u64(raw["effective_stake"]),
        create_time=None if create_time is None else _u64(create_time),
    )


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------

class LedgerReadGateway:
    def __init__(self, rpc: LedgerRpcProtocol, module_address: str, module_name: str) -> None:
        self._rpc = rpc
        self._module_address = module_address
        self._module_name = module_name

    def _function(self, name: MarketFunction) -> str:
        return function_id(self._module_address, self._module_name, name.value)

    async def get_market(self, market_id: str) -> Market:
        """Raises MarketNotFoundError if the view aborts, ReadFailureError otherwise."""
        market_id = _require_id(market_id, "market_id")
        function = self._function(MarketFunction.GET_MARKET_INFO)
        try:
            result = await self._rpc.view(function, [market_id])
        except LedgerAbortError:
            raise MarketNotFoundError(market_id) from None
        raw = _first(result, function)
        try:
            return _decode_market(market_id, raw)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise ReadFailureError(f"{function}: malformed market record ({exc})") from exc

    async def get_position(self, market_id: str, participant: str) -> Position | None:
        """None when the participant never entered this market."""
        market_id = _require_id(market_id, "market_id")
        participant = _require_id(participant, "participant")
        function = self._function(MarketFunction.GET_PLAYER_POSITION_INFO)
        try:
            result = await self._rpc.view(function, [participant, market_id])
        except LedgerAbortError:
            logger.debug("No position for %s in %s", participant, market_id)
            return None
        raw = _first(result, function)
        if raw is None:
            return None
        try:
            return _decode_position(market_id, participant, raw)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise ReadFailureError(f"{function}: malformed position record ({exc})") from exc

    async def get_pool_balance(self, market_id: str, side: Side) -> int:
        market_id = _require_id(market_id, "market_id")
        function = self._function(_POOL_FUNCTIONS[side])
        result = await self._rpc.view(function, [market_id])
        try:
            return _u64(_first(result, function))
        except (TypeError, ValueError) as exc:
            raise ReadFailureError(f"{function}: malformed balance ({exc})") from exc
