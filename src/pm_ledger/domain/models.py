"""Domain models for pm_ledger — raw ledger entities, frozen dataclasses, no business logic."""

from dataclasses import dataclass, field
from typing import Any

from src.pm_common.enums import Side, WriteOutcome


@dataclass(frozen=True)
class Market:
    id: str
    description: str
    create_time: int            # ledger time units (µs)
    close_time: int             # ledger time units (µs)
    open: bool                  # ledger-maintained status flag
    winning_side: Side | None   # None until settled
    treasury: str | None = None
    pool_a_id: str | None = None
    pool_b_id: str | None = None
    total_a_effective_stake: int = 0
    total_b_effective_stake: int = 0


@dataclass(frozen=True)
class Position:
    market_id: str
    player: str
    side: Side
    stake_amount: int           # minor units
    effective_stake: int        # ledger-weighted stake
    create_time: int | None = None


@dataclass(frozen=True)
class EntryFunctionPayload:
    """Positional call to an entry function, ready for the signer."""

    function: str               # "<address>::<module>::<name>"
    arguments: list[Any]
    type_arguments: list[str] = field(default_factory=list)

    def to_json(self) -> dict[str, Any]:
        return {
            "function": self.function,
            "type_arguments": list(self.type_arguments),
            "arguments": list(self.arguments),
        }


@dataclass(frozen=True)
class FinalityResult:
    outcome: WriteOutcome
    tx_hash: str | None
    vm_status: str | None = None

    @property
    def committed(self) -> bool:
        return self.outcome is WriteOutcome.COMMITTED


def function_id(module_address: str, module_name: str, name: str) -> str:
    return f"{module_address}::{module_name}::{name}"
