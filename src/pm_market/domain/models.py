"""Domain models for pm_market — derived, immutable snapshots. No I/O."""

from dataclasses import dataclass

from src.pm_common.enums import LoadState, MarketStatus, NotificationLevel, Side
from src.pm_ledger.domain.models import Market, Position


@dataclass(frozen=True)
class Odds:
    a: float
    b: float


@dataclass(frozen=True)
class MarketViewModel:
    """Display-ready reduction of one market. Rebuilt from scratch every refresh."""

    market: Market
    status: MarketStatus
    pool_a_balance: int
    pool_b_balance: int
    odds: Odds
    share_a_pct: float
    share_b_pct: float
    position: Position | None
    caller: str | None
    can_enter_position: bool
    can_claim_winnings: bool
    can_settle: bool
    as_of_ms: int
    sequence: int = 0
    warnings: tuple[str, ...] = ()

    @property
    def market_id(self) -> str:
        return self.market.id

    @property
    def total_stake(self) -> int:
        return self.pool_a_balance + self.pool_b_balance

    @property
    def winning_side(self) -> Side | None:
        return self.market.winning_side


@dataclass(frozen=True)
class OrchestratorState:
    """Whole-snapshot state of one market screen; swapped, never mutated."""

    load_state: LoadState = LoadState.IDLE
    view: MarketViewModel | None = None
    refreshing: bool = False
    error: str | None = None
    sequence: int = 0


@dataclass(frozen=True)
class Notification:
    level: NotificationLevel
    title: str
    message: str
    tx_hash: str | None = None
