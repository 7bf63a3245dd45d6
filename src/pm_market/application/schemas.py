"""Pydantic schemas for pm_market API requests and responses.

Amounts are exposed both raw (integer minor units) and as display strings;
times both as ledger units and ISO-8601.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from src.pm_common.enums import LoadState, MarketStatus, NotificationLevel, Side, WriteOutcome
from src.pm_common.units import (
    format_time_remaining,
    ledger_time_to_datetime,
    minor_units_to_display,
)
from src.pm_ledger.domain.models import FinalityResult, Position
from src.pm_market.domain.models import MarketViewModel, Notification, OrchestratorState

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class EnterPositionRequest(BaseModel):
    side: Side
    # Decimal string in whole tokens ("1.5"); parsed to minor units by the orchestrator
    stake_amount: str = Field(..., max_length=64)


class SettleMarketRequest(BaseModel):
    winning_side: Side


class CreateMarketRequest(BaseModel):
    description: str = Field(..., max_length=500)
    close_time: datetime


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


def _status_label(view: MarketViewModel) -> str:
    if view.status is MarketStatus.SETTLED_A:
        return "Settled - Bullish Won"
    if view.status is MarketStatus.SETTLED_B:
        return "Settled - Bearish Won"
    if view.status is MarketStatus.CLOSED_UNSETTLED:
        return "Pending" if not view.market.open else "Closed"
    return "Active"


class PositionOut(BaseModel):
    player: str
    side: Side
    stake_amount: int
    stake_display: str
    effective_stake: int
    create_time: int | None

    @classmethod
    def from_domain(cls, p: Position) -> "PositionOut":
        return cls(
            player=p.player,
            side=p.side,
            stake_amount=p.stake_amount,
            stake_display=minor_units_to_display(p.stake_amount),
            effective_stake=p.effective_stake,
            create_time=p.create_time,
        )


class PoolOut(BaseModel):
    balance: int
    balance_display: str
    odds: float
    odds_display: str
    share_pct: float


class MarketViewOut(BaseModel):
    market_id: str
    description: str
    status: MarketStatus
    status_label: str
    open: bool
    winning_side: Side | None
    create_time: int
    close_time: int
    close_time_iso: str
    time_remaining: str
    pool_a: PoolOut
    pool_b: PoolOut
    total_stake: int
    total_stake_display: str
    caller: str | None
    position: PositionOut | None
    can_enter_position: bool
    can_claim_winnings: bool
    can_settle: bool
    as_of_ms: int
    sequence: int

    @classmethod
    def from_view(cls, view: MarketViewModel) -> "MarketViewOut":
        m = view.market
        return cls(
            market_id=m.id,
            description=m.description,
            status=view.status,
            status_label=_status_label(view),
            open=m.open,
            winning_side=m.winning_side,
            create_time=m.create_time,
            close_time=m.close_time,
            close_time_iso=ledger_time_to_datetime(m.close_time).isoformat(),
            time_remaining=format_time_remaining(m.close_time, view.as_of_ms),
            pool_a=PoolOut(
                balance=view.pool_a_balance,
                balance_display=minor_units_to_display(view.pool_a_balance),
                odds=view.odds.a,
                odds_display=f"{view.odds.a:.2f}x",
                share_pct=round(view.share_a_pct, 1),
            ),
            pool_b=PoolOut(
                balance=view.pool_b_balance,
                balance_display=minor_units_to_display(view.pool_b_balance),
                odds=view.odds.b,
                odds_display=f"{view.odds.b:.2f}x",
                share_pct=round(view.share_b_pct, 1),
            ),
            total_stake=view.total_stake,
            total_stake_display=minor_units_to_display(view.total_stake),
            caller=view.caller,
            position=PositionOut.from_domain(view.position) if view.position else None,
            can_enter_position=view.can_enter_position,
            can_claim_winnings=view.can_claim_winnings,
            can_settle=view.can_settle,
            as_of_ms=view.as_of_ms,
            sequence=view.sequence,
        )


class NotificationOut(BaseModel):
    level: NotificationLevel
    title: str
    message: str
    tx_hash: str | None


class MarketStateResponse(BaseModel):
    load_state: LoadState
    refreshing: bool
    error: str | None
    sequence: int
    market: MarketViewOut | None
    notifications: list[NotificationOut]

    @classmethod
    def build(
        cls,
        state: OrchestratorState,
        notifications: list[Notification],
    ) -> "MarketStateResponse":
        return cls(
            load_state=state.load_state,
            refreshing=state.refreshing,
            error=state.error,
            sequence=state.sequence,
            market=MarketViewOut.from_view(state.view) if state.view else None,
            notifications=[
                NotificationOut(level=n.level, title=n.title, message=n.message, tx_hash=n.tx_hash)
                for n in notifications
            ],
        )


class ActionResponse(BaseModel):
    outcome: WriteOutcome
    tx_hash: str | None
    vm_status: str | None
    state: MarketStateResponse

    @classmethod
    def build(
        cls,
        result: FinalityResult,
        state: OrchestratorState,
        notifications: list[Notification],
    ) -> "ActionResponse":
        return cls(
            outcome=result.outcome,
            tx_hash=result.tx_hash,
            vm_status=result.vm_status,
            state=MarketStateResponse.build(state, notifications),
        )
