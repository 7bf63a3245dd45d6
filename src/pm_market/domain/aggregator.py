"""Market State Aggregator — pure reduction of raw ledger reads into a view model.

Status (first matching rule wins):
  1. winning_side set            → SETTLED_A / SETTLED_B
  2. open is False, no winner    → CLOSED_UNSETTLED (closed, awaiting settlement)
  3. now >= close_time           → CLOSED_UNSETTLED
  4. otherwise                   → ACTIVE

Odds are payout multipliers "total pool / own side's pool". A side with no
stake is quoted at 1.0, and an empty market at 1.0 / 1.0.

Eligibility:
  enter  = ACTIVE and caller connected
  claim  = position present, market settled, position side == winner
  settle = caller connected and market still open (the ledger enforces
           who may actually settle; rejections surface as write failures)
"""

from src.pm_common.enums import MarketStatus, Side
from src.pm_common.units import ledger_time_to_ms
from src.pm_ledger.domain.models import Market, Position
from src.pm_market.domain.models import MarketViewModel, Odds

_SETTLED = {Side.A: MarketStatus.SETTLED_A, Side.B: MarketStatus.SETTLED_B}


def derive_status(market: Market, now_ms: int) -> MarketStatus:
    if market.winning_side is not None:
        return _SETTLED[market.winning_side]
    if not market.open:
        return MarketStatus.CLOSED_UNSETTLED
    if now_ms >= ledger_time_to_ms(market.close_time):
        return MarketStatus.CLOSED_UNSETTLED
    return MarketStatus.ACTIVE


def compute_odds(pool_a: int, pool_b: int) -> Odds:
    total = pool_a + pool_b
    if total == 0:
        return Odds(a=1.0, b=1.0)
    return Odds(
        a=total / pool_a if pool_a > 0 else 1.0,
        b=total / pool_b if pool_b > 0 else 1.0,
    )


def pool_shares(pool_a: int, pool_b: int) -> tuple[float, float]:
    """Percentage of total stake per side; 50/50 before anyone has staked."""
    total = pool_a + pool_b
    if total == 0:
        return 50.0, 50.0
    return pool_a / total * 100, pool_b / total * 100


def aggregate(
    market: Market,
    pool_a: int = 0,
    pool_b: int = 0,
    position: Position | None = None,
    now_ms: int = 0,
    caller: str | None = None,
    sequence: int = 0,
    warnings: tuple[str, ...] = (),
) -> MarketViewModel:
    status = derive_status(market, now_ms)
    connected = caller is not None
    settled = status in (MarketStatus.SETTLED_A, MarketStatus.SETTLED_B)
    share_a, share_b = pool_shares(pool_a, pool_b)

    return MarketViewModel(
        market=market,
        status=status,
        pool_a_balance=pool_a,
        pool_b_balance=pool_b,
        odds=compute_odds(pool_a, pool_b),
        share_a_pct=share_a,
        share_b_pct=share_b,
        position=position,
        caller=caller,
        can_enter_position=status is MarketStatus.ACTIVE and connected,
        can_claim_winnings=(
            position is not None and settled and position.side is market.winning_side
        ),
        can_settle=connected and market.open,
        as_of_ms=now_ms,
        sequence=sequence,
        warnings=warnings,
    )
