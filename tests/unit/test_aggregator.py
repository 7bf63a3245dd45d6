"""Unit tests for the market state aggregator — pure reduction, no I/O."""

import pytest

from src.pm_common.enums import MarketStatus, Side
from src.pm_common.units import ms_to_ledger_time
from src.pm_ledger.domain.models import Market, Position
from src.pm_market.domain.aggregator import aggregate, compute_odds, derive_status, pool_shares

NOW_MS = 1_700_000_000_000
HOUR_MS = 3_600_000
CALLER = "0xcafe"


def _make_market(**kwargs) -> Market:
    defaults = dict(
        id="0xmarket",
        description="Will the stablecoin hold its peg?",
        create_time=ms_to_ledger_time(NOW_MS - 24 * HOUR_MS),
        close_time=ms_to_ledger_time(NOW_MS + HOUR_MS),
        open=True,
        winning_side=None,
    )
    defaults.update(kwargs)
    return Market(**defaults)


def _make_position(side: Side = Side.A, stake: int = 100) -> Position:
    return Position(
        market_id="0xmarket", player=CALLER, side=side,
        stake_amount=stake, effective_stake=stake,
    )


class TestComputeOdds:
    def test_empty_market_is_even(self) -> None:
        odds = compute_odds(0, 0)
        assert odds.a == 1.0
        assert odds.b == 1.0

    @pytest.mark.parametrize("a,b", [(1, 1), (300, 100), (7, 1_000_000_000), (123, 456)])
    def test_both_sides_imply_same_payout_pool(self, a: int, b: int) -> None:
        odds = compute_odds(a, b)
        assert odds.a * a == pytest.approx(a + b)
        assert odds.b * b == pytest.approx(a + b)

    def test_one_sided_market(self) -> None:
        odds = compute_odds(500, 0)
        assert odds.a == 1.0
        assert odds.b == 1.0

    def test_scenario_odds(self) -> None:
        odds = compute_odds(300, 100)
        assert odds.a == pytest.approx(1.333, abs=1e-3)
        assert odds.b == 4.0


class TestPoolShares:
    def test_no_stake_is_even_split(self) -> None:
        assert pool_shares(0, 0) == (50.0, 50.0)

    def test_split(self) -> None:
        assert pool_shares(300, 100) == (75.0, 25.0)


class TestDeriveStatus:
    def test_active_before_close(self) -> None:
        assert derive_status(_make_market(), NOW_MS) is MarketStatus.ACTIVE

    def test_closed_at_close_time(self) -> None:
        market = _make_market(close_time=ms_to_ledger_time(NOW_MS))
        assert derive_status(market, NOW_MS) is MarketStatus.CLOSED_UNSETTLED

    def test_closed_when_ledger_flag_off(self) -> None:
        market = _make_market(open=False)
        assert derive_status(market, NOW_MS) is MarketStatus.CLOSED_UNSETTLED

    def test_settled_takes_precedence(self) -> None:
        market = _make_market(open=False, winning_side=Side.B)
        assert derive_status(market, NOW_MS) is MarketStatus.SETTLED_B

    @pytest.mark.parametrize("open_", [True, False])
    @pytest.mark.parametrize("winner", [None, Side.A, Side.B])
    @pytest.mark.parametrize("offset_ms", [-HOUR_MS, 0, HOUR_MS])
    def test_total_and_exclusive(self, open_: bool, winner: Side | None, offset_ms: int) -> None:
        market = _make_market(
            open=open_, winning_side=winner,
            close_time=ms_to_ledger_time(NOW_MS + offset_ms),
        )
        status = derive_status(market, NOW_MS)
        assert isinstance(status, MarketStatus)
        if winner is Side.A:
            assert status is MarketStatus.SETTLED_A
        elif winner is Side.B:
            assert status is MarketStatus.SETTLED_B
        elif open_ and offset_ms > 0:
            assert status is MarketStatus.ACTIVE
        else:
            assert status is MarketStatus.CLOSED_UNSETTLED


class TestAggregate:
    def test_active_scenario(self) -> None:
        view = aggregate(_make_market(), pool_a=300, pool_b=100, now_ms=NOW_MS, caller=CALLER)
        assert view.status is MarketStatus.ACTIVE
        assert view.odds.a == pytest.approx(1.33, abs=0.01)
        assert view.odds.b == 4.0
        assert view.can_enter_position is True
        assert view.total_stake == 400
        assert view.share_a_pct == 75.0

    def test_disconnected_cannot_enter_or_settle(self) -> None:
        view = aggregate(_make_market(), pool_a=300, pool_b=100, now_ms=NOW_MS)
        assert view.can_enter_position is False
        assert view.can_settle is False

    def test_closed_market_cannot_enter(self) -> None:
        market = _make_market(close_time=ms_to_ledger_time(NOW_MS - 1))
        view = aggregate(market, now_ms=NOW_MS, caller=CALLER)
        assert view.status is MarketStatus.CLOSED_UNSETTLED
        assert view.can_enter_position is False
        # the ledger flag is still set, so settlement may be attempted
        assert view.can_settle is True

    def test_settled_market_cannot_settle_again(self) -> None:
        market = _make_market(open=False, winning_side=Side.A)
        view = aggregate(market, now_ms=NOW_MS, caller=CALLER)
        assert view.can_settle is False

    def test_winner_can_claim(self) -> None:
        market = _make_market(open=False, winning_side=Side.A)
        view = aggregate(market, position=_make_position(Side.A), now_ms=NOW_MS, caller=CALLER)
        assert view.status is MarketStatus.SETTLED_A
        assert view.can_claim_winnings is True

    def test_loser_cannot_claim(self) -> None:
        market = _make_market(open=False, winning_side=Side.A)
        view = aggregate(market, position=_make_position(Side.B), now_ms=NOW_MS, caller=CALLER)
        assert view.can_claim_winnings is False

    @pytest.mark.parametrize("winner", [None, Side.A, Side.B])
    @pytest.mark.parametrize("open_", [True, False])
    def test_no_position_never_claims(self, winner: Side | None, open_: bool) -> None:
        market = _make_market(open=open_, winning_side=winner)
        view = aggregate(market, pool_a=10, pool_b=10, now_ms=NOW_MS, caller=CALLER)
        assert view.position is None
        assert view.can_claim_winnings is False

    def test_partial_inputs(self) -> None:
        view = aggregate(_make_market())
        assert view.pool_a_balance == 0
        assert view.pool_b_balance == 0
        assert view.odds.a == 1.0
        assert view.caller is None

    def test_carries_sequence_and_warnings(self) -> None:
        view = aggregate(
            _make_market(), now_ms=NOW_MS, sequence=7,
            warnings=("Pool A balance unavailable",),
        )
        assert view.sequence == 7
        assert view.warnings == ("Pool A balance unavailable",)
        assert view.as_of_ms == NOW_MS
        assert view.market_id == "0xmarket"
