"""Integration tests for the /api/v1/markets surface."""

from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from src.pm_common.enums import MarketFunction, Side, WriteOutcome
from src.pm_common.errors import MarketNotFoundError, ReadFailureError
from src.pm_common.units import ms_to_ledger_time
from src.pm_ledger.domain.models import FinalityResult, Market, Position

NOW_MS = 1_700_000_000_000
HOME = "0xhome"


def _settled_market(market_id: str) -> Market:
    return Market(
        id=market_id, description="Settled question",
        create_time=ms_to_ledger_time(NOW_MS - 7_200_000),
        close_time=ms_to_ledger_time(NOW_MS - 3_600_000),
        open=False, winning_side=Side.A,
    )


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient) -> None:
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"


class TestMarketState:
    @pytest.mark.asyncio
    async def test_home_market(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/markets", headers={"X-Request-ID": "req_fromui"})

        assert resp.status_code == 200
        assert resp.headers["X-Request-ID"] == "req_fromui"
        body = resp.json()
        assert body["code"] == 0
        assert body["request_id"] == "req_fromui"
        data = body["data"]
        assert data["load_state"] == "READY"
        market = data["market"]
        assert market["market_id"] == HOME
        assert market["status"] == "ACTIVE"
        assert market["pool_a"]["odds_display"] == "1.33x"
        assert market["pool_b"]["odds_display"] == "4.00x"
        assert market["can_enter_position"] is True
        assert market["caller"] == "0xcafe"

    @pytest.mark.asyncio
    async def test_generates_request_id(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/markets/0xother")
        assert resp.headers["X-Request-ID"].startswith("req_")
        assert resp.json()["request_id"] == resp.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_missing_market_is_failed_state(self, client: AsyncClient, reader) -> None:
        reader.get_market.side_effect = MarketNotFoundError("0xnope")

        resp = await client.get("/api/v1/markets/0xnope")

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["load_state"] == "FAILED"
        assert data["market"] is None
        assert data["error"] == "Market not found: 0xnope"
        assert data["notifications"][0]["level"] == "ERROR"

    @pytest.mark.asyncio
    async def test_degraded_read_surfaces_warning(self, client: AsyncClient, reader) -> None:
        async def pool(market_id: str, side: Side) -> int:
            if side is Side.A:
                raise ReadFailureError("timeout")
            return 100

        reader.get_pool_balance.side_effect = pool

        resp = await client.get("/api/v1/markets")

        body = resp.json()
        assert body["data"]["load_state"] == "READY"
        assert body["data"]["market"]["pool_a"]["balance"] == 0
        assert body["warnings"][0].startswith("Pool A balance unavailable")

    @pytest.mark.asyncio
    async def test_status_follows_clock(self, client: AsyncClient, reader, now) -> None:
        first = await client.get(f"/api/v1/markets/{HOME}")
        assert first.json()["data"]["market"]["status"] == "ACTIVE"

        now[0] = NOW_MS + 2 * 3_600_000
        resp = await client.get(f"/api/v1/markets/{HOME}")

        market = resp.json()["data"]["market"]
        assert market["status"] == "CLOSED_UNSETTLED"
        assert market["can_enter_position"] is False
        assert market["time_remaining"] == "Closed"
        assert reader.get_market.await_count == 1

    @pytest.mark.asyncio
    async def test_explicit_refresh(self, client: AsyncClient, reader) -> None:
        await client.get("/api/v1/markets/0xm")
        resp = await client.post("/api/v1/markets/0xm/refresh")

        assert resp.status_code == 200
        assert resp.json()["data"]["sequence"] == 2
        assert reader.get_market.await_count == 2


class TestEnterPosition:
    @pytest.mark.asyncio
    async def test_committed(self, client: AsyncClient, writer) -> None:
        resp = await client.post(
            f"/api/v1/markets/{HOME}/positions",
            json={"side": "A", "stake_amount": "2.5"},
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "Transaction committed"
        assert body["data"]["outcome"] == "COMMITTED"
        assert body["data"]["state"]["load_state"] == "READY"
        assert body["data"]["state"]["notifications"][-1]["level"] == "SUCCESS"
        writer.submit.assert_awaited_once_with(
            MarketFunction.ENTER_POSITION, [HOME, True, "2500000000"],
        )

    @pytest.mark.asyncio
    async def test_invalid_stake(self, client: AsyncClient, writer) -> None:
        resp = await client.post(
            f"/api/v1/markets/{HOME}/positions",
            json={"side": "A", "stake_amount": "-1"},
        )

        assert resp.status_code == 422
        assert resp.json()["code"] == 4001
        writer.submit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_not_connected(self, client: AsyncClient, signer) -> None:
        signer.current_address.return_value = None

        resp = await client.post(
            f"/api/v1/markets/{HOME}/positions",
            json={"side": "B", "stake_amount": "1"},
        )

        assert resp.status_code == 401
        assert resp.json()["code"] == 1001

    @pytest.mark.asyncio
    async def test_rejected(self, client: AsyncClient, writer) -> None:
        writer.submit.return_value = FinalityResult(
            WriteOutcome.REJECTED, "0xbad", "Move abort: E_MARKET_CLOSED",
        )

        resp = await client.post(
            f"/api/v1/markets/{HOME}/positions",
            json={"side": "A", "stake_amount": "1"},
        )

        assert resp.status_code == 422
        body = resp.json()
        assert body["code"] == 6003
        assert "E_MARKET_CLOSED" in body["message"]
        assert body["data"]["outcome"] == "REJECTED"

    @pytest.mark.asyncio
    async def test_unknown(self, client: AsyncClient, writer, reader) -> None:
        writer.submit.return_value = FinalityResult(WriteOutcome.UNKNOWN, "0xslow")

        resp = await client.post(
            f"/api/v1/markets/{HOME}/positions",
            json={"side": "A", "stake_amount": "1"},
        )

        assert resp.status_code == 202
        body = resp.json()
        assert body["code"] == 6005
        assert body["data"]["tx_hash"] == "0xslow"
        levels = [n["level"] for n in body["data"]["state"]["notifications"]]
        assert levels == ["UNKNOWN"]
        # mount + one post-write refresh
        assert reader.get_market.await_count == 2


class TestClaimAndSettle:
    @pytest.mark.asyncio
    async def test_claim_not_allowed(self, client: AsyncClient, writer) -> None:
        resp = await client.post(f"/api/v1/markets/{HOME}/claim")

        assert resp.status_code == 409
        assert resp.json()["code"] == 3002
        writer.submit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_claim_winnings(self, client: AsyncClient, reader, writer) -> None:
        reader.get_market.side_effect = _settled_market
        reader.get_position = AsyncMock(return_value=Position(
            market_id="0xwon", player="0xcafe", side=Side.A,
            stake_amount=10**9, effective_stake=10**9,
        ))

        resp = await client.post("/api/v1/markets/0xwon/claim")

        assert resp.status_code == 200
        writer.submit.assert_awaited_once_with(MarketFunction.CLAIM_WINNINGS, ["0xwon"])

    @pytest.mark.asyncio
    async def test_settle(self, client: AsyncClient, writer) -> None:
        resp = await client.post(f"/api/v1/markets/{HOME}/settle", json={"winning_side": "B"})

        assert resp.status_code == 200
        writer.submit.assert_awaited_once_with(MarketFunction.SETTLE_MARKET, [HOME, False])

    @pytest.mark.asyncio
    async def test_settle_rejects_bad_side(self, client: AsyncClient) -> None:
        resp = await client.post(f"/api/v1/markets/{HOME}/settle", json={"winning_side": "C"})
        assert resp.status_code == 422


class TestCreateMarket:
    @pytest.mark.asyncio
    async def test_create(self, client: AsyncClient, writer) -> None:
        resp = await client.post("/api/v1/markets", json={
            "description": "Will ETH flip BTC?",
            "close_time": "2023-11-16T00:00:00Z",
        })

        assert resp.status_code == 200
        args = writer.submit.await_args.args
        assert args[0] is MarketFunction.CREATE_MARKET
        assert args[1] == ["Will ETH flip BTC?", "1700092800000000", "0xfa"]

    @pytest.mark.asyncio
    async def test_close_time_in_past(self, client: AsyncClient, writer) -> None:
        resp = await client.post("/api/v1/markets", json={
            "description": "Too late",
            "close_time": "2020-01-01T00:00:00Z",
        })

        assert resp.status_code == 422
        assert resp.json()["code"] == 4003
        writer.submit.assert_not_awaited()
