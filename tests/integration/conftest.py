"""Integration-test fixtures.

The app is driven through httpx.ASGITransport, which does not run the
lifespan, so the service and feed client are injected with dependency
overrides. The ledger, wallet and feed are faked at their boundaries: the
service, orchestrator, aggregator, schemas and routers are all real.
"""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.main import app
from src.pm_common.enums import Side, WriteOutcome
from src.pm_common.units import ms_to_ledger_time
from src.pm_feed.api.router import get_feed_client
from src.pm_feed.infrastructure.client import FeedClient
from src.pm_ledger.domain.models import FinalityResult, Market
from src.pm_market.api.router import get_market_service
from src.pm_market.application.service import MarketApplicationService

NOW_MS = 1_700_000_000_000
HOME = "0xhome"
CALLER = "0xcafe"


def make_market(market_id: str = HOME, **kwargs) -> Market:
    defaults = dict(
        id=market_id,
        description="Will the stablecoin hold its peg?",
        create_time=ms_to_ledger_time(NOW_MS - 3_600_000),
        close_time=ms_to_ledger_time(NOW_MS + 3_600_000),
        open=True,
        winning_side=None,
    )
    defaults.update(kwargs)
    return Market(**defaults)


@pytest.fixture
def reader():
    mock = MagicMock()
    mock.get_market = AsyncMock(side_effect=lambda market_id: make_market(market_id))
    mock.get_pool_balance = AsyncMock(
        side_effect=lambda market_id, side: 300 * 10**9 if side is Side.A else 100 * 10**9,
    )
    mock.get_position = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def writer():
    mock = MagicMock()
    mock.submit = AsyncMock(return_value=FinalityResult(WriteOutcome.COMMITTED, "0xhash"))
    return mock


@pytest.fixture
def signer():
    mock = MagicMock()
    mock.current_address = AsyncMock(return_value=CALLER)
    return mock


def _feed_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path.endswith("/tweets"):
        return httpx.Response(200, json=[{"id": "1", "author": "alice", "text": "gm"}])
    if request.url.path.endswith("/users"):
        return httpx.Response(200, json=[{"username": "bob", "address": "0xb0b"}])
    return httpx.Response(500)


@pytest.fixture
def feed_handler():
    return _feed_handler


@pytest.fixture
def now():
    return [NOW_MS]


@pytest_asyncio.fixture
async def client(reader, writer, signer, feed_handler, now) -> AsyncClient:
    service = MarketApplicationService(
        reader, writer, signer, default_market_id=HOME,
        stake_token_metadata="0xfa", clock=lambda: now[0],
    )
    feed_http = httpx.AsyncClient(
        transport=httpx.MockTransport(feed_handler), base_url="http://feed.test",
    )
    app.dependency_overrides[get_market_service] = lambda: service
    app.dependency_overrides[get_feed_client] = lambda: FeedClient(feed_http, "stablecoin")
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
    await feed_http.aclose()
