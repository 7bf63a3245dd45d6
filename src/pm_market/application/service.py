"""MarketApplicationService — owns one MarketOrchestrator per market id.

Thin composition layer: the router talks to this service, the service hands
each call to the orchestrator for that market (created lazily on first use,
which is the "mount" of that market screen).

At most `max_markets` orchestrators are kept, least recently used evicted
first; the default (home) market is never evicted. An evicted market simply
mounts again on its next request.
"""

import logging
from collections import OrderedDict
from collections.abc import Callable
from datetime import datetime

from config.settings import Settings
from src.pm_common.enums import Side
from src.pm_common.errors import InvalidIdentifierError
from src.pm_common.units import now_ms
from src.pm_ledger.domain.models import FinalityResult
from src.pm_ledger.domain.repository import (
    LedgerReaderProtocol,
    LedgerRpcProtocol,
    LedgerWriterProtocol,
    SignerProtocol,
)
from src.pm_ledger.infrastructure.read_gateway import LedgerReadGateway
from src.pm_ledger.infrastructure.write_gateway import LedgerWriteGateway
from src.pm_market.application.orchestrator import MarketOrchestrator
from src.pm_market.domain.models import OrchestratorState

logger = logging.getLogger(__name__)

DEFAULT_MAX_MARKETS = 256


class MarketApplicationService:
    def __init__(
        self,
        reader: LedgerReaderProtocol,
        writer: LedgerWriterProtocol,
        signer: SignerProtocol,
        default_market_id: str,
        stake_token_metadata: str = "",
        stake_decimals: int = 9,
        clock: Callable[[], int] = now_ms,
        max_markets: int = DEFAULT_MAX_MARKETS,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self._signer = signer
        self._default_market_id = default_market_id
        self._stake_token_metadata = stake_token_metadata
        self._stake_decimals = stake_decimals
        self._clock = clock
        self._max_markets = max(1, max_markets)
        self._orchestrators: OrderedDict[str, MarketOrchestrator] = OrderedDict()

    @property
    def default_market_id(self) -> str:
        return self._default_market_id

    def orchestrator(self, market_id: str | None = None) -> MarketOrchestrator:
        key = (market_id or self._default_market_id or "").strip()
        if not key:
            raise InvalidIdentifierError("market_id")
        orch = self._orchestrators.get(key)
        if orch is None:
            orch = MarketOrchestrator(
                key,
                self._reader,
                self._writer,
                self._signer,
                stake_token_metadata=self._stake_token_metadata,
                stake_decimals=self._stake_decimals,
                clock=self._clock,
            )
            self._orchestrators[key] = orch
            self._evict()
        else:
            self._orchestrators.move_to_end(key)
        return orch

    def _evict(self) -> None:
        while len(self._orchestrators) > self._max_markets:
            victim = next(k for k in self._orchestrators if k != self._default_market_id)
            del self._orchestrators[victim]
            logger.debug("Evicted orchestrator for %s", victim)

    async def get_state(self, market_id: str) -> OrchestratorState:
        return await self.orchestrator(market_id).sync_identity()

    async def refresh(self, market_id: str) -> OrchestratorState:
        return await self.orchestrator(market_id).refresh()

    async def enter_position(self, market_id: str, side: Side, stake: str) -> FinalityResult:
        return await self.orchestrator(market_id).enter_position(side, stake)

    async def claim_winnings(self, market_id: str) -> FinalityResult:
        return await self.orchestrator(market_id).claim_winnings()

    async def settle_market(self, market_id: str, winning_side: Side) -> FinalityResult:
        return await self.orchestrator(market_id).settle_market(winning_side)

    async def create_market(self, description: str, close_time: datetime) -> FinalityResult:
        # Creation is not tied to an existing market; the home screen's
        # market is the one refreshed afterwards.
        return await self.orchestrator().create_market(description, close_time)


def build_market_service(
    rpc: LedgerRpcProtocol,
    signer: SignerProtocol,
    settings: Settings,
) -> MarketApplicationService:
    reader = LedgerReadGateway(rpc, settings.MODULE_ADDRESS, settings.MODULE_NAME)
    writer = LedgerWriteGateway(
        rpc,
        signer,
        settings.MODULE_ADDRESS,
        settings.MODULE_NAME,
        finality_timeout=settings.FINALITY_TIMEOUT_SECONDS,
        poll_interval=settings.FINALITY_POLL_INTERVAL_SECONDS,
    )
    return MarketApplicationService(
        reader,
        writer,
        signer,
        default_market_id=settings.DEFAULT_MARKET_ID,
        stake_token_metadata=settings.STAKE_TOKEN_METADATA,
        stake_decimals=settings.STAKE_DECIMALS,
        max_markets=settings.MAX_CACHED_MARKETS,
    )
