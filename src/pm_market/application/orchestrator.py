"""MarketOrchestrator — refresh loop and write actions for one market screen.

Read cycle: market, pool A, pool B and (when connected) the caller's position
are fetched concurrently. The market read is authoritative: if it fails the
cycle ends FAILED. Pool and position failures degrade to zero balance /
absent position with a warning, and so does a wallet bridge that cannot be
reached (treated as disconnected, with a warning saying so).

Status and eligibility depend on wall-clock time, so `state` re-derives them
from the last snapshot's raw inputs at the current clock; a market read as
Active stops accepting positions once its close time passes, without a refresh.

Every refresh takes a new sequence token; a cycle commits only if its token
is still the latest, so a slow superseded read never overwrites newer state.
State is an immutable OrchestratorState swapped whole.

Write actions never touch the view optimistically. Whatever the outcome
(committed, rejected, unknown, or an unexpected exception) exactly one
refresh runs after the write.
"""

import asyncio
import logging
from collections import deque
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from typing import Any

from src.pm_common.enums import (
    LoadState,
    MarketFunction,
    NotificationLevel,
    RefreshTrigger,
    Side,
    WriteOutcome,
)
from src.pm_common.errors import (
    ActionNotAllowedError,
    AppError,
    InvalidCloseTimeError,
    InvalidDescriptionError,
    NotConnectedError,
    ReadFailureError,
)
from src.pm_common.units import (
    STAKE_DECIMALS,
    datetime_to_ledger_time,
    ledger_time_to_ms,
    now_ms,
    to_minor_units,
)
from src.pm_ledger.domain.models import FinalityResult, Position
from src.pm_ledger.domain.repository import (
    LedgerReaderProtocol,
    LedgerWriterProtocol,
    SignerProtocol,
)
from src.pm_market.domain.aggregator import aggregate
from src.pm_market.domain.models import (
    MarketViewModel,
    Notification,
    OrchestratorState,
)

logger = logging.getLogger(__name__)

_MAX_NOTIFICATIONS = 50


class MarketOrchestrator:
    def __init__(
        self,
        market_id: str,
        reader: LedgerReaderProtocol,
        writer: LedgerWriterProtocol,
        signer: SignerProtocol,
        stake_token_metadata: str = "",
        stake_decimals: int = STAKE_DECIMALS,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.market_id = market_id
        self._reader = reader
        self._writer = writer
        self._signer = signer
        self._stake_token_metadata = stake_token_metadata
        self._stake_decimals = stake_decimals
        self._clock = clock

        self._state = OrchestratorState()
        self._sequence = 0
        self._last_caller: str | None = None
        self._notifications: deque[Notification] = deque(maxlen=_MAX_NOTIFICATIONS)

    @property
    def state(self) -> OrchestratorState:
        """Latest snapshot, with status and eligibility re-derived at the current time."""
        view = self._state.view
        if view is None:
            return self._state
        return replace(self._state, view=self._reevaluate(view))

    def _reevaluate(self, view: MarketViewModel) -> MarketViewModel:
        return aggregate(
            view.market,
            pool_a=view.pool_a_balance,
            pool_b=view.pool_b_balance,
            position=view.position,
            now_ms=self._clock(),
            caller=view.caller,
            sequence=view.sequence,
            warnings=view.warnings,
        )

    # ------------------------------------------------------------------
    # Refresh triggers
    # ------------------------------------------------------------------

    async def mount(self) -> OrchestratorState:
        """Initial load; later calls are no-ops."""
        if self._sequence == 0:
            return await self.refresh(RefreshTrigger.MOUNT)
        return self.state

    async def sync_identity(self) -> OrchestratorState:
        """Mount if needed, then refresh if the connected address has changed."""
        if self._sequence == 0:
            return await self.refresh(RefreshTrigger.MOUNT)
        caller = await self._read_caller([])
        if caller != self._last_caller:
            return await self.refresh(RefreshTrigger.IDENTITY_CHANGED)
        return self.state

    async def refresh(self, trigger: RefreshTrigger = RefreshTrigger.USER) -> OrchestratorState:
        self._sequence += 1
        token = self._sequence
        previous = self._state
        self._state = replace(
            previous,
            load_state=LoadState.LOADING if previous.view is None else previous.load_state,
            refreshing=True,
        )
        logger.debug("Refresh #%d of %s (%s)", token, self.market_id, trigger.value)

        caller: str | None = None
        warnings: list[str] = []
        try:
            caller = await self._read_caller(warnings)
            view = await self._read_cycle(caller, token, warnings)
        except AppError as exc:
            if self._is_stale(token):
                return self._state
            logger.error("Refresh #%d of %s failed: %s", token, self.market_id, exc.message)
            self._last_caller = caller
            self._state = OrchestratorState(
                load_state=LoadState.FAILED,
                view=None,
                refreshing=False,
                error=exc.message,
                sequence=token,
            )
            self._notify(
                NotificationLevel.ERROR,
                "Error",
                f"Failed to load market data: {exc.message}",
            )
            return self._state
        except BaseException:
            if not self._is_stale(token):
                self._state = replace(self._state, refreshing=False)
            raise

        if self._is_stale(token):
            return self._state
        self._last_caller = caller
        self._state = OrchestratorState(
            load_state=LoadState.READY,
            view=view,
            refreshing=False,
            error=None,
            sequence=token,
        )
        return self._state

    def _is_stale(self, token: int) -> bool:
        if token != self._sequence:
            logger.info(
                "Discarding refresh #%d of %s, superseded by #%d",
                token, self.market_id, self._sequence,
            )
            return True
        return False

    async def _read_caller(self, warnings: list[str]) -> str | None:
        """Connected address; None with a warning when the wallet bridge cannot be asked."""
        try:
            return await self._signer.current_address()
        except ReadFailureError as exc:
            logger.warning("Wallet status unavailable for %s: %s", self.market_id, exc.message)
            warnings.append(f"Wallet status unavailable: {exc.message}")
            return None

    async def _read_position(self, caller: str | None) -> Position | None:
        if caller is None:
            return None
        return await self._reader.get_position(self.market_id, caller)

    async def _read_cycle(
        self,
        caller: str | None,
        token: int,
        warnings: list[str],
    ) -> MarketViewModel:
        market, pool_a, pool_b, position = await asyncio.gather(
            self._reader.get_market(self.market_id),
            self._reader.get_pool_balance(self.market_id, Side.A),
            self._reader.get_pool_balance(self.market_id, Side.B),
            self._read_position(caller),
            return_exceptions=True,
        )
        if isinstance(market, BaseException):
            raise market

        pool_a = self._degrade(pool_a, 0, "Pool A balance unavailable", warnings)
        pool_b = self._degrade(pool_b, 0, "Pool B balance unavailable", warnings)
        position = self._degrade(position, None, "Position unavailable", warnings)

        return aggregate(
            market,
            pool_a=pool_a,
            pool_b=pool_b,
            position=position,
            now_ms=self._clock(),
            caller=caller,
            sequence=token,
            warnings=tuple(warnings),
        )

    def _degrade(self, result: Any, fallback: Any, label: str, warnings: list[str]) -> Any:
        if isinstance(result, ReadFailureError):
            logger.warning("%s for %s: %s", label, self.market_id, result.message)
            warnings.append(f"{label}: {result.message}")
            return fallback
        if isinstance(result, BaseException):
            raise result
        return result

    # ------------------------------------------------------------------
    # Write actions
    # ------------------------------------------------------------------

    async def enter_position(self, side: Side, stake: str) -> FinalityResult:
        amount = to_minor_units(stake, self._stake_decimals)
        await self._require(lambda v: v.can_enter_position, "enter a position")
        return await self._execute(
            MarketFunction.ENTER_POSITION,
            [self.market_id, side.direction, str(amount)],
            success="Position entered successfully!",
            failure="Failed to enter position",
        )

    async def claim_winnings(self) -> FinalityResult:
        await self._require(lambda v: v.can_claim_winnings, "claim winnings")
        return await self._execute(
            MarketFunction.CLAIM_WINNINGS,
            [self.market_id],
            success="Winnings claimed successfully!",
            failure="Failed to claim winnings",
        )

    async def settle_market(self, winning_side: Side) -> FinalityResult:
        await self._require(lambda v: v.can_settle, "settle")
        label = "Side A (Yes)" if winning_side is Side.A else "Side B (No)"
        return await self._execute(
            MarketFunction.SETTLE_MARKET,
            [self.market_id, winning_side.direction],
            success=f"Market settled successfully! {label} won.",
            failure="Failed to settle market",
        )

    async def create_market(self, description: str, close_time: datetime) -> FinalityResult:
        description = description.strip()
        if not description:
            raise InvalidDescriptionError()
        close_ledger_time = datetime_to_ledger_time(close_time)
        if ledger_time_to_ms(close_ledger_time) <= self._clock():
            raise InvalidCloseTimeError("must be in the future")
        if await self._signer.current_address() is None:
            raise NotConnectedError()
        return await self._execute(
            MarketFunction.CREATE_MARKET,
            [description, str(close_ledger_time), self._stake_token_metadata],
            success="Market created successfully!",
            failure="Failed to create market. Please try again.",
        )

    async def _require(self, eligible: Callable[[MarketViewModel], bool], action: str) -> None:
        if await self._signer.current_address() is None:
            raise NotConnectedError()
        await self.sync_identity()
        view = self.state.view
        if view is None or not eligible(view):
            raise ActionNotAllowedError(action, self.market_id)

    async def _execute(
        self,
        function: MarketFunction,
        arguments: list[Any],
        success: str,
        failure: str,
    ) -> FinalityResult:
        try:
            result = await self._writer.submit(function, arguments)
        except Exception:
            logger.exception("%s on %s raised", function.value, self.market_id)
            self._notify(NotificationLevel.ERROR, "Error", failure)
            raise
        finally:
            await self.refresh(RefreshTrigger.WRITE_COMPLETED)

        if result.outcome is WriteOutcome.COMMITTED:
            self._notify(NotificationLevel.SUCCESS, "Success", success, result.tx_hash)
        elif result.outcome is WriteOutcome.UNKNOWN:
            self._notify(
                NotificationLevel.UNKNOWN,
                "Pending",
                f"Transaction {result.tx_hash} was submitted but not confirmed yet. "
                "Check its status before trying again.",
                result.tx_hash,
            )
        else:
            detail = f" ({result.vm_status})" if result.vm_status else ""
            self._notify(NotificationLevel.ERROR, "Error", f"{failure}{detail}", result.tx_hash)
        return result

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def _notify(
        self,
        level: NotificationLevel,
        title: str,
        message: str,
        tx_hash: str | None = None,
    ) -> None:
        self._notifications.append(Notification(level, title, message, tx_hash))

    def drain_notifications(self) -> list[Notification]:
        drained = list(self._notifications)
        self._notifications.clear()
        return drained
