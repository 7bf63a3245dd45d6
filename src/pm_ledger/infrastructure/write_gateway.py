"""LedgerWriteGateway — sign, broadcast, wait for finality.

Never reports success before finality is observed; a timeout yields
WriteOutcome.UNKNOWN. Does not retry or dedup: resubmitting after UNKNOWN
may double-submit, so that decision is left to a human.
Mutates ledger state only; callers own refreshing any view afterwards.
"""

import logging
from typing import Any

from src.pm_common.enums import MarketFunction, WriteOutcome
from src.pm_common.errors import WriteRejectedError
from src.pm_ledger.domain.models import EntryFunctionPayload, FinalityResult, function_id
from src.pm_ledger.domain.repository import LedgerRpcProtocol, SignerProtocol

logger = logging.getLogger(__name__)


class LedgerWriteGateway:
    def __init__(
        self,
        rpc: LedgerRpcProtocol,
        signer: SignerProtocol,
        module_address: str,
        module_name: str,
        finality_timeout: float,
        poll_interval: float,
    ) -> None:
        self._rpc = rpc
        self._signer = signer
        self._module_address = module_address
        self._module_name = module_name
        self._finality_timeout = finality_timeout
        self._poll_interval = poll_interval

    async def submit(self, function: MarketFunction, arguments: list[Any]) -> FinalityResult:
        payload = EntryFunctionPayload(
            function=function_id(self._module_address, self._module_name, function.value),
            arguments=arguments,
        )
        try:
            tx_hash = await self._signer.sign_and_submit(payload)
        except WriteRejectedError as exc:
            logger.warning("%s not submitted: %s", function.value, exc.message)
            return FinalityResult(outcome=WriteOutcome.REJECTED, tx_hash=None, vm_status=exc.message)

        logger.info("%s submitted as %s, awaiting finality", function.value, tx_hash)
        return await self._rpc.wait_for_finality(
            tx_hash,
            timeout=self._finality_timeout,
            poll_interval=self._poll_interval,
        )
