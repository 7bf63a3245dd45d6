"""pm_market REST endpoints.

GET  /markets                          — home market state (default market id)
POST /markets                          — create a market
GET  /markets/{market_id}              — state; mounts on first use, refreshes on identity change
POST /markets/{market_id}/refresh      — explicit refresh
POST /markets/{market_id}/positions    — enter a position
POST /markets/{market_id}/claim        — claim winnings
POST /markets/{market_id}/settle       — settle with a winning side

Write endpoints answer after finality and the follow-up refresh. A rejected
write is 422 (code 6003), an unconfirmed one 202 (code 6005); both still
carry the refreshed state in `data`.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from src.pm_common.enums import WriteOutcome
from src.pm_common.errors import AppError, FinalityUnknownError, WriteRejectedError
from src.pm_common.response import ApiResponse, error_response, success_response
from src.pm_ledger.domain.models import FinalityResult
from src.pm_market.application.orchestrator import MarketOrchestrator
from src.pm_market.application.schemas import (
    ActionResponse,
    CreateMarketRequest,
    EnterPositionRequest,
    MarketStateResponse,
    SettleMarketRequest,
)
from src.pm_market.application.service import MarketApplicationService
from src.pm_market.domain.models import OrchestratorState

router = APIRouter(prefix="/markets", tags=["markets"])


def get_market_service(request: Request) -> MarketApplicationService:
    """Service instance wired in the app lifespan."""
    return request.app.state.market_service


MarketService = Annotated[MarketApplicationService, Depends(get_market_service)]


def _get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "req_unknown")


def _state_response(
    request: Request,
    orch: MarketOrchestrator,
    state: OrchestratorState,
) -> ApiResponse:
    data = MarketStateResponse.build(state, orch.drain_notifications())
    warnings = list(state.view.warnings) if state.view else []
    resp = success_response(data.model_dump(mode="json"), warnings=warnings)
    resp.request_id = _get_request_id(request)
    return resp


def _action_response(
    request: Request,
    orch: MarketOrchestrator,
    result: FinalityResult,
) -> ApiResponse | JSONResponse:
    state = orch.state
    data = ActionResponse.build(result, state, orch.drain_notifications()).model_dump(mode="json")

    err: AppError | None = None
    if result.outcome is WriteOutcome.REJECTED:
        err = WriteRejectedError(result.vm_status or "execution failed")
    elif result.outcome is WriteOutcome.UNKNOWN:
        err = FinalityUnknownError(result.tx_hash)

    if err is None:
        resp = success_response(data, message="Transaction committed")
    else:
        resp = error_response(err.code, err.message, data)
    resp.request_id = _get_request_id(request)
    resp.warnings = list(state.view.warnings) if state.view else []
    if err is None:
        return resp
    return JSONResponse(status_code=err.http_status, content=resp.model_dump())


@router.get("")
async def get_home_market(request: Request, service: MarketService) -> ApiResponse:
    orch = service.orchestrator()
    state = await orch.sync_identity()
    return _state_response(request, orch, state)


@router.post("", status_code=status.HTTP_200_OK, response_model=None)
async def create_market(
    request: Request,
    body: CreateMarketRequest,
    service: MarketService,
) -> ApiResponse | JSONResponse:
    orch = service.orchestrator()
    result = await orch.create_market(body.description, body.close_time)
    return _action_response(request, orch, result)


@router.get("/{market_id}")
async def get_market(market_id: str, request: Request, service: MarketService) -> ApiResponse:
    orch = service.orchestrator(market_id)
    state = await orch.sync_identity()
    return _state_response(request, orch, state)


@router.post("/{market_id}/refresh")
async def refresh_market(market_id: str, request: Request, service: MarketService) -> ApiResponse:
    orch = service.orchestrator(market_id)
    state = await orch.refresh()
    return _state_response(request, orch, state)


@router.post("/{market_id}/positions", response_model=None)
async def enter_position(
    market_id: str,
    request: Request,
    body: EnterPositionRequest,
    service: MarketService,
) -> ApiResponse | JSONResponse:
    orch = service.orchestrator(market_id)
    result = await orch.enter_position(body.side, body.stake_amount)
    return _action_response(request, orch, result)


@router.post("/{market_id}/claim", response_model=None)
async def claim_winnings(
    market_id: str,
    request: Request,
    service: MarketService,
) -> ApiResponse | JSONResponse:
    orch = service.orchestrator(market_id)
    result = await orch.claim_winnings()
    return _action_response(request, orch, result)


@router.post("/{market_id}/settle", response_model=None)
async def settle_market(
    market_id: str,
    request: Request,
    body: SettleMarketRequest,
    service: MarketService,
) -> ApiResponse | JSONResponse:
    orch = service.orchestrator(market_id)
    result = await orch.settle_market(body.winning_side)
    return _action_response(request, orch, result)
