"""pm_feed REST endpoints.

GET /feed/tweets          — campaign social activity
GET /feed/participants    — campaign participants
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from src.pm_common.response import ApiResponse, success_response
from src.pm_feed.infrastructure.client import FeedClient

router = APIRouter(prefix="/feed", tags=["feed"])


def get_feed_client(request: Request) -> FeedClient:
    return request.app.state.feed_client


@router.get("/tweets")
async def list_tweets(
    request: Request,
    client: Annotated[FeedClient, Depends(get_feed_client)],
) -> ApiResponse:
    tweets = await client.fetch_tweets()
    resp = success_response([t.model_dump() for t in tweets])
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/participants")
async def list_participants(
    request: Request,
    client: Annotated[FeedClient, Depends(get_feed_client)],
) -> ApiResponse:
    users = await client.fetch_participants()
    resp = success_response([u.model_dump() for u in users])
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
