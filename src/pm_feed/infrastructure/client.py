"""FeedClient — read-only campaign feed (social activity + participants).

Independent of the market state machine: failures here never affect
eligibility or the market view, they only surface as a feed error.
"""

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from src.pm_common.errors import ReadFailureError
from src.pm_feed.application.schemas import Participant, Tweet

logger = logging.getLogger(__name__)

_M = TypeVar("_M", bound=BaseModel)


class FeedClient:
    def __init__(self, http: httpx.AsyncClient, campaign: str) -> None:
        self._http = http
        self._campaign = campaign

    async def _get_list(self, endpoint: str, model: type[_M]) -> list[_M]:
        path = f"/api/v1/campaigns/{self._campaign}/{endpoint}"
        try:
            response = await self._http.get(path)
            response.raise_for_status()
            payload: Any = response.json()
        except httpx.HTTPStatusError as exc:
            raise ReadFailureError(f"feed {endpoint}: HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise ReadFailureError(f"feed {endpoint}: {exc!r}") from exc
        except ValueError as exc:
            raise ReadFailureError(f"feed {endpoint}: invalid JSON") from exc

        if not isinstance(payload, list):
            raise ReadFailureError(f"feed {endpoint}: expected a list")
        try:
            return [model.model_validate(item) for item in payload]
        except ValidationError as exc:
            raise ReadFailureError(f"feed {endpoint}: {exc.error_count()} invalid records") from exc

    async def fetch_tweets(self) -> list[Tweet]:
        return await self._get_list("tweets", Tweet)

    async def fetch_participants(self) -> list[Participant]:
        return await self._get_list("users", Participant)
