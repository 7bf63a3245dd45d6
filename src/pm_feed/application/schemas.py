"""Pydantic schemas for the off-chain campaign feed.

The feed service owns these shapes; only the fields the screen renders are
named, everything else passes through untouched.
"""

from pydantic import BaseModel, ConfigDict


class Tweet(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | None = None
    author: str | None = None
    text: str | None = None
    created_at: str | None = None


class Participant(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str | None = None
    username: str | None = None
    address: str | None = None
