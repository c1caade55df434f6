"""Pydantic v2 schemas for access codes and votes."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from toilet_spotter.lib.store import MAX_CODE_LENGTH


class AccessCodeResponse(BaseModel):
    """Response schema for an access code."""

    model_config = {"from_attributes": True}

    id: str
    code: str
    description: str | None = None
    latitude: float
    longitude: float
    created_at: datetime | None = None
    vote_score: int = 0
    device_id: str | None = None
    distance: float | None = Field(default=None, description="Meters from the query center")


class AccessCodeCreateRequest(BaseModel):
    """Request to add a code at the submitter's current location."""

    model_config = {"str_strip_whitespace": True}

    code: str = Field(..., min_length=1, max_length=MAX_CODE_LENGTH, description="The access code text")
    description: str | None = Field(default=None, max_length=500)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class VoteRequest(BaseModel):
    """Request to vote on a code."""

    value: Literal[-1, 1] = Field(..., description="1 for upvote, -1 for downvote")
