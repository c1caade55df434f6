"""Access code API endpoints — nearby search, submission and voting."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from toilet_spotter.core.dependencies import get_resolver, require_device_id
from toilet_spotter.lib.geo import Coordinate
from toilet_spotter.schemas.access_code import AccessCodeCreateRequest, AccessCodeResponse, VoteRequest
from toilet_spotter.schemas.common import ErrorResponse, StatusResponse
from toilet_spotter.services.nearby_resolver import AddCodeOutcome, CodeCandidate, NearbyCodeResolver

codes_router = APIRouter(prefix="/codes", tags=["codes"])

ResolverDep = Annotated[NearbyCodeResolver, Depends(get_resolver)]


@codes_router.get(
    "/nearby",
    response_model=list[AccessCodeResponse],
)
async def list_nearby_codes(
    resolver: ResolverDep,
    lat: float = Query(..., ge=-90, le=90, description="WGS84 latitude"),  # noqa: B008
    lng: float = Query(..., ge=-180, le=180, description="WGS84 longitude"),  # noqa: B008
    radius: float = Query(1000.0, gt=0, le=50_000, description="Search radius in meters"),  # noqa: B008
) -> list[AccessCodeResponse]:
    """List codes within ``radius`` meters of a point, nearest first."""
    codes = await resolver.query_nearby(Coordinate(lat, lng), radius)
    return [AccessCodeResponse.model_validate(c) for c in codes]


@codes_router.post(
    "",
    response_model=AccessCodeResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Missing X-Device-Id header"},
        409: {"model": ErrorResponse, "description": "Same code already submitted nearby"},
        502: {"model": ErrorResponse, "description": "Code store unavailable"},
    },
)
async def create_code(
    request: AccessCodeCreateRequest,
    resolver: ResolverDep,
    _device_id: Annotated[str, Depends(require_device_id)],
) -> AccessCodeResponse:
    """Submit a new code at the caller's location."""
    result = await resolver.add_code(
        CodeCandidate(
            code=request.code,
            description=request.description,
            latitude=request.latitude,
            longitude=request.longitude,
        )
    )

    if result.outcome is AddCodeOutcome.INVALID:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=result.reason)
    if result.outcome is AddCodeOutcome.DUPLICATE:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="This code was already submitted within 50 meters of this location.",
        )
    if result.outcome is AddCodeOutcome.FAILED:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Code store is temporarily unavailable. Please retry later.",
        )

    return AccessCodeResponse.model_validate(result.record)


@codes_router.post(
    "/{code_id}/votes",
    response_model=StatusResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing X-Device-Id header"},
        409: {"model": ErrorResponse, "description": "Vote refused"},
    },
)
async def vote_on_code(
    code_id: str,
    request: VoteRequest,
    resolver: ResolverDep,
    _device_id: Annotated[str, Depends(require_device_id)],
) -> StatusResponse:
    """Upvote or downvote a code as the calling device.

    Voting is refused for the device that submitted the code or when the
    store is unavailable; both cases return 409 since the client cannot
    tell them apart.
    """
    if not await resolver.vote(code_id, request.value):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Vote was not recorded. You cannot vote on your own submission, or the store is unavailable.",
        )
    return StatusResponse(status="success")
