"""Response cache administration."""

from fastapi import APIRouter, Request

from api.auth import require_administrator
from api.deps import Cache
from api.routes.comments import StatusResponse, request_origin

router = APIRouter()


@router.delete("", response_model=StatusResponse)
def purge_cache(request: Request, cache: Cache) -> StatusResponse:
    """Drop every cached comment list for this origin."""
    require_administrator(request)
    cache.purge_all(request_origin(request))
    return StatusResponse()
