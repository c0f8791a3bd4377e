"""
FastAPI server for league player allocation.

Provides HTTP endpoints for waiver claims and waiver resolution. Playoff
auction endpoints live in auction_endpoints.py and are mounted here.

Every mutating request must carry an X-Actor-Id header naming the acting
user; the service checks it against the team's owners and the commissioner.
"""

import logging

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from ..exceptions import AllocationError
from .allocation_service import AllocationService
from .api_dependencies import get_service, require_actor, to_http_exception
from .api_serializers import (
    ModifyClaimRequest,
    SubmitClaimRequest,
    TeamClaimsResponse,
    TeamsResponse,
    WaiverResolutionResponse,
    serialize_team_claims,
    serialize_teams,
    serialize_waiver_resolution,
)
from .auction_endpoints import auction_router
from .league_summary import get_team_summary

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="League Player Allocation API",
    description="Waiver claim resolution and playoff auction control",
    version="1.0.0"
)

# CORS middleware for web UI access
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auction_router, prefix="/leagues/{league_id}/auction", tags=["Playoff Auction"])


@app.get("/health")
def health_check():
    """Liveness check."""
    return {'status': 'ok'}


@app.get("/leagues/{league_id}/teams", response_model=TeamsResponse)
def get_teams(league_id: str, service: AllocationService = Depends(get_service)):
    """
    Get budget and roster summary for every team.

    Raises:
        404 Not Found: If the league does not exist
    """
    try:
        snapshot = service.get_snapshot(league_id)
        return serialize_teams(snapshot, get_team_summary(snapshot))

    except AllocationError as e:
        raise to_http_exception(e, "load teams")

    except Exception as e:
        logger.error(f"Failed to load teams: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to load teams: {e}")


@app.post("/leagues/{league_id}/claims", response_model=TeamClaimsResponse)
def submit_claim(
    league_id: str,
    request: SubmitClaimRequest,
    actor_id: str = Depends(require_actor),
    service: AllocationService = Depends(get_service)
):
    """
    Queue a waiver claim.

    Returns:
        TeamClaimsResponse with the team's updated claim queue

    Raises:
        400 Bad Request: Invalid bid or unavailable player
        403 Forbidden: Actor may not act for the team
        422 Unprocessable Entity: Drop target not on roster
    """
    try:
        logger.info(
            f"Claim: league={league_id}, team={request.team_id}, "
            f"player={request.player_id}, amount=${request.amount}"
        )
        result = service.submit_claim(
            league_id, actor_id, request.team_id, request.player_id,
            request.amount, request.drop_player_id
        )
        return serialize_team_claims(result.snapshot, result.snapshot.get_team(request.team_id))

    except AllocationError as e:
        raise to_http_exception(e, "submit claim")

    except Exception as e:
        logger.error(f"Failed to submit claim: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to submit claim: {e}")


@app.delete("/leagues/{league_id}/teams/{team_id}/claims/{order}", response_model=TeamClaimsResponse)
def cancel_claim(
    league_id: str,
    team_id: str,
    order: int,
    actor_id: str = Depends(require_actor),
    service: AllocationService = Depends(get_service)
):
    """Cancel a pending claim by its submission order."""
    try:
        result = service.cancel_claim(league_id, actor_id, team_id, order)
        return serialize_team_claims(result.snapshot, result.snapshot.get_team(team_id))

    except AllocationError as e:
        raise to_http_exception(e, "cancel claim")

    except Exception as e:
        logger.error(f"Failed to cancel claim: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to cancel claim: {e}")


@app.patch("/leagues/{league_id}/teams/{team_id}/claims/{order}", response_model=TeamClaimsResponse)
def modify_claim(
    league_id: str,
    team_id: str,
    order: int,
    request: ModifyClaimRequest,
    actor_id: str = Depends(require_actor),
    service: AllocationService = Depends(get_service)
):
    """Change the bid amount of a pending claim."""
    try:
        result = service.modify_claim(league_id, actor_id, team_id, order, request.amount)
        return serialize_team_claims(result.snapshot, result.snapshot.get_team(team_id))

    except AllocationError as e:
        raise to_http_exception(e, "modify claim")

    except Exception as e:
        logger.error(f"Failed to modify claim: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to modify claim: {e}")


@app.post("/leagues/{league_id}/waivers/resolve", response_model=WaiverResolutionResponse)
def resolve_waivers(
    league_id: str,
    actor_id: str = Depends(require_actor),
    service: AllocationService = Depends(get_service)
):
    """
    Resolve every pending waiver claim (commissioner only).

    Returns:
        WaiverResolutionResponse with per-claim results and audit transactions

    Raises:
        403 Forbidden: Actor is not the commissioner
        409 Conflict: League kept changing during resolution
    """
    try:
        logger.info(f"Resolving waivers: league={league_id}")
        resolution = service.resolve_waivers(league_id, actor_id)
        return serialize_waiver_resolution(resolution)

    except AllocationError as e:
        raise to_http_exception(e, "resolve waivers")

    except Exception as e:
        logger.error(f"Failed to resolve waivers: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to resolve waivers: {e}")
