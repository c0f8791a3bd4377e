"""
API request/response models and serializers.

Transforms engine results (snapshots, resolutions, auction status) into the
response shapes returned by the HTTP endpoints.
"""

from typing import Any, Dict, List, Optional

import pandas as pd
from pydantic import BaseModel, Field

from ..league_state import LeagueSnapshot, Team
from ..waiver_engine import WaiverResolution


# ========== Requests ==========

class SubmitClaimRequest(BaseModel):
    """Request body for POST /leagues/{league_id}/claims."""
    team_id: str = Field(..., description="Claiming team")
    player_id: str = Field(..., description="Unrostered player to claim")
    amount: int = Field(..., description="Sealed bid amount")
    drop_player_id: Optional[str] = Field(None, description="Player to release if the claim wins")


class ModifyClaimRequest(BaseModel):
    """Request body for PATCH /leagues/{league_id}/teams/{team_id}/claims/{order}."""
    amount: int = Field(..., description="New bid amount")


class NominateRequest(BaseModel):
    """Request body for POST /leagues/{league_id}/auction/nominate."""
    team_id: str
    player_id: str


class BidRequest(BaseModel):
    """Request body for POST /leagues/{league_id}/auction/bid."""
    team_id: str
    amount: int = Field(..., description="Must exceed the current high bid")


class PassRequest(BaseModel):
    """Request body for POST /leagues/{league_id}/auction/pass."""
    team_id: str


# ========== Responses ==========

class TeamResourcesResponse(BaseModel):
    """One row of the team summary."""
    team_id: str
    team_name: str
    roster_size: int
    open_spots: Optional[int] = Field(None, description="None when rosters are unbounded")
    faab_budget: int
    pending_claims: int
    standing_score: float
    playoff_dollars: int
    playoff_roster_size: int


class TeamsResponse(BaseModel):
    """Response for GET /leagues/{league_id}/teams."""
    league_id: str
    version: int
    teams: List[TeamResourcesResponse]


class ClaimResponse(BaseModel):
    """A pending claim on a team's queue."""
    player_id: str
    amount: int
    submission_order: int
    drop_player_id: Optional[str] = None
    submitted_at: Optional[str] = None


class TeamClaimsResponse(BaseModel):
    """Response for claim queue operations."""
    league_id: str
    version: int
    team_id: str
    claims: List[ClaimResponse]


class ClaimResultResponse(BaseModel):
    """Outcome of one claim in a resolution run."""
    team_id: str
    player_id: str
    amount: int
    drop_player_id: Optional[str] = None
    submission_order: int
    status: str
    reason: Optional[str] = None
    transaction_id: str


class WaiverResolutionResponse(BaseModel):
    """Response for POST /leagues/{league_id}/waivers/resolve."""
    league_id: str
    version: int
    claims_processed: int
    claims_won: int
    results: List[ClaimResultResponse]
    transactions: List[Dict[str, Any]]


class AuctionStatusResponse(BaseModel):
    """Response for every auction endpoint."""
    league_id: str
    version: int
    phase: str = Field(..., description="idle, bidding or complete")
    started: bool
    nomination_order: List[str]
    current_nominator: Optional[str] = None
    nomination: Optional[Dict[str, Any]] = None
    available_players: List[str]
    budgets: Dict[str, int]
    playoff_rosters: Dict[str, List[str]]
    auction_log: List[Dict[str, Any]]


# ========== Serializer Functions ==========

def serialize_teams(snapshot: LeagueSnapshot, summary: pd.DataFrame) -> TeamsResponse:
    """
    Transform a team summary DataFrame to the response format.

    Args:
        snapshot: Snapshot the summary was computed from
        summary: Output of get_team_summary()

    Returns:
        TeamsResponse sorted by team_id
    """
    # NaN (unbounded open_spots) becomes None
    records = summary.astype(object).where(pd.notna(summary), None).to_dict(orient='records')
    return TeamsResponse(
        league_id=snapshot.league_id,
        version=snapshot.version,
        teams=[TeamResourcesResponse(**record) for record in records],
    )


def serialize_team_claims(snapshot: LeagueSnapshot, team: Team) -> TeamClaimsResponse:
    return TeamClaimsResponse(
        league_id=snapshot.league_id,
        version=snapshot.version,
        team_id=team.team_id,
        claims=[
            ClaimResponse(
                player_id=claim.player_id,
                amount=claim.amount,
                submission_order=claim.submission_order,
                drop_player_id=claim.drop_player_id,
                submitted_at=claim.submitted_at.isoformat() if claim.submitted_at else None,
            )
            for claim in team.pending_claims
        ],
    )


def serialize_waiver_resolution(resolution: WaiverResolution) -> WaiverResolutionResponse:
    """
    Transform a WaiverResolution to the response format.

    Args:
        resolution: Committed resolution from AllocationService.resolve_waivers()

    Returns:
        WaiverResolutionResponse with results in processing order
    """
    return WaiverResolutionResponse(
        league_id=resolution.snapshot.league_id,
        version=resolution.snapshot.version,
        claims_processed=len(resolution.results),
        claims_won=len(resolution.winners),
        results=[ClaimResultResponse(**result.to_dict()) for result in resolution.results],
        transactions=[txn.to_dict() for txn in resolution.transactions],
    )


def serialize_auction_status(status: dict) -> AuctionStatusResponse:
    return AuctionStatusResponse(**status)
