"""
Playoff auction endpoints.

Mounted by api_server under /leagues/{league_id}/auction. Every endpoint
returns the auction status after the action.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from ..auction_state_machine import describe_auction
from ..exceptions import AllocationError
from .allocation_service import AllocationService
from .api_serializers import (
    AuctionStatusResponse,
    BidRequest,
    NominateRequest,
    PassRequest,
    serialize_auction_status,
)
from .api_dependencies import get_service, require_actor, to_http_exception

logger = logging.getLogger(__name__)

auction_router = APIRouter(tags=["Playoff Auction"])


@auction_router.get("", response_model=AuctionStatusResponse)
def get_auction_status(league_id: str, service: AllocationService = Depends(get_service)):
    """
    Get the auction phase, current nominator, active nomination and budgets.

    Raises:
        404: League not found
    """
    try:
        return serialize_auction_status(service.auction_status(league_id))

    except AllocationError as e:
        raise to_http_exception(e, "load auction")

    except Exception as e:
        logger.error(f"Failed to load auction: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to load auction: {e}")


@auction_router.post("/start", response_model=AuctionStatusResponse)
def start_auction(
    league_id: str,
    actor_id: str = Depends(require_actor),
    service: AllocationService = Depends(get_service)
):
    """Seed and open the playoff auction (commissioner only)."""
    try:
        logger.info(f"Starting playoff auction: league={league_id}")
        result = service.start_auction(league_id, actor_id)
        return serialize_auction_status(describe_auction(result.snapshot))

    except AllocationError as e:
        raise to_http_exception(e, "start auction")

    except Exception as e:
        logger.error(f"Failed to start auction: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to start auction: {e}")


@auction_router.post("/nominate", response_model=AuctionStatusResponse)
def nominate(
    league_id: str,
    request: NominateRequest,
    actor_id: str = Depends(require_actor),
    service: AllocationService = Depends(get_service)
):
    """
    Nominate a player.

    Raises:
        400: Not this team's turn, nomination already active, or player unavailable
        422: Team's playoff roster is full
    """
    try:
        result = service.nominate(league_id, actor_id, request.team_id, request.player_id)
        return serialize_auction_status(describe_auction(result.snapshot))

    except AllocationError as e:
        raise to_http_exception(e, "nominate")

    except Exception as e:
        logger.error(f"Failed to nominate: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to nominate: {e}")


@auction_router.post("/bid", response_model=AuctionStatusResponse)
def bid(
    league_id: str,
    request: BidRequest,
    actor_id: str = Depends(require_actor),
    service: AllocationService = Depends(get_service)
):
    """
    Raise the current bid.

    Raises:
        400: Bid not higher, over budget, team passed or no active nomination
    """
    try:
        result = service.bid(league_id, actor_id, request.team_id, request.amount)
        return serialize_auction_status(describe_auction(result.snapshot))

    except AllocationError as e:
        raise to_http_exception(e, "bid")

    except Exception as e:
        logger.error(f"Failed to bid: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to bid: {e}")


@auction_router.post("/pass", response_model=AuctionStatusResponse)
def pass_nomination(
    league_id: str,
    request: PassRequest,
    actor_id: str = Depends(require_actor),
    service: AllocationService = Depends(get_service)
):
    """Pass on the current nomination."""
    try:
        result = service.pass_team(league_id, actor_id, request.team_id)
        return serialize_auction_status(describe_auction(result.snapshot))

    except AllocationError as e:
        raise to_http_exception(e, "pass")

    except Exception as e:
        logger.error(f"Failed to pass: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to pass: {e}")


@auction_router.post("/reset-bid", response_model=AuctionStatusResponse)
def reset_bid(
    league_id: str,
    actor_id: str = Depends(require_actor),
    service: AllocationService = Depends(get_service)
):
    """Reset the active nomination to the nominator at $0 (commissioner only)."""
    try:
        result = service.reset_bid(league_id, actor_id)
        return serialize_auction_status(describe_auction(result.snapshot))

    except AllocationError as e:
        raise to_http_exception(e, "reset bid")

    except Exception as e:
        logger.error(f"Failed to reset bid: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to reset bid: {e}")


@auction_router.post("/restart", response_model=AuctionStatusResponse)
def restart_auction(
    league_id: str,
    actor_id: str = Depends(require_actor),
    service: AllocationService = Depends(get_service)
):
    """Return the auction to its seeded state (commissioner only)."""
    try:
        logger.info(f"Restarting playoff auction: league={league_id}")
        result = service.restart_auction(league_id, actor_id)
        return serialize_auction_status(describe_auction(result.snapshot))

    except AllocationError as e:
        raise to_http_exception(e, "restart auction")

    except Exception as e:
        logger.error(f"Failed to restart auction: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to restart auction: {e}")
