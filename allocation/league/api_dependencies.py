"""
Shared FastAPI dependencies and error mapping for the allocation endpoints.
"""

import logging
from pathlib import Path
from typing import Optional

from fastapi import Header, HTTPException

from .. import config
from ..exceptions import (
    AllocationError, ConcurrencyConflict, ConstraintViolation, LeagueNotFoundError,
    PermissionDeniedError, StructuralError, ValidationError
)
from .allocation_service import AllocationService
from .league_store import JsonFileLeagueStore

logger = logging.getLogger(__name__)

_service: Optional[AllocationService] = None


def get_service() -> AllocationService:
    """Shared AllocationService over the configured league directory."""
    global _service
    if _service is None:
        _service = AllocationService(
            JsonFileLeagueStore(Path(config.LEAGUE_STORE_DIR)),
            log_dir=Path(config.TRANSACTION_LOG_DIR),
        )
    return _service


def configure_service(service: AllocationService) -> None:
    """Replace the shared service (e.g. to point at another store directory)."""
    global _service
    _service = service


def require_actor(x_actor_id: Optional[str] = Header(None)) -> str:
    """Acting user from the X-Actor-Id header."""
    if not x_actor_id:
        raise HTTPException(status_code=403, detail="X-Actor-Id header is required")
    return x_actor_id


def to_http_exception(e: AllocationError, action: str) -> HTTPException:
    """
    Map an allocation error to an HTTP error.

    LeagueNotFound → 404, PermissionDenied → 403, Validation → 400,
    ConstraintViolation → 422, ConcurrencyConflict → 409, anything else → 500.
    """
    if isinstance(e, LeagueNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, PermissionDeniedError):
        return HTTPException(status_code=403, detail=str(e))
    if isinstance(e, ValidationError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, ConstraintViolation):
        return HTTPException(status_code=422, detail=str(e))
    if isinstance(e, ConcurrencyConflict):
        logger.warning(f"Failed to {action}: {e}")
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, StructuralError):
        logger.error(f"Failed to {action}: {e}", exc_info=True)
    return HTTPException(status_code=500, detail=f"Failed to {action}: {e}")
