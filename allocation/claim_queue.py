"""
Team-side waiver claim actions.

Claims sit on the team record until the next resolution run. A team's queue
is kept ordered by bid amount (highest first, stable for equal amounts) and
its submission_order values are renumbered 0..n-1 after every change, so
submission_order is the team's own priority among equal bids.
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Iterable, Optional, Tuple

from . import config
from .exceptions import ConstraintViolation, ValidationError
from .league_state import Claim, LeagueSnapshot, Team
from .state_patch import Transition

logger = logging.getLogger(__name__)


def _renumber(claims: Iterable[Claim]) -> Tuple[Claim, ...]:
    ordered = sorted(claims, key=lambda c: -c.amount)
    return tuple(replace(claim, submission_order=i) for i, claim in enumerate(ordered))


def _validate_amount(team: Team, amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValidationError(f"Bid amount must be an integer, got {amount!r}")
    if amount < config.MINIMUM_CLAIM_BID:
        raise ValidationError(f"Bid amount must be at least {config.MINIMUM_CLAIM_BID}")
    if amount > team.faab_budget:
        raise ValidationError(
            f"Bid amount ${amount} exceeds {team.team_id}'s budget of ${team.faab_budget}"
        )


def _claim_at(team: Team, submission_order: int) -> Claim:
    for claim in team.pending_claims:
        if claim.submission_order == submission_order:
            return claim
    raise ValidationError(f"Team {team.team_id} has no pending claim #{submission_order}")


def _with_claims(snapshot: LeagueSnapshot, team: Team, claims: Iterable[Claim]) -> Transition:
    updated = replace(team, pending_claims=_renumber(claims))
    return Transition.between(snapshot, snapshot.with_teams({team.team_id: updated}))


def submit_claim(
    snapshot: LeagueSnapshot,
    team_id: str,
    player_id: str,
    amount: int,
    drop_player_id: Optional[str] = None,
    submitted_at: Optional[datetime] = None
) -> Transition:
    """
    Queue a waiver claim for an unrostered player.

    Args:
        snapshot: League snapshot
        team_id: Claiming team
        player_id: Target player (must not be on any roster)
        amount: Bid amount (positive, at most the team's budget)
        drop_player_id: Player to release if the claim wins
        submitted_at: Submission timestamp

    Returns:
        Transition replacing the team's claim queue

    Raises:
        ValidationError: If the player is unavailable, the bid is invalid or
            the team already has a claim on the player
        ConstraintViolation: If the drop target is not on the team's roster
    """
    team = snapshot.get_team(team_id)
    _validate_amount(team, amount)

    if snapshot.players and player_id not in snapshot.players:
        raise ValidationError(f"Unknown player_id: {player_id}")
    if player_id in snapshot.rostered_player_ids():
        raise ValidationError(f"Player {player_id} is already on a roster")
    if any(c.player_id == player_id for c in team.pending_claims):
        raise ValidationError(f"Team {team_id} already has a pending claim on {player_id}")

    drop_player_id = drop_player_id or None
    if drop_player_id is not None and drop_player_id not in team.roster:
        raise ConstraintViolation(
            f"{config.REASON_DROP_NOT_ON_ROSTER}: {drop_player_id} is not on {team_id}"
        )

    claim = Claim(
        player_id=player_id,
        amount=amount,
        submission_order=len(team.pending_claims),
        drop_player_id=drop_player_id,
        submitted_at=submitted_at,
    )
    logger.debug(f"Queued claim: {team_id} → {player_id} (${amount})")
    return _with_claims(snapshot, team, team.pending_claims + (claim,))


def cancel_claim(snapshot: LeagueSnapshot, team_id: str, submission_order: int) -> Transition:
    """
    Remove a pending claim.

    Raises:
        ValidationError: If the team has no claim with that submission order
    """
    team = snapshot.get_team(team_id)
    target = _claim_at(team, submission_order)
    remaining = [c for c in team.pending_claims if c is not target]
    logger.debug(f"Cancelled claim: {team_id} → {target.player_id}")
    return _with_claims(snapshot, team, remaining)


def modify_claim(
    snapshot: LeagueSnapshot,
    team_id: str,
    submission_order: int,
    amount: int
) -> Transition:
    """
    Change the bid amount of a pending claim; the queue is re-ordered afterwards.

    Raises:
        ValidationError: If the claim does not exist or the new amount is invalid
    """
    team = snapshot.get_team(team_id)
    target = _claim_at(team, submission_order)
    _validate_amount(team, amount)

    claims = [
        replace(c, amount=amount) if c is target else c
        for c in team.pending_claims
    ]
    logger.debug(f"Modified claim: {team_id} → {target.player_id} (${target.amount} → ${amount})")
    return _with_claims(snapshot, team, claims)
