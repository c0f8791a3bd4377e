"""
Batch sealed-bid waiver resolution.

All pending claims across the league are pooled, sorted and evaluated once,
in order, against a running view of rosters and budgets seeded from the input
snapshot. The pass is a pure function of the snapshot and the resolution
timestamp: it produces per-claim results, one audit transaction per claim and
a StatePatch, and performs no I/O.

Processing order:
1. Bid amount, highest first
2. Same team: lower submission order first
3. Different teams: lower standing score first (weaker teams win ties)
4. Equal standing: team_id, then submission order
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, List, Optional, Set, Tuple

from . import config
from .audit import waiver_transaction
from .budget_ledger import BudgetLedger
from .league_state import (
    AuditTransaction, Claim, ClaimStatus, LeagueSnapshot, Team, is_valid_claim_amount
)
from .roster_constraints import RosterConstraintChecker
from .state_patch import StatePatch, apply_patch

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClaimResult:
    """Outcome of a single claim."""

    team_id: str
    claim: Claim
    transaction_id: str

    @property
    def success(self) -> bool:
        return self.claim.status == ClaimStatus.WON

    @property
    def reason(self) -> Optional[str]:
        return self.claim.loss_reason

    def to_dict(self) -> dict:
        return {
            'team_id': self.team_id,
            'player_id': self.claim.player_id,
            'amount': self.claim.amount,
            'drop_player_id': self.claim.drop_player_id,
            'submission_order': self.claim.submission_order,
            'status': self.claim.status.value,
            'reason': self.claim.loss_reason,
            'transaction_id': self.transaction_id,
        }


@dataclass(frozen=True)
class WaiverResolution:
    """Everything one resolution run produced."""

    results: Tuple[ClaimResult, ...]
    transactions: Tuple[AuditTransaction, ...]
    patch: StatePatch
    snapshot: LeagueSnapshot

    @property
    def winners(self) -> List[ClaimResult]:
        return [r for r in self.results if r.success]


def claim_sort_key(team: Team, claim: Claim) -> tuple:
    return (-claim.amount, team.standing_score, team.team_id, claim.submission_order)


def order_claims(snapshot: LeagueSnapshot) -> List[Tuple[Team, Claim]]:
    """
    Pool every team's pending claims in processing order.

    Args:
        snapshot: League snapshot

    Returns:
        List of (team, claim) pairs, highest priority first
    """
    pooled = [
        (team, claim)
        for team in snapshot.teams.values()
        for claim in team.pending_claims
    ]
    return sorted(pooled, key=lambda pair: claim_sort_key(*pair))


def _losing_bids(ordered: List[Tuple[Team, Claim]], winner: Team, player_id: str) -> List[Dict]:
    return [
        {
            'team_id': team.team_id,
            'team_name': team.team_name,
            'bid_amount': claim.amount,
        }
        for team, claim in ordered
        if claim.player_id == player_id and team.team_id != winner.team_id
    ]


def resolve_waivers(snapshot: LeagueSnapshot, resolved_at: datetime) -> WaiverResolution:
    """
    Resolve every pending claim in one deterministic pass.

    Per claim, the first failing check wins (a claim whose amount is not a
    positive integer is rejected up front as "invalid bid amount"):
    1. Target already granted (or already rostered) → "already claimed"
    2. Bid exceeds remaining budget → "insufficient budget"
    3. Drop target missing → "drop target not on roster";
       no drop and roster full → "roster would exceed limit"
    4. Otherwise the drop is released, the target added and the bid deducted

    Pending claims are cleared for every team that had any, win or lose.

    Args:
        snapshot: League snapshot to resolve
        resolved_at: Resolution timestamp recorded on every audit entry

    Returns:
        WaiverResolution with per-claim results, audit transactions, the patch
        and the resulting snapshot
    """
    ordered = order_claims(snapshot)
    if not ordered:
        logger.info(f"No pending claims in league {snapshot.league_id}")
        return WaiverResolution(results=(), transactions=(), patch=StatePatch(), snapshot=snapshot)

    ledger = BudgetLedger.for_waivers(snapshot)
    checker = RosterConstraintChecker(snapshot.settings.roster_limit)
    rosters: Dict[str, List[str]] = {
        team.team_id: list(team.roster) for team, _ in ordered
    }
    claimed: Set[str] = set(snapshot.rostered_player_ids())

    results: List[ClaimResult] = []
    transactions: List[AuditTransaction] = []

    for sequence, (team, claim) in enumerate(ordered):
        roster = rosters[team.team_id]

        if not is_valid_claim_amount(claim.amount):
            reason = config.REASON_INVALID_AMOUNT
        elif claim.player_id in claimed:
            reason = config.REASON_ALREADY_CLAIMED
        elif not ledger.can_afford(team.team_id, claim.amount):
            reason = config.REASON_INSUFFICIENT_BUDGET
        else:
            reason = checker.check_add(roster, claim.drop_player_id)

        if reason is None:
            if claim.drop_player_id is not None:
                roster.remove(claim.drop_player_id)
            roster.append(claim.player_id)
            ledger.commit(team.team_id, claim.amount)
            claimed.add(claim.player_id)
            txn = waiver_transaction(
                snapshot, team.team_id, claim, resolved_at, sequence,
                losing_bids=_losing_bids(ordered, team, claim.player_id),
            )
            resolved = replace(claim, status=ClaimStatus.WON, loss_reason=None)
            logger.debug(
                f"Claim won: {team.team_id} → {claim.player_id} (${claim.amount}, "
                f"${ledger.remaining(team.team_id)} left)"
            )
        else:
            txn = waiver_transaction(snapshot, team.team_id, claim, resolved_at, sequence, reason=reason)
            resolved = replace(claim, status=ClaimStatus.LOST, loss_reason=reason)
            logger.debug(f"Claim lost: {team.team_id} → {claim.player_id} (${claim.amount}): {reason}")

        transactions.append(txn)
        results.append(ClaimResult(team_id=team.team_id, claim=resolved, transaction_id=txn.transaction_id))

    updated_teams = {
        team_id: replace(
            snapshot.teams[team_id],
            roster=tuple(roster),
            faab_budget=ledger.remaining(team_id),
            pending_claims=(),
        )
        for team_id, roster in rosters.items()
    }

    patch = StatePatch(teams=updated_teams, transactions=tuple(transactions))
    resolved_snapshot = apply_patch(snapshot, patch)

    won = sum(1 for r in results if r.success)
    logger.info(
        f"Resolved {len(results)} claims for league {snapshot.league_id}: "
        f"{won} won, {len(results) - won} lost across {len(updated_teams)} teams"
    )

    return WaiverResolution(
        results=tuple(results),
        transactions=tuple(transactions),
        patch=patch,
        snapshot=resolved_snapshot,
    )
