"""
Live turn-based playoff auction.

One player is up for auction at a time. The team at the nomination pointer
nominates an eligible player, which opens bidding at $0 in the nominator's
name. Teams then bid (strictly higher, within their playoff currency) or
pass. A new high bid clears every pass. Once every participant except the
high bidder has passed, the high bidder wins: the amount is deducted, the
player joins the winner's playoff roster, an AuctionLogEntry and an audit
transaction are recorded and the pointer advances (wrapping).

After every transition a post-condition runs: any team that has not passed,
is not the high bidder and cannot outbid the current amount (or whose
playoff roster is full) is passed automatically, then the winner check runs.

Phases:
    Idle     - no active nomination, eligible players remain
    Bidding  - a nomination is active
    Complete - every eligible player is on a playoff roster

All functions are pure: they take a LeagueSnapshot and return a Transition.
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import List, Optional, Tuple

from .audit import auction_transaction
from .budget_ledger import BudgetLedger
from .exceptions import StructuralError, ValidationError
from .league_state import (
    AuctionLogEntry, AuctionPhase, AuctionState, AuditTransaction,
    CurrentBid, LeagueSnapshot, Nomination, NominationStatus, Team
)
from .playoff_seeding import first_open_seat, seed_auction
from .roster_constraints import RosterConstraintChecker
from .state_patch import Transition

logger = logging.getLogger(__name__)


def _playoff_checker(snapshot: LeagueSnapshot) -> RosterConstraintChecker:
    return RosterConstraintChecker(snapshot.settings.playoff_roster_limit)


def _participants(snapshot: LeagueSnapshot) -> List[Team]:
    """Teams in the nomination order, validated against the league."""
    auction = snapshot.auction
    if not auction.started or not auction.nomination_order:
        raise StructuralError(f"League {snapshot.league_id} has no nomination order")
    teams = []
    for team_id in auction.nomination_order:
        if team_id not in snapshot.teams:
            raise StructuralError(f"Auction references unknown team {team_id}")
        teams.append(snapshot.teams[team_id])
    return teams


def _require_participant(snapshot: LeagueSnapshot, team_id: str) -> Team:
    if team_id not in {t.team_id for t in _participants(snapshot)}:
        raise ValidationError(f"Team {team_id} is not in the playoff auction")
    return snapshot.teams[team_id]


def _require_nomination(snapshot: LeagueSnapshot) -> Nomination:
    nomination = snapshot.auction.nomination
    if nomination is None or nomination.status != NominationStatus.BIDDING:
        raise ValidationError("No player is currently nominated")
    return nomination


def available_players(snapshot: LeagueSnapshot) -> Tuple[str, ...]:
    """Eligible players not yet on any playoff roster."""
    taken = snapshot.playoff_rostered_player_ids()
    return tuple(p for p in snapshot.auction.eligible_player_ids if p not in taken)


def _can_take_players(snapshot: LeagueSnapshot) -> bool:
    checker = _playoff_checker(snapshot)
    return any(not checker.is_at_capacity(t.playoff_roster) for t in _participants(snapshot))


def auction_phase(snapshot: LeagueSnapshot) -> AuctionPhase:
    """
    Current phase of the auction.

    A started auction where no participant has playoff roster room left is
    also reported Complete, since no further nomination is possible.
    """
    auction = snapshot.auction
    if auction.nomination is not None:
        return AuctionPhase.BIDDING
    if auction.started and (not available_players(snapshot) or not _can_take_players(snapshot)):
        return AuctionPhase.COMPLETE
    return AuctionPhase.IDLE


def _must_pass(snapshot: LeagueSnapshot, team: Team, nomination: Nomination) -> bool:
    if team.team_id in nomination.passed_teams:
        return False
    if nomination.current_bid is not None and team.team_id == nomination.current_bid.team_id:
        return False
    amount = nomination.current_bid.amount if nomination.current_bid else 0
    return (
        team.playoff_dollars <= amount
        or _playoff_checker(snapshot).is_at_capacity(team.playoff_roster)
    )


def _award(
    snapshot: LeagueSnapshot,
    nomination: Nomination,
    at: datetime
) -> Tuple[LeagueSnapshot, AuditTransaction]:
    """Give the nominated player to the high bidder and advance the pointer."""
    high_bid = nomination.current_bid
    winner = snapshot.get_team(high_bid.team_id)

    ledger = BudgetLedger.for_playoffs(snapshot)
    remaining = ledger.commit(winner.team_id, high_bid.amount)
    _playoff_checker(snapshot).validate_add(winner.playoff_roster)

    entry = AuctionLogEntry(
        team_id=winner.team_id,
        player_id=nomination.player_id,
        amount=high_bid.amount,
        timestamp=at,
    )
    transaction = auction_transaction(snapshot, entry, sequence=len(snapshot.auction.auction_log))

    awarded = replace(
        snapshot.with_teams({
            winner.team_id: replace(
                winner,
                playoff_dollars=remaining,
                playoff_roster=winner.playoff_roster + (nomination.player_id,),
            )
        }),
        auction=replace(
            snapshot.auction,
            nomination=None,
            auction_log=snapshot.auction.auction_log + (entry,),
        ),
    )
    # Pointer skips teams whose playoff roster is full; it stays put once
    # nobody has room, which auction_phase reports as Complete
    index = snapshot.auction.current_nominator_index
    next_index = first_open_seat(awarded, index + 1)
    if next_index is None:
        next_index = index
    awarded = replace(awarded, auction=replace(awarded.auction, current_nominator_index=next_index))

    logger.info(
        f"Auction won: {winner.team_id} → {nomination.player_id} (${high_bid.amount}, "
        f"${remaining} left); next nominator {awarded.auction.current_nominator}"
    )
    return awarded, transaction


def _settle(
    snapshot: LeagueSnapshot,
    at: datetime
) -> Tuple[LeagueSnapshot, List[AuditTransaction]]:
    """Apply automatic passes, then declare a winner if one non-passed team remains."""
    nomination = snapshot.auction.nomination
    if nomination is None:
        return snapshot, []

    participants = _participants(snapshot)
    auto_passed = [t.team_id for t in participants if _must_pass(snapshot, t, nomination)]
    if auto_passed:
        nomination = replace(nomination, passed_teams=nomination.passed_teams | frozenset(auto_passed))
        snapshot = replace(snapshot, auction=replace(snapshot.auction, nomination=nomination))
        logger.debug(f"Auto-passed {auto_passed} on {nomination.player_id}")

    high_bid = nomination.current_bid
    if high_bid is None or high_bid.team_id in nomination.passed_teams:
        return snapshot, []

    still_bidding = [
        t.team_id for t in participants
        if t.team_id not in nomination.passed_teams and t.team_id != high_bid.team_id
    ]
    if still_bidding:
        return snapshot, []

    awarded, transaction = _award(snapshot, nomination, at)
    return awarded, [transaction]


def _finish(before: LeagueSnapshot, after: LeagueSnapshot, at: datetime) -> Transition:
    settled, transactions = _settle(after, at)
    return Transition.between(before, settled, transactions)


def start_auction(snapshot: LeagueSnapshot) -> Transition:
    """
    Seed and open the playoff auction.

    Raises:
        ValidationError: If the auction has already started
        StructuralError: If no team qualifies
    """
    if snapshot.auction.started:
        raise ValidationError(f"Playoff auction for league {snapshot.league_id} has already started")
    return Transition.between(snapshot, seed_auction(snapshot))


def nominate(snapshot: LeagueSnapshot, team_id: str, player_id: str, at: datetime) -> Transition:
    """
    Put a player up for auction.

    Args:
        snapshot: League snapshot
        team_id: Nominating team (must be at the nomination pointer)
        player_id: Eligible player not on any playoff roster
        at: Action timestamp

    Returns:
        Transition with a Bidding nomination at {team_id, $0}

    Raises:
        ValidationError: If a nomination is active, the auction is complete,
            it is not the team's turn or the player is not available
        ConstraintViolation: If the team's playoff roster is full
        StructuralError: If the auction has no nomination order
    """
    _participants(snapshot)
    phase = auction_phase(snapshot)
    if phase == AuctionPhase.BIDDING:
        raise ValidationError("A player is already nominated")
    if phase == AuctionPhase.COMPLETE:
        raise ValidationError("The playoff auction is complete")

    team = _require_participant(snapshot, team_id)
    current = snapshot.auction.current_nominator
    if team_id != current:
        raise ValidationError(f"It is {current}'s turn to nominate, not {team_id}'s")

    _playoff_checker(snapshot).validate_add(team.playoff_roster)

    if player_id not in available_players(snapshot):
        raise ValidationError(f"Player {player_id} is not available for nomination")

    nomination = Nomination(
        player_id=player_id,
        nominating_team_id=team_id,
        current_bid=CurrentBid(team_id=team_id, amount=0, timestamp=at),
        passed_teams=frozenset(),
    )
    logger.info(f"{team_id} nominated {player_id}")
    nominated = replace(snapshot, auction=replace(snapshot.auction, nomination=nomination))
    return _finish(snapshot, nominated, at)


def bid(snapshot: LeagueSnapshot, team_id: str, amount: int, at: datetime) -> Transition:
    """
    Raise the current bid. Clears every pass on the nomination.

    Raises:
        ValidationError: If no nomination is active, the team is not a
            participant or has passed, the amount is not strictly higher or
            exceeds the team's playoff currency
        ConstraintViolation: If the team's playoff roster is full
    """
    nomination = _require_nomination(snapshot)
    team = _require_participant(snapshot, team_id)

    if team_id in nomination.passed_teams:
        raise ValidationError(f"Team {team_id} has already passed on {nomination.player_id}")

    current = nomination.current_bid.amount if nomination.current_bid else 0
    if amount <= current:
        raise ValidationError(f"Bid must be higher than the current bid of ${current}")
    if amount > team.playoff_dollars:
        raise ValidationError(
            f"Bid of ${amount} exceeds {team_id}'s remaining ${team.playoff_dollars}"
        )
    _playoff_checker(snapshot).validate_add(team.playoff_roster)

    raised = replace(
        nomination,
        current_bid=CurrentBid(team_id=team_id, amount=amount, timestamp=at),
        passed_teams=frozenset(),
    )
    logger.debug(f"{team_id} bid ${amount} on {nomination.player_id}")
    after = replace(snapshot, auction=replace(snapshot.auction, nomination=raised))
    return _finish(snapshot, after, at)


def pass_team(snapshot: LeagueSnapshot, team_id: str, at: datetime) -> Transition:
    """
    Pass on the current nomination.

    Raises:
        ValidationError: If no nomination is active, the team is not a
            participant, has already passed or holds the high bid
    """
    nomination = _require_nomination(snapshot)
    _require_participant(snapshot, team_id)

    if team_id in nomination.passed_teams:
        raise ValidationError(f"Team {team_id} has already passed on {nomination.player_id}")
    if nomination.current_bid is not None and nomination.current_bid.team_id == team_id:
        raise ValidationError(f"Team {team_id} holds the high bid and cannot pass")

    passed = replace(nomination, passed_teams=nomination.passed_teams | {team_id})
    logger.debug(f"{team_id} passed on {nomination.player_id}")
    after = replace(snapshot, auction=replace(snapshot.auction, nomination=passed))
    return _finish(snapshot, after, at)


def reset_bid(snapshot: LeagueSnapshot, at: datetime) -> Transition:
    """
    Reset the active nomination to {nominator, $0} with no passes.

    The nomination pointer is not advanced. A no-op without an active nomination.
    """
    nomination = snapshot.auction.nomination
    if nomination is None:
        return Transition.unchanged(snapshot)

    reset = replace(
        nomination,
        current_bid=CurrentBid(team_id=nomination.nominating_team_id, amount=0, timestamp=at),
        passed_teams=frozenset(),
    )
    logger.info(f"Reset bidding on {nomination.player_id}")
    after = replace(snapshot, auction=replace(snapshot.auction, nomination=reset))
    return _finish(snapshot, after, at)


def restart(snapshot: LeagueSnapshot) -> Transition:
    """
    Return the auction to its seeded state.

    Playoff currency is recomputed from standings, playoff rosters go back to
    retained players, the nomination and log are cleared and the pointer
    returns to the first seed of the original seeding.

    Raises:
        StructuralError: If the auction was never seeded
    """
    seed_order = snapshot.auction.seed_order or snapshot.auction.nomination_order
    if not snapshot.auction.started or not seed_order:
        raise StructuralError(f"League {snapshot.league_id} has no nomination order")
    logger.info(f"Restarting playoff auction for league {snapshot.league_id}")
    return Transition.between(snapshot, seed_auction(snapshot, seed_order))


def settle(snapshot: LeagueSnapshot, at: datetime) -> Transition:
    """Re-run automatic passes and the winner check. A no-op without an active nomination."""
    if snapshot.auction.nomination is None:
        return Transition.unchanged(snapshot)
    return _finish(snapshot, snapshot, at)


def describe_auction(snapshot: LeagueSnapshot) -> dict:
    """Summary of the auction for status displays."""
    auction: AuctionState = snapshot.auction
    phase = auction_phase(snapshot)
    current_nominator: Optional[str] = None
    if auction.started and auction.nomination_order and phase != AuctionPhase.COMPLETE:
        current_nominator = auction.current_nominator

    return {
        'league_id': snapshot.league_id,
        'version': snapshot.version,
        'phase': phase.value,
        'started': auction.started,
        'nomination_order': list(auction.nomination_order),
        'current_nominator': current_nominator,
        'nomination': auction.nomination.to_dict() if auction.nomination else None,
        'available_players': list(available_players(snapshot)) if auction.started else [],
        'budgets': {
            tid: snapshot.teams[tid].playoff_dollars
            for tid in auction.nomination_order if tid in snapshot.teams
        },
        'playoff_rosters': {
            tid: list(snapshot.teams[tid].playoff_roster)
            for tid in auction.nomination_order if tid in snapshot.teams
        },
        'auction_log': [entry.to_dict() for entry in auction.auction_log],
    }
