"""
Audit transaction builders.

Transaction ids are derived from the resolution timestamp, the entry's
position within the event and the team/player involved, so replaying the same
inputs yields byte-identical audit entries.
"""

import uuid
from datetime import datetime
from typing import Dict, List, Optional

from .league_state import AuctionLogEntry, AuditTransaction, Claim, LeagueSnapshot

TRANSACTION_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, 'allocation/transactions')


def transaction_id(timestamp: datetime, sequence: int, team_id: str, player_id: str) -> str:
    """Deterministic id for the `sequence`-th entry of an event at `timestamp`."""
    key = f"{timestamp.isoformat()}|{sequence}|{team_id}|{player_id}"
    return str(uuid.uuid5(TRANSACTION_NAMESPACE, key))


def waiver_transaction(
    snapshot: LeagueSnapshot,
    team_id: str,
    claim: Claim,
    timestamp: datetime,
    sequence: int,
    reason: Optional[str] = None,
    losing_bids: Optional[List[Dict]] = None
) -> AuditTransaction:
    """
    Build the audit entry for one evaluated waiver claim.

    Args:
        snapshot: Snapshot the batch was resolved from (for display names)
        team_id: Claiming team
        claim: The evaluated claim
        timestamp: Resolution timestamp
        sequence: Position of the claim in processing order
        reason: Failure reason; None for a successful claim
        losing_bids: Other teams' bids on the same player (successful claims only)

    Returns:
        AuditTransaction of type 'waiver'
    """
    success = reason is None
    player_names = {claim.player_id: snapshot.player_name(claim.player_id)}

    metadata = {
        'bid_amount': claim.amount,
        'success': success,
    }
    if success:
        metadata['spent'] = claim.amount
        metadata['losing_bids'] = losing_bids or []
        if claim.drop_player_id is not None:
            player_names[claim.drop_player_id] = snapshot.player_name(claim.drop_player_id)
    else:
        metadata['failure_reason'] = reason
    metadata['player_names'] = player_names

    return AuditTransaction(
        transaction_id=transaction_id(timestamp, sequence, team_id, claim.player_id),
        type='waiver',
        timestamp=timestamp,
        team_ids=(team_id,),
        adds={team_id: [claim.player_id]} if success else {},
        drops=(
            {team_id: [claim.drop_player_id]}
            if success and claim.drop_player_id is not None else {}
        ),
        metadata=metadata,
    )


def auction_transaction(
    snapshot: LeagueSnapshot,
    entry: AuctionLogEntry,
    sequence: int
) -> AuditTransaction:
    """Audit entry for a completed nomination."""
    return AuditTransaction(
        transaction_id=transaction_id(entry.timestamp, sequence, entry.team_id, entry.player_id),
        type='auction',
        timestamp=entry.timestamp,
        team_ids=(entry.team_id,),
        adds={entry.team_id: [entry.player_id]},
        drops={},
        metadata={
            'bid_amount': entry.amount,
            'success': True,
            'spent': entry.amount,
            'player_names': {entry.player_id: snapshot.player_name(entry.player_id)},
        },
    )
