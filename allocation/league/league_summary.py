"""
League-wide budget and roster summaries.

Gives commissioners visibility into remaining waiver budgets, open roster
spots and playoff currency across all teams, plus a tabular view of the
league's transaction list.
"""

import logging
from typing import Dict

import pandas as pd

from ..league_state import LeagueSnapshot
from ..roster_constraints import RosterConstraintChecker

logger = logging.getLogger(__name__)


def get_team_summary(snapshot: LeagueSnapshot) -> pd.DataFrame:
    """
    Get summary statistics for all teams.

    Returns:
        DataFrame with team_id, team_name, roster_size, open_spots, faab_budget,
        pending_claims, standing_score, playoff_dollars, playoff_roster_size
    """
    checker = RosterConstraintChecker(snapshot.settings.roster_limit)
    summary_data = []
    for team_id, team in snapshot.teams.items():
        summary_data.append({
            'team_id': team_id,
            'team_name': team.team_name,
            'roster_size': len(team.roster),
            'open_spots': checker.spots_available(team.roster),
            'faab_budget': team.faab_budget,
            'pending_claims': len(team.pending_claims),
            'standing_score': team.standing_score,
            'playoff_dollars': team.playoff_dollars,
            'playoff_roster_size': len(team.playoff_roster),
        })

    columns = [
        'team_id', 'team_name', 'roster_size', 'open_spots', 'faab_budget',
        'pending_claims', 'standing_score', 'playoff_dollars', 'playoff_roster_size'
    ]
    return pd.DataFrame(summary_data, columns=columns).sort_values('team_id').reset_index(drop=True)


def calculate_competition_metrics(snapshot: LeagueSnapshot) -> Dict:
    """
    Calculate league-wide waiver resource availability.

    Algorithm:
    1. Take each team's remaining budget and open roster spots
    2. competition_score = (budget_share + spots_share) / 2
    3. Sort teams by budget descending

    Args:
        snapshot: League snapshot

    Returns:
        Dict with:
        - teams: List of team resource dicts sorted by budget
        - league_totals: Summary of league-wide resources
    """
    summary = get_team_summary(snapshot)
    if summary.empty:
        return {'teams': [], 'league_totals': {}}

    total_budget = int(summary['faab_budget'].sum())
    total_spots = int(summary['open_spots'].sum())

    zero = pd.Series(0.0, index=summary.index)
    budget_share = summary['faab_budget'] / total_budget if total_budget > 0 else zero
    spots_share = summary['open_spots'] / total_spots if total_spots > 0 else zero
    summary['competition_score'] = ((budget_share + spots_share) / 2).round(3)

    # Richest teams first
    ranked = summary.sort_values(['faab_budget', 'team_id'], ascending=[False, True])
    teams = [
        {
            'team_id': row.team_id,
            'team_name': row.team_name,
            'faab_budget': int(row.faab_budget),
            'open_spots': int(row.open_spots),
            'pending_claims': int(row.pending_claims),
            'competition_score': float(row.competition_score),
        }
        for row in ranked.itertuples(index=False)
    ]

    league_totals = {
        'total_budget_remaining': total_budget,
        'total_open_spots': total_spots,
        'avg_budget_per_team': round(total_budget / len(teams), 2),
        'avg_spots_per_team': round(total_spots / len(teams), 1),
        'avg_budget_per_spot': round(total_budget / total_spots, 2) if total_spots > 0 else 0,
    }

    logger.info(
        f"Competition metrics: ${total_budget} total budget, {total_spots} open spots "
        f"across {len(teams)} teams"
    )

    return {
        'teams': teams,
        'league_totals': league_totals,
    }


def get_transactions_frame(snapshot: LeagueSnapshot) -> pd.DataFrame:
    """
    Flatten the league transaction list into one row per transaction.

    Returns:
        DataFrame with id, type, timestamp, team_id, player_id, bid_amount,
        success, failure_reason (chronological)
    """
    rows = []
    for txn in snapshot.transactions:
        team_id = txn.team_ids[0] if txn.team_ids else None
        added = txn.adds.get(team_id, []) if team_id else []
        names = txn.metadata.get('player_names', {})
        rows.append({
            'id': txn.transaction_id,
            'type': txn.type,
            'timestamp': txn.timestamp,
            'team_id': team_id,
            'player_id': added[0] if added else next(iter(names), None),
            'bid_amount': txn.metadata.get('bid_amount'),
            'success': txn.success,
            'failure_reason': txn.metadata.get('failure_reason'),
        })

    columns = ['id', 'type', 'timestamp', 'team_id', 'player_id', 'bid_amount', 'success', 'failure_reason']
    return pd.DataFrame(rows, columns=columns)
