"""
Core data structures for league allocation state.

These dataclasses are immutable snapshots of a league: teams with their
rosters, budgets and pending waiver claims, the player pool, the league-level
transaction log and the playoff auction. Engine functions never mutate them;
they build new snapshots with `dataclasses.replace`.

`from_dict` is the adapter boundary. Store documents may use the field names
of older documents (camelCase) or leave optional fields absent, null or empty;
all of that is normalized here so the engine only sees fully-specified records.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple
import json

from . import config
from .exceptions import StructuralError, ValidationError
from .roster_constraints import total_roster_limit


def _get(data: dict, *keys: str, default: Any = None) -> Any:
    """Return the first present, non-null value among `keys`."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return default


def is_valid_claim_amount(amount: Any) -> bool:
    """Claim amounts are integers of at least MINIMUM_CLAIM_BID (bools excluded)."""
    return (
        isinstance(amount, int)
        and not isinstance(amount, bool)
        and amount >= config.MINIMUM_CLAIM_BID
    )


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value)


def _format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


class ClaimStatus(Enum):
    """Resolution status of a waiver claim"""
    PENDING = "pending"
    WON = "won"
    LOST = "lost"


class NominationStatus(Enum):
    """Status of the active auction nomination"""
    BIDDING = "bidding"
    RESOLVED = "resolved"


class AuctionPhase(Enum):
    """Phases of the playoff auction"""
    IDLE = "idle"
    BIDDING = "bidding"
    COMPLETE = "complete"


@dataclass(frozen=True)
class LeagueSettings:
    """Roster and playoff configuration for one league."""

    roster_slots: Dict[str, int] = field(default_factory=lambda: dict(config.ROSTER_SLOTS))
    faab_budget: int = config.DEFAULT_FAAB_BUDGET
    teams_limit: int = config.DEFAULT_TEAMS_LIMIT
    playoff_teams: int = config.PLAYOFF_TEAMS
    points_per_playoff_dollar: int = config.POINTS_PER_PLAYOFF_DOLLAR
    playoff_roster_slots: Optional[Dict[str, int]] = field(
        default_factory=lambda: dict(config.PLAYOFF_ROSTER_SLOTS)
    )

    @property
    def roster_limit(self) -> int:
        """Total roster capacity (sum of every slot)."""
        return total_roster_limit(self.roster_slots)

    @property
    def playoff_roster_limit(self) -> Optional[int]:
        """Playoff roster capacity, or None when playoff rosters are unbounded."""
        if self.playoff_roster_slots is None:
            return None
        return total_roster_limit(self.playoff_roster_slots)

    def to_dict(self) -> dict:
        return {
            'roster_slots': dict(self.roster_slots),
            'faab_budget': self.faab_budget,
            'teams_limit': self.teams_limit,
            'playoff_teams': self.playoff_teams,
            'points_per_playoff_dollar': self.points_per_playoff_dollar,
            'playoff_roster_slots': (
                dict(self.playoff_roster_slots)
                if self.playoff_roster_slots is not None else None
            ),
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> 'LeagueSettings':
        data = data or {}
        roster_slots = data.get('roster_slots')
        if roster_slots is None:
            # Older documents keep slot counts flat on the settings object
            legacy = {
                'captain': data.get('captainSlots'),
                'na': data.get('naSlots'),
                'br_latam': data.get('brLatamSlots'),
                'flex': data.get('flexSlots'),
                'bench': data.get('benchSlots'),
            }
            if any(v is not None for v in legacy.values()):
                roster_slots = {k: int(v or 0) for k, v in legacy.items()}
            else:
                roster_slots = dict(config.ROSTER_SLOTS)

        # An explicit null disables the playoff roster capacity check
        playoff_slots = data.get('playoff_roster_slots', config.PLAYOFF_ROSTER_SLOTS)
        return cls(
            roster_slots={k: int(v) for k, v in roster_slots.items()},
            faab_budget=int(_get(data, 'faab_budget', 'faabBudget',
                                 default=config.DEFAULT_FAAB_BUDGET)),
            teams_limit=int(_get(data, 'teams_limit', 'teamsLimit',
                                 default=config.DEFAULT_TEAMS_LIMIT)),
            playoff_teams=int(_get(data, 'playoff_teams', 'playoffTeams',
                                   default=config.PLAYOFF_TEAMS)),
            points_per_playoff_dollar=int(_get(data, 'points_per_playoff_dollar',
                                               default=config.POINTS_PER_PLAYOFF_DOLLAR)),
            playoff_roster_slots=(
                {k: int(v) for k, v in playoff_slots.items()}
                if playoff_slots is not None else None
            ),
        )


@dataclass(frozen=True)
class Player:
    """A player in the league's player pool."""

    player_id: str
    name: str = config.UNKNOWN_PLAYER_NAME
    region: str = config.UNKNOWN_PLAYER_REGION
    tags: Tuple[str, ...] = ()
    qualified: bool = False   # Eligible for the playoff auction pool

    def to_dict(self) -> dict:
        return {
            'player_id': self.player_id,
            'name': self.name,
            'region': self.region,
            'tags': list(self.tags),
            'qualified': self.qualified,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Player':
        regionals = data.get('regionals') or {}
        return cls(
            player_id=str(_get(data, 'player_id', 'id')),
            name=_get(data, 'name', default=config.UNKNOWN_PLAYER_NAME),
            region=_get(data, 'region', default=config.UNKNOWN_PLAYER_REGION),
            tags=tuple(data.get('tags') or ()),
            qualified=bool(_get(data, 'qualified', default=regionals.get('qualified', False))),
        )


@dataclass(frozen=True)
class Claim:
    """A sealed waiver bid for an unrostered player."""

    player_id: str
    amount: int
    submission_order: int
    drop_player_id: Optional[str] = None
    submitted_at: Optional[datetime] = None
    status: ClaimStatus = ClaimStatus.PENDING
    loss_reason: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'player_id': self.player_id,
            'amount': self.amount,
            'submission_order': self.submission_order,
            'drop_player_id': self.drop_player_id,
            'submitted_at': _format_timestamp(self.submitted_at),
            'status': self.status.value,
            'loss_reason': self.loss_reason,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Claim':
        # Absent, null and empty-string drops all mean "no drop"
        drop = _get(data, 'drop_player_id', 'dropPlayerId') or None
        player_id = str(_get(data, 'player_id', 'playerId'))

        amount = _get(data, 'amount', 'bid_amount')
        if isinstance(amount, float) and amount.is_integer():
            amount = int(amount)
        if not is_valid_claim_amount(amount):
            raise StructuralError(f"Claim on {player_id} has an invalid amount: {amount!r}")

        return cls(
            player_id=player_id,
            amount=amount,
            submission_order=int(_get(data, 'submission_order', 'processingOrder', default=0)),
            drop_player_id=str(drop) if drop is not None else None,
            submitted_at=_parse_timestamp(_get(data, 'submitted_at', 'timestamp')),
            status=ClaimStatus(_get(data, 'status', default=ClaimStatus.PENDING.value)),
            loss_reason=_get(data, 'loss_reason', 'reason'),
        )


@dataclass(frozen=True)
class Team:
    """A team's allocation state: rosters, budgets and pending claims."""

    team_id: str
    team_name: str = ''
    owner_id: Optional[str] = None
    co_owners: Tuple[str, ...] = ()
    roster: Tuple[str, ...] = ()
    faab_budget: int = config.DEFAULT_FAAB_BUDGET
    pending_claims: Tuple[Claim, ...] = ()
    standing_score: float = 0.0
    playoff_dollars: int = 0
    playoff_roster: Tuple[str, ...] = ()

    def can_be_managed_by(self, actor_id: Optional[str]) -> bool:
        """Check if an actor owns or co-owns this team"""
        return actor_id is not None and (
            actor_id == self.owner_id or actor_id in self.co_owners
        )

    def to_dict(self) -> dict:
        return {
            'team_id': self.team_id,
            'team_name': self.team_name,
            'owner_id': self.owner_id,
            'co_owners': list(self.co_owners),
            'roster': list(self.roster),
            'faab_budget': self.faab_budget,
            'pending_claims': [claim.to_dict() for claim in self.pending_claims],
            'standing_score': self.standing_score,
            'playoff_dollars': self.playoff_dollars,
            'playoff_roster': list(self.playoff_roster),
        }

    @classmethod
    def from_dict(cls, data: dict, default_budget: int = config.DEFAULT_FAAB_BUDGET) -> 'Team':
        claims = [
            Claim.from_dict(c)
            for c in (_get(data, 'pending_claims', 'pendingBids', default=[]))
        ]
        return cls(
            team_id=str(_get(data, 'team_id', 'teamId')),
            team_name=_get(data, 'team_name', 'teamName', default=''),
            owner_id=_get(data, 'owner_id', 'ownerID'),
            co_owners=tuple(_get(data, 'co_owners', 'coOwners', default=())),
            roster=tuple(str(p) for p in data.get('roster') or ()),
            faab_budget=int(_get(data, 'faab_budget', 'faabBudget', default=default_budget)),
            pending_claims=tuple(sorted(claims, key=lambda c: c.submission_order)),
            standing_score=float(_get(data, 'standing_score', default=0.0)),
            playoff_dollars=int(_get(data, 'playoff_dollars', 'playoffDollars', default=0)),
            playoff_roster=tuple(
                str(p) for p in _get(data, 'playoff_roster', 'playoffRoster', default=())
            ),
        )


@dataclass(frozen=True)
class CurrentBid:
    """The standing high bid on a nomination."""

    team_id: str
    amount: int
    timestamp: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            'team_id': self.team_id,
            'amount': self.amount,
            'timestamp': _format_timestamp(self.timestamp),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'CurrentBid':
        return cls(
            team_id=str(_get(data, 'team_id', 'teamId')),
            amount=int(data.get('amount', 0)),
            timestamp=_parse_timestamp(data.get('timestamp')),
        )


@dataclass(frozen=True)
class Nomination:
    """The single player currently up for auction."""

    player_id: str
    nominating_team_id: str
    current_bid: Optional[CurrentBid] = None
    passed_teams: FrozenSet[str] = frozenset()
    status: NominationStatus = NominationStatus.BIDDING

    def to_dict(self) -> dict:
        return {
            'player_id': self.player_id,
            'nominating_team_id': self.nominating_team_id,
            'current_bid': self.current_bid.to_dict() if self.current_bid else None,
            'passed_teams': sorted(self.passed_teams),
            'status': self.status.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Nomination':
        bid = _get(data, 'current_bid', 'currentBid')
        return cls(
            player_id=str(_get(data, 'player_id', 'playerId')),
            nominating_team_id=str(_get(data, 'nominating_team_id', 'nominator')),
            current_bid=CurrentBid.from_dict(bid) if bid else None,
            passed_teams=frozenset(_get(data, 'passed_teams', 'passedTeams', default=())),
            status=NominationStatus(data.get('status', NominationStatus.BIDDING.value)),
        )


@dataclass(frozen=True)
class AuctionLogEntry:
    """Immutable record of a completed nomination."""

    team_id: str
    player_id: str
    amount: int
    timestamp: datetime

    def to_dict(self) -> dict:
        return {
            'team_id': self.team_id,
            'player_id': self.player_id,
            'amount': self.amount,
            'timestamp': self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'AuctionLogEntry':
        return cls(
            team_id=str(_get(data, 'team_id', 'teamId')),
            player_id=str(_get(data, 'player_id', 'playerId')),
            amount=int(data['amount']),
            timestamp=datetime.fromisoformat(data['timestamp']),
        )


@dataclass(frozen=True)
class AuctionState:
    """Playoff auction progress: nomination order, pointer, active nomination and log."""

    started: bool = False
    nomination_order: Tuple[str, ...] = ()
    seed_order: Tuple[str, ...] = ()
    current_nominator_index: int = 0
    nomination: Optional[Nomination] = None
    auction_log: Tuple[AuctionLogEntry, ...] = ()
    eligible_player_ids: Tuple[str, ...] = ()

    @property
    def current_nominator(self) -> str:
        """Team id at the nomination pointer."""
        if not self.nomination_order:
            raise StructuralError("Auction has no nomination order")
        if not 0 <= self.current_nominator_index < len(self.nomination_order):
            raise StructuralError(
                f"Nominator index {self.current_nominator_index} is outside "
                f"a nomination order of {len(self.nomination_order)} teams"
            )
        return self.nomination_order[self.current_nominator_index]

    def to_dict(self) -> dict:
        return {
            'started': self.started,
            'nomination_order': list(self.nomination_order),
            'seed_order': list(self.seed_order),
            'current_nominator_index': self.current_nominator_index,
            'nomination': self.nomination.to_dict() if self.nomination else None,
            'auction_log': [entry.to_dict() for entry in self.auction_log],
            'eligible_player_ids': list(self.eligible_player_ids),
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> 'AuctionState':
        data = data or {}
        order = tuple(_get(data, 'nomination_order', 'nominationOrder', default=()))
        index = data.get('current_nominator_index')
        if index is None:
            # Older documents store the nominator's team id instead of an index
            nominator = data.get('currentNominator')
            index = order.index(nominator) if nominator in order else 0
        nomination = _get(data, 'nomination', 'currentNomination')
        return cls(
            started=bool(_get(data, 'started', 'playoffAuctionStarted', default=False)),
            nomination_order=order,
            seed_order=tuple(order if data.get('seed_order') is None else data['seed_order']),
            current_nominator_index=int(index),
            nomination=Nomination.from_dict(nomination) if nomination else None,
            auction_log=tuple(
                AuctionLogEntry.from_dict(e)
                for e in _get(data, 'auction_log', 'auctionLog', default=())
            ),
            eligible_player_ids=tuple(data.get('eligible_player_ids') or ()),
        )


@dataclass(frozen=True)
class AuditTransaction:
    """One entry in the league-level transaction log."""

    transaction_id: str
    type: str                                  # 'waiver' or 'auction'
    timestamp: datetime
    team_ids: Tuple[str, ...]
    adds: Dict[str, List[str]] = field(default_factory=dict)
    drops: Dict[str, List[str]] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return bool(self.metadata.get('success', False))

    def to_dict(self) -> dict:
        return {
            'id': self.transaction_id,
            'type': self.type,
            'timestamp': self.timestamp.isoformat(),
            'team_ids': list(self.team_ids),
            'adds': {k: list(v) for k, v in self.adds.items()},
            'drops': {k: list(v) for k, v in self.drops.items()},
            'metadata': self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'AuditTransaction':
        return cls(
            transaction_id=str(_get(data, 'id', 'transaction_id')),
            type=data['type'],
            timestamp=datetime.fromisoformat(data['timestamp']),
            team_ids=tuple(_get(data, 'team_ids', 'teamIds', default=())),
            adds={k: list(v) for k, v in (data.get('adds') or {}).items()},
            drops={k: list(v) for k, v in (data.get('drops') or {}).items()},
            metadata=dict(data.get('metadata') or {}),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, json_str: str) -> 'AuditTransaction':
        return cls.from_dict(json.loads(json_str))


@dataclass(frozen=True)
class LeagueSnapshot:
    """Complete allocation state of one league at one store version."""

    league_id: str
    teams: Dict[str, Team]
    version: int = 0
    commissioner_id: Optional[str] = None
    settings: LeagueSettings = field(default_factory=LeagueSettings)
    players: Dict[str, Player] = field(default_factory=dict)
    transactions: Tuple[AuditTransaction, ...] = ()
    auction: AuctionState = field(default_factory=AuctionState)

    def get_team(self, team_id: str) -> Team:
        """
        Look up a team.

        Raises:
            ValidationError: If the team is not in this league
        """
        try:
            return self.teams[team_id]
        except KeyError:
            raise ValidationError(f"Unknown team_id: {team_id}") from None

    def player_name(self, player_id: str) -> Dict[str, str]:
        """Display name and region for audit entries."""
        player = self.players.get(player_id)
        if player is None:
            return {'name': config.UNKNOWN_PLAYER_NAME, 'region': config.UNKNOWN_PLAYER_REGION}
        return {'name': player.name, 'region': player.region}

    def rostered_player_ids(self) -> FrozenSet[str]:
        """Every player on any regular roster."""
        return frozenset(p for team in self.teams.values() for p in team.roster)

    def playoff_rostered_player_ids(self) -> FrozenSet[str]:
        """Every player on any playoff roster."""
        return frozenset(p for team in self.teams.values() for p in team.playoff_roster)

    def with_teams(self, teams: Dict[str, Team]) -> 'LeagueSnapshot':
        """Copy with some team records replaced."""
        merged = dict(self.teams)
        merged.update(teams)
        return replace(self, teams=merged)

    def validate(self) -> None:
        """
        Validate snapshot consistency.

        Raises:
            StructuralError: If a player is on two rosters or a budget is negative
        """
        for attr in ('roster', 'playoff_roster'):
            seen: Dict[str, str] = {}
            for team in self.teams.values():
                for player_id in getattr(team, attr):
                    if player_id in seen:
                        raise StructuralError(
                            f"Player {player_id} appears on the {attr} of both "
                            f"{seen[player_id]} and {team.team_id}"
                        )
                    seen[player_id] = team.team_id

        for team in self.teams.values():
            if team.faab_budget < 0 or team.playoff_dollars < 0:
                raise StructuralError(f"Team {team.team_id} has a negative budget")

        for team_id in self.auction.nomination_order:
            if team_id not in self.teams:
                raise StructuralError(f"Nomination order references unknown team {team_id}")

    def to_dict(self) -> dict:
        return {
            'league_id': self.league_id,
            'version': self.version,
            'commissioner_id': self.commissioner_id,
            'settings': self.settings.to_dict(),
            'teams': {tid: team.to_dict() for tid, team in self.teams.items()},
            'players': {pid: player.to_dict() for pid, player in self.players.items()},
            'transactions': [txn.to_dict() for txn in self.transactions],
            'auction': self.auction.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'LeagueSnapshot':
        settings = LeagueSettings.from_dict(data.get('settings'))

        raw_teams = data.get('teams') or {}
        if isinstance(raw_teams, list):
            raw_teams = {str(_get(t, 'team_id', 'teamId')): t for t in raw_teams}
        teams = {
            str(tid): Team.from_dict({'team_id': tid, **tdata}, default_budget=settings.faab_budget)
            for tid, tdata in raw_teams.items()
        }

        raw_players = data.get('players') or {}
        if isinstance(raw_players, list):
            raw_players = {str(_get(p, 'player_id', 'id')): p for p in raw_players}
        players = {
            str(pid): Player.from_dict({'player_id': pid, **pdata})
            for pid, pdata in raw_players.items()
        }

        return cls(
            league_id=str(_get(data, 'league_id', 'id')),
            version=int(data.get('version', 0)),
            commissioner_id=_get(data, 'commissioner_id', 'commissioner'),
            settings=settings,
            teams=teams,
            players=players,
            transactions=tuple(
                AuditTransaction.from_dict(t) for t in data.get('transactions') or ()
            ),
            auction=AuctionState.from_dict(_get(data, 'auction', 'playoffSettings')),
        )

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> 'LeagueSnapshot':
        return cls.from_dict(json.loads(json_str))


def create_league_snapshot(
    league_id: str,
    num_teams: int = 4,
    faab_budget: int = config.DEFAULT_FAAB_BUDGET,
    commissioner_id: Optional[str] = None,
    team_names: Optional[Dict[str, str]] = None
) -> LeagueSnapshot:
    """
    Create an empty league snapshot with numbered teams.

    Args:
        league_id: League identifier
        num_teams: Number of teams in the league
        faab_budget: Starting waiver budget per team
        commissioner_id: Actor allowed to run privileged operations
        team_names: Optional mapping of team_id to team_name

    Returns:
        LeagueSnapshot at version 0
    """
    teams = {}
    for i in range(1, num_teams + 1):
        team_id = f"team_{i:02d}"
        teams[team_id] = Team(
            team_id=team_id,
            team_name=(team_names or {}).get(team_id, f"Team {i}"),
            owner_id=f"owner_{i:02d}",
            faab_budget=faab_budget,
        )

    return LeagueSnapshot(
        league_id=league_id,
        teams=teams,
        commissioner_id=commissioner_id,
        settings=LeagueSettings(faab_budget=faab_budget),
    )
