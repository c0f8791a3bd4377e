"""
Pull-model orchestration of allocation transitions.

Every operation follows the same cycle:
1. Read the freshest league snapshot from the store
2. Check the actor may act (team owner/co-owner, or the commissioner)
3. Compute the transition with the pure engine
4. Commit the patch conditioned on the snapshot version
5. Append the new audit transactions to the transaction log, inside the
   store's commit so log order matches version order

A ConcurrencyConflict at step 4 restarts the cycle from step 1; after
`max_retries` conflicts the conflict is raised to the caller. Transitions are
never merged.
"""

import logging
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Sequence, TypeVar

import pandas as pd

from .. import config
from .. import auction_state_machine as auction
from ..claim_queue import cancel_claim, modify_claim, submit_claim
from ..exceptions import AllocationError, ConcurrencyConflict, PermissionDeniedError
from ..league_state import AuditTransaction, LeagueSnapshot
from ..waiver_engine import WaiverResolution, resolve_waivers
from .league_store import LeagueStore
from .league_summary import get_team_summary
from .transaction_log import TransactionLog

logger = logging.getLogger(__name__)

T = TypeVar('T')


class AllocationService:
    """Runs engine transitions against a LeagueStore."""

    def __init__(
        self,
        store: LeagueStore,
        log_dir: Optional[Path] = None,
        clock: Optional[Callable[[], datetime]] = None,
        max_retries: int = config.MAX_COMMIT_RETRIES
    ):
        """
        Initialize service.

        Args:
            store: League document store
            log_dir: Directory for per-league JSONL transaction logs (None disables them)
            clock: Source of action timestamps (defaults to datetime.now)
            max_retries: Conflicted commits retried before giving up
        """
        self.store = store
        self.log_dir = Path(log_dir) if log_dir is not None else None
        self.clock = clock or datetime.now
        self.max_retries = max_retries

    # ===== Permissions =====

    @staticmethod
    def authorize_team(snapshot: LeagueSnapshot, actor_id: Optional[str], team_id: str) -> None:
        """
        Check the actor may act on a team.

        An actor_id of None is a trusted local caller (CLI, jobs) and always passes.

        Raises:
            ValidationError: If the team does not exist
            PermissionDeniedError: If the actor is not an owner, co-owner or the commissioner
        """
        team = snapshot.get_team(team_id)
        if actor_id is None or actor_id == snapshot.commissioner_id:
            return
        if not team.can_be_managed_by(actor_id):
            raise PermissionDeniedError(f"Actor {actor_id} may not act for team {team_id}")

    @staticmethod
    def authorize_commissioner(snapshot: LeagueSnapshot, actor_id: Optional[str]) -> None:
        """
        Raises:
            PermissionDeniedError: If the actor is not the league commissioner
        """
        if actor_id is None:
            return
        if actor_id != snapshot.commissioner_id:
            raise PermissionDeniedError(
                f"Only the commissioner of league {snapshot.league_id} may do that"
            )

    # ===== Read → compute → commit =====

    def _log_writer(
        self,
        league_id: str,
        transactions: Sequence[AuditTransaction]
    ) -> Optional[Callable[[LeagueSnapshot], None]]:
        """Commit hook appending the transition's audit entries to the league log."""
        if not transactions or self.log_dir is None:
            return None
        log = TransactionLog.for_league(self.log_dir, league_id)
        return lambda committed: log.append(list(transactions))

    def _run(
        self,
        league_id: str,
        action: str,
        compute: Callable[[LeagueSnapshot], T]
    ) -> T:
        """
        Run one transition with optimistic-concurrency retries.

        `compute` receives a fresh snapshot and returns an object with `patch`
        and `snapshot` attributes; the returned object carries the committed
        snapshot instead.
        """
        attempts = self.max_retries + 1
        for attempt in range(1, attempts + 1):
            snapshot = self.store.read(league_id)
            try:
                result = compute(snapshot)
            except AllocationError as e:
                logger.warning(f"{action} rejected for league {league_id}: {e}")
                raise

            try:
                committed = self.store.commit(
                    league_id, result.patch, snapshot.version,
                    on_commit=self._log_writer(league_id, result.patch.transactions),
                )
            except ConcurrencyConflict as e:
                if attempt == attempts:
                    logger.error(f"{action} abandoned after {attempts} attempts: {e}")
                    raise
                logger.warning(f"{action} conflicted (attempt {attempt}/{attempts}), retrying: {e}")
                continue

            if not result.patch.is_empty:
                logger.info(f"{action} committed for league {league_id} at version {committed.version}")
            return replace(result, snapshot=committed)

    # ===== Reads =====

    def get_snapshot(self, league_id: str) -> LeagueSnapshot:
        return self.store.read(league_id)

    def auction_status(self, league_id: str) -> dict:
        return auction.describe_auction(self.store.read(league_id))

    def team_summary(self, league_id: str) -> pd.DataFrame:
        return get_team_summary(self.store.read(league_id))

    def export_transactions(self, league_id: str, output_path: Path) -> int:
        """
        Export the league's transaction log to CSV.

        Returns:
            Number of rows written (0 when logging is disabled or the log is empty)
        """
        if self.log_dir is None:
            logger.warning("Transaction logging is disabled; nothing to export")
            return 0
        return TransactionLog.for_league(self.log_dir, league_id).export_to_csv(output_path)

    # ===== Waiver claims =====

    def submit_claim(
        self,
        league_id: str,
        actor_id: Optional[str],
        team_id: str,
        player_id: str,
        amount: int,
        drop_player_id: Optional[str] = None
    ):
        def compute(snapshot):
            self.authorize_team(snapshot, actor_id, team_id)
            return submit_claim(snapshot, team_id, player_id, amount, drop_player_id, self.clock())
        return self._run(league_id, 'submit_claim', compute)

    def cancel_claim(self, league_id: str, actor_id: Optional[str], team_id: str, submission_order: int):
        def compute(snapshot):
            self.authorize_team(snapshot, actor_id, team_id)
            return cancel_claim(snapshot, team_id, submission_order)
        return self._run(league_id, 'cancel_claim', compute)

    def modify_claim(
        self,
        league_id: str,
        actor_id: Optional[str],
        team_id: str,
        submission_order: int,
        amount: int
    ):
        def compute(snapshot):
            self.authorize_team(snapshot, actor_id, team_id)
            return modify_claim(snapshot, team_id, submission_order, amount)
        return self._run(league_id, 'modify_claim', compute)

    def resolve_waivers(self, league_id: str, actor_id: Optional[str] = None) -> WaiverResolution:
        """
        Resolve every pending claim in the league (commissioner only).

        Returns:
            WaiverResolution whose snapshot is the committed one
        """
        def compute(snapshot):
            self.authorize_commissioner(snapshot, actor_id)
            return resolve_waivers(snapshot, self.clock())
        return self._run(league_id, 'resolve_waivers', compute)

    # ===== Playoff auction =====

    def start_auction(self, league_id: str, actor_id: Optional[str] = None):
        def compute(snapshot):
            self.authorize_commissioner(snapshot, actor_id)
            return auction.start_auction(snapshot)
        return self._run(league_id, 'start_auction', compute)

    def nominate(self, league_id: str, actor_id: Optional[str], team_id: str, player_id: str):
        def compute(snapshot):
            self.authorize_team(snapshot, actor_id, team_id)
            return auction.nominate(snapshot, team_id, player_id, self.clock())
        return self._run(league_id, 'nominate', compute)

    def bid(self, league_id: str, actor_id: Optional[str], team_id: str, amount: int):
        def compute(snapshot):
            self.authorize_team(snapshot, actor_id, team_id)
            return auction.bid(snapshot, team_id, amount, self.clock())
        return self._run(league_id, 'bid', compute)

    def pass_team(self, league_id: str, actor_id: Optional[str], team_id: str):
        def compute(snapshot):
            self.authorize_team(snapshot, actor_id, team_id)
            return auction.pass_team(snapshot, team_id, self.clock())
        return self._run(league_id, 'pass', compute)

    def reset_bid(self, league_id: str, actor_id: Optional[str] = None):
        def compute(snapshot):
            self.authorize_commissioner(snapshot, actor_id)
            return auction.reset_bid(snapshot, self.clock())
        return self._run(league_id, 'reset_bid', compute)

    def restart_auction(self, league_id: str, actor_id: Optional[str] = None):
        def compute(snapshot):
            self.authorize_commissioner(snapshot, actor_id)
            return auction.restart(snapshot)
        return self._run(league_id, 'restart', compute)

    def settle(self, league_id: str):
        return self._run(league_id, 'settle', lambda snapshot: auction.settle(snapshot, self.clock()))
