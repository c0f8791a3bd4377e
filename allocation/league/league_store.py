"""
League document storage with optimistic concurrency.

A store holds one document per league (teams, players, auction state and the
league-level transaction list). Callers read a snapshot, compute a patch with
the pure engine, and commit the patch conditioned on the snapshot's version.
A commit against a stale version raises ConcurrencyConflict and writes
nothing; a successful commit applies the whole patch and bumps the version.
"""

import json
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..exceptions import ConcurrencyConflict, LeagueNotFoundError, StructuralError
from ..league_state import LeagueSnapshot
from ..state_patch import StatePatch, apply_patch

logger = logging.getLogger(__name__)


class LeagueStore(ABC):
    """Document store contract used by the AllocationService."""

    def __init__(self):
        self._lock = threading.Lock()

    @abstractmethod
    def _load(self, league_id: str) -> dict:
        """Return the raw league document or raise LeagueNotFoundError."""

    @abstractmethod
    def _write(self, league_id: str, document: dict) -> None:
        """Persist a full league document."""

    @abstractmethod
    def list_leagues(self) -> List[str]:
        """Ids of every stored league."""

    def read(self, league_id: str) -> LeagueSnapshot:
        """
        Read the current snapshot of a league.

        Raises:
            LeagueNotFoundError: If the league does not exist
            StructuralError: If the stored document cannot be parsed
        """
        document = self._load(league_id)
        try:
            snapshot = LeagueSnapshot.from_dict(document)
        except (KeyError, TypeError, ValueError) as e:
            raise StructuralError(f"League {league_id} document is malformed: {e}") from e
        snapshot.validate()
        return snapshot

    def save(self, snapshot: LeagueSnapshot) -> LeagueSnapshot:
        """
        Create or overwrite a league document unconditionally.

        Used for imports and fixtures; transitions go through commit().
        """
        snapshot.validate()
        with self._lock:
            self._write(snapshot.league_id, snapshot.to_dict())
        logger.info(f"Saved league {snapshot.league_id} at version {snapshot.version}")
        return snapshot

    def commit(
        self,
        league_id: str,
        patch: StatePatch,
        expected_version: int,
        on_commit: Optional[Callable[[LeagueSnapshot], None]] = None
    ) -> LeagueSnapshot:
        """
        Apply a patch atomically if the league is still at `expected_version`.

        Args:
            league_id: League to update
            patch: Changes computed from the snapshot at expected_version
            expected_version: Version of the snapshot the patch was computed from
            on_commit: Called with the committed snapshot while the store lock
                is still held, so side effects (the transaction log) follow
                commit order. Not called for an empty patch.

        Returns:
            Committed snapshot (version incremented), or the current snapshot
            unchanged when the patch is empty

        Raises:
            ConcurrencyConflict: If the league changed since expected_version
        """
        with self._lock:
            current = self.read(league_id)
            if current.version != expected_version:
                raise ConcurrencyConflict(league_id, expected_version, current.version)

            if patch.is_empty:
                return current

            committed = replace(apply_patch(current, patch), version=current.version + 1)
            committed.validate()
            self._write(league_id, committed.to_dict())
            if on_commit is not None:
                on_commit(committed)

        logger.debug(
            f"Committed league {league_id} v{committed.version}: "
            f"{len(patch.teams)} teams, {len(patch.transactions)} transactions"
        )
        return committed


class JsonFileLeagueStore(LeagueStore):
    """One JSON document per league under a directory."""

    def __init__(self, base_dir: Path):
        """
        Initialize file store.

        Args:
            base_dir: Directory holding {league_id}.json documents
        """
        super().__init__()
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, league_id: str) -> Path:
        return self.base_dir / f"{league_id}.json"

    def _load(self, league_id: str) -> dict:
        filepath = self._path(league_id)
        if not filepath.exists():
            raise LeagueNotFoundError(f"League not found: {league_id}")

        with open(filepath, 'r', encoding='utf-8') as f:
            try:
                return json.load(f)
            except json.JSONDecodeError as e:
                raise StructuralError(f"League {league_id} document is not valid JSON: {e}") from e

    def _write(self, league_id: str, document: dict) -> None:
        filepath = self._path(league_id)

        # Atomic write: write to temp file, then rename
        temp_path = filepath.with_suffix('.tmp')
        with open(temp_path, 'w', encoding='utf-8') as f:
            json.dump(document, f, indent=2)

        temp_path.replace(filepath)

    def list_leagues(self) -> List[str]:
        return sorted(p.stem for p in self.base_dir.glob('*.json'))


class InMemoryLeagueStore(LeagueStore):
    """Dict-backed store; documents are kept serialized so reads never share state."""

    def __init__(self):
        super().__init__()
        self._documents: Dict[str, str] = {}

    def _load(self, league_id: str) -> dict:
        if league_id not in self._documents:
            raise LeagueNotFoundError(f"League not found: {league_id}")
        return json.loads(self._documents[league_id])

    def _write(self, league_id: str, document: dict) -> None:
        self._documents[league_id] = json.dumps(document)

    def list_leagues(self) -> List[str]:
        return sorted(self._documents)
