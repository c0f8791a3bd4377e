"""
Append-only transaction log.

Uses JSONL (JSON Lines) format: each line is one AuditTransaction. The log
mirrors the league document's transaction list for auditing and export; it
is only ever appended to after a successful commit.
"""

import csv
import json
import logging
from pathlib import Path
from typing import List, Optional

from ..league_state import AuditTransaction

logger = logging.getLogger(__name__)


class TransactionLog:
    """Append-only JSONL log of audit transactions for one league."""

    def __init__(self, filepath: Path):
        """
        Initialize transaction log.

        Args:
            filepath: Path to JSONL file
        """
        self.filepath = Path(filepath)
        self.filepath.parent.mkdir(parents=True, exist_ok=True)

    @classmethod
    def for_league(cls, base_dir: Path, league_id: str) -> 'TransactionLog':
        return cls(Path(base_dir) / f"transactions_{league_id}.jsonl")

    def append(self, transactions: List[AuditTransaction]) -> None:
        """
        Append transactions to the log.

        Args:
            transactions: Transactions in commit order
        """
        if not transactions:
            return

        with open(self.filepath, 'a', encoding='utf-8') as f:
            for txn in transactions:
                f.write(txn.to_json() + '\n')

        logger.info(f"Appended {len(transactions)} transactions to {self.filepath}")

    def load_all(self) -> List[AuditTransaction]:
        """
        Load every transaction in the log.

        Returns:
            Transactions in append order (empty list if the file doesn't exist)
        """
        if not self.filepath.exists():
            logger.debug(f"Transaction log does not exist: {self.filepath}")
            return []

        transactions = []
        with open(self.filepath, 'r', encoding='utf-8') as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue

                try:
                    transactions.append(AuditTransaction.from_json(line))
                except (json.JSONDecodeError, KeyError, ValueError) as e:
                    logger.error(f"Failed to parse transaction at line {line_num}: {e}")

        return transactions

    def count(self) -> int:
        """Number of transactions without parsing them."""
        if not self.filepath.exists():
            return 0

        with open(self.filepath, 'r', encoding='utf-8') as f:
            return sum(1 for line in f if line.strip())

    def last(self) -> Optional[AuditTransaction]:
        """Most recent transaction, or None if the log is empty."""
        transactions = self.load_all()
        return transactions[-1] if transactions else None

    def export_to_csv(self, output_path: Path) -> int:
        """
        Export the log to CSV, one row per transaction.

        Args:
            output_path: Path for CSV output file

        Returns:
            Number of rows written
        """
        transactions = self.load_all()
        if not transactions:
            logger.warning(f"No transactions to export from {self.filepath}")
            return 0

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow([
                'id', 'type', 'timestamp', 'team_id', 'player_id', 'player_name',
                'bid_amount', 'success', 'failure_reason', 'drop_player_id'
            ])

            for txn in transactions:
                team_id = txn.team_ids[0] if txn.team_ids else ''
                names = txn.metadata.get('player_names', {})
                added = txn.adds.get(team_id, [])
                player_id = added[0] if added else next(iter(names), '')
                dropped = txn.drops.get(team_id, [])
                writer.writerow([
                    txn.transaction_id,
                    txn.type,
                    txn.timestamp.isoformat(),
                    team_id,
                    player_id,
                    names.get(player_id, {}).get('name', ''),
                    txn.metadata.get('bid_amount'),
                    txn.success,
                    txn.metadata.get('failure_reason', ''),
                    dropped[0] if dropped else '',
                ])

        logger.info(f"Exported {len(transactions)} transactions to {output_path}")
        return len(transactions)
