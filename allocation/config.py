"""
Configuration constants for the league player-allocation engine.

Values here are league defaults. A league document may override the roster
and playoff settings through its own `settings` block.
"""

# League Settings
DEFAULT_FAAB_BUDGET = 1000
DEFAULT_TEAMS_LIMIT = 12

# Roster Construction
ROSTER_SLOTS = {
    'captain': 1,
    'na': 5,
    'br_latam': 1,
    'flex': 3,
    'bench': 2,
}

# Roster capacity is the sum of every configured slot
ROSTER_SIZE = sum(ROSTER_SLOTS.values())  # 12

# ===== WAIVER CONFIGURATION =====

MINIMUM_CLAIM_BID = 1

# Failure reasons recorded on lost claims and their audit transactions
REASON_ALREADY_CLAIMED = 'already claimed'
REASON_INSUFFICIENT_BUDGET = 'insufficient budget'
REASON_DROP_NOT_ON_ROSTER = 'drop target not on roster'
REASON_ROSTER_LIMIT = 'roster would exceed limit'
REASON_INVALID_AMOUNT = 'invalid bid amount'

# Display defaults for players missing from the player pool
UNKNOWN_PLAYER_NAME = 'Unknown Player'
UNKNOWN_PLAYER_REGION = 'Unknown Region'

# ===== PLAYOFF AUCTION CONFIGURATION =====

PLAYOFF_TEAMS = 8
POINTS_PER_PLAYOFF_DOLLAR = 10

# Playoff roster slots; None in a league document disables the capacity check
PLAYOFF_ROSTER_SLOTS = {
    'captain': 1,
    'na': 1,
    'br_latam': 1,
    'flex': 3,
}

# ===== STORAGE CONFIGURATION =====

LEAGUE_STORE_DIR = 'data/leagues'
TRANSACTION_LOG_DIR = 'data/transactions'
EXPORT_DIR = 'data/exports'

# Optimistic concurrency: re-read and recompute this many times on conflict
MAX_COMMIT_RETRIES = 3

# ===== API SERVER CONFIGURATION =====

API_HOST = '127.0.0.1'
API_PORT = 8000

# Logging
LOG_LEVEL = 'INFO'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
