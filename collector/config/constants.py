"""
Operational constants for the token collector.

Default tunables for scanning, batching and pool discovery.
All of them can be overridden through settings.
"""

# =============================================================================
# BLOCK SCANNING
# =============================================================================

# Blocks scanned on the very first run (no cursor yet). Never a full replay.
COLD_START_WINDOW = 100

# Upper bound of blocks processed in one scan cycle
MAX_BLOCKS_PER_SCAN = 5000

# Blocks per eth_getLogs request
CHUNK_SIZE = 500

# Pause between successful chunks (seconds)
CHUNK_DELAY = 1.0

# Pause after a failed chunk before moving on (seconds)
CHUNK_FAILURE_BACKOFF = 10.0


# =============================================================================
# BATCH PERSISTENCE
# =============================================================================

MAX_BATCH_SIZE = 30

# Backoff between batches (seconds)
INITIAL_BATCH_DELAY = 1.0
BATCH_BACKOFF_FACTOR = 2.0
MAX_BATCH_DELAY = 30.0

# Pause between single-token writes on the fallback path (seconds)
FALLBACK_ITEM_DELAY = 0.2


# =============================================================================
# POOL DISCOVERY
# =============================================================================

# Unchecked tokens processed per pool cycle
POOL_CHECK_LIMIT = 50

# Pause after each token (seconds)
INTER_TOKEN_DELAY = 0.5


# =============================================================================
# RPC
# =============================================================================

BLOCKCHAIN_TIMEOUT = 30.0  # Standard RPC calls (get_transaction, eth_call)
BLOCKCHAIN_LONG_TIMEOUT = 120.0  # eth_getLogs over a chunk
BLOCKCHAIN_EXECUTOR_WORKERS = 4


# =============================================================================
# SCHEDULING
# =============================================================================

SCAN_INTERVAL_SECONDS = 60
POOL_CHECK_INTERVAL_MINUTES = 30

# Max wait for running cycles to reach a stop checkpoint on shutdown (seconds)
SHUTDOWN_TIMEOUT = 30.0
