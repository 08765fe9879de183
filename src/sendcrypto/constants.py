"""
Chain and wallet constants shared by all handlers.
"""

from __future__ import annotations

# All supported UTXO chains use 8 decimal places (1 coin = 100_000_000 smallest units)
DEFAULT_DECIMALS = 8

# Fee used when a spend request does not provide one, in smallest units
DEFAULT_FEE = 10_000

# Attempts per provider call before the fallback moves on to the next provider
DEFAULT_PROVIDER_ATTEMPTS = 5

# Attempts of a whole fallback list (1 = run the list once)
DEFAULT_FALLBACK_ATTEMPTS = 1

# Timeout for a single provider HTTP request (seconds)
DEFAULT_RPC_TIMEOUT = 30.0

# Confirmation polling: one tick every 15 seconds, at most one hour of ticks
CONFIRMATION_POLL_INTERVAL = 15.0
CONFIRMATION_MAX_POLLS = 240

# Event names emitted on a TrackedPromise returned by a send
EVENT_TRANSACTION_HASH = "transactionHash"
EVENT_CONFIRMATION = "confirmation"
