#!/usr/bin/env python3
"""Constants for watch-mode polling and backoff.

These constants control how often both clipboards are polled and how the
loop backs off while the peer or the local clipboard is unavailable.
"""

# Delay between polls in seconds when none is configured.
DEFAULT_INTERVAL: float = 0.5

# Lowest accepted poll interval; smaller values are raised to this floor
# so the remote side is not hammered with ssh sessions.
MIN_INTERVAL: float = 0.1

# Retry parameters for exponential backoff after a transient failure.
# Initial delay before the first retry in seconds.
INITIAL_WAIT: float = 1.0

# Maximum delay between retries in seconds.
MAX_WAIT: float = 30.0

# Multiplier for exponential backoff (delay = initial * multiplier^attempt).
WAIT_MULTIPLIER: float = 2.0
