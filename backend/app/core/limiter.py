"""Rate limiter singleton — import from here to avoid circular deps.

Guards the manual SLA trigger so an over-eager caller cannot stack sweeps.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)
