"""
api/limiter.py -- The process-wide slowapi limiter.

Its one decorator limit today guards POST /api/v1/auth/login with
LOGIN_RATE_LIMIT (default 10/minute per client address), so password guessing
is capped by how many attempts a caller may make per minute. api/main.py
mounts it with SlowAPIMiddleware; tests call limiter.reset() between cases.

Counters live in process memory: every worker keeps its own, and a restart
clears them.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")
