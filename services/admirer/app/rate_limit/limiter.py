"""
Transport-level slowapi throttle.

A coarse per-IP budget applied to every route by SlowAPIMiddleware (mounted
onto app.state in main.py).  The authoritative per-user limits live in
app.rate_limit.service.

Storage: in-memory by default; point RATE_LIMIT_STORAGE_URI at Redis when
running more than one worker.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config import get_settings

_settings = get_settings()

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[_settings.ip_rate_limit],
    storage_uri=_settings.rate_limit_storage_uri,
)
