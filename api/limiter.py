"""
api/limiter.py -- The one slowapi Limiter for the whole app.

api/main.py attaches it to app.state and mounts SlowAPIMiddleware;
api/routes/auth.py decorates the login route with @limiter.limit().
Counters live in process memory, which matches the single-process
deployment of the service. A second Limiter instance would keep its own
counters and the login limit would never trip.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://", headers_enabled=False)
