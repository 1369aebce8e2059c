"""Rate limiting shared by every router (slowapi, keyed on client address)."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from carpool.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)

RATE_LIMIT = settings.rate_limit
