"""Rate limiting (slowapi), keyed by client address.

Routes opt in with ``@limiter.limit(settings.rate_limit)``.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)
