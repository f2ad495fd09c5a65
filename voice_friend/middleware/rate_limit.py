"""
Shared slowapi limiter, keyed by client address.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from voice_friend.config import settings

limiter = Limiter(key_func=get_remote_address)


def chat_rate_limit() -> str:
    # Evaluated per request.
    return f"{settings.RATE_LIMIT_PER_MINUTE}/minute"
