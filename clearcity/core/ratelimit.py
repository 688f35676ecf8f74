# File: clearcity/core/ratelimit.py
# Project: clearcity-api

from slowapi import Limiter
from slowapi.util import get_remote_address
from clearcity.core.config import settings

AUTH_LIMIT = "10/minute"
SUBMIT_LIMIT = "10/minute"

limiter = Limiter(key_func=get_remote_address)
# slowapi reads RATELIMIT_ENABLED from the environment itself without casting
# "false" to a bool, so the parsed setting is applied afterwards.
limiter.enabled = settings.ratelimit_enabled
