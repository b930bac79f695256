# core/rate_limit.py
# Shared slowapi limiter; routers decorate endpoints with it, main.py registers it on the app.

from slowapi import Limiter
from slowapi.util import get_remote_address

from recipe_hub.core.config import settings

# Keyed on client IP. Tests switch it off with RATE_LIMIT_ENABLED=false.
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)
