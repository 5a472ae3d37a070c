"""
Shared Flask extension instances.

Created as a separate module to avoid circular imports when route
blueprints need access to extensions that are initialised in server.py.
"""

from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Limiter is created without an app; init_app() in server.py picks up
# RATELIMIT_ENABLED and RATELIMIT_STORAGE_URI from the app config.
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["200 per minute"],
)
