"""
Shared slowapi limiter; routers decorate endpoints with it and main.py
installs it on the application.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from odysea.core.settings import get_settings

limiter = Limiter(
    key_func=get_remote_address,
    enabled=get_settings().ENABLE_RATE_LIMITING,
)


def generate_limit() -> str:
    """Per-client limit on itinerary generation, read from settings"""
    return get_settings().RATE_LIMIT_GENERATE
