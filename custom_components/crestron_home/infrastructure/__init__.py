"""Infrastructure layer for Crestron Home integration.

This package contains core infrastructure components:
- Session management (login, session key TTL, re-login on 401)
- API decorators for GET / POST endpoints
- Error definitions
"""

from .api import api_get, api_post
from .errors import (
    CrestronHomeAPIError,
    CrestronHomeAuthError,
    CrestronHomeCatalogError,
    CrestronHomeConnectionError,
    CrestronHomeError,
    CrestronHomeProtocolError,
    CrestronHomeTimeoutError,
)
from .session import SessionManager

__all__ = [
    # API decorators
    "api_get",
    "api_post",
    # Session
    "SessionManager",
    # Errors
    "CrestronHomeError",
    "CrestronHomeAuthError",
    "CrestronHomeConnectionError",
    "CrestronHomeTimeoutError",
    "CrestronHomeAPIError",
    "CrestronHomeProtocolError",
    "CrestronHomeCatalogError",
]
