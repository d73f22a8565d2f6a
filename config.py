"""
Configuration settings for the Bulls & Cows lobby server.

This module centralizes all configuration constants and environment variables
to make the application easier to configure and maintain.
"""

import os
import string
from typing import List

# =============================================================================
# Game Settings
# =============================================================================

CODE_LENGTH: int = 4
"""Number of symbols in a secret code or guess."""

CODE_ALPHABET: str = string.digits
"""Symbols a code may be built from. Leading zeros are allowed."""

MAX_LOBBY_SIZE: int = 2
"""Maximum number of participants per lobby."""

# =============================================================================
# Server Settings
# =============================================================================

DEBUG: bool = os.environ.get('DEBUG', 'false').lower() == 'true'
"""Enable debug mode. Set DEBUG=true in environment for development."""

HOST: str = os.environ.get('HOST', '0.0.0.0')
"""Host address to bind the server."""

PORT: int = int(os.environ.get('PORT', '4000'))
"""Port number for the server."""

SECRET_KEY: str = os.environ.get('SECRET_KEY', 'dev-secret-key-change-in-production')
"""Flask secret key for session management."""

VERSION: str = '1.0.0'
"""Version reported by the health endpoint."""

# =============================================================================
# CORS Settings
# =============================================================================

def get_cors_origins() -> List[str]:
    """
    Get allowed CORS origins from environment.

    Returns:
        List of allowed origin URLs, or ['*'] if not configured.
    """
    origins = os.environ.get('CORS_ORIGINS', '')
    if not origins:
        return ['*']
    return [o.strip() for o in origins.split(',') if o.strip()]

CORS_ORIGINS: List[str] = get_cors_origins()
"""List of allowed CORS origins for Socket.IO connections."""

# =============================================================================
# Logging Settings
# =============================================================================

LOG_LEVEL: str = os.environ.get('LOG_LEVEL', 'DEBUG' if DEBUG else 'INFO')
"""Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

LOG_FORMAT: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
"""Format string for log messages."""
