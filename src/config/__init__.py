"""
Configuration Management.

Centralized configuration using Pydantic Settings.

Configuration sources (in order of precedence):
1. Environment variables
2. .env file
3. Default values

All sensitive values (API keys, dashboard secret) are loaded from environment
variables and never committed to source control.

Example:
    from src.config import get_settings

    settings = get_settings()
    table = settings.sales_table
"""

from src.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
