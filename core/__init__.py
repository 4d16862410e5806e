"""
Core module providing the process infrastructure.

- Configuration management
- Logging system
- Database connection and collection plugins
- Request pipeline (guards, sanitizer, GraphQL layer)
"""

from .config import Settings, get_settings, load_settings
from .logger import get_logger, initialize_logging_system, logger_manager

__all__ = [
    # Configuration
    'Settings',
    'get_settings',
    'load_settings',

    # Logging
    'get_logger',
    'initialize_logging_system',
    'logger_manager',
]
