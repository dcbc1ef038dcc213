"""Common utilities for the discordterm client."""
from .config import get_config, configure_logger
from .shell import Shell

__all__ = ['get_config', 'configure_logger', 'Shell']
