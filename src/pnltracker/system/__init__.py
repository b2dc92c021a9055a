"""
System configuration package.

Provides consolidated system-level configuration and logging.

Exports:
    - SystemConfig: Complete system configuration dataclass
    - LoggerFactory: Factory for creating configured loggers
    - LoggingConfig: Logging configuration model
"""

from pnltracker.system.config import SystemConfig
from pnltracker.system.log_system import LoggerFactory, LoggingConfig

__all__ = [
    "SystemConfig",
    "LoggerFactory",
    "LoggingConfig",
]
