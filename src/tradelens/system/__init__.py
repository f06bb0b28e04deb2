"""
System configuration package.

One configuration for the whole tool, plus the logging factory.

Exports:
    - SystemConfig: Complete system configuration dataclass
    - AnalyticsConfig: Analytics engine settings
    - get_system_config: Get system config singleton
    - reload_system_config: Force reload system config
    - LoggerFactory: Factory for creating configured loggers
    - LoggingConfig: Logging configuration model
"""

from tradelens.system.config import AnalyticsConfig, SystemConfig, get_system_config, reload_system_config
from tradelens.system.log_system import LoggerFactory, LoggingConfig

__all__ = [
    "AnalyticsConfig",
    "SystemConfig",
    "get_system_config",
    "reload_system_config",
    "LoggerFactory",
    "LoggingConfig",
]
