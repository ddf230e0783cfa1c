"""
restructure.core: infrastructure shared by the structuring engine.

Modules:
    config   - RestructureConfiguration and LibraryConfiguration
    logging  - RestructureLogger with MDC support, configure_loggers
    registry - EventEmitter
    stats    - StructuringStatistics tracking
    typing   - Cross-version typing compatibility imports
"""

from . import typing

# Logging
from .logging import (
    RestructureLogger,
    getLogger,
    configure_loggers,
    clear_logs,
    LoggerConfigurator,
    LevelFlag,
)

from .registry import EventEmitter

# Configuration
from .config import (
    RestructureConfiguration,
    LibraryConfiguration,
    PatternConfiguration,
    ConfigConstants,
    DEFAULT_USER_DIR,
)

# Statistics
from .stats import StructuringStatistics, StructuringEvent, PrimitiveExecution

__all__ = [
    "typing",
    "RestructureLogger",
    "getLogger",
    "configure_loggers",
    "clear_logs",
    "LoggerConfigurator",
    "LevelFlag",
    "EventEmitter",
    "RestructureConfiguration",
    "LibraryConfiguration",
    "PatternConfiguration",
    "ConfigConstants",
    "DEFAULT_USER_DIR",
    "StructuringStatistics",
    "StructuringEvent",
    "PrimitiveExecution",
]
