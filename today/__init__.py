"""
today Core Module
=================

Provides the core functionality for today including:
- Type definitions and data structures
- Configuration management
- Commit selection
- Repository scanning and aggregation
- Multi-format output

Version: 1.0.0
"""

__version__ = "1.0.0"

# Errors
from .exceptions import (
    TodayError,
    InvalidPathError,
    NotTrackedError,
    RepositoryOpenError,
    HistoryUnavailableError,
    WalkError,
)

# Type definitions
from .types import (
    Commit,
    SelectionCriteria,
    OrderingPolicy,
    ErrorPolicy,
    DirectoryResult,
    RunResult,
)

# Configuration management
from .config import (
    SelectionConfig,
    OutputConfig,
    LoggingConfig,
    TodayConfig,
)

# Commit selection engine
from .selection import (
    select_messages,
    contains_author,
    first_line,
)

# Repository scanner
from .scanner import (
    RepositoryScanner,
    aggregate,
    base_directory_name,
)

# Output rendering
from .exporter import (
    Exporter,
)

__all__ = [
    # Version
    "__version__",
    # Errors
    "TodayError",
    "InvalidPathError",
    "NotTrackedError",
    "RepositoryOpenError",
    "HistoryUnavailableError",
    "WalkError",
    # Types
    "Commit",
    "SelectionCriteria",
    "OrderingPolicy",
    "ErrorPolicy",
    "DirectoryResult",
    "RunResult",
    # Config
    "SelectionConfig",
    "OutputConfig",
    "LoggingConfig",
    "TodayConfig",
    # Selection
    "select_messages",
    "contains_author",
    "first_line",
    # Scanner
    "RepositoryScanner",
    "aggregate",
    "base_directory_name",
    # Exporter
    "Exporter",
]
