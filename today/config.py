"""
Configuration management system for today.

Provides YAML-based configuration with environment variable overrides,
automatic config file discovery, and sensible defaults.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from gitlog.date_utils import parse_duration

logger = logging.getLogger(__name__)

DEFAULT_SINCE = "12h"
DEFAULT_EMPTY_MESSAGE = "There are no messages for this directory."
OUTPUT_FORMATS = ("text", "markdown", "json")

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class SelectionConfig:
    """
    Defaults for commit selection, overridable from the command line.

    Attributes:
        since: Lookback window as a duration string (e.g. "12h", "90m")
        short: Only keep the first line of each commit message
        author: Substring filter on the author name ("" = no filtering)
        full_scan: Walk the whole history instead of stopping at the first old commit
    """
    since: str = DEFAULT_SINCE
    short: bool = False
    author: str = ""
    full_scan: bool = False


@dataclass
class OutputConfig:
    """
    Configuration for rendering results.

    Attributes:
        format: Output format (text, markdown, json)
        indent: Prefix for each message line in text output
        empty_message: Shown for a directory without matching commits
    """
    format: str = "text"
    indent: str = "\t"
    empty_message: str = DEFAULT_EMPTY_MESSAGE


@dataclass
class LoggingConfig:
    """
    Configuration for log output.

    Attributes:
        file: Log file path (None = platform default location)
        console_level: Level name for stderr logging when not verbose
    """
    file: Optional[str] = None
    console_level: str = "WARNING"


@dataclass
class TodayConfig:
    """
    Complete today configuration.

    Aggregates all configuration sections and provides methods for
    loading and validating configuration files.
    """
    selection: SelectionConfig = field(default_factory=SelectionConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """
        Check values that would otherwise only fail deep inside a run.

        Raises:
            ValueError: If a value has the wrong type, or the lookback or output format is invalid
        """
        if self.selection.author is None:
            self.selection.author = ""
        for key, value, expected in (
            ("selection.since", self.selection.since, str),
            ("selection.author", self.selection.author, str),
            ("selection.short", self.selection.short, bool),
            ("selection.full_scan", self.selection.full_scan, bool),
            ("output.format", self.output.format, str),
            ("output.indent", self.output.indent, str),
            ("output.empty_message", self.output.empty_message, str),
            ("logging.console_level", self.logging.console_level, str),
        ):
            if not isinstance(value, expected):
                raise ValueError(f"{key} must be a {expected.__name__}, got {value!r}")
        if self.logging.file is not None and not isinstance(self.logging.file, str):
            raise ValueError(f"logging.file must be a path string, got {self.logging.file!r}")

        if parse_duration(self.selection.since).total_seconds() < 0:
            raise ValueError(f"selection.since must not be negative: {self.selection.since}")
        if self.output.format not in OUTPUT_FORMATS:
            raise ValueError(
                f"output.format must be one of {', '.join(OUTPUT_FORMATS)}, got {self.output.format!r}"
            )
        self.get_console_level()

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> TodayConfig:
        """
        Load configuration from a YAML file or discover default config file.

        Args:
            config_path: Explicit path to config file. If None, searches default locations.

        Returns:
            TodayConfig instance with loaded settings

        Raises:
            FileNotFoundError: If explicit config_path is provided but doesn't exist
            ValueError: If the file is not valid YAML or has unknown fields
        """
        if config_path is not None:
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            logger.info(f"Loading configuration from: {config_path}")
            return cls._load_from_file(config_path)

        found_config = cls._find_config_file()
        if found_config:
            logger.info(f"Found configuration file: {found_config}")
            return cls._load_from_file(found_config)

        logger.info("No configuration file found, using defaults")
        return cls._from_dict(cls._apply_env_overrides({}))

    @classmethod
    def _find_config_file(cls) -> Optional[Path]:
        """
        Search for configuration file in default locations.

        Search order:
            1. ./today.yaml
            2. ~/.today/config.yaml
            3. ~/.config/today/config.yaml

        Returns:
            Path to first found config file, or None
        """
        search_paths = [
            Path.cwd() / "today.yaml",
            Path.home() / ".today" / "config.yaml",
            Path.home() / ".config" / "today" / "config.yaml",
        ]

        for path in search_paths:
            if path.exists() and path.is_file():
                logger.debug(f"Found config file at: {path}")
                return path

        logger.debug("No config file found in default locations")
        return None

    @classmethod
    def _load_from_file(cls, config_path: Path) -> TodayConfig:
        """
        Parse YAML configuration file and create config instance.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            TodayConfig instance populated from file
        """
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.error(f"Failed to parse YAML config: {e}")
            raise ValueError(f"Invalid YAML configuration: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Configuration in {config_path} must be a mapping")

        logger.debug(f"Loaded configuration data: {data}")

        config = cls._from_dict(cls._apply_env_overrides(data))
        logger.info("Configuration loaded successfully")
        return config

    @classmethod
    def _from_dict(cls, data: dict) -> TodayConfig:
        try:
            return cls(
                selection=SelectionConfig(**(data.get('selection') or {})),
                output=OutputConfig(**(data.get('output') or {})),
                logging=LoggingConfig(**(data.get('logging') or {})),
            )
        except TypeError as e:
            logger.error(f"Invalid configuration structure: {e}")
            raise ValueError(f"Configuration has invalid fields: {e}") from e

    @classmethod
    def _apply_env_overrides(cls, data: dict) -> dict:
        """
        Override configuration values with environment variables.

        Supported environment variables:
            - TODAY_SINCE: Overrides selection.since
            - TODAY_AUTHOR: Overrides selection.author
            - TODAY_SHORT: Overrides selection.short (1/true/yes/on)
            - TODAY_LOG_FILE: Overrides logging.file

        Args:
            data: Configuration dictionary

        Returns:
            Modified configuration dictionary with env var overrides
        """
        data = dict(data)
        data['selection'] = dict(data.get('selection') or {})
        data['logging'] = dict(data.get('logging') or {})

        if 'TODAY_SINCE' in os.environ:
            data['selection']['since'] = os.environ['TODAY_SINCE']
            logger.debug(f"Applied TODAY_SINCE override: {os.environ['TODAY_SINCE']}")

        if 'TODAY_AUTHOR' in os.environ:
            data['selection']['author'] = os.environ['TODAY_AUTHOR']
            logger.debug(f"Applied TODAY_AUTHOR override: {os.environ['TODAY_AUTHOR']}")

        if 'TODAY_SHORT' in os.environ:
            data['selection']['short'] = os.environ['TODAY_SHORT'].strip().lower() in _TRUE_VALUES
            logger.debug(f"Applied TODAY_SHORT override: {os.environ['TODAY_SHORT']}")

        if 'TODAY_LOG_FILE' in os.environ:
            data['logging']['file'] = os.environ['TODAY_LOG_FILE']
            logger.debug(f"Applied TODAY_LOG_FILE override: {os.environ['TODAY_LOG_FILE']}")

        return data

    def get_log_file(self) -> Optional[Path]:
        """
        Get the configured log file with ~ expansion.

        Returns:
            Path to the log file, or None for the platform default
        """
        if self.logging.file:
            return Path(os.path.expanduser(self.logging.file))
        return None

    def get_console_level(self) -> int:
        level = logging.getLevelName(self.logging.console_level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown logging level: {self.logging.console_level}")
        return level

