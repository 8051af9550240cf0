"""
devsecrets - Logging Configuration

Centralized logging for the devsecrets CLI.
Provides rotating file logging, optional console output, component
identification and access-token redaction on every record.
"""

import logging
import logging.handlers
import os
import sys
from collections.abc import MutableMapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from ..core.common_utils import CommonUtils


@dataclass
class DevSecretsLoggerConfig:
  """Logger settings."""

  log_dir: str
  log_level: str
  log_file: str

  def __post_init__(self) -> None:
    """Initialize from environment variables after dataclass creation."""
    self.log_dir = os.path.expanduser(os.getenv("DEVSECRETS_LOG_DIR", self.log_dir))
    self.log_level = os.getenv("DEVSECRETS_LOG_LEVEL", self.log_level)


class RedactingFormatter(logging.Formatter):
  """Formatter that masks access tokens after the record is rendered."""

  def format(self, record: logging.LogRecord) -> str:
    return CommonUtils.hide_pat(super().format(record))


class ComponentLoggerAdapter(logging.LoggerAdapter):
  """
  Logger adapter that adds component information to log records.

  This allows us to identify which part of the reconciliation run generated
  each log message.
  """

  def __init__(self, logger: logging.Logger, component: str) -> None:
    """
    Initialize the adapter with a component name.

    Args:
        logger: The underlying logger instance
        component: Component identifier (e.g., 'manifest', 'resolver', 'github')
    """
    super().__init__(logger, {"component": component})
    self.component = component

  def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
    """Process the log record to include component information."""
    if "extra" not in kwargs:
      kwargs["extra"] = {}
    kwargs["extra"]["component"] = self.component
    return msg, kwargs


class DevSecretsLogger:
  """
  Logging manager for devsecrets.

  Handles setup, configuration, and creation of component-aware loggers.
  """

  DEFAULT_LOG_DIR = "~/.devsecrets/logs"
  DEFAULT_LOG_FILE = "devsecrets.log"
  DEFAULT_LOG_LEVEL = "INFO"
  DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10MB
  DEFAULT_BACKUP_COUNT = 5

  LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(component)s] - [%(filename)s:%(lineno)d] - %(message)s"
  DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

  def __init__(
    self,
    log_file: Optional[str] = None,
    log_level: Optional[str] = None,
  ):
    """
    Initialize the logging manager.

    Args:
        log_file: File name for log files (default: devsecrets.log)
        log_level: Overrides DEVSECRETS_LOG_LEVEL when given
    """
    config = DevSecretsLoggerConfig(
      log_dir=self.DEFAULT_LOG_DIR,
      log_level=self.DEFAULT_LOG_LEVEL,
      log_file=log_file or self.DEFAULT_LOG_FILE,
    )
    self.log_level = (log_level or config.log_level).upper()
    self.log_dir = config.log_dir
    self.log_file = config.log_file
    self.console_output = False
    self._base_logger: Optional[logging.Logger] = None
    self._logger_cache: dict[str, ComponentLoggerAdapter] = {}

    self._setup_logging()

  def _setup_logging(self) -> None:
    """Set up the base logging configuration."""
    level = getattr(logging, self.log_level, logging.INFO)
    formatter = RedactingFormatter(self.LOG_FORMAT, self.DATE_FORMAT)

    self._base_logger = logging.getLogger("devsecrets")
    self._base_logger.setLevel(level)

    # Clear existing handlers to avoid duplicates
    self._base_logger.handlers.clear()

    try:
      Path(self.log_dir).mkdir(parents=True, exist_ok=True, mode=0o700)

      file_handler = logging.handlers.RotatingFileHandler(
        self.log_file_path,
        maxBytes=self.DEFAULT_MAX_BYTES,
        backupCount=self.DEFAULT_BACKUP_COUNT,
        mode="a",
      )
      file_handler.setLevel(level)
      file_handler.setFormatter(formatter)
      self._base_logger.addHandler(file_handler)
    except (PermissionError, OSError) as e:
      print(f"Error setting up file logging: {e}", file=sys.stderr)
      # Fall back to console only
      self.add_console_output()

    self._base_logger.propagate = False

  def get_logger(self, name: Optional[str], component: Optional[str]) -> ComponentLoggerAdapter:
    """
    Get a logger instance with the specified name and component.

    Args:
        name: Logger name (will be prefixed with devsecrets if not already)
        component: Component identifier (default: 'system')

    Returns:
        ComponentLoggerAdapter instance
    """
    if not name:
      name = "devsecrets"
    if not component:
      component = "system"

    cache_key = f"{name}:{component}"
    if cache_key in self._logger_cache:
      return self._logger_cache[cache_key]

    logger_name = name if name == "devsecrets" or name.startswith("devsecrets.") else f"devsecrets.{name}"
    component_logger = ComponentLoggerAdapter(logging.getLogger(logger_name), component)

    self._logger_cache[cache_key] = component_logger
    return component_logger

  def add_console_output(self) -> None:
    """Add console output to the logger if not already present."""
    if not self.console_output and self._base_logger:
      console_handler = logging.StreamHandler(sys.stderr)
      console_handler.setFormatter(RedactingFormatter(self.LOG_FORMAT, self.DATE_FORMAT))
      console_handler.setLevel(self._base_logger.level)
      self._base_logger.addHandler(console_handler)
      self.console_output = True

  @property
  def base_logger(self) -> logging.Logger:
    """Get the base logger instance."""
    if self._base_logger is None:
      raise RuntimeError("Logger not initialized")
    return self._base_logger

  @property
  def log_file_path(self) -> Path:
    """Get the current log file path."""
    return Path(self.log_dir) / self.log_file
