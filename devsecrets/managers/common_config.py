import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


class CommonConfigError(Exception):
  """Configuration related errors."""

  pass


TRUE_VALUES = ("1", "true", "t", "yes", "y")


@dataclass
class CommonConfig:
  """Common configuration settings."""

  input_file: str = ""
  env_file: str = ""
  verbose: bool = False
  github_api_url: str = ""

  def __post_init__(self) -> None:
    """Initialize from environment variables after dataclass creation."""
    self.input_file = self.input_file or os.getenv("DEVSECRETS_INPUT_FILE", "")
    self.env_file = self.env_file or os.getenv("DEVSECRETS_ENV_FILE", "~/.devsecrets.sh")
    self.verbose = self.verbose or os.getenv("DEVSECRETS_VERBOSE", "").lower() in TRUE_VALUES
    self.github_api_url = (
      self.github_api_url or os.getenv("DEVSECRETS_GITHUB_API_URL", "https://api.github.com")
    ).rstrip("/")

    if not self.github_api_url.startswith(("http://", "https://")):
      raise CommonConfigError(f"DEVSECRETS_GITHUB_API_URL must be an http(s) URL: '{self.github_api_url}'")

  def get_env_file(self) -> Path:
    """
    Get the environment script path.
    Returns:
        Path: Expanded environment script path
    """
    return Path(self.env_file).expanduser()

  def get_input_file(self) -> Optional[Path]:
    """
    Get the manifest path.
    Returns:
        Path: Expanded manifest path, or None when no input file is configured
    """
    return Path(self.input_file).expanduser() if self.input_file else None
