"""
devsecrets - Manifest Loader

Parses the JSON manifest listing the secrets a repository needs:

  {
    "options": {"useGitHubUserSecrets": true},
    "secrets": [
      {"environmentVariable": "API_KEY", "description": "...", "shellscript": "./get-key.sh"}
    ]
  }
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

from .common_utils import CommonUtils, UtilsError
from .errors import ManifestNotFoundError, ManifestParseError


@dataclass(frozen=True, order=True)
class FreshnessToken:
  """Comparable file modification time in nanoseconds."""

  mtime_ns: int

  @classmethod
  def for_path(cls, path: Path) -> Optional["FreshnessToken"]:
    """Token for an existing file, None if the file does not exist or cannot be inspected."""
    try:
      return cls(os.stat(path).st_mtime_ns)
    except OSError:
      return None


@dataclass
class Secret:
  """One required secret and, once resolved, its value for this run."""

  environment_variable: str
  description: str = ""
  resolver_command: str = ""
  resolved_value: Optional[str] = None

  @property
  def is_resolved(self) -> bool:
    return self.resolved_value is not None


@dataclass
class Manifest:
  """Parsed manifest."""

  use_remote_secret_store: bool = False
  secrets: list[Secret] = field(default_factory=list)

  def names(self) -> list[str]:
    return [s.environment_variable for s in self.secrets]


def _parse_secret(index: int, raw: Any) -> Secret:
  if not isinstance(raw, dict):
    raise ManifestParseError(f"secrets[{index}] must be an object")

  name = raw.get("environmentVariable")
  if not CommonUtils.is_valid_env_name(name):
    raise ManifestParseError(f"secrets[{index}].environmentVariable is not a valid variable name: {name!r}")

  description = raw.get("description", "")
  if not isinstance(description, str):
    raise ManifestParseError(f"secrets[{index}].description must be a string")

  resolver_command = raw.get("shellscript", "")
  if not isinstance(resolver_command, str):
    raise ManifestParseError(f"secrets[{index}].shellscript must be a string")

  return Secret(environment_variable=name, description=description, resolver_command=resolver_command.strip())


def parse_manifest(content: str, source: str = "manifest") -> Manifest:
  """
  Parse manifest JSON text.

  Args:
      content: Raw JSON
      source: Name used in error messages

  Returns:
      Manifest

  Raises:
      ManifestParseError: If the content is not valid JSON or does not match the schema
  """
  try:
    data = CommonUtils.parse_json(source, content)
  except UtilsError as e:
    raise ManifestParseError(str(e)) from None

  if not isinstance(data, dict):
    raise ManifestParseError(f"{source} must contain a JSON object")

  options = data.get("options", {})
  if options is None:
    options = {}
  if not isinstance(options, dict):
    raise ManifestParseError(f"{source}: 'options' must be an object")
  use_remote = options.get("useGitHubUserSecrets", False)
  if not isinstance(use_remote, bool):
    raise ManifestParseError(f"{source}: 'options.useGitHubUserSecrets' must be a boolean")

  raw_secrets = data.get("secrets", [])
  if not isinstance(raw_secrets, list):
    raise ManifestParseError(f"{source}: 'secrets' must be a list")

  secrets: list[Secret] = []
  seen: set[str] = set()
  for index, raw in enumerate(raw_secrets):
    secret = _parse_secret(index, raw)
    if secret.environment_variable in seen:
      raise ManifestParseError(f"{source}: duplicate environmentVariable '{secret.environment_variable}'")
    seen.add(secret.environment_variable)
    secrets.append(secret)

  return Manifest(use_remote_secret_store=use_remote, secrets=secrets)


def load_manifest(path: Optional[Union[str, Path]]) -> tuple[Manifest, FreshnessToken]:
  """
  Load the manifest and its freshness token.

  Args:
      path: Manifest file path

  Returns:
      (Manifest, FreshnessToken)

  Raises:
      ManifestNotFoundError: If path is empty or the file does not exist
      ManifestParseError: If the content is invalid
  """
  if path is None or not str(path).strip():
    raise ManifestNotFoundError("No manifest given; set --input-file or DEVSECRETS_INPUT_FILE")

  manifest_path = Path(path).expanduser()
  if not manifest_path.is_file():
    raise ManifestNotFoundError(f"Manifest not found: {manifest_path}")

  try:
    content = manifest_path.read_text(encoding="utf-8")
    token = FreshnessToken(os.stat(manifest_path).st_mtime_ns)
  except FileNotFoundError:
    raise ManifestNotFoundError(f"Manifest not found: {manifest_path}") from None
  except (OSError, UnicodeDecodeError) as e:
    raise ManifestParseError(f"Cannot read {manifest_path}: {e}") from None

  return parse_manifest(content, source=str(manifest_path)), token
