"""
devsecrets - Script Writer

Renders resolved secrets into a bash script that can be sourced from
.bashrc/.zshrc, and replaces the script on disk atomically.
"""

import os
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Optional, Union

from ..managers.log_manager import ComponentLoggerAdapter
from .env_state import START_SECRETS_MARKER
from .errors import ScriptWriteError
from .manifest import Secret

SCRIPT_PREAMBLE = """#!/bin/bash

# if we are running in codespaces, we don't load the local environment
if [[ $CODESPACES == true ]]; then
  return 0
fi

"""


def quote_value(value: str) -> str:
  """Wrap a value in double quotes, escaping characters bash would expand."""
  escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("$", "\\$").replace("`", "\\`")
  return f'"{escaped}"'


def render_secret(name: str, value: str, description: str) -> str:
  """Render the comment, assignment and export lines for one secret."""
  if "\n" in value or "\r" in value:
    raise ScriptWriteError(f"Value for {name} spans multiple lines and cannot be written")
  description = " ".join(description.splitlines())
  return f"# {description}\n{name}={quote_value(value)}\nexport {name}\n"


def render_script(secrets: Iterable[Secret]) -> str:
  """
  Render the full environment script.

  The output depends only on the secrets' names, values and descriptions
  and keeps their order.

  Raises:
      ScriptWriteError: If a secret has no resolved value or a value spans lines
  """
  parts = [SCRIPT_PREAMBLE, START_SECRETS_MARKER, "\n"]
  for secret in secrets:
    if secret.resolved_value is None:
      raise ScriptWriteError(f"Secret {secret.environment_variable} has not been resolved")
    parts.append(render_secret(secret.environment_variable, secret.resolved_value, secret.description))
  return "".join(parts)


def write_script_atomically(
  path: Union[str, Path], content: str, logger: Optional[ComponentLoggerAdapter] = None
) -> Path:
  """
  Replace the file at path with content.

  The content goes to a temporary file in the same directory which is then
  renamed over the target, so readers see either the old or the new script.

  Returns:
      The path written

  Raises:
      ScriptWriteError: If the directory or file cannot be written
  """
  target = Path(path).expanduser()
  temp_path = None
  try:
    target.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
      mode="w",
      encoding="utf-8",
      dir=target.parent,
      prefix=f".{target.name}.",
      suffix=".tmp",
      delete=False,
    ) as tmp_file:
      temp_path = tmp_file.name
      tmp_file.write(content)
      tmp_file.flush()
      os.fsync(tmp_file.fileno())
    # Secrets are readable by the owner only
    os.chmod(temp_path, 0o600)
    os.replace(temp_path, target)
  except OSError as e:
    if temp_path:
      try:
        os.unlink(temp_path)
      except OSError:
        pass
    if logger:
      logger.error(f"Failed to write environment script '{target}': {e}")
    raise ScriptWriteError(f"Failed to write environment script '{target}': {e}") from None

  if logger:
    logger.info(f"Wrote environment script {target}")
  return target


def write_script(
  path: Union[str, Path], secrets: Iterable[Secret], logger: Optional[ComponentLoggerAdapter] = None
) -> Path:
  """Render secrets and write them to path atomically."""
  return write_script_atomically(path, render_script(secrets), logger)
