"""
devsecrets - Environment State Reader

Reads back the values a previous run wrote to the environment script.
Everything before the secrets marker is shell preamble and is ignored.
"""

from pathlib import Path
from typing import Union

from .common_utils import CommonUtils
from .errors import DuplicateKeyError, EnvStateReadError, MalformedEnvLineError

START_SECRETS_MARKER = "# START SECRETS"

# Characters escaped with a backslash inside double quotes
_ESCAPES = {"\\": "\\", '"': '"', "$": "$", "`": "`"}


def unquote_value(value: str) -> str:
  """
  Strip shell quoting from a value.

  Double quoted values have backslash escapes for \\ " $ and ` undone;
  single quoted values are taken literally; anything else is returned as is.
  """
  if len(value) >= 2 and value[0] == value[-1] == "'":
    return value[1:-1]
  if len(value) < 2 or value[0] != '"' or value[-1] != '"':
    return value

  inner = value[1:-1]
  result = []
  i = 0
  while i < len(inner):
    char = inner[i]
    if char == "\\" and i + 1 < len(inner) and inner[i + 1] in _ESCAPES:
      result.append(inner[i + 1])
      i += 2
      continue
    result.append(char)
    i += 1
  return "".join(result)


def parse_env_state(content: str, source: str = "environment script") -> dict[str, str]:
  """
  Parse the secrets section of an environment script.

  Args:
      content: Script text
      source: Name used in error messages

  Returns:
      Mapping of variable name to value

  Raises:
      MalformedEnvLineError: If a line after the marker is not KEY=VALUE
      DuplicateKeyError: If a key appears twice
  """
  secrets: dict[str, str] = {}
  in_secrets = False

  # Lines end at \n only; other separators str.splitlines() knows may appear in values
  for line_number, raw_line in enumerate(content.split("\n"), start=1):
    line = raw_line.strip()
    if line == START_SECRETS_MARKER:
      in_secrets = True
      continue
    if not in_secrets:
      continue
    # Skip blank lines, comments and export statements
    if not line or line.startswith("#") or line.startswith("export "):
      continue

    key, sep, value = line.partition("=")
    key = key.strip()
    if not sep or not CommonUtils.is_valid_env_name(key):
      raise MalformedEnvLineError(f"{source}:{line_number}: expected KEY=VALUE, got: {CommonUtils.hide_pat(line)}")
    if key in secrets:
      raise DuplicateKeyError(f"{source}:{line_number}: duplicate key '{key}'")
    secrets[key] = unquote_value(value.strip())

  return secrets


def read_env_state(path: Union[str, Path]) -> dict[str, str]:
  """
  Read the environment script at path.

  A missing file is a first run and yields an empty mapping.

  Raises:
      EnvStateReadError: If the file cannot be read or is not valid UTF-8
      MalformedEnvLineError, DuplicateKeyError: If the secrets section is invalid
  """
  script_path = Path(path).expanduser()
  try:
    content = script_path.read_text(encoding="utf-8")
  except FileNotFoundError:
    return {}
  except (OSError, UnicodeDecodeError) as e:
    raise EnvStateReadError(f"Cannot read environment script {script_path}: {e}") from None
  return parse_env_state(content, source=str(script_path))
