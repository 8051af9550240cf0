import json
import re
from typing import Any


class UtilsError(Exception):
  """Parsing and validation helper errors."""

  pass


# GitLab personal access tokens
GITLAB_PAT_REGEX = re.compile(r"glpat-[0-9a-zA-Z_\-]{20}")

# GitHub classic, OAuth, user-to-server, server-to-server, refresh and fine grained tokens
GITHUB_PAT_REGEX = re.compile(r"(?:gh[pousr]_[a-zA-Z0-9]{36}|github_pat_[a-zA-Z0-9]{22}_[a-zA-Z0-9]{59})")

ENV_NAME_REGEX = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class CommonUtils:
  """
  Utility class for parsing JSON, validating names and scrubbing output.

  Every string that may end up on the console or in a log file is expected
  to go through hide_pat first.
  """

  @staticmethod
  def parse_json(source: str, json_str: str) -> Any:
    """Parse JSON, naming the source in the error."""
    try:
      return json.loads(json_str)
    except json.JSONDecodeError as e:
      raise UtilsError(f"Invalid {source} JSON: {e}") from None

  @staticmethod
  def _mask_token(match: re.Match) -> str:
    token = match.group(0)
    if token.startswith("github_pat_"):
      prefix = "github_pat_"
    elif token.startswith("glpat-"):
      prefix = "glpat-"
    else:
      prefix = token[:4]
    return f"{prefix}{'*' * 10}{token[-4:]}"

  @staticmethod
  def hide_pat(text: Any) -> Any:
    """
    Mask every GitLab or GitHub access token found in text.

    Non-string values are returned unchanged so callers can pass anything
    they would otherwise format.

    Args:
        text: Text that may contain a token

    Returns:
        The text with each token reduced to its prefix and last four characters
    """
    if not isinstance(text, str):
      return text
    text = GITLAB_PAT_REGEX.sub(CommonUtils._mask_token, text)
    return GITHUB_PAT_REGEX.sub(CommonUtils._mask_token, text)

  @staticmethod
  def args_to_string(command: str, args: list[str]) -> str:
    """
    Render a command line so it can be copied into a terminal.

    Arguments containing spaces are wrapped in double quotes. For bash -c
    invocations only the script itself is returned.
    """
    if command == "bash" and len(args) >= 2 and args[0] == "-c":
      return args[1]
    parts = [command]
    for arg in args:
      parts.append(f'"{arg}"' if " " in arg else arg)
    return " ".join(parts)

  @staticmethod
  def is_valid_env_name(name: Any) -> bool:
    """
    Validate a shell environment variable name.
    Must start with a letter or underscore, contain only alphanumerics/underscores.
    """
    if not name or not isinstance(name, str):
      return False
    return ENV_NAME_REGEX.match(name) is not None
