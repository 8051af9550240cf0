"""
devsecrets - Shell Profile Manager

Hooks devsecrets into ~/.bashrc, and into ~/.zshrc when it exists: every new shell runs
'devsecrets update' and then sources the generated environment script.
Only lines carrying the devsecrets tag are ever removed.
"""

import shlex
import shutil
import sys
from pathlib import Path
from typing import Optional

from .run_context import RunContext

PROFILE_TAG = "# devsecrets"
STARTUP_FILES = (".bashrc", ".zshrc")
# Created when missing; the others are only updated if present
DEFAULT_STARTUP_FILE = ".bashrc"


class ShellProfileError(Exception):
  """Shell startup file related errors."""

  pass


def devsecrets_command() -> str:
  """Command line that starts devsecrets from a shell."""
  executable = shutil.which("devsecrets")
  if executable:
    return shlex.quote(executable)
  return f"{shlex.quote(sys.executable)} -m devsecrets"


class ShellProfileManager:
  """Adds or refreshes the devsecrets lines in shell startup files."""

  def __init__(self, context: RunContext) -> None:
    self.context = context
    self.logger = context.get_logger(name="shell_profile", component="setup")

  def startup_lines(self, input_file: Path, env_file: Path, command: Optional[str] = None) -> list[str]:
    command = command or devsecrets_command()
    env = shlex.quote(str(env_file))
    return [
      f"{command} update --input-file {shlex.quote(str(input_file))} --env-file {env}  {PROFILE_TAG}",
      f"[ -f {env} ] && source {env}  {PROFILE_TAG}",
    ]

  def update_startup_file(self, startup_file: Path, lines: list[str]) -> None:
    """
    Replace previously tagged lines in startup_file with lines.

    Raises:
        ShellProfileError: If the file cannot be read or written
    """
    try:
      existing = startup_file.read_text(encoding="utf-8").splitlines() if startup_file.exists() else []
      kept = [line for line in existing if not line.rstrip().endswith(PROFILE_TAG)]
      startup_file.write_text("\n".join([*kept, *lines]) + "\n", encoding="utf-8")
    except OSError as e:
      raise ShellProfileError(f"Cannot update {startup_file}: {e}") from None
    self.logger.info(f"Updated {startup_file}")

  def setup(self, home: Optional[Path] = None, command: Optional[str] = None) -> list[Path]:
    """
    Hook devsecrets into .bashrc and any other existing startup file under home.

    Returns:
        The startup files that were updated

    Raises:
        ShellProfileError: If no input file is configured or a file cannot be written
    """
    input_file = self.context.config.get_input_file()
    if input_file is None:
      raise ShellProfileError("--input-file must be set")

    home = home or Path.home()
    lines = self.startup_lines(input_file.resolve(), self.context.config.get_env_file(), command)
    updated = []
    for name in STARTUP_FILES:
      startup_file = home / name
      if name != DEFAULT_STARTUP_FILE and not startup_file.exists():
        self.logger.debug(f"Skipping {startup_file}, it does not exist")
        continue
      self.update_startup_file(startup_file, lines)
      updated.append(startup_file)
    return updated
