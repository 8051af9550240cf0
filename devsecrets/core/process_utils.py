"""
Subprocess execution utilities.

All external programs (gh, git, resolver scripts) are started through
CommandRunner so that every invocation is logged the same way and failures
surface the program's own diagnostic text.
"""

import subprocess
import sys
from dataclasses import dataclass
from typing import Optional

from ..managers.log_manager import ComponentLoggerAdapter
from .common_utils import CommonUtils


class CommandError(Exception):
  """An external command could not be started or exited non-zero."""

  def __init__(self, message: str, returncode: Optional[int] = None, stdout: str = "", stderr: str = "") -> None:
    super().__init__(CommonUtils.hide_pat(message))
    self.returncode = returncode
    self.stdout = stdout
    self.stderr = stderr


@dataclass
class CommandResult:
  """Captured output of a finished command."""

  stdout: str = ""
  stderr: str = ""
  returncode: int = 0


class CommandRunner:
  """
  Runs external commands synchronously.

  There is no timeout: a hung command blocks the caller, which is what a
  developer-facing setup tool wants when a resolver script asks for input.
  """

  def __init__(self, logger: ComponentLoggerAdapter) -> None:
    self.logger = logger

  def _log_command(self, command: str, args: list[str]) -> None:
    self.logger.debug(f"Executing: {CommonUtils.hide_pat(CommonUtils.args_to_string(command, args))}")

  @staticmethod
  def _failure(command: str, args: list[str], returncode: int, stdout: str, stderr: str) -> CommandError:
    # The program's own stderr is more useful than "exit status 1"
    if stderr.strip():
      message = stderr.strip()
    else:
      message = f"'{CommonUtils.args_to_string(command, args)}' exited with status {returncode}"
    return CommandError(message, returncode=returncode, stdout=stdout, stderr=stderr)

  def run(self, command: str, args: list[str], input_text: Optional[str] = None) -> CommandResult:
    """
    Run a command with stdout and stderr captured.

    Args:
        command: Program to execute
        args: Program arguments
        input_text: Optional text written to the program's stdin; when None
          stdin is inherited

    Returns:
        CommandResult with the captured output

    Raises:
        CommandError: If the program cannot be started, exits non-zero or prints invalid UTF-8
    """
    self._log_command(command, args)
    try:
      proc = subprocess.run(
        [command, *args],
        input=input_text,
        capture_output=True,
        text=True,
        encoding="utf-8",
        check=False,
      )
    except OSError as e:
      raise CommandError(f"Failed to execute {command}: {e}") from None
    except UnicodeDecodeError as e:
      raise CommandError(f"Output of {command} is not valid UTF-8: {e}") from None

    if proc.returncode != 0:
      raise self._failure(command, args, proc.returncode, proc.stdout or "", proc.stderr or "")
    return CommandResult(stdout=proc.stdout or "", stderr=proc.stderr or "", returncode=proc.returncode)

  def run_interactive(self, command: str, args: list[str]) -> CommandResult:
    """
    Run a command attached to the user's terminal.

    Nothing is captured; used for flows such as browser based logins that
    need a real TTY.

    Raises:
        CommandError: If the program cannot be started or exits non-zero
    """
    self._log_command(command, args)
    try:
      proc = subprocess.run([command, *args], check=False)
    except OSError as e:
      raise CommandError(f"Failed to execute {command}: {e}") from None

    if proc.returncode != 0:
      raise self._failure(command, args, proc.returncode, "", "")
    return CommandResult(returncode=proc.returncode)

  def run_script(self, script: str) -> CommandResult:
    """
    Run a shell script through bash, echoing its stdout while capturing it.

    stdin and stderr stay attached to the terminal so the script can talk
    to the user.

    Args:
        script: Script path or inline shell code

    Returns:
        CommandResult with the captured stdout

    Raises:
        CommandError: If bash cannot be started, the script exits non-zero or prints invalid UTF-8
    """
    args = ["-c", script]
    self._log_command("bash", args)
    captured: list[str] = []
    try:
      with subprocess.Popen(["bash", *args], stdout=subprocess.PIPE, text=True, encoding="utf-8") as proc:
        assert proc.stdout is not None
        for line in proc.stdout:
          sys.stdout.write(line)
          captured.append(line)
        sys.stdout.flush()
        returncode = proc.wait()
    except OSError as e:
      raise CommandError(f"Failed to execute bash: {e}") from None
    except UnicodeDecodeError as e:
      raise CommandError(f"Output of the script is not valid UTF-8: {e}") from None

    stdout = "".join(captured)
    if returncode != 0:
      raise self._failure("bash", args, returncode, stdout, "")
    return CommandResult(stdout=stdout, returncode=returncode)
