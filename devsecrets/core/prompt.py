import getpass

from .errors import PromptCancelledError


def console_prompt(prompt: str) -> str:
  """
  Ask the user for one secret value without echoing it to the terminal.

  The line is returned exactly as typed, without the line terminator.

  Raises:
      PromptCancelledError: On end of input or Ctrl-C
  """
  try:
    return getpass.getpass(prompt)
  except (EOFError, KeyboardInterrupt):
    # Keep the next shell prompt on a clean line
    print()
    raise PromptCancelledError("User cancelled secret input.") from None
