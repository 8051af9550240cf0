"""
devsecrets - Value Resolver

Gives every secret in the manifest a value, trying in order:

  1. the value already persisted in the environment script
  2. the last non-blank output line of the secret's resolver command
  3. an interactive prompt

Existing values win so repeat runs never re-prompt; automated sources come
before the prompt so a human is only asked when nothing else can answer.
"""

from collections.abc import Mapping

from ..managers.run_context import RunContext
from .errors import ResolverCommandFailedError
from .manifest import Secret
from .process_utils import CommandError


def last_non_blank_line(output: str) -> str:
  """Last line of output that is not whitespace only, without its line terminator."""
  for line in reversed(output.split("\n")):
    line = line.removesuffix("\r")
    if line.strip():
      return line
  return ""


class ValueResolver:
  """Resolves secret values for one run."""

  def __init__(self, context: RunContext) -> None:
    self.context = context
    self.logger = context.get_logger(name="resolver", component="resolver")

  def run_resolver_command(self, secret: Secret) -> str:
    """
    Run the secret's resolver command and return its answer.

    Raises:
        ResolverCommandFailedError: If the command cannot run or exits non-zero
    """
    self.logger.info(f"Running resolver command for {secret.environment_variable}")
    try:
      result = self.context.runner.run_script(secret.resolver_command)
    except CommandError as e:
      raise ResolverCommandFailedError(
        f"Resolver command for {secret.environment_variable} failed: {e}"
      ) from None

    value = last_non_blank_line(result.stdout)
    if value == "":
      self.logger.warning(f"Resolver command for {secret.environment_variable} produced an empty value")
      self.context.echo_warning(f"Resolver command for {secret.environment_variable} returned an empty value")
    return value

  def prompt_for_value(self, secret: Secret) -> str:
    description = f" ({secret.description})" if secret.description else ""
    self.logger.debug(f"Prompting for {secret.environment_variable}")
    return self.context.prompt(f"Enter value for {secret.environment_variable}{description}: ")

  def resolve_secret(self, secret: Secret, env_state: Mapping[str, str]) -> str:
    """
    Resolve one secret and store the value on it.

    Args:
        secret: Secret to resolve
        env_state: Values read from the existing environment script

    Returns:
        The resolved value
    """
    name = secret.environment_variable
    if name in env_state:
      self.logger.debug(f"{name}: reusing value from environment script")
      value = env_state[name]
    elif secret.resolver_command:
      value = self.run_resolver_command(secret)
    else:
      value = self.prompt_for_value(secret)

    secret.resolved_value = value
    return value

  def resolve_all(self, secrets: list[Secret], env_state: Mapping[str, str]) -> None:
    """
    Resolve every secret in manifest order.

    Any failure propagates immediately; callers must not write a script
    unless this returns.
    """
    for secret in secrets:
      self.resolve_secret(secret, env_state)
    self.logger.info(f"Resolved {len(secrets)} secrets")
