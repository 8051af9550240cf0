import sys
from typing import Callable, Optional, TextIO

from ..core.common_utils import CommonUtils
from ..core.process_utils import CommandRunner
from ..core.prompt import console_prompt
from ..core.settings import SettingsList
from ..secret_stores.base import SecretStoreBase
from ..secret_stores.github import GitHubSecretStore
from .common_config import CommonConfig
from .log_manager import ComponentLoggerAdapter, DevSecretsLogger


class RunContext:
  def __init__(
    self,
    config: CommonConfig,
    log_manager: DevSecretsLogger,
    settings: Optional[SettingsList] = None,
    runner: Optional[CommandRunner] = None,
    secret_store: Optional[SecretStoreBase] = None,
    prompt: Optional[Callable[[str], str]] = None,
    out: Optional[TextIO] = None,
    err: Optional[TextIO] = None,
  ) -> None:
    """
    Everything one reconciliation run needs, passed explicitly down the call chain.

    Collaborators that are not supplied are created on first use, so tests
    can substitute the subprocess runner, prompt or secret store.

    Args:
      config: Resolved configuration for this run.
      log_manager: Logging manager for the run.
      settings: The run's settings, built from the command line.
      runner: Subprocess collaborator.
      secret_store: Remote secret store collaborator.
      prompt: Function used to ask the user for a value.
      out: Stream for user-facing messages.
      err: Stream for user-facing errors.
    """
    self.config = config
    self.log_manager = log_manager
    self.settings = settings or SettingsList()
    self.prompt = prompt or console_prompt
    self.out = out or sys.stdout
    self.err = err or sys.stderr

    # Lazy Load
    self._runner = runner
    self._secret_store = secret_store

  @property
  def verbose(self) -> bool:
    setting = self.settings.find("verbose")
    return setting.as_bool if setting else self.config.verbose

  @property
  def runner(self) -> CommandRunner:
    """Get the subprocess runner."""
    if self._runner is None:
      self._runner = CommandRunner(self.get_logger("process", "runner"))
    return self._runner

  @property
  def secret_store(self) -> SecretStoreBase:
    """Get the remote secret store."""
    if self._secret_store is None:
      self._secret_store = GitHubSecretStore(self.log_manager, self.runner, self.config.github_api_url)
    return self._secret_store

  def get_logger(
    self,
    name: Optional[str] = None,
    component: Optional[str] = None,
  ) -> ComponentLoggerAdapter:
    """
    Get fully configured logger instance.
    Args:
        name: Optional logger name
        component: Optional component name for logging
    Returns:
        ComponentLoggerAdapter: Configured logger instance
    """
    return self.log_manager.get_logger(name=name, component=component)

  def echo_info(self, message: str) -> None:
    print(f"✅ {CommonUtils.hide_pat(message)}", file=self.out)

  def echo_warning(self, message: str) -> None:
    print(f"⚠️  {CommonUtils.hide_pat(message)}", file=self.out)

  def echo_error(self, message: str) -> None:
    print(f"❌ {CommonUtils.hide_pat(message)}", file=self.err)
