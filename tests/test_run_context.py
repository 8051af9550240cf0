"""
Unit tests for RunContext.
"""

import io
from unittest import TestCase
from unittest.mock import Mock, patch

from devsecrets.core.errors import PromptCancelledError
from devsecrets.core.process_utils import CommandRunner
from devsecrets.core.prompt import console_prompt
from devsecrets.core.settings import Setting, SettingsList
from devsecrets.managers.common_config import CommonConfig
from devsecrets.managers.log_manager import ComponentLoggerAdapter, DevSecretsLogger
from devsecrets.managers.run_context import RunContext
from devsecrets.secret_stores.github import GitHubSecretStore

TOKEN = "ghp_" + "r" * 36


class TestRunContext(TestCase):
  """Test cases for RunContext."""

  def setUp(self) -> None:
    """Set up test fixtures."""
    self.log_manager = Mock(spec=DevSecretsLogger)
    self.log_manager.get_logger.return_value = Mock(spec=ComponentLoggerAdapter)
    self.out = io.StringIO()
    self.err = io.StringIO()
    self.config = CommonConfig(input_file="devsecrets.json", env_file="env.sh", github_api_url="https://api.github.com")
    self.context = RunContext(self.config, self.log_manager, out=self.out, err=self.err)

  def test_defaults(self) -> None:
    self.assertIs(self.context.prompt, console_prompt)
    self.assertEqual(len(self.context.settings), 0)
    self.assertFalse(self.context.verbose)

  def test_lazy_collaborators(self) -> None:
    runner = self.context.runner
    self.assertIsInstance(runner, CommandRunner)
    self.assertIs(self.context.runner, runner)

    store = self.context.secret_store
    self.assertIsInstance(store, GitHubSecretStore)
    self.assertIs(store.runner, runner)
    self.assertIs(self.context.secret_store, store)

  def test_injected_collaborators(self) -> None:
    runner = Mock(spec=CommandRunner)
    context = RunContext(self.config, self.log_manager, runner=runner)
    self.assertIs(context.runner, runner)

  def test_verbose_from_settings(self) -> None:
    settings = SettingsList([Setting("verbose", "true")])
    context = RunContext(self.config, self.log_manager, settings=settings)
    self.assertTrue(context.verbose)

  def test_get_logger(self) -> None:
    self.context.get_logger("resolver", "resolver")
    self.log_manager.get_logger.assert_called_with(name="resolver", component="resolver")

  def test_echo_streams(self) -> None:
    self.context.echo_info("done")
    self.context.echo_warning("careful")
    self.context.echo_error("failed")

    self.assertEqual(self.out.getvalue(), "✅ done\n⚠️  careful\n")
    self.assertEqual(self.err.getvalue(), "❌ failed\n")

  def test_echo_redacts_tokens(self) -> None:
    self.context.echo_error(f"bad token {TOKEN}")
    self.assertNotIn(TOKEN, self.err.getvalue())


class TestConsolePrompt(TestCase):
  """Test cases for console_prompt."""

  def test_returns_input(self) -> None:
    with patch("devsecrets.core.prompt.getpass.getpass", return_value="  typed value ") as mock_getpass:
      self.assertEqual(console_prompt("Enter value: "), "  typed value ")
    mock_getpass.assert_called_once_with("Enter value: ")

  def test_cancel(self) -> None:
    for error in (EOFError(), KeyboardInterrupt()):
      with patch("devsecrets.core.prompt.getpass.getpass", side_effect=error), patch("builtins.print"):
        with self.assertRaises(PromptCancelledError):
          console_prompt("Enter value: ")
