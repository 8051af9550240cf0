"""
Unit tests for the remote secret propagator.

An in-memory secret store stands in for GitHub.
"""

import io
from typing import Optional
from unittest import TestCase
from unittest.mock import Mock

from devsecrets.core.errors import RemoteAuthError, RemotePropagationError
from devsecrets.core.manifest import Secret
from devsecrets.managers.common_config import CommonConfig
from devsecrets.managers.log_manager import ComponentLoggerAdapter, DevSecretsLogger
from devsecrets.managers.propagation_manager import PropagationManager, merge_repositories
from devsecrets.managers.run_context import RunContext
from devsecrets.secret_stores.base import (
  HTTP_NOT_FOUND,
  HTTP_OK,
  RepositoryInfo,
  SecretStoreBase,
  SecretStoreError,
)


class FakeSecretStore(SecretStoreBase):
  """Secret store that keeps secrets and their repository bindings in memory."""

  def __init__(self, log_manager: DevSecretsLogger, authenticated: bool = True) -> None:
    super().__init__(log_manager)
    self.authenticated = authenticated
    self.login_succeeds = True
    self.login_calls = 0
    self.token = "gho_" + "t" * 36
    self.repository = RepositoryInfo("octo", "widgets")
    self.secrets: dict[str, tuple[str, list[str]]] = {}
    self.fail_set_for: set[str] = set()
    self.list_status: Optional[int] = None

  def is_authenticated(self) -> bool:
    return self.authenticated

  def login(self) -> None:
    self.login_calls += 1
    if not self.login_succeeds:
      raise SecretStoreError("browser flow aborted")
    self.authenticated = True

  def get_auth_token(self) -> str:
    return self.token

  def get_account_info(self) -> RepositoryInfo:
    return self.repository

  def list_repositories_for_secret(self, name: str, credential: str) -> tuple[int, list[str]]:
    assert credential == self.token
    if self.list_status is not None:
      return self.list_status, []
    if name not in self.secrets:
      return HTTP_NOT_FOUND, []
    return HTTP_OK, list(self.secrets[name][1])

  def set_secret(self, name: str, value: str, repositories: list[str]) -> None:
    if name in self.fail_set_for:
      raise SecretStoreError("HTTP 422: Validation Failed")
    self.secrets[name] = (value, list(repositories))


class TestMergeRepositories(TestCase):
  """Test cases for merge_repositories."""

  def test_adds_current(self) -> None:
    self.assertEqual(merge_repositories(["a/one", "a/two"], "a/three"), ["a/one", "a/two", "a/three"])

  def test_already_present_case_insensitive(self) -> None:
    self.assertEqual(merge_repositories(["Octo/Widgets"], "octo/widgets"), ["Octo/Widgets"])

  def test_empty(self) -> None:
    self.assertEqual(merge_repositories([], "octo/widgets"), ["octo/widgets"])

  def test_input_not_modified(self) -> None:
    existing = ["a/one"]
    merge_repositories(existing, "a/two")
    self.assertEqual(existing, ["a/one"])


class TestPropagationManager(TestCase):
  """Test cases for PropagationManager."""

  def setUp(self) -> None:
    """Set up test fixtures."""
    self.mock_logger = Mock(spec=ComponentLoggerAdapter)
    log_manager = Mock(spec=DevSecretsLogger)
    log_manager.get_logger.return_value = self.mock_logger

    self.store = FakeSecretStore(log_manager)
    self.out = io.StringIO()
    self.err = io.StringIO()
    self.context = RunContext(
      CommonConfig(input_file="devsecrets.json", env_file="env.sh"),
      log_manager,
      runner=Mock(),
      secret_store=self.store,
      out=self.out,
      err=self.err,
    )
    self.manager = PropagationManager(self.context)

  def test_ensure_authenticated_logged_in(self) -> None:
    self.assertEqual(self.manager.ensure_authenticated(), self.store.token)
    self.assertEqual(self.store.login_calls, 0)

  def test_ensure_authenticated_runs_login(self) -> None:
    self.store.authenticated = False

    self.assertEqual(self.manager.ensure_authenticated(), self.store.token)
    self.assertEqual(self.store.login_calls, 1)
    self.assertIn("Not logged in to GitHub", self.out.getvalue())

  def test_ensure_authenticated_login_fails(self) -> None:
    self.store.authenticated = False
    self.store.login_succeeds = False

    with self.assertRaises(RemoteAuthError) as context:
      self.manager.ensure_authenticated()
    self.assertIn("browser flow aborted", str(context.exception))

  def test_ensure_authenticated_still_logged_out(self) -> None:
    self.store.authenticated = False
    self.store.login = Mock()  # type: ignore[method-assign]

    with self.assertRaises(RemoteAuthError):
      self.manager.ensure_authenticated()

  def test_ensure_authenticated_no_token(self) -> None:
    self.store.get_auth_token = Mock(side_effect=SecretStoreError("Not logged in to GitHub"))  # type: ignore[method-assign]
    with self.assertRaises(RemoteAuthError):
      self.manager.ensure_authenticated()

  def test_get_account_info(self) -> None:
    self.assertEqual(self.manager.get_account_info().full_name, "octo/widgets")

    self.store.get_account_info = Mock(side_effect=SecretStoreError("no remote"))  # type: ignore[method-assign]
    with self.assertRaises(RemoteAuthError):
      self.manager.get_account_info()

  def test_new_secret_bound_to_current_repository(self) -> None:
    """A secret that has never been set starts with only the current repository."""
    secret = Secret("API_KEY", resolved_value="v1")

    repos = self.manager.propagate_secret(secret, self.store.repository, self.store.token)

    self.assertEqual(repos, ["octo/widgets"])
    self.assertEqual(self.store.secrets["API_KEY"], ("v1", ["octo/widgets"]))

  def test_existing_bindings_preserved(self) -> None:
    """Propagating from C to a secret bound to A and B leaves it bound to all three."""
    self.store.secrets["API_KEY"] = ("old", ["octo/a", "octo/b"])
    secret = Secret("API_KEY", resolved_value="new")

    self.manager.propagate_secret(secret, RepositoryInfo("octo", "c"), self.store.token)

    status, repos = self.store.list_repositories_for_secret("API_KEY", self.store.token)
    self.assertEqual(status, HTTP_OK)
    self.assertEqual(set(repos), {"octo/a", "octo/b", "octo/c"})
    self.assertEqual(self.store.secrets["API_KEY"][0], "new")

  def test_repeat_propagation_does_not_duplicate(self) -> None:
    self.store.secrets["API_KEY"] = ("old", ["Octo/Widgets"])

    repos = self.manager.propagate_secret(Secret("API_KEY", resolved_value="v"), self.store.repository, self.store.token)

    self.assertEqual(repos, ["Octo/Widgets"])

  def test_unexpected_status(self) -> None:
    self.store.list_status = 500
    with self.assertRaises(RemotePropagationError) as context:
      self.manager.propagate_secret(Secret("API_KEY", resolved_value="v"), self.store.repository, self.store.token)
    self.assertIn("API_KEY", str(context.exception))
    self.assertNotIn("API_KEY", self.store.secrets)

  def test_unresolved_secret(self) -> None:
    with self.assertRaises(RemotePropagationError):
      self.manager.propagate_secret(Secret("API_KEY"), self.store.repository, self.store.token)

  def test_propagate_continues_after_failure(self) -> None:
    """One failed secret does not stop the others."""
    self.store.fail_set_for = {"B"}
    secrets = [Secret(name, resolved_value=name.lower()) for name in ("A", "B", "C")]

    result = self.manager.propagate(secrets, self.store.repository, self.store.token)

    self.assertFalse(result.success)
    self.assertEqual(result.propagated, ["A", "C"])
    self.assertEqual(len(result.failures), 1)
    self.assertIn("B: HTTP 422", str(result.failures[0]))
    self.assertEqual(sorted(self.store.secrets), ["A", "C"])
    self.assertIn("❌ Error saving GitHub secret B", self.err.getvalue())
    self.mock_logger.error.assert_called_once()

  def test_propagate_all_succeed(self) -> None:
    result = self.manager.propagate([Secret("A", resolved_value="a")], self.store.repository, self.store.token)
    self.assertTrue(result.success)
    self.assertEqual(result.propagated, ["A"])
