"""
devsecrets - Remote Secret Propagator

Pushes resolved values to the remote secret store. A secret's existing
repository bindings are read first and the current repository is added to
them, so repositories that share the secret keep their access.
"""

from dataclasses import dataclass, field

from ..core.errors import RemoteAuthError, RemotePropagationError
from ..core.manifest import Secret
from ..secret_stores.base import HTTP_NOT_FOUND, HTTP_OK, RepositoryInfo, SecretStoreError
from .run_context import RunContext


@dataclass
class PropagationResult:
  """Outcome of one propagation pass."""

  propagated: list[str] = field(default_factory=list)
  failures: list[RemotePropagationError] = field(default_factory=list)

  @property
  def success(self) -> bool:
    return not self.failures


def merge_repositories(existing: list[str], current: str) -> list[str]:
  """
  Add current to the bound repositories unless it is already there.

  Repository names compare case-insensitively. Existing entries keep their
  order and spelling.
  """
  if any(repo.lower() == current.lower() for repo in existing):
    return list(existing)
  return [*existing, current]


class PropagationManager:
  """Propagates secrets for the repository the run is working in."""

  def __init__(self, context: RunContext) -> None:
    self.context = context
    self.store = context.secret_store
    self.logger = context.get_logger(name="propagation", component="propagation")

  def ensure_authenticated(self) -> str:
    """
    Make sure the store is logged in, running the login flow if needed.

    Returns:
        The credential to use for queries during this run

    Raises:
        RemoteAuthError: If login fails or no credential is available
    """
    if not self.store.is_authenticated():
      self.logger.info("Not logged in to the remote secret store, starting login")
      self.context.echo_warning("Not logged in to GitHub; starting gh auth login")
      try:
        self.store.login()
      except SecretStoreError as e:
        raise RemoteAuthError(f"Error logging into GitHub: {e}. Login to GH and rerun the program") from None
      if not self.store.is_authenticated():
        raise RemoteAuthError("Still not logged in to GitHub after login. Login to GH and rerun the program")

    try:
      return self.store.get_auth_token()
    except SecretStoreError as e:
      raise RemoteAuthError(str(e)) from None

  def get_account_info(self) -> RepositoryInfo:
    """
    Raises:
        RemoteAuthError: If the current repository cannot be determined
    """
    try:
      return self.store.get_account_info()
    except SecretStoreError as e:
      raise RemoteAuthError(f"Cannot determine the current repository: {e}") from None

  def propagate_secret(self, secret: Secret, repository: RepositoryInfo, credential: str) -> list[str]:
    """
    Bind one secret to the current repository in addition to its existing bindings.

    Returns:
        The repositories the secret is now bound to

    Raises:
        RemotePropagationError: If the query or the write fails
    """
    name = secret.environment_variable
    if secret.resolved_value is None:
      raise RemotePropagationError(f"{name}: not resolved, nothing to propagate")

    try:
      status, existing = self.store.list_repositories_for_secret(name, credential)
      if status not in (HTTP_OK, HTTP_NOT_FOUND):
        raise SecretStoreError(f"unexpected status {status}")

      repositories = merge_repositories(existing, repository.full_name)
      self.logger.debug(f"{name}: binding to {repositories}")
      self.store.set_secret(name, secret.resolved_value, repositories)
    except SecretStoreError as e:
      raise RemotePropagationError(f"{name}: {e}") from None
    return repositories

  def propagate(self, secrets: list[Secret], repository: RepositoryInfo, credential: str) -> PropagationResult:
    """
    Propagate every secret; a failure is recorded and the next secret is tried.
    """
    result = PropagationResult()
    for secret in secrets:
      try:
        self.propagate_secret(secret, repository, credential)
        result.propagated.append(secret.environment_variable)
      except RemotePropagationError as e:
        self.logger.error(f"Error saving GitHub secret {e}")
        self.context.echo_error(f"Error saving GitHub secret {e}")
        result.failures.append(e)

    self.logger.info(
      f"Propagated {len(result.propagated)} secrets to {repository.full_name}, {len(result.failures)} failed"
    )
    return result
