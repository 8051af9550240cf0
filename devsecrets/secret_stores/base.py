"""
devsecrets - Remote Secret Store Base Class

Abstract interface the propagator needs from a remote secret store.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..managers.log_manager import DevSecretsLogger

HTTP_OK = 200
HTTP_NOT_FOUND = 404


class SecretStoreError(Exception):
  """Base exception for remote secret store operations."""

  pass


@dataclass(frozen=True)
class RepositoryInfo:
  """Account and repository of the current project."""

  account: str
  repo: str

  @property
  def full_name(self) -> str:
    return f"{self.account}/{self.repo}"


class SecretStoreBase(ABC):
  """
  Abstract base class for remote secret stores.

  All methods block until the remote call finishes.
  """

  def __init__(self, log_manager: DevSecretsLogger) -> None:
    self.logger = log_manager.get_logger(name="secret_stores", component="base")

  @abstractmethod
  def is_authenticated(self) -> bool:
    """Whether a usable login exists for the store."""
    raise NotImplementedError

  @abstractmethod
  def login(self) -> None:
    """
    Run the store's interactive login flow.

    Raises:
        SecretStoreError: If login does not succeed
    """
    raise NotImplementedError

  @abstractmethod
  def get_auth_token(self) -> str:
    """
    Credential used for read queries against the store.

    Raises:
        SecretStoreError: If no token is available
    """
    raise NotImplementedError

  @abstractmethod
  def get_account_info(self) -> RepositoryInfo:
    """
    Account and repository the current project belongs to.

    Raises:
        SecretStoreError: If they cannot be determined
    """
    raise NotImplementedError

  @abstractmethod
  def list_repositories_for_secret(self, name: str, credential: str) -> tuple[int, list[str]]:
    """
    Repositories currently allowed to read the secret.

    Args:
        name: Secret name
        credential: Token from get_auth_token

    Returns:
        (status_code, repositories) where HTTP_OK means the secret exists and
        HTTP_NOT_FOUND means it has never been set (repositories is empty)

    Raises:
        SecretStoreError: For any other outcome
    """
    raise NotImplementedError

  @abstractmethod
  def set_secret(self, name: str, value: str, repositories: list[str]) -> None:
    """
    Create or update a secret visible to exactly the given repositories.

    Args:
        name: Secret name
        value: Secret value
        repositories: "account/repo" names

    Raises:
        SecretStoreError: If the store rejects the call
    """
    raise NotImplementedError

  def __repr__(self) -> str:
    return f"{self.__class__.__name__}"
