"""
devsecrets - GitHub Codespaces User Secrets

Stores secrets as GitHub Codespaces user secrets. Authentication, token
retrieval and writes go through the gh CLI (it handles the sealed-box
encryption GitHub requires); the repository bindings of a secret are read
from the REST API with requests.
"""

import re
from typing import Any, Optional

import requests

from ..core.process_utils import CommandError, CommandRunner
from ..managers.log_manager import DevSecretsLogger
from .base import HTTP_NOT_FOUND, HTTP_OK, RepositoryInfo, SecretStoreBase, SecretStoreError

LOGIN_SCOPES = "user,repo,codespace:secrets"

# https://github.com/account/repo(.git), git@github.com:account/repo(.git), ssh://git@github.com/account/repo(.git)
_REMOTE_URL_REGEX = re.compile(r"^(?:https?://[^/]+/|ssh://[^/]+/|[^@\s]+@[^:\s]+:)([^/\s]+)/([^/\s]+?)(?:\.git)?/?$")


def parse_remote_url(url: str) -> RepositoryInfo:
  """
  Extract account and repository from a git remote URL.

  Raises:
      SecretStoreError: If the URL does not look like a hosted repository
  """
  match = _REMOTE_URL_REGEX.match(url.strip())
  if not match:
    raise SecretStoreError(f"Cannot determine account/repo from remote url '{url.strip()}'")
  return RepositoryInfo(account=match.group(1), repo=match.group(2))


def _github_api_headers(token: str) -> dict[str, str]:
  return {
    "Authorization": f"Bearer {token}",
    "Accept": "application/vnd.github+json",
    "X-GitHub-Api-Version": "2022-11-28",
    "User-Agent": "devsecrets",
  }


class GitHubSecretStore(SecretStoreBase):
  """GitHub Codespaces user secrets, scoped per repository."""

  REQUEST_TIMEOUT = 30

  def __init__(
    self,
    log_manager: DevSecretsLogger,
    runner: CommandRunner,
    api_url: str = "https://api.github.com",
    session: Optional[Any] = None,
  ) -> None:
    super().__init__(log_manager)
    self.logger = log_manager.get_logger(name="secret_stores", component="github")
    self.runner = runner
    self.api_url = api_url.rstrip("/")
    self.session = session or requests.Session()

  def is_authenticated(self) -> bool:
    """gh exits non-zero from 'auth status' when no host is logged in."""
    try:
      self.runner.run("gh", ["auth", "status"])
    except CommandError as e:
      self.logger.debug(f"gh auth status: {e}")
      return False
    return True

  def login(self) -> None:
    try:
      self.runner.run_interactive("gh", ["auth", "login", "--scopes", LOGIN_SCOPES])
    except CommandError as e:
      raise SecretStoreError(f"GitHub login failed: {e}") from None
    self.logger.info("Logged in to GitHub")

  def get_auth_token(self) -> str:
    try:
      token = self.runner.run("gh", ["auth", "token"]).stdout.strip()
    except CommandError as e:
      raise SecretStoreError(f"Could not get GitHub auth token: {e}") from None
    if not token or token == "no oauth token":
      raise SecretStoreError("Not logged in to GitHub")
    return token

  def get_account_info(self) -> RepositoryInfo:
    try:
      url = self.runner.run("git", ["config", "--get", "remote.origin.url"]).stdout
    except CommandError as e:
      raise SecretStoreError(f"Could not read remote.origin.url: {e}") from None
    info = parse_remote_url(url)
    self.logger.debug(f"Current repository: {info.full_name}")
    return info

  def list_repositories_for_secret(self, name: str, credential: str) -> tuple[int, list[str]]:
    url = f"{self.api_url}/user/codespaces/secrets/{name}/repositories"
    try:
      response = self.session.get(url, headers=_github_api_headers(credential), timeout=self.REQUEST_TIMEOUT)
    except requests.RequestException as e:
      raise SecretStoreError(f"Network error listing repositories for {name}: {e}") from None

    if response.status_code == HTTP_NOT_FOUND:
      self.logger.debug(f"Secret {name} does not exist yet")
      return HTTP_NOT_FOUND, []
    if response.status_code != HTTP_OK:
      raise SecretStoreError(
        f"GitHub API error listing repositories for {name}: {response.status_code}: {response.text[:2000]}"
      )

    try:
      repositories = [repo["full_name"] for repo in response.json().get("repositories", [])]
    except (ValueError, KeyError, TypeError, AttributeError) as e:
      raise SecretStoreError(f"Unexpected response listing repositories for {name}: {e}") from None
    return HTTP_OK, repositories

  def set_secret(self, name: str, value: str, repositories: list[str]) -> None:
    # The value goes over stdin so it never shows up in the process list
    args = ["secret", "set", name, "--user", "--app", "codespaces", "--repos", ",".join(repositories)]
    try:
      self.runner.run("gh", args, input_text=value)
    except CommandError as e:
      raise SecretStoreError(f"gh secret set {name} failed: {e}") from None
    self.logger.info(f"Set GitHub secret {name} for {len(repositories)} repositories")
