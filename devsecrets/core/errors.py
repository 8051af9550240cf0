"""
devsecrets - Error Taxonomy

Every error raised by the reconciliation engine derives from DevSecretsError
so the CLI can report it in one place.
"""


class DevSecretsError(Exception):
  """Base exception for devsecrets operations."""

  pass


class ManifestNotFoundError(DevSecretsError):
  """The manifest path is empty or the file does not exist."""

  pass


class ManifestParseError(DevSecretsError):
  """The manifest is not valid JSON or does not match the schema."""

  pass


class MalformedEnvLineError(DevSecretsError):
  """A line after the secrets marker is not KEY=VALUE."""

  pass


class DuplicateKeyError(DevSecretsError):
  """A key appears twice in the environment script."""

  pass


class ResolverCommandFailedError(DevSecretsError):
  """A secret's resolver command could not be run or exited non-zero."""

  pass


class PromptCancelledError(DevSecretsError):
  """The user aborted an interactive prompt."""

  pass


class ScriptWriteError(DevSecretsError):
  """The environment script could not be written."""

  pass


class RemoteAuthError(DevSecretsError):
  """Not logged in to the remote secret store and login failed."""

  pass


class RemotePropagationError(DevSecretsError):
  """Pushing one secret to the remote store failed."""

  pass


class EnvStateReadError(DevSecretsError):
  """The environment script exists but cannot be read or decoded."""

  pass
