"""
devsecrets - Reconcile Manager

Runs one reconciliation: load the manifest, decide whether the environment
script is already current, resolve every secret, rewrite the script and,
when the manifest asks for it, propagate the values to GitHub.

Nothing is written unless every secret resolved. Propagation happens only
after the script is on disk, so a remote failure never loses local values.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..core.env_state import read_env_state
from ..core.manifest import FreshnessToken, load_manifest
from ..core.resolver import ValueResolver
from ..core.script_writer import write_script
from .propagation_manager import PropagationManager, PropagationResult
from .run_context import RunContext


def is_already_synced(manifest_token: FreshnessToken, script_token: Optional[FreshnessToken]) -> bool:
  """A script at least as new as the manifest is current; a missing script never is."""
  return script_token is not None and script_token >= manifest_token


@dataclass
class ReconcileResult:
  """Summary of a reconciliation run."""

  script_path: Path
  skipped: bool = False
  resolved: list[str] = field(default_factory=list)
  propagation: Optional[PropagationResult] = None


class ReconcileManager:
  """Secret reconciliation engine."""

  def __init__(self, context: RunContext) -> None:
    self.context = context
    self.logger = context.get_logger(name="reconcile", component="reconcile")

  def reconcile(self, force: bool = False) -> ReconcileResult:
    """
    Bring the environment script (and remote store) in line with the manifest.

    Args:
        force: Skip the freshness check and always resolve and rewrite

    Returns:
        ReconcileResult

    Raises:
        ManifestNotFoundError, ManifestParseError: Manifest problems, before anything else
        MalformedEnvLineError, DuplicateKeyError: Environment script problems, before resolution
        RemoteAuthError: Remote store enabled but not usable, before resolution
        ResolverCommandFailedError, PromptCancelledError: During resolution, nothing written
        ScriptWriteError: The script could not be replaced
    """
    config = self.context.config
    input_file = config.get_input_file()
    script_path = config.get_env_file()

    manifest, manifest_token = load_manifest(input_file)
    self.logger.info(f"Loaded {len(manifest.secrets)} secrets from {input_file}")

    if not force and is_already_synced(manifest_token, FreshnessToken.for_path(script_path)):
      self.logger.info(f"{script_path} is newer than {input_file}, nothing to do")
      self.context.echo_info(f"Secrets in {input_file} have not changed.")
      return ReconcileResult(script_path=script_path, skipped=True)

    env_state = read_env_state(script_path)
    self.logger.debug(f"Read {len(env_state)} existing values from {script_path}")

    propagation_manager = None
    if manifest.use_remote_secret_store:
      propagation_manager = PropagationManager(self.context)
      credential = propagation_manager.ensure_authenticated()
      repository = propagation_manager.get_account_info()

    self.context.echo_info(f"Updating secrets based on {input_file}")
    ValueResolver(self.context).resolve_all(manifest.secrets, env_state)

    write_script(script_path, manifest.secrets, self.logger)
    result = ReconcileResult(script_path=script_path, resolved=manifest.names())

    if propagation_manager is not None:
      result.propagation = propagation_manager.propagate(manifest.secrets, repository, credential)

    return result
