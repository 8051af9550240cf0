"""
devsecrets - CLI Interface

Main CLI entry point for the devsecrets command.

  devsecrets setup  --input-file devsecrets.json
  devsecrets update --input-file devsecrets.json [--force] [--verbose]
  devsecrets show   --input-file devsecrets.json
  devsecrets settings
"""

import argparse
import sys
from pathlib import Path
from typing import Optional

from .core.env_state import read_env_state
from .core.errors import DevSecretsError, ManifestNotFoundError, ManifestParseError
from .core.manifest import load_manifest
from .core.settings import SettingsList, Validity, validate
from .managers.common_config import CommonConfig, CommonConfigError
from .managers.log_manager import DevSecretsLogger
from .managers.reconcile_manager import ReconcileManager
from .managers.run_context import RunContext
from .managers.shell_profile_manager import ShellProfileError, ShellProfileManager

SETTING_DESCRIPTIONS = {
  "input-file": "a json file listing the secrets the repository needs",
  "env-file": "the generated script holding the secret values",
  "verbose": "echo actions to stderr",
  "log-level": "log level for the log file",
}

# Errors that mean the run could not even start
FATAL_CONFIG_ERRORS = (ManifestNotFoundError, ManifestParseError)


def build_settings(config: CommonConfig, log_level: str) -> SettingsList:
  """Settings for this run, validated where a check exists."""
  settings = SettingsList.from_mapping(
    {
      "input-file": config.input_file,
      "env-file": config.env_file,
      "verbose": config.verbose,
      "log-level": log_level,
    },
    SETTING_DESCRIPTIONS,
  )
  checks = {
    "input-file": lambda s: Path(s.value).expanduser().is_file(),
    "env-file": lambda s: not Path(s.value).expanduser().is_dir(),
    "verbose": lambda s: s.is_bool,
    "log-level": lambda s: s.value.upper() in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"),
  }
  for setting in list(settings):
    settings = settings.replace(setting.with_validity(validate(setting, checks.get(setting.name))))
  return settings


def build_context(args: argparse.Namespace) -> RunContext:
  """Create the run context from parsed arguments and the environment."""
  config = CommonConfig(
    input_file=args.input_file or "",
    env_file=args.env_file or "",
    verbose=args.verbose,
  )
  log_level = args.log_level or ("DEBUG" if config.verbose else None)
  log_manager = DevSecretsLogger(log_level=log_level)
  context = RunContext(config, log_manager, build_settings(config, log_manager.log_level))
  if context.verbose:
    log_manager.add_console_output()
  return context


def handle_update(args: argparse.Namespace, context: RunContext) -> int:
  """Reconcile the environment script with the manifest."""
  logger = context.get_logger("cli", "cli.update")

  result = ReconcileManager(context).reconcile(force=args.force)
  if result.skipped:
    return 0

  context.echo_info(f"Wrote {len(result.resolved)} secrets to {result.script_path}")
  if result.propagation is not None:
    if result.propagation.success:
      context.echo_info(f"Saved {len(result.propagation.propagated)} GitHub secrets")
    else:
      context.echo_warning(
        f"{len(result.propagation.failures)} GitHub secrets were not saved; the local script is up to date"
      )
  logger.info("Update finished")
  return 0


def handle_setup(args: argparse.Namespace, context: RunContext) -> int:
  """Hook devsecrets into the shell startup files."""
  updated = ShellProfileManager(context).setup()
  for startup_file in updated:
    context.echo_info(f"Updated {startup_file}")
  return 0


def handle_show(args: argparse.Namespace, context: RunContext) -> int:
  """List the manifest's secrets and whether each already has a value. Values are never printed."""
  manifest, _ = load_manifest(context.config.get_input_file())
  env_state = read_env_state(context.config.get_env_file())

  rows = [("Number", "Environment Variable", "Description", "Shell Script", "Has Value")]
  for index, secret in enumerate(manifest.secrets):
    has_value = "yes" if secret.environment_variable in env_state else "no"
    rows.append((str(index), secret.environment_variable, secret.description, secret.resolver_command, has_value))
  print_table(rows, context)
  return 0


def handle_settings(args: argparse.Namespace, context: RunContext) -> int:
  """Print the settings for this run."""
  rows = [("Number", "Name", "Value", "Valid", "Description")]
  for index, setting in enumerate(context.settings.visible()):
    rows.append((str(index), setting.name, setting.value, setting.validity.value, setting.description))
  print_table(rows, context)
  if not context.settings.error_free():
    invalid = [s.name for s in context.settings.visible() if s.validity == Validity.INVALID]
    context.echo_warning(f"Invalid settings: {', '.join(invalid)}")
  return 0


def print_table(rows: list[tuple[str, ...]], context: RunContext) -> None:
  widths = [max(len(row[col]) for row in rows) for col in range(len(rows[0]))]
  for row in rows:
    print("  ".join(cell.ljust(width) for cell, width in zip(row, widths)).rstrip(), file=context.out)


def create_parser() -> argparse.ArgumentParser:
  parser = argparse.ArgumentParser(
    prog="devsecrets",
    description="devsecrets - individual developer secrets for a shared repository",
  )

  # Global options
  parser.add_argument("-i", "--input-file", help=SETTING_DESCRIPTIONS["input-file"])
  parser.add_argument("--env-file", help=f"{SETTING_DESCRIPTIONS['env-file']} (default: ~/.devsecrets.sh)")
  parser.add_argument("-v", "--verbose", action="store_true", help=SETTING_DESCRIPTIONS["verbose"])
  parser.add_argument(
    "--log-level",
    choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    help="Set log level",
  )

  subparsers = parser.add_subparsers(dest="command", help="Available commands")

  update_parser = subparsers.add_parser(
    "update", help="Resolve every secret in the input file and rewrite the environment script"
  )
  update_parser.add_argument("--force", action="store_true", help="Update even if the input file has not changed")
  update_parser.set_defaults(func=handle_update)

  setup_parser = subparsers.add_parser("setup", help="Run devsecrets from .bashrc and .zshrc")
  setup_parser.set_defaults(func=handle_setup)

  show_parser = subparsers.add_parser("show", help="List the secrets in the input file")
  show_parser.set_defaults(func=handle_show)

  settings_parser = subparsers.add_parser("settings", help="Show the settings for this run")
  settings_parser.set_defaults(func=handle_settings)

  return parser


def main(argv: Optional[list[str]] = None) -> None:
  """Main CLI entry point."""
  parser = create_parser()
  args = parser.parse_args(argv)

  if not hasattr(args, "func"):
    parser.print_help()
    sys.exit(1)

  try:
    context = build_context(args)
  except CommonConfigError as e:
    print(f"❌ Error loading config: {e}", file=sys.stderr)
    sys.exit(2)

  logger = context.get_logger("cli", f"cli.{args.command}")
  try:
    sys.exit(args.func(args, context))
  except (DevSecretsError, ShellProfileError) as e:
    logger.error(f"{args.command} failed: {e}", exc_info=True)
    context.echo_error(str(e))
    sys.exit(2 if isinstance(e, FATAL_CONFIG_ERRORS) else 1)


if __name__ == "__main__":
  main()
