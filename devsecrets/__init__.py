"""
devsecrets - Python Package

Keeps each developer's secrets for a shared repository in a generated,
shell-sourceable script and optionally mirrors them to GitHub Codespaces
user secrets.
"""

__version__ = "1.0.0"
__author__ = "devsecrets Team"
__description__ = "Individual developer secrets for a shared repository"

# Core imports for external use
from .cli import main as cli_main

__all__ = [
  "cli_main",
  "__version__",
]
