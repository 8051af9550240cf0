#!/usr/bin/env python3
"""
Setup script for the devsecrets Python package.
"""

from setuptools import setup, find_packages
from pathlib import Path


# Read requirements from requirements.txt
def read_requirements():
  requirements_file = Path(__file__).parent / "requirements.txt"
  if requirements_file.exists():
    with open(requirements_file, "r") as f:
      return [line.strip() for line in f if line.strip() and not line.startswith("#")]
  return []


# Read version from __init__.py
def get_version():
  init_file = Path(__file__).parent / "devsecrets" / "__init__.py"
  if init_file.exists():
    with open(init_file, "r") as f:
      for line in f:
        if line.startswith("__version__"):
          return line.split("=")[1].strip().strip('"').strip("'")
  return "1.0.0"


setup(
  name="devsecrets",
  version=get_version(),
  description="Individual developer secrets for a shared repository",
  long_description=(
    "Resolves the secrets a repository needs into a shell-sourceable script and optionally "
    "mirrors them to GitHub Codespaces user secrets."
  ),
  author="devsecrets Team",
  python_requires=">=3.10",
  packages=find_packages(exclude=["tests", "tests.*"]),
  install_requires=read_requirements(),
  extras_require={
    "test": ["pytest>=7.0"],
  },
  entry_points={
    "console_scripts": [
      "devsecrets=devsecrets.cli:main",
    ]
  },
  classifiers=[
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "License :: OSI Approved :: MIT License",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Unix Shell",
    "Topic :: Software Development :: Build Tools",
    "Topic :: Security",
  ],
  keywords="secrets devcontainer codespaces github environment variables",
  zip_safe=False,
)
