from __future__ import annotations

import importlib.metadata
import os
import subprocess
from pathlib import Path
from typing import Optional


def _run_git(args: list[str], cwd: Optional[str] = None) -> Optional[str]:
    try:
        out = subprocess.check_output(["git", *args], cwd=cwd or os.getcwd(),
                                      stderr=subprocess.DEVNULL)
        return out.decode().strip() or None
    except (OSError, subprocess.CalledProcessError):
        return None


def get_package_version() -> str:
    try:
        return importlib.metadata.version("ezwrite")
    except importlib.metadata.PackageNotFoundError:
        return "0.0.0+unknown"


def get_commit() -> Optional[str]:
    """Short commit hash when running from a git checkout."""
    here = Path(__file__).resolve().parent
    commit = _run_git(["rev-parse", "--short=7", "HEAD"], cwd=str(here))
    if commit is None:
        return None
    dirty = _run_git(["status", "--porcelain"], cwd=str(here))
    return f"{commit}-dirty" if dirty else commit


def get_version_string() -> str:
    version = get_package_version()
    commit = get_commit()
    return f"ezwrite {version} ({commit})" if commit else f"ezwrite {version}"
