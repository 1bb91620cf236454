#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Version and build information shown by ``raju --version``."""

import subprocess
from pathlib import Path
from typing import Dict, Optional

from raju._version import RAJU_GIT_COMMIT, RAJU_VERSION

DISTRIBUTION_NAME = "raju-agent"


def get_version() -> str:
    """Return ``RAJU_VERSION``, or the installed distribution's version if it is blank."""
    if RAJU_VERSION:
        return RAJU_VERSION

    from importlib.metadata import PackageNotFoundError, version

    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        return "unknown"


def get_git_commit(short: bool = True) -> Optional[str]:
    """Return the commit stamped at build time, falling back to ``git rev-parse``.

    None when neither is available (e.g. an sdist unpacked outside a checkout).
    """
    if RAJU_GIT_COMMIT and RAJU_GIT_COMMIT != "unknown":
        return RAJU_GIT_COMMIT[:7] if short else RAJU_GIT_COMMIT

    args = ["git", "rev-parse"] + (["--short"] if short else []) + ["HEAD"]
    try:
        output = subprocess.check_output(
            args,
            cwd=Path(__file__).resolve().parent.parent,
            stderr=subprocess.DEVNULL,
        )
    except (OSError, subprocess.CalledProcessError):
        return None
    return output.decode().strip() or None


def build_version_output() -> Dict[str, str]:
    return {
        "version": get_version(),
        "commit": get_git_commit() or "unknown",
    }
