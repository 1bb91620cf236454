"""Centralized version constant for raju."""

# Note: RAJU_GIT_COMMIT is populated at build time so wheels/sdists carry
# the commit even when git metadata is unavailable at runtime.
RAJU_VERSION = "0.3.0"
RAJU_GIT_COMMIT = "unknown"

__all__ = ["RAJU_VERSION", "RAJU_GIT_COMMIT"]
