# =============================================================================
# Membership Sync - Main Package
# =============================================================================
"""
Membership Sync - event-sourced bridge between the membership store and
the team chat workspace.

Version is read from installed package metadata (pyproject.toml is the
single source of truth).
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version


def _get_version() -> str:
    """Get package version from installed metadata."""
    try:
        return version("membership-sync")
    except PackageNotFoundError:
        # Running from a source checkout without installation
        return "0.0.0+local"


__version__: str = _get_version()
__description__: str = "Membership Sync - membership platform <-> chat workspace synchronization"

__all__ = [
    "__version__",
    "__description__",
]
