# =============================================================================
# File: membership_sync/infra/feature_flags/provider.py
# Description: Feature flag providers injected into reactors
#              Flag state is read at handling time ("effective now")
# =============================================================================

import logging
import threading
from typing import FrozenSet, Iterable, Optional, Protocol, runtime_checkable

from membership_sync.config.feature_flags_config import FeatureFlagConfig, get_feature_flag_config

log = logging.getLogger("membership_sync.feature_flags")


def _normalize(flag_name: str) -> str:
    return flag_name.strip().lower()


@runtime_checkable
class FeatureFlagProvider(Protocol):
    def is_enabled(self, flag_name: str) -> bool: ...


class StaticFeatureFlags:
    """Fixed flag set, decided at construction."""

    def __init__(self, enabled: Iterable[str] = ()):
        self._enabled: FrozenSet[str] = frozenset(_normalize(name) for name in enabled)

    def is_enabled(self, flag_name: str) -> bool:
        return _normalize(flag_name) in self._enabled

    def __repr__(self) -> str:
        return f"StaticFeatureFlags({sorted(self._enabled)})"


class InMemoryFeatureFlags:
    """
    Process-wide toggles that may change between two event handlings.

    Reads never block on writers for longer than a set lookup.
    """

    def __init__(self, enabled: Iterable[str] = ()):
        self._lock = threading.Lock()
        self._enabled = {_normalize(name) for name in enabled}

    def is_enabled(self, flag_name: str) -> bool:
        return _normalize(flag_name) in self._enabled

    def turn_on(self, flag_name: str) -> None:
        with self._lock:
            self._enabled.add(_normalize(flag_name))
        log.info(f"Feature flag turned on: {flag_name}")

    def turn_off(self, flag_name: str) -> None:
        with self._lock:
            self._enabled.discard(_normalize(flag_name))
        log.info(f"Feature flag turned off: {flag_name}")

    def enabled_flags(self) -> FrozenSet[str]:
        with self._lock:
            return frozenset(self._enabled)


class SettingsFeatureFlags:
    """Flags enabled through FEATURE_FLAGS_ENABLED (comma-separated)."""

    def __init__(self, config: Optional[FeatureFlagConfig] = None):
        self._config = config or get_feature_flag_config()
        self._enabled = self._config.enabled_flags()
        if self._enabled:
            log.info(f"Feature flags enabled from settings: {sorted(self._enabled)}")

    def is_enabled(self, flag_name: str) -> bool:
        return _normalize(flag_name) in self._enabled
