"""Configuration for the Demeter checker. Values come from [tool.pydemeter]."""

import logging
from typing import Optional

_DEFAULT_ALLOCATION_PRIMITIVES: frozenset[str] = frozenset(
    {"copy.copy", "copy.deepcopy", "object.__new__"}
)
_DEFAULT_ASSERTION_FUNCTIONS: frozenset[str] = frozenset(
    {"typing.cast", "typing_extensions.cast"}
)
_LOG_LEVELS: frozenset[str] = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class ConfigurationLoader:
    """
    Holds [tool.pydemeter] settings. Loading from disk is done by
    ConfigFileLoader in infrastructure; this class only interprets values.
    """

    def __init__(self, config: Optional[dict[str, object]] = None) -> None:
        self._config: dict[str, object] = dict(config or {})
        self.validate_config(self._config)

    def validate_config(self, config: dict[str, object]) -> None:
        """Warn about values that will be ignored."""
        for key in ("allocation_primitives", "assertion_functions"):
            raw = config.get(key)
            if raw is not None and not isinstance(raw, (list, set, tuple)):
                logging.warning(
                    "Configuration Warning: '%s' must be a list of dotted names; ignoring %r.",
                    key,
                    raw,
                )
        level = config.get("log_level")
        if level is not None and str(level).upper() not in _LOG_LEVELS:
            logging.warning("Configuration Warning: unknown log_level %r; using WARNING.", level)

    @property
    def config(self) -> dict[str, object]:
        """Return the loaded [tool.pydemeter] section."""
        return self._config

    def _get_set(self, key: str, defaults: Optional[frozenset[str]] = None) -> frozenset[str]:
        """Helper to safely get a set of strings from config."""
        raw = self._config.get(key, [])
        items: set[str] = set()
        if isinstance(raw, (list, set, tuple)):
            for item in raw:
                if isinstance(item, str):
                    items.add(item)
        if defaults:
            return defaults.union(items)
        return frozenset(items)

    @property
    def allocation_primitives(self) -> frozenset[str]:
        """Dotted names of calls that produce a fresh instance."""
        return self._get_set("allocation_primitives", _DEFAULT_ALLOCATION_PRIMITIVES)

    @property
    def assertion_functions(self) -> frozenset[str]:
        """Dotted names of calls that narrow the type of their last argument."""
        return self._get_set("assertion_functions", _DEFAULT_ASSERTION_FUNCTIONS)

    @property
    def log_level(self) -> str:
        level = str(self._config.get("log_level", "WARNING")).upper()
        return level if level in _LOG_LEVELS else "WARNING"
