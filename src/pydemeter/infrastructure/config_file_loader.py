"""Load [tool.pydemeter] from pyproject.toml. Infrastructure I/O only."""

import logging
import tomllib
from pathlib import Path
from typing import Optional

from pydemeter.domain.errors import ParseError


class ConfigFileLoader:
    """
    Loads config from pyproject.toml.
    """

    @staticmethod
    def load_config_from_fs(start: Optional[Path] = None) -> dict[str, object]:
        """Walk up from start (default cwd) to the first pyproject.toml and return its [tool.pydemeter]."""
        current_path = (start or Path.cwd()).resolve()
        for directory in (current_path, *current_path.parents):
            config_file = directory / "pyproject.toml"
            if config_file.is_file():
                try:
                    return ConfigFileLoader._read(config_file)
                except OSError:
                    logging.warning("Could not read %s; using defaults.", config_file)
                    return {}
        return {}

    @staticmethod
    def load_config_from_file(config_file: Path) -> dict[str, object]:
        """Load an explicitly named pyproject.toml. Raises ParseError if it is missing or invalid."""
        try:
            return ConfigFileLoader._read(config_file)
        except OSError as exc:
            raise ParseError(str(config_file), exc.strerror or str(exc)) from exc

    @staticmethod
    def _read(config_file: Path) -> dict[str, object]:
        try:
            with config_file.open("rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as exc:
            raise ParseError(str(config_file), str(exc)) from exc
        tool_section = data.get("tool", {}) or {}
        return dict(tool_section.get("pydemeter", {}) or {})
