"""Terminal reporter implementation."""

import os
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import typer

from pydemeter.domain.errors import TypeCheckError

if TYPE_CHECKING:
    from pydemeter.domain.rules import Violation


class TerminalViolationReporter:
    """Writes `path:line:column: text` lines to stdout and errors to stderr."""

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self._base_dir = base_dir

    def report(self, violations: "Iterable[Violation]") -> int:
        count = 0
        for violation in violations:
            filename = self._display_path(violation.filename)
            typer.echo(f"{filename}:{violation.line}:{violation.column}: {violation.expr}")
            count += 1
        return count

    def report_error(self, error: Exception) -> None:
        if isinstance(error, TypeCheckError) and error.errors:
            for message in error.errors:
                typer.echo(f"error: {message}", err=True)
            return
        typer.echo(f"error: {error}", err=True)

    def _display_path(self, filename: str) -> str:
        """Relative to the working directory, else unchanged (e.g. another drive)."""
        base = self._base_dir or Path.cwd()
        try:
            return os.path.relpath(filename, base)
        except ValueError:
            return filename
