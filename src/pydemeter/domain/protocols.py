from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    import astroid

    from pydemeter.domain.entities import ProgramModel
    from pydemeter.domain.rules import Violation


class AstroidProtocol(Protocol):
    """Parsing collaborator: source files to astroid module trees."""

    def parse_file(self, file_path: str) -> "astroid.nodes.Module":
        """Parse one file. Raises ParseError."""
        ...

    def parse_directory(self, dir_path: str) -> "dict[str, astroid.nodes.Module]":
        """Parse every .py file of a directory (non-recursive). Raises ParseError."""
        ...


class TypeCheckProtocol(Protocol):
    """Resolution collaborator: module trees to a read-only ProgramModel."""

    def check(
        self, unit_name: str, modules: "Sequence[astroid.nodes.Module]"
    ) -> "ProgramModel":
        """Resolve every symbol the classifier needs. Raises TypeCheckError."""
        ...


class TelemetryPort(Protocol):
    """Protocol for telemetry/UI updates."""

    def step(self, message: str) -> None: ...
    def warning(self, message: str) -> None: ...
    def error(self, message: str) -> None: ...


class ViolationReporterProtocol(Protocol):
    """Renders violations for the user."""

    def report(self, violations: "Iterable[Violation]") -> int:
        """Render every violation; return how many were rendered."""
        ...

    def report_error(self, error: Exception) -> None:
        ...
