"""Use Case: Analyze - parse, type-check and classify every call of a unit."""

from collections.abc import Iterator, Sequence
from pathlib import Path

import astroid

from pydemeter.domain.entities import ProgramModel
from pydemeter.domain.errors import ParseError
from pydemeter.domain.protocols import AstroidProtocol, TelemetryPort, TypeCheckProtocol
from pydemeter.domain.rules import Violation
from pydemeter.domain.rules.demeter import LawOfDemeterRule
from pydemeter.domain.services.violation_collector import ViolationCollector


class AnalyzeUseCase:
    """
    Orchestrates one analysis run over a file or a package.

    Steps run strictly in order: parse, type check, walk. Any error aborts
    the run and nothing is returned; on success the caller receives the
    complete ordered list as an iterator.
    """

    def __init__(
        self,
        astroid_gateway: AstroidProtocol,
        type_checker: TypeCheckProtocol,
        rule: LawOfDemeterRule,
        collector: ViolationCollector,
        telemetry: TelemetryPort,
    ) -> None:
        self.astroid_gateway = astroid_gateway
        self.type_checker = type_checker
        self.rule = rule
        self.collector = collector
        self.telemetry = telemetry

    def analyze_path(self, path: str) -> Iterator[Violation]:
        """Analyze a single file or a package directory."""
        target = self._absolute(path)
        if target.is_dir():
            return self.analyze_package(str(target))
        return self.analyze_file(str(target))

    def analyze_file(self, file_path: str) -> Iterator[Violation]:
        """Analyze one source file as its own compilation unit."""
        target = self._absolute(file_path)
        self.telemetry.step(f"Analyzing file {target}")
        module = self.astroid_gateway.parse_file(str(target))
        return self.analyze_modules(str(target), [module])

    def analyze_package(self, directory: str) -> Iterator[Violation]:
        """Analyze every .py file of a directory (non-recursive) as one unit."""
        target = self._absolute(directory)
        self.telemetry.step(f"Analyzing package {target}")
        modules = self.astroid_gateway.parse_directory(str(target))
        return self.analyze_modules(str(target), list(modules.values()))

    def analyze_modules(
        self, unit_name: str, modules: Sequence[astroid.nodes.Module]
    ) -> Iterator[Violation]:
        """Analyze already-parsed modules. All of them share one ProgramModel."""
        model = self.type_checker.check(unit_name, modules)
        per_file = [self._walk(module, model) for module in model.modules]
        violations = list(self.collector.collect(per_file))
        self.telemetry.step(
            f"{unit_name}: {len(model.modules)} file(s), {len(violations)} violation(s)"
        )
        return iter(violations)

    def _walk(self, module: astroid.nodes.Module, model: ProgramModel) -> list[Violation]:
        violations: list[Violation] = []
        for call in module.nodes_of_class(astroid.nodes.Call):
            violations.extend(self.rule.check(call, model))
        return violations

    @staticmethod
    def _absolute(path: str) -> Path:
        if not path:
            raise ParseError(path, "empty path")
        target = Path(path)
        if not target.is_absolute():
            target = Path.cwd() / target
        return target
