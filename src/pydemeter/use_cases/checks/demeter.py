"""Law of Demeter check (W9006, E9007)."""

from typing import TYPE_CHECKING, Optional

import astroid
from pylint.checkers import BaseChecker

if TYPE_CHECKING:
    from pylint.lint import PyLinter

from pydemeter.domain.entities import ProgramModel
from pydemeter.domain.errors import DemeterError
from pydemeter.domain.protocols import TypeCheckProtocol
from pydemeter.domain.rules.demeter import LawOfDemeterRule


class DemeterChecker(BaseChecker):
    """Law of Demeter enforcement. Thin: delegates to LawOfDemeterRule."""

    name: str = "law-of-demeter"
    msgs = {
        "W9006": (
            "Law of Demeter: %s",
            LawOfDemeterRule.symbol,
            LawOfDemeterRule.description,
        ),
        "E9007": (
            "Demeter analysis failed: %s",
            "demeter-analysis-error",
            "The module could not be type-checked or a call could not be classified.",
        ),
    }

    def __init__(
        self,
        linter: "PyLinter",
        type_checker: TypeCheckProtocol,
        rule: Optional[LawOfDemeterRule] = None,
    ) -> None:
        super().__init__(linter)
        self._type_checker = type_checker
        self._rule = rule or LawOfDemeterRule()
        self._model: Optional[ProgramModel] = None

    def visit_module(self, node: astroid.nodes.Module) -> None:
        self._model = None
        try:
            self._model = self._type_checker.check(node.file or node.name, [node])
        except DemeterError as exc:
            self.add_message("E9007", node=node, args=(str(exc),))

    def leave_module(self, node: astroid.nodes.Module) -> None:
        self._model = None

    def visit_call(self, node: astroid.nodes.Call) -> None:
        if self._model is None:
            return
        try:
            violations = self._rule.check(node, self._model)
        except DemeterError as exc:
            self.add_message("E9007", node=node, args=(str(exc),))
            return
        for v in violations:
            self.add_message(LawOfDemeterRule.code, node=node, args=(v.expr,))
