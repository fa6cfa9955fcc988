"""Law of Demeter rule (W9006)."""

import logging
from typing import Optional

import astroid

from pydemeter.domain.entities import (
    Decision,
    MethodDeclaration,
    NodeLocation,
    ProgramModel,
    SymbolKind,
)
from pydemeter.domain.rules import Violation
from pydemeter.domain.rules.call_target import (
    CallResult,
    CallTarget,
    CallTargetResolver,
    Construction,
    Identifier,
    ResolvedTarget,
    Selection,
    SuperReference,
)
from pydemeter.domain.rules.method_locator import MethodLocator

_logger = logging.getLogger(__name__)

_GLOBAL_KINDS: frozenset[SymbolKind] = frozenset(
    {SymbolKind.GLOBAL, SymbolKind.BUILTIN, SymbolKind.MODULE}
)


class LawOfDemeterRule:
    """
    Rule for W9006. Stateless: every decision is a function of the call,
    its enclosing method and the ProgramModel.

    A method may call methods of itself, its parameters, objects it creates,
    its direct components and globals. Rules are applied in order; the first
    match decides.
    """

    code: str = "W9006"
    symbol: str = "law-of-demeter-violation"
    description: str = "Law of Demeter: avoid chained calls and calls on stranger objects."

    def __init__(
        self,
        locator: Optional[MethodLocator] = None,
        resolver: Optional[CallTargetResolver] = None,
    ) -> None:
        self._locator = locator or MethodLocator()
        self._resolver = resolver or CallTargetResolver()

    def check(self, node: astroid.nodes.Call, model: ProgramModel) -> list[Violation]:
        """Check a Call. Returns at most one violation."""
        decision = self.classify(node, model)
        if not decision.is_violation:
            return []
        _logger.debug(
            "%s: %s (%s)", NodeLocation.of(node), node.func.as_string(), decision.reason
        )
        return [Violation.from_node(node)]

    def classify(self, node: astroid.nodes.Call, model: ProgramModel) -> Decision:
        func = node.func
        if not isinstance(func, astroid.nodes.Attribute):
            return Decision.allowed("not a member call")
        if not model.callee_of(node).has_receiver:
            return Decision.allowed("not a method call")

        method = self._locator.locate(node, model)
        if method is None:
            return Decision.allowed("not inside a method")

        base = self._resolver.strip(self._resolver.describe(func.expr, model))
        if isinstance(base, CallResult):
            return Decision.violation("chained call")
        if isinstance(base, Selection):
            return Decision.violation("call on a selected object")
        if self._is_receiver(base, method):
            return Decision.allowed("call on the receiver")
        if isinstance(base, Construction):
            return Decision.allowed("call on an object created in place")

        target = self._resolver.resolve(func, model)
        name = target.member_name
        if name in method.parameters:
            return Decision.allowed("call on a parameter")

        # Provenance belongs to bare names only; `self.f` is not the local `f`.
        binding = method.bindings.get(name) if isinstance(target.member, Identifier) else None
        if binding is not None and binding.is_borrowed:
            # Initialized in the method, instantiated elsewhere.
            return Decision.violation("call on an object obtained from another call")
        if name in method.local_names:
            return Decision.allowed("call on an object created in the method")

        if self._is_direct_component(target, method, model):
            return Decision.allowed("call on a direct component")
        if self._is_global(target, model):
            return Decision.allowed("call on a global object")
        return Decision.violation("call on a stranger")

    @staticmethod
    def _is_receiver(base: CallTarget, method: MethodDeclaration) -> bool:
        if isinstance(base, SuperReference):
            return True
        return isinstance(base, Identifier) and base.name == method.receiver

    @staticmethod
    def _is_direct_component(
        target: ResolvedTarget, method: MethodDeclaration, model: ProgramModel
    ) -> bool:
        layout = model.layout_of(method.owner)
        if not layout.has_field(target.member_name):
            return False
        return target.owner_name == method.receiver

    @staticmethod
    def _is_global(target: ResolvedTarget, model: ProgramModel) -> bool:
        owner = target.owner
        if owner is None and isinstance(target.member, Identifier):
            return model.symbol_of(target.member.node) in _GLOBAL_KINDS
        if isinstance(owner, Identifier):
            # module.NAME
            return model.symbol_of(owner.node) is SymbolKind.MODULE
        return False
