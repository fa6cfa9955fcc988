"""Program model entities: resolved symbols, method scopes and class layouts."""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import astroid

from pydemeter.domain.errors import AnalysisInvariantError


class SymbolKind(Enum):
    """Where a name load resolves to."""
    LOCAL = "local"
    ENCLOSING = "enclosing"
    CLASS = "class"
    GLOBAL = "global"
    BUILTIN = "builtin"
    MODULE = "module"


class CalleeKind(Enum):
    """What the attribute of a `x.attr(...)` call resolves to."""
    METHOD = "method"
    FUNCTION = "function"
    CONSTRUCTOR = "constructor"
    MODULE_MEMBER = "module_member"
    UNKNOWN = "unknown"

    @property
    def has_receiver(self) -> bool:
        """Unknown callees are treated as methods: the base is a value, not a namespace."""
        return self in (CalleeKind.METHOD, CalleeKind.UNKNOWN)


class BindingOrigin(Enum):
    """How the first assignment of a local name initialized it."""
    CONSTRUCTION = "construction"
    ALLOCATION = "allocation"
    CALL = "call"
    OTHER = "other"


@dataclass(frozen=True)
class Binding:
    """A local name bound by an assignment statement, tagged with its provenance."""

    name: str
    origin: BindingOrigin
    lineno: int

    @property
    def is_borrowed(self) -> bool:
        """True if the object was obtained by calling out rather than instantiated here."""
        return self.origin is BindingOrigin.CALL


@dataclass(frozen=True)
class MethodDeclaration:
    """A function bound to a class through its receiver parameter."""

    node: astroid.nodes.FunctionDef
    name: str
    receiver: str
    parameters: frozenset[str]
    local_names: frozenset[str]
    bindings: Mapping[str, Binding]
    owner: astroid.nodes.ClassDef


@dataclass(frozen=True)
class ClassLayout:
    """Direct fields of a class. Inherited attributes are not included."""

    name: str
    fields: frozenset[str]
    is_aggregate: bool = True

    def has_field(self, name: str) -> bool:
        return self.is_aggregate and name in self.fields


@dataclass(frozen=True)
class ProgramModel:
    """
    Read-only resolution context for one compilation unit.

    Built once by the type-check step; every classification receives it
    explicitly. All lookups are keyed by astroid node identity.
    """

    unit_name: str
    modules: tuple[astroid.nodes.Module, ...]
    symbols: Mapping[astroid.nodes.Name, SymbolKind]
    callees: Mapping[astroid.nodes.Call, CalleeKind]
    assertions: Mapping[astroid.nodes.Call, astroid.nodes.NodeNG]
    constructions: frozenset[astroid.nodes.Call]
    methods: Mapping[astroid.nodes.FunctionDef, MethodDeclaration]
    layouts: Mapping[astroid.nodes.ClassDef, ClassLayout]

    def symbol_of(self, node: astroid.nodes.Name) -> SymbolKind:
        try:
            return self.symbols[node]
        except KeyError:
            raise AnalysisInvariantError(
                NodeLocation.of(node), f"unresolved name '{node.name}'"
            ) from None

    def callee_of(self, node: astroid.nodes.Call) -> CalleeKind:
        try:
            return self.callees[node]
        except KeyError:
            raise AnalysisInvariantError(
                NodeLocation.of(node), f"unresolved call target '{node.func.as_string()}'"
            ) from None

    def method_for(self, node: astroid.nodes.FunctionDef) -> Optional[MethodDeclaration]:
        """Return the method declared by node, or None for free functions and staticmethods."""
        return self.methods.get(node)

    def layout_of(self, node: astroid.nodes.ClassDef) -> ClassLayout:
        try:
            return self.layouts[node]
        except KeyError:
            raise AnalysisInvariantError(
                NodeLocation.of(node), f"unresolved class '{node.name}'"
            ) from None


class NodeLocation:
    """Formats `path:line:column` (1-based column) for astroid nodes."""

    @staticmethod
    def of(node: astroid.nodes.NodeNG) -> str:
        root = node.root()
        path = getattr(root, "file", "") or getattr(root, "name", "")
        lineno = getattr(node, "lineno", 0) or 0
        col_offset = getattr(node, "col_offset", 0) or 0
        return f"{path}:{lineno}:{col_offset + 1}"


class Verdict(Enum):
    ALLOWED = "allowed"
    VIOLATION = "violation"


@dataclass(frozen=True)
class Decision:
    """Outcome of classifying one call, with the rule that produced it."""

    verdict: Verdict
    reason: str

    @property
    def is_violation(self) -> bool:
        return self.verdict is Verdict.VIOLATION

    @classmethod
    def allowed(cls, reason: str) -> "Decision":
        return cls(Verdict.ALLOWED, reason)

    @classmethod
    def violation(cls, reason: str) -> "Decision":
        return cls(Verdict.VIOLATION, reason)
