"""Call-target shapes and the resolver that walks member-access chains.

The base of a `x.attr(...)` call is described as exactly one of a closed set
of shapes. Anything outside that set raises AnalysisInvariantError rather than
being classified.
"""

from dataclasses import dataclass
from typing import ClassVar, Optional, Union

import astroid

from pydemeter.domain.entities import NodeLocation, ProgramModel, SymbolKind
from pydemeter.domain.errors import AnalysisInvariantError


@dataclass(frozen=True)
class Identifier:
    """A bare name: `x` in `x.run()`."""

    node: astroid.nodes.Name

    @property
    def name(self) -> str:
        return str(self.node.name)


@dataclass(frozen=True)
class MemberAccess:
    """An attribute access with its own described base: `x.y` in `x.y.run()`."""

    node: astroid.nodes.Attribute
    base: "CallTarget"

    @property
    def name(self) -> str:
        return str(self.node.attrname)


@dataclass(frozen=True)
class TypeAssertion:
    """`cast(T, x)`: narrows the type of its operand, never constitutes access."""

    node: astroid.nodes.Call
    operand: "CallTarget"


@dataclass(frozen=True)
class Transparent:
    """`await x`, `x[i]` and `(n := x)` stand for the object they wrap."""

    node: astroid.nodes.NodeNG
    operand: "CallTarget"


@dataclass(frozen=True)
class CallResult:
    """The value returned by another call."""

    node: astroid.nodes.Call


@dataclass(frozen=True)
class SuperReference:
    """`super()`: the receiver seen through its parent class."""

    node: astroid.nodes.Call


@dataclass(frozen=True)
class Construction:
    """A value created in place: literals, displays, lambdas, operator results, instantiation."""

    node: astroid.nodes.NodeNG


@dataclass(frozen=True)
class Selection:
    """`a or b` / `x if c else y`: one of several objects, chosen at runtime."""

    node: astroid.nodes.NodeNG


CallTarget = Union[
    Identifier,
    MemberAccess,
    TypeAssertion,
    Transparent,
    CallResult,
    SuperReference,
    Construction,
    Selection,
]


@dataclass(frozen=True)
class ResolvedTarget:
    """The object a method is called on (member) and what it was reached through (owner)."""

    owner: Optional[CallTarget]
    member: Union[Identifier, MemberAccess]

    @property
    def member_name(self) -> str:
        return self.member.name

    @property
    def owner_name(self) -> Optional[str]:
        if isinstance(self.owner, (Identifier, MemberAccess)):
            return self.owner.name
        return None


CONSTRUCTION_NODES: tuple[type, ...] = (
    astroid.nodes.Const,
    astroid.nodes.List,
    astroid.nodes.Tuple,
    astroid.nodes.Set,
    astroid.nodes.Dict,
    astroid.nodes.ListComp,
    astroid.nodes.SetComp,
    astroid.nodes.DictComp,
    astroid.nodes.GeneratorExp,
    astroid.nodes.JoinedStr,
    astroid.nodes.BinOp,
    astroid.nodes.UnaryOp,
    astroid.nodes.Compare,
    astroid.nodes.Lambda,
)


class CallTargetResolver:
    """Describes call-target expressions and resolves member-access chains. Stateless."""

    _DESCRIBERS: ClassVar[dict[Union[type, tuple[type, ...]], str]] = {
        astroid.nodes.Name: "_describe_name",
        astroid.nodes.Attribute: "_describe_attribute",
        astroid.nodes.Call: "_describe_call",
        (astroid.nodes.Subscript, astroid.nodes.Await, astroid.nodes.NamedExpr): "_describe_transparent",
        (astroid.nodes.BoolOp, astroid.nodes.IfExp): "_describe_selection",
        CONSTRUCTION_NODES: "_describe_construction",
    }

    def describe(self, expr: astroid.nodes.NodeNG, model: ProgramModel) -> CallTarget:
        """Map an expression to its call-target shape."""
        for node_type, method_name in self._DESCRIBERS.items():
            if isinstance(expr, node_type):
                return getattr(self, method_name)(expr, model)
        raise AnalysisInvariantError(
            NodeLocation.of(expr),
            f"unsupported call target shape {type(expr).__name__}: {expr.as_string()}",
        )

    @staticmethod
    def strip(target: CallTarget) -> CallTarget:
        """Remove any number of type assertions and transparent wrappers."""
        while isinstance(target, (TypeAssertion, Transparent)):
            target = target.operand
        return target

    def resolve(self, attribute: astroid.nodes.Attribute, model: ProgramModel) -> ResolvedTarget:
        """
        Resolve the object a method is called on.

        `x.m()` resolves to (owner=None, member=x); `a.b.c.m()` to
        (owner=b, member=c). Bases that are not identifiers or member
        accesses are handled by the classifier before resolution.
        """
        base = self.strip(self.describe(attribute.expr, model))
        if isinstance(base, Identifier):
            return ResolvedTarget(owner=None, member=base)
        if isinstance(base, MemberAccess):
            return ResolvedTarget(owner=self.strip(base.base), member=base)
        raise AnalysisInvariantError(
            NodeLocation.of(attribute),
            f"call target '{attribute.as_string()}' is not rooted in a member-access chain",
        )

    def _describe_name(self, node: astroid.nodes.Name, model: ProgramModel) -> CallTarget:
        return Identifier(node)

    def _describe_attribute(self, node: astroid.nodes.Attribute, model: ProgramModel) -> CallTarget:
        return MemberAccess(node, self.describe(node.expr, model))

    def _describe_call(self, node: astroid.nodes.Call, model: ProgramModel) -> CallTarget:
        operand = model.assertions.get(node)
        if operand is not None:
            return TypeAssertion(node, self.describe(operand, model))
        func = node.func
        if (
            isinstance(func, astroid.nodes.Name)
            and func.name == "super"
            and model.symbol_of(func) is SymbolKind.BUILTIN
        ):
            return SuperReference(node)
        if node in model.constructions:
            return Construction(node)
        return CallResult(node)

    def _describe_transparent(self, node: astroid.nodes.NodeNG, model: ProgramModel) -> CallTarget:
        return Transparent(node, self.describe(node.value, model))

    def _describe_selection(self, node: astroid.nodes.NodeNG, model: ProgramModel) -> CallTarget:
        return Selection(node)

    def _describe_construction(self, node: astroid.nodes.NodeNG, model: ProgramModel) -> CallTarget:
        return Construction(node)
