"""Type-check step: resolves every symbol the Demeter rule needs into a ProgramModel."""

import logging
from collections.abc import Sequence
from types import MappingProxyType
from typing import ClassVar, Optional

import astroid
from astroid import bases
from astroid.exceptions import AstroidError

from pydemeter.domain.config import ConfigurationLoader
from pydemeter.domain.entities import (
    Binding,
    BindingOrigin,
    CalleeKind,
    ClassLayout,
    MethodDeclaration,
    NodeLocation,
    ProgramModel,
    SymbolKind,
)
from pydemeter.domain.errors import TypeCheckError
from pydemeter.domain.protocols import TypeCheckProtocol
from pydemeter.domain.rules.call_target import CONSTRUCTION_NODES

_logger = logging.getLogger(__name__)

_NESTED_SCOPES: tuple[type, ...] = (astroid.nodes.FunctionDef, astroid.nodes.ClassDef)


class TypeCheckService(TypeCheckProtocol):
    """
    Builds the read-only ProgramModel for a compilation unit.

    All astroid lookups and inference happen here, once, before any call is
    classified. Unresolvable runtime names make the whole unit fail.
    """

    _IMPLICIT_NAMES: ClassVar[frozenset[str]] = frozenset(
        {
            "__annotations__",
            "__builtins__",
            "__class__",
            "__debug__",
            "__dict__",
            "__doc__",
            "__file__",
            "__loader__",
            "__module__",
            "__name__",
            "__package__",
            "__path__",
            "__qualname__",
            "__spec__",
        }
    )
    _PRIMITIVE_BASES: ClassVar[frozenset[str]] = frozenset(
        {"str", "int", "float", "bytes", "bool", "complex"}
    )
    _PROTOCOL_BASES: ClassVar[frozenset[str]] = frozenset(
        {"Protocol", "typing.Protocol", "typing_extensions.Protocol"}
    )

    def __init__(self, config_loader: ConfigurationLoader) -> None:
        self._config_loader = config_loader

    def check(
        self, unit_name: str, modules: Sequence[astroid.nodes.Module]
    ) -> ProgramModel:
        symbols: dict[astroid.nodes.Name, SymbolKind] = {}
        errors: list[str] = []
        for module in modules:
            errors.extend(self._resolve_names(module, symbols))
        if errors:
            raise TypeCheckError(unit_name, tuple(errors))

        callees: dict[astroid.nodes.Call, CalleeKind] = {}
        assertions: dict[astroid.nodes.Call, astroid.nodes.NodeNG] = {}
        constructions: set[astroid.nodes.Call] = set()
        for module in modules:
            for call in module.nodes_of_class(astroid.nodes.Call):
                inferred = self._first_inferred(call.func)
                if self._is_assertion(call, inferred):
                    assertions[call] = call.args[-1]
                elif self._is_allocation(call, inferred):
                    constructions.add(call)
                if isinstance(call.func, astroid.nodes.Attribute):
                    callees[call] = self._callee_kind(call, inferred, symbols)

        layouts: dict[astroid.nodes.ClassDef, ClassLayout] = {}
        methods: dict[astroid.nodes.FunctionDef, MethodDeclaration] = {}
        for module in modules:
            for klass in module.nodes_of_class(astroid.nodes.ClassDef):
                layouts[klass] = self._layout(klass)
            for func in module.nodes_of_class(astroid.nodes.FunctionDef):
                declaration = self._declaration(func, assertions, constructions)
                if declaration is not None:
                    methods[func] = declaration

        _logger.debug(
            "type-checked %s: %d modules, %d classes, %d methods",
            unit_name,
            len(modules),
            len(layouts),
            len(methods),
        )
        return ProgramModel(
            unit_name=unit_name,
            modules=tuple(modules),
            symbols=MappingProxyType(symbols),
            callees=MappingProxyType(callees),
            assertions=MappingProxyType(assertions),
            constructions=frozenset(constructions),
            methods=MappingProxyType(methods),
            layouts=MappingProxyType(layouts),
        )

    # -- names ---------------------------------------------------------------

    def _resolve_names(
        self,
        module: astroid.nodes.Module,
        symbols: dict[astroid.nodes.Name, SymbolKind],
    ) -> list[str]:
        errors: list[str] = []
        wildcard = self._has_wildcard_import(module)
        if wildcard:
            _logger.debug("%s: wildcard import, unresolved names not checked", module.name)
        for name in module.nodes_of_class(astroid.nodes.Name):
            kind = self._symbol_kind(name)
            if kind is not None:
                symbols[name] = kind
                continue
            if wildcard:
                # Presumed to come from the star import.
                symbols[name] = SymbolKind.GLOBAL
                continue
            if self._in_annotation(name):
                continue
            errors.append(f"{NodeLocation.of(name)}: undefined name '{name.name}'")
        return errors

    def _symbol_kind(self, name: astroid.nodes.Name) -> Optional[SymbolKind]:
        if name.name in self._IMPLICIT_NAMES:
            return SymbolKind.GLOBAL
        try:
            scope, stmts = name.lookup(name.name)
        except (AstroidError, AttributeError):
            return None
        if not stmts:
            return None
        if self._binds_module(stmts[0], name):
            return SymbolKind.MODULE
        if isinstance(scope, astroid.nodes.Module):
            return SymbolKind.BUILTIN if scope.name == "builtins" else SymbolKind.GLOBAL
        if isinstance(scope, astroid.nodes.ClassDef):
            return SymbolKind.CLASS
        current = name.scope()
        while current is not scope:
            if isinstance(current, (*_NESTED_SCOPES, astroid.nodes.Module)):
                return SymbolKind.ENCLOSING
            current = current.parent.scope()
        return SymbolKind.LOCAL

    def _binds_module(self, stmt: astroid.nodes.NodeNG, name: astroid.nodes.Name) -> bool:
        if isinstance(stmt, astroid.nodes.Import):
            return True
        if isinstance(stmt, astroid.nodes.ImportFrom):
            return isinstance(self._first_inferred(name), astroid.nodes.Module)
        return False

    @staticmethod
    def _has_wildcard_import(module: astroid.nodes.Module) -> bool:
        return any(
            alias == "*"
            for node in module.nodes_of_class(astroid.nodes.ImportFrom)
            for alias, _ in node.names
        )

    @staticmethod
    def _in_annotation(node: astroid.nodes.NodeNG) -> bool:
        """True for names only evaluated by type checkers (annotations)."""
        child, parent = node, node.parent
        while parent is not None:
            if isinstance(parent, astroid.nodes.AnnAssign) and child is parent.annotation:
                return True
            if isinstance(parent, astroid.nodes.FunctionDef) and child is parent.returns:
                return True
            if isinstance(parent, astroid.nodes.Arguments):
                annotations = [
                    *parent.annotations,
                    *parent.posonlyargs_annotations,
                    *parent.kwonlyargs_annotations,
                    parent.varargannotation,
                    parent.kwargannotation,
                ]
                return any(child is annotation for annotation in annotations)
            child, parent = parent, parent.parent
        return False

    # -- calls ---------------------------------------------------------------

    @staticmethod
    def _first_inferred(node: astroid.nodes.NodeNG) -> Optional[astroid.nodes.NodeNG]:
        try:
            for inferred in node.infer():
                if inferred is not astroid.Uninferable:
                    return inferred
        except (AstroidError, AttributeError, RecursionError):
            return None
        return None

    @staticmethod
    def _qname(inferred: Optional[astroid.nodes.NodeNG]) -> Optional[str]:
        qname = getattr(inferred, "qname", None)
        if not callable(qname):
            return None
        try:
            value = qname()
        except (AstroidError, AttributeError):
            return None
        return value if isinstance(value, str) else None

    def _dotted_names(
        self, call: astroid.nodes.Call, inferred: Optional[astroid.nodes.NodeNG]
    ) -> set[str]:
        names = {call.func.as_string()}
        qname = self._qname(inferred)
        if qname:
            names.add(qname)
        return names

    def _is_assertion(
        self, call: astroid.nodes.Call, inferred: Optional[astroid.nodes.NodeNG]
    ) -> bool:
        if not call.args:
            return False
        return bool(
            self._dotted_names(call, inferred) & self._config_loader.assertion_functions
        )

    def _is_allocation(
        self, call: astroid.nodes.Call, inferred: Optional[astroid.nodes.NodeNG]
    ) -> bool:
        if isinstance(inferred, astroid.nodes.ClassDef):
            return True
        return bool(
            self._dotted_names(call, inferred) & self._config_loader.allocation_primitives
        )

    def _callee_kind(
        self,
        call: astroid.nodes.Call,
        inferred: Optional[astroid.nodes.NodeNG],
        symbols: dict[astroid.nodes.Name, SymbolKind],
    ) -> CalleeKind:
        base = call.func.expr
        if isinstance(base, astroid.nodes.Name) and symbols.get(base) is SymbolKind.MODULE:
            return CalleeKind.MODULE_MEMBER
        if inferred is None:
            if isinstance(self._first_inferred(base), astroid.nodes.Module):
                return CalleeKind.MODULE_MEMBER
            return CalleeKind.UNKNOWN
        if isinstance(inferred, bases.UnboundMethod):
            return CalleeKind.METHOD
        if isinstance(inferred, astroid.nodes.ClassDef):
            return CalleeKind.CONSTRUCTOR
        if isinstance(inferred, astroid.nodes.FunctionDef):
            if inferred.is_method() and inferred.type in ("method", "classmethod"):
                return CalleeKind.METHOD
            return CalleeKind.FUNCTION
        if isinstance(inferred, astroid.nodes.Lambda):
            return CalleeKind.FUNCTION
        return CalleeKind.UNKNOWN

    # -- classes and methods -------------------------------------------------

    def _layout(self, klass: astroid.nodes.ClassDef) -> ClassLayout:
        fields: set[str] = set(klass.instance_attrs)
        for name, assigned in klass.locals.items():
            if any(isinstance(node, astroid.nodes.AssignName) for node in assigned):
                fields.add(name)
        fields.update(self._slots(klass))
        return ClassLayout(
            name=klass.name,
            fields=frozenset(fields),
            is_aggregate=self._is_aggregate(klass),
        )

    @staticmethod
    def _slots(klass: astroid.nodes.ClassDef) -> set[str]:
        try:
            slots = klass.slots() or []
        except (AstroidError, NotImplementedError, AttributeError):
            return set()
        return {str(slot.value) for slot in slots if isinstance(getattr(slot, "value", None), str)}

    def _is_aggregate(self, klass: astroid.nodes.ClassDef) -> bool:
        base_names = {base.as_string().split("[", 1)[0] for base in klass.bases}
        return not (base_names & (self._PROTOCOL_BASES | self._PRIMITIVE_BASES))

    def _declaration(
        self,
        func: astroid.nodes.FunctionDef,
        assertions: dict[astroid.nodes.Call, astroid.nodes.NodeNG],
        constructions: set[astroid.nodes.Call],
    ) -> Optional[MethodDeclaration]:
        owner = func.parent
        if not isinstance(owner, astroid.nodes.ClassDef) or func.type == "staticmethod":
            return None
        args = func.args
        positional = [*(args.posonlyargs or []), *(args.args or [])]
        if not positional:
            return None
        parameters = {arg.name for arg in positional[1:]}
        parameters.update(arg.name for arg in args.kwonlyargs or [])
        if args.vararg:
            parameters.add(args.vararg)
        if args.kwarg:
            parameters.add(args.kwarg)
        return MethodDeclaration(
            node=func,
            name=func.name,
            receiver=positional[0].name,
            parameters=frozenset(parameters),
            local_names=frozenset(self._local_names(func)),
            bindings=MappingProxyType(self._bindings(func, assertions, constructions)),
            owner=owner,
        )

    @staticmethod
    def _body_names(func: astroid.nodes.FunctionDef) -> list[astroid.nodes.AssignName]:
        """AssignName nodes of the body, lambdas and comprehensions included, nested defs excluded."""
        names: list[astroid.nodes.AssignName] = []
        for stmt in func.body:
            if isinstance(stmt, _NESTED_SCOPES):
                continue
            names.extend(stmt.nodes_of_class(astroid.nodes.AssignName, skip_klass=_NESTED_SCOPES))
        return names

    def _local_names(self, func: astroid.nodes.FunctionDef) -> set[str]:
        names = set(func.locals)
        names.update(node.name for node in self._body_names(func))
        return names

    def _bindings(
        self,
        func: astroid.nodes.FunctionDef,
        assertions: dict[astroid.nodes.Call, astroid.nodes.NodeNG],
        constructions: set[astroid.nodes.Call],
    ) -> dict[str, Binding]:
        """Record the first binding of every local name with its provenance."""
        bindings: dict[str, Binding] = {}
        for node in self._body_names(func):
            if node.name in bindings or node.scope() is not func:
                continue
            origin = self._origin(node, assertions, constructions)
            bindings[node.name] = Binding(node.name, origin, node.lineno or 0)
        return bindings

    def _origin(
        self,
        node: astroid.nodes.AssignName,
        assertions: dict[astroid.nodes.Call, astroid.nodes.NodeNG],
        constructions: set[astroid.nodes.Call],
    ) -> BindingOrigin:
        parent = node.parent
        if isinstance(parent, (astroid.nodes.Assign, astroid.nodes.AnnAssign, astroid.nodes.NamedExpr)):
            if parent.value is None:
                return BindingOrigin.OTHER
            return self._initializer_origin(parent.value, assertions, constructions)
        while isinstance(parent, (astroid.nodes.Tuple, astroid.nodes.List, astroid.nodes.Starred)):
            parent = parent.parent
        if isinstance(parent, astroid.nodes.Assign):
            value = self._unwrap(parent.value, assertions)
            if isinstance(value, astroid.nodes.Call) and value not in constructions:
                return BindingOrigin.CALL
        return BindingOrigin.OTHER

    @staticmethod
    def _unwrap(
        value: astroid.nodes.NodeNG,
        assertions: dict[astroid.nodes.Call, astroid.nodes.NodeNG],
    ) -> astroid.nodes.NodeNG:
        while True:
            if isinstance(value, astroid.nodes.Await):
                value = value.value
            elif isinstance(value, astroid.nodes.Call) and value in assertions:
                value = assertions[value]
            else:
                return value

    def _initializer_origin(
        self,
        value: astroid.nodes.NodeNG,
        assertions: dict[astroid.nodes.Call, astroid.nodes.NodeNG],
        constructions: set[astroid.nodes.Call],
    ) -> BindingOrigin:
        value = self._unwrap(value, assertions)
        if isinstance(value, astroid.nodes.Call):
            if value in constructions:
                return BindingOrigin.ALLOCATION
            return BindingOrigin.CALL
        if isinstance(value, CONSTRUCTION_NODES):
            return BindingOrigin.CONSTRUCTION
        return BindingOrigin.OTHER
