"""Finds the method whose body encloses a node."""

from typing import Optional

import astroid

from pydemeter.domain.entities import MethodDeclaration, ProgramModel


class MethodLocator:
    """
    Walks outward from a node to the nearest enclosing function declaration.

    Lambdas and comprehensions are transparent: a call inside them belongs to
    the surrounding function. Decorators, defaults and annotations are not
    part of a function's body and belong to the scope around the function.
    """

    def locate(
        self, node: astroid.nodes.NodeNG, model: ProgramModel
    ) -> Optional[MethodDeclaration]:
        """Return the enclosing method, or None if the nearest function is not a method."""
        child: astroid.nodes.NodeNG = node
        parent: Optional[astroid.nodes.NodeNG] = node.parent
        while parent is not None:
            if isinstance(parent, astroid.nodes.FunctionDef) and self._in_body(child, parent):
                return model.method_for(parent)
            child, parent = parent, parent.parent
        return None

    @staticmethod
    def _in_body(child: astroid.nodes.NodeNG, func: astroid.nodes.FunctionDef) -> bool:
        return any(stmt is child for stmt in func.body)
