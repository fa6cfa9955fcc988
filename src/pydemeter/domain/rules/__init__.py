"""Domain models for rules and violations."""

from dataclasses import dataclass

__all__ = [
    "Violation",
]

import astroid


@dataclass(frozen=True)
class Violation:
    """A Law of Demeter violation: where the call is and how its target reads."""

    filename: str
    line: int
    column: int
    expr: str

    @property
    def location(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"

    @property
    def sort_key(self) -> tuple[str, int, int]:
        return (self.filename, self.line, self.column)

    @classmethod
    def from_node(cls, node: astroid.nodes.Call) -> "Violation":
        """Build a Violation for a call. Column is 1-based; text is the rendered call target."""
        root = node.root()
        filename = getattr(root, "file", "") or ""
        return cls(
            filename=filename,
            line=getattr(node, "lineno", 0) or 0,
            column=(getattr(node, "col_offset", 0) or 0) + 1,
            expr=node.func.as_string(),
        )
