"""Errors raised while parsing, type-checking or classifying a compilation unit."""


class DemeterError(Exception):
    """Base class for fatal analysis errors. Never carries partial results."""


class ParseError(DemeterError):
    """Source could not be read or parsed into a syntax tree."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path
        self.message = message


class TypeCheckError(DemeterError):
    """One or more identifiers of a unit could not be resolved."""

    def __init__(self, unit: str, errors: tuple[str, ...]) -> None:
        first = errors[0] if errors else "type check failed"
        suffix = f" (and {len(errors) - 1} more)" if len(errors) > 1 else ""
        super().__init__(f"{first}{suffix}")
        self.unit = unit
        self.errors = errors


class AnalysisInvariantError(DemeterError):
    """The classifier met an expression it cannot attribute to a known symbol kind."""

    def __init__(self, location: str, message: str) -> None:
        super().__init__(f"{location}: {message}")
        self.location = location
        self.message = message
