"""
Pylint plugin entry point - composition root for the checker plugin.
Lives in infrastructure as it creates the container and wires dependencies.
"""

from pylint.lint import PyLinter

from pydemeter.infrastructure.di.container import DemeterContainer
from pydemeter.use_cases.checks.demeter import DemeterChecker


def register(linter: PyLinter) -> None:
    """Register checkers."""
    container = DemeterContainer.get_instance()
    linter.register_checker(
        DemeterChecker(
            linter,
            type_checker=container.get_type_checker(),
            rule=container.get_rule(),
        )
    )
