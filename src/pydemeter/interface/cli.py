"""CLI entry point for pydemeter - Thin Controller using Typer."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer

from pydemeter.domain.config import ConfigurationLoader
from pydemeter.domain.errors import DemeterError
from pydemeter.domain.protocols import ViolationReporterProtocol
from pydemeter.use_cases.analyze import AnalyzeUseCase

_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class CLIDependencies:
    """Explicit dependencies for the CLI. All dependencies injected at composition root."""

    reporter: ViolationReporterProtocol
    load_config: Callable[[Optional[Path]], ConfigurationLoader]
    build_use_case: Callable[[ConfigurationLoader], AnalyzeUseCase]


class CLIAppFactory:
    """Creates the Typer app."""

    @staticmethod
    def configure_logging(config_loader: ConfigurationLoader, verbose: bool) -> None:
        level = logging.DEBUG if verbose else getattr(logging, config_loader.log_level)
        logging.basicConfig(level=level, format=_LOG_FORMAT, force=True)

    @staticmethod
    def create_app(deps: CLIDependencies) -> typer.Typer:
        """Create the Typer app with explicitly injected dependencies."""
        app = typer.Typer(
            name="pydemeter",
            help="Report method calls that violate the Law of Demeter.",
            add_completion=False,
        )

        @app.command()
        def check(
            path: Path = typer.Argument(Path("."), help="File or package directory to analyze"),  # noqa: B008
            config: Optional[Path] = typer.Option(  # noqa: B008
                None, "--config", help="pyproject.toml to read [tool.pydemeter] from"
            ),
            verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every decision"),
        ) -> None:
            """Analyze PATH and print one line per violation."""
            try:
                config_loader = deps.load_config(config)
                CLIAppFactory.configure_logging(config_loader, verbose)
                use_case = deps.build_use_case(config_loader)
                violations = use_case.analyze_path(str(path))
            except DemeterError as exc:
                deps.reporter.report_error(exc)
                raise typer.Exit(code=1) from exc
            deps.reporter.report(violations)

        return app
