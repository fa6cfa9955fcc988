"""Package entry point - composition root. Wire dependencies and run the CLI app."""

from pydemeter.domain.config import ConfigurationLoader
from pydemeter.infrastructure.di.container import DemeterContainer
from pydemeter.infrastructure.reporters import TerminalViolationReporter
from pydemeter.interface.cli import CLIAppFactory, CLIDependencies
from pydemeter.use_cases.analyze import AnalyzeUseCase


def _build_use_case(config_loader: ConfigurationLoader) -> AnalyzeUseCase:
    return DemeterContainer(config_loader).get_analyze_use_case()


def main() -> None:
    """Entry point: wire dependencies at composition root, create app, run."""
    deps = CLIDependencies(
        reporter=TerminalViolationReporter(),
        load_config=DemeterContainer.load_config,
        build_use_case=_build_use_case,
    )
    app = CLIAppFactory.create_app(deps)
    app()


if __name__ == "__main__":
    main()
