from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, cast

from pydemeter.domain.config import ConfigurationLoader
from pydemeter.domain.rules.demeter import LawOfDemeterRule
from pydemeter.domain.services.violation_collector import ViolationCollector
from pydemeter.infrastructure.config_file_loader import ConfigFileLoader
from pydemeter.infrastructure.gateways.astroid_gateway import AstroidGateway
from pydemeter.infrastructure.services.type_checker import TypeCheckService
from pydemeter.interface.telemetry import ProjectTelemetry
from pydemeter.use_cases.analyze import AnalyzeUseCase

if TYPE_CHECKING:
    from pydemeter.domain.protocols import (
        AstroidProtocol,
        TelemetryPort,
        TypeCheckProtocol,
    )


class DemeterContainer:
    """Dependency Injection Container for the Demeter checker."""

    _instance: Optional["DemeterContainer"] = None

    def __init__(self, config_loader: Optional[ConfigurationLoader] = None) -> None:
        self._singletons: dict[str, Any] = {}
        self._register_defaults(config_loader)

    @staticmethod
    def load_config(config_file: Optional[Path] = None) -> ConfigurationLoader:
        """Read [tool.pydemeter] from config_file, or from the nearest pyproject.toml."""
        if config_file is None:
            return ConfigurationLoader(ConfigFileLoader.load_config_from_fs())
        return ConfigurationLoader(ConfigFileLoader.load_config_from_file(config_file))

    def _register_defaults(self, config_loader: Optional[ConfigurationLoader]) -> None:
        """Register default implementations for protocols."""
        config_loader = config_loader or self.load_config()
        self.register_singleton("ConfigurationLoader", config_loader)

        telemetry = ProjectTelemetry("pydemeter")
        self.register_singleton("TelemetryPort", telemetry)
        astroid_gateway = AstroidGateway()
        self.register_singleton("AstroidGateway", astroid_gateway)
        type_checker = TypeCheckService(config_loader)
        self.register_singleton("TypeCheckService", type_checker)
        rule = LawOfDemeterRule()
        self.register_singleton("LawOfDemeterRule", rule)
        collector = ViolationCollector()
        self.register_singleton("ViolationCollector", collector)
        self.register_singleton(
            "AnalyzeUseCase",
            AnalyzeUseCase(
                astroid_gateway=astroid_gateway,
                type_checker=type_checker,
                rule=rule,
                collector=collector,
                telemetry=telemetry,
            ),
        )

    def register_singleton(self, key: str, instance: Any) -> None:
        """Register a singleton instance."""
        self._singletons[key] = instance

    def get(self, key: str) -> Any:
        """Retrieve a dependency by key. Prefer explicit get_* methods for type safety."""
        if key in self._singletons:
            return self._singletons[key]
        raise ValueError(f"Dependency '{key}' not registered.")

    def get_config_loader(self) -> ConfigurationLoader:
        return cast(ConfigurationLoader, self.get("ConfigurationLoader"))

    def get_telemetry_port(self) -> "TelemetryPort":
        """Return the telemetry port."""
        return cast("TelemetryPort", self.get("TelemetryPort"))

    def get_astroid_gateway(self) -> "AstroidProtocol":
        return cast("AstroidProtocol", self.get("AstroidGateway"))

    def get_type_checker(self) -> "TypeCheckProtocol":
        return cast("TypeCheckProtocol", self.get("TypeCheckService"))

    def get_rule(self) -> LawOfDemeterRule:
        return cast(LawOfDemeterRule, self.get("LawOfDemeterRule"))

    def get_analyze_use_case(self) -> AnalyzeUseCase:
        return cast(AnalyzeUseCase, self.get("AnalyzeUseCase"))

    @classmethod
    def get_instance(cls) -> "DemeterContainer":
        """Get or create global container instance."""
        if cls._instance is None:
            cls._instance = DemeterContainer()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton instance (primarily for testing)."""
        cls._instance = None
