"""Logging-backed telemetry for CLI progress."""

import logging


class ProjectTelemetry:
    """Implements TelemetryPort. Progress goes to the log, never to stdout."""

    def __init__(self, project_name: str) -> None:
        self.project_name = project_name
        self.logger = logging.getLogger(project_name)

    def step(self, message: str) -> None:
        self.logger.info(message)

    def debug(self, message: str) -> None:
        self.logger.debug(message)

    def warning(self, message: str) -> None:
        self.logger.warning(message)

    def error(self, message: str) -> None:
        self.logger.error(message)
