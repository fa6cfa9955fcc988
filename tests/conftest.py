"""Pytest configuration.

Run pytest from this project's root; pythonpath in pyproject.toml puts src/
and the project root on sys.path so tests import `pydemeter` and
`tests.linter_test_utils`.
"""

import pytest

from pydemeter.domain.config import ConfigurationLoader
from pydemeter.infrastructure.di.container import DemeterContainer
from pydemeter.infrastructure.services.type_checker import TypeCheckService


@pytest.fixture
def config_loader() -> ConfigurationLoader:
    return ConfigurationLoader({})


@pytest.fixture
def type_checker(config_loader: ConfigurationLoader) -> TypeCheckService:
    return TypeCheckService(config_loader)


@pytest.fixture(autouse=True)
def _reset_container():
    yield
    DemeterContainer.reset()
