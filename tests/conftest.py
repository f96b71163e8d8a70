import pytest

from drivers import build_driver_model
from engine import ExpenseEngine
from overrides import OverrideStore


@pytest.fixture(scope="session")
def drivers():
    return build_driver_model()


@pytest.fixture
def engine(drivers):
    return ExpenseEngine(drivers=drivers)


@pytest.fixture
def store():
    return OverrideStore()
