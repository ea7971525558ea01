"""Root conftest for all tests.

Fixtures over the shared doubles in ``tests/helpers.py``. Every test gets
fresh engine state.
"""

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Add project root to path
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from chatguard.core.errors import UpstreamFailure
from chatguard.engine import ChatGuardEngine
from chatguard.main import create_app
from tests.helpers import FakeClock, FakeInference, make_engine


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def inference() -> FakeInference:
    return FakeInference()


@pytest.fixture
def failing_inference() -> FakeInference:
    return FakeInference(error=UpstreamFailure("ConnectError: connection refused"))


@pytest.fixture
def engine(clock: FakeClock, inference: FakeInference) -> ChatGuardEngine:
    return make_engine(clock=clock, inference=inference)


@pytest.fixture
def client(engine: ChatGuardEngine) -> TestClient:
    return TestClient(create_app(engine))
