"""
Pytest configuration and fixtures
"""
import pytest

from blinthe.vault import EncryptedStore, MemoryStorage, SessionManager


class FakeClock:
    """Manually advanced wall clock for deadline checks."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def store(storage) -> EncryptedStore:
    return EncryptedStore(storage)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sessions(storage, clock):
    manager = SessionManager(storage, timeout=20 * 60, clock=clock)
    yield manager
    manager.teardown()
