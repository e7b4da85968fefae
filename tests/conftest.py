import pytest

from queuecord.connectivity.monitor import ConnectivityMonitor
from queuecord.infrastructure.config import DeliveryConfig
from queuecord.infrastructure.database import AppDatabase
from queuecord.queue.store import MessageQueueStore

from tests.fakes import FakeProbe, FakeSender


@pytest.fixture
def db() -> AppDatabase:
    """Create an in-memory database for testing."""
    app_db = AppDatabase()
    app_db._init_test()
    return app_db


@pytest.fixture
def store(db: AppDatabase) -> MessageQueueStore:
    return db.queue_store


@pytest.fixture
def probe() -> FakeProbe:
    return FakeProbe(online=False)


@pytest.fixture
def monitor(probe: FakeProbe) -> ConnectivityMonitor:
    # Long interval: tests flip connectivity explicitly with check_now().
    return ConnectivityMonitor(probe=probe, interval_s=3600)


@pytest.fixture
def sender() -> FakeSender:
    return FakeSender()


@pytest.fixture
def delivery_config() -> DeliveryConfig:
    # No store polling, no automatic retries unless a test asks for them.
    return DeliveryConfig(retry_base_s=60.0, retry_max_attempts=0, store_poll_interval_s=0, shutdown_grace_s=1.0)
