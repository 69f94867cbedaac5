import pytest
from unittest.mock import AsyncMock, patch


@pytest.fixture
def mock_message_queue():
    """Create a mock message queue instance for testing."""
    queue = AsyncMock()
    queue.declare_queue = AsyncMock(return_value=True)
    queue.publish = AsyncMock(return_value=True)
    queue.consume = AsyncMock()
    queue.connect = AsyncMock(return_value=True)
    queue.disconnect = AsyncMock(return_value=None)
    return queue


@pytest.fixture(autouse=True)
def mock_get_message_queue(mock_message_queue):
    """Automatically mock get_message_queue for all unit tests."""
    with patch(
        "packages.entitlements.services.organization_notifier.get_message_queue",
        return_value=mock_message_queue,
    ), patch(
        "common.workers.base_worker.get_message_queue",
        return_value=mock_message_queue,
    ):
        yield


@pytest.fixture
def mock_lock_provider():
    """Create a mock lock provider instance for testing."""
    lock = AsyncMock()
    lock.connect = AsyncMock(return_value=True)
    lock.disconnect = AsyncMock(return_value=None)
    lock.acquire_lock = AsyncMock(return_value="test-lock-token")
    lock.acquire_lock_with_retry = AsyncMock(return_value="test-lock-token")
    lock.release_lock = AsyncMock(return_value=True)
    lock.extend_lock = AsyncMock(return_value=True)
    return lock


@pytest.fixture(autouse=True)
def mock_get_lock_provider(mock_lock_provider):
    """Automatically mock get_lock_provider for all unit tests."""
    with patch(
        "packages.entitlements.services.renewal_scan_service.get_lock_provider",
        return_value=mock_lock_provider,
    ):
        yield


@pytest.fixture
def published_organization_ids(mock_message_queue):
    """Organization ids published to the refresh queue, in order."""

    def _ids():
        return [
            call.args[1]["organization_id"]
            for call in mock_message_queue.publish.call_args_list
        ]

    return _ids

