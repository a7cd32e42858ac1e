import pytest

from library import Library, LibraryManager
from notifications import InMemoryNotificationService
from utils.ui_helpers import OUTPUT_MODE_ENV


@pytest.fixture
def notifier():
    return InMemoryNotificationService()


@pytest.fixture
def lib(notifier):
    # Every test gets its own registry; the process-wide one is covered separately
    return Library(notifier)


@pytest.fixture(autouse=True)
def reset_library_manager(monkeypatch):
    monkeypatch.delenv(OUTPUT_MODE_ENV, raising=False)
    LibraryManager.reset()
    yield
    LibraryManager.reset()
