"""
Pytest configuration and fixtures for httpweave tests
"""

import logging
from pathlib import Path

import filelock
import pytest

import httpweave

# Load .env file for local testing
# This allows HTTPWEAVE_* settings to be loaded from .env
try:
    from dotenv import load_dotenv

    env_path = Path(__file__).parent.parent / ".env"
    if env_path.exists():
        load_dotenv(env_path)
except ImportError:
    # python-dotenv not installed, skip
    pass


def _start_server(tmp_path_factory):
    from tests.test_server import MockHTTPServer

    # Serialize binding when tests run in several worker processes
    lock_path = tmp_path_factory.getbasetemp().parent / "httpweave-server.lock"
    with filelock.FileLock(str(lock_path)):
        server = MockHTTPServer()
        server.start()
    return server


@pytest.fixture(scope="session", autouse=True)
def debug_logging():
    """Route httpweave debug logs through pytest's log capture"""
    logger = logging.getLogger("httpweave")
    previous = logger.level
    logger.setLevel(logging.DEBUG)
    yield
    logger.setLevel(previous)


@pytest.fixture
def http_server(tmp_path_factory):
    """Create a test HTTP server"""
    server = _start_server(tmp_path_factory)
    yield server
    server.stop()


@pytest.fixture(scope="session")
def httpbin_server(tmp_path_factory):
    """Use MockHTTPServer for httpbin-compatible testing"""
    server = _start_server(tmp_path_factory)
    yield server.url
    server.stop()


@pytest.fixture
def multi():
    """Create a CurlMulti scheduler and disconnect it afterwards"""
    scheduler = httpweave.CurlMulti()
    yield scheduler
    scheduler.disconnect()


def pytest_configure(config):
    """Configure pytest"""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (requires network)"
    )
    config.addinivalue_line("markers", "slow: mark test as slow running")
    config.addinivalue_line("markers", "multi: mark test as driving a CurlMulti scheduler")


def pytest_collection_modifyitems(config, items):
    """Modify test collection"""
    for item in items:
        if "multi" in item.fixturenames or "test_multi" in item.nodeid:
            item.add_marker(pytest.mark.multi)
        if "delay" in item.name:
            item.add_marker(pytest.mark.slow)


def pytest_runtest_teardown(item, nextitem):
    """Force garbage collection after each test to release curl handles"""
    import gc
    gc.collect()
