"""Pytest configuration and fixtures."""

import pytest
from unittest.mock import Mock

from st25ndef.nfc.session import MemoryTagSession, TagHandle


# Test markers
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "interop: marks tests that compare against the ndeflib package"
    )
    config.addinivalue_line(
        "markers", "e2e: marks end-to-end tests"
    )


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep ST25_* variables from the developer environment out of tests."""
    for name in ("ST25_TAG_IMAGE", "ST25_IMAGE_SIZE", "ST25_POLL_TIMEOUT",
                 "ST25_TEXT_LANGUAGE", "ST25_TEXT_ENCODING", "ST25_LOG_FILE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ST25_LOG_LEVEL", "WARNING")


@pytest.fixture
def blank_session():
    """Freshly formatted 512-byte Type 5 tag."""
    return MemoryTagSession.blank(size=512)


@pytest.fixture
def read_only_session():
    """Formatted tag whose capability container denies writes."""
    return MemoryTagSession.blank(size=512, writable=False)


@pytest.fixture
def sample_handle():
    """Handle returned by mocked sessions."""
    return TagHandle(uid=bytes.fromhex("E0022600AABBCCDD"), ndef_writable=True, capacity=499)


@pytest.fixture
def mock_session(sample_handle, sample_text_message):
    """Mock tag session for testing."""
    session = Mock(spec=MemoryTagSession)
    session.poll = Mock(return_value=sample_handle)
    session.read_raw_message = Mock(return_value=sample_text_message)
    session.write_raw_message = Mock(return_value=None)
    session.finish = Mock(return_value=None)
    return session


@pytest.fixture
def sample_text_message():
    """Single Text record: language "en", text "hello"."""
    return bytes.fromhex("d101085402656e68656c6c6f")


@pytest.fixture
def sample_uri_message():
    """Single URI record for http://www.example.com."""
    return bytes.fromhex("d1010c55016578616d706c652e636f6d")
