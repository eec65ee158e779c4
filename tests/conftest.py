"""Pytest configuration and shared fixtures for the mimetree test suite.

This module provides shared fixtures, test configuration, and helpers that
are used across the entire test suite.
"""

import base64
from typing import Callable

import httpx
import pytest

from mimetree import Engine
from mimetree.constants import ENV_DISABLE_NETWORK
from mimetree.plugins import html_plugin, identity_plugin, json_plugin, markdown_plugin, xml_plugin

# Base64 encoded 1x1 pixel PNG for testing
MINIMAL_PNG_B64 = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mP8/w8AAn8B9FpQHLwAAAAASUVORK5CYII="
MINIMAL_PNG_BYTES = base64.b64decode(MINIMAL_PNG_B64)


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests - fast, isolated component tests")
    config.addinivalue_line("markers", "integration: Integration tests - component interaction tests")
    config.addinivalue_line("markers", "network: Tests exercising HTTP fetching (mocked transports only)")


@pytest.fixture(autouse=True)
def _network_enabled(monkeypatch):
    """Make sure a developer's environment does not disable mocked fetching."""
    monkeypatch.delenv(ENV_DISABLE_NETWORK, raising=False)


@pytest.fixture
def sequential_ids() -> Callable[[], str]:
    """Provide a deterministic id generator: ``id-1``, ``id-2``, ...

    Returns
    -------
    Callable[[], str]
        Generator function

    """
    counter = iter(range(1, 1_000_000))

    def generate() -> str:
        return f"id-{next(counter)}"

    return generate


@pytest.fixture
def engine() -> Engine:
    """Provide an engine with the format plugins and no network plugins."""
    return Engine([markdown_plugin, html_plugin, json_plugin, xml_plugin])


@pytest.fixture
def id_engine(sequential_ids) -> Engine:
    """Provide an engine assigning deterministic ids, with the format plugins."""
    return Engine([identity_plugin(sequential_ids), markdown_plugin, html_plugin, json_plugin, xml_plugin])


@pytest.fixture
def png_bytes() -> bytes:
    """Provide the bytes of a 1x1 PNG image."""
    return MINIMAL_PNG_BYTES


@pytest.fixture
def make_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Provide a factory for ``httpx.AsyncClient`` objects backed by a mock handler.

    Returns
    -------
    Callable
        ``make_client(handler)`` returning a client whose requests are answered by ``handler``

    """

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)

    return factory


@pytest.fixture
def sample_markdown() -> str:
    """Provide sample markdown content for testing.

    Returns
    -------
    str
        Standard sample markdown used across multiple tests.

    """
    return """# Sample Document

This is a **sample document** with _italic text_ and some `inline code`.

## Section 2

Here is a list:

- Item 1
- Item 2

### Code Block

```python
def hello_world():
    print("Hello, World!")
```

# Appendix

The end.
"""
