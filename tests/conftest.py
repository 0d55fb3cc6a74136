import pytest

from jsonapi_adapter import AdapterConfig, JSONAPIAdapter
from jsonapi_adapter.transport import HttpxTransport
from tests.mocks.jsonapi import FakeJSONAPIServer, blog_post, widget


@pytest.fixture(autouse=True)
def test_clear_env(monkeypatch):
    monkeypatch.delenv("JSONAPI_ADAPTER_HOST", raising=False)
    monkeypatch.delenv("JSONAPI_ADAPTER_NAMESPACE", raising=False)
    monkeypatch.delenv("JSONAPI_ADAPTER_COALESCE_FIND_REQUESTS", raising=False)
    monkeypatch.delenv("JSONAPI_ADAPTER_TIMEOUT_SECONDS", raising=False)


@pytest.fixture
def server() -> FakeJSONAPIServer:
    """
    Create a fake server seeded with widgets and blog posts.
    """
    return FakeJSONAPIServer(
        records={
            "widgets": [widget(id="1"), widget(id="2"), widget(id="3")],
            "blog-posts": [blog_post(id="3"), blog_post(id="4")],
        }
    )


@pytest.fixture
def make_adapter(server: FakeJSONAPIServer):
    """
    Build adapters wired to the fake server.
    """

    def _make(**config_values) -> JSONAPIAdapter:
        return JSONAPIAdapter(
            AdapterConfig(**config_values),
            transport=HttpxTransport(client_factory=server.client_factory()),
        )

    return _make
