"""
Tests for the httpx transport.
"""

import json

import httpx
import pytest
import respx

from jsonapi_adapter.exceptions import TransportError
from jsonapi_adapter.request import RequestDescriptor
from jsonapi_adapter.transport import HttpxTransport

BASE_URL = "https://api.example.com"


@pytest.fixture
def transport() -> HttpxTransport:
    return HttpxTransport(base_url=BASE_URL, timeout_seconds=1.0)


@pytest.mark.asyncio
async def test_send_encodes_query_headers_and_body(transport: HttpxTransport):
    request = RequestDescriptor(
        method="PATCH",
        url="/widgets/1",
        query={"include": "parts"},
        headers={"Accept": "application/vnd.api+json", "Content-Type": "application/vnd.api+json"},
        body={"data": {"type": "widgets", "id": "1"}},
    )

    with respx.mock:
        route = respx.patch(f"{BASE_URL}/widgets/1").mock(
            return_value=httpx.Response(200, json={"data": {"type": "widgets", "id": "1"}})
        )
        payload = await transport.send(request)

    sent = route.calls.last.request
    assert payload == {"data": {"type": "widgets", "id": "1"}}
    assert sent.url.params["include"] == "parts"
    assert sent.headers["accept"] == "application/vnd.api+json"
    assert sent.headers["content-type"] == "application/vnd.api+json"
    assert json.loads(sent.content) == {"data": {"type": "widgets", "id": "1"}}


@pytest.mark.asyncio
async def test_send_sends_bracketed_filter(transport: HttpxTransport):
    request = RequestDescriptor(method="GET", url="/widgets", query={"filter": {"id": "1,2"}})

    with respx.mock:
        route = respx.get(f"{BASE_URL}/widgets").mock(
            return_value=httpx.Response(200, json={"data": []})
        )
        await transport.send(request)

    sent = route.calls.last.request
    assert sent.url.params["filter[id]"] == "1,2"
    assert sent.content == b""


@pytest.mark.asyncio
async def test_no_content_returns_none(transport: HttpxTransport):
    with respx.mock:
        respx.delete(f"{BASE_URL}/widgets/1").mock(return_value=httpx.Response(204))
        payload = await transport.send(RequestDescriptor(method="DELETE", url="/widgets/1"))

    assert payload is None


@pytest.mark.asyncio
async def test_error_status_raises_transport_error(transport: HttpxTransport):
    errors = [{"status": "422", "title": "Invalid", "source": {"pointer": "/data"}}]

    with respx.mock:
        respx.get(f"{BASE_URL}/widgets/1").mock(
            return_value=httpx.Response(422, json={"errors": errors})
        )
        with pytest.raises(TransportError) as excinfo:
            await transport.send(RequestDescriptor(method="GET", url="/widgets/1"))

    assert excinfo.value.status_code == 422
    assert excinfo.value.errors == errors
    assert excinfo.value.request is not None


@pytest.mark.asyncio
async def test_timeout_raises_transport_error(transport: HttpxTransport):
    with respx.mock:
        respx.get(f"{BASE_URL}/widgets/1").mock(side_effect=httpx.ReadTimeout)
        with pytest.raises(TransportError, match="timed out") as excinfo:
            await transport.send(RequestDescriptor(method="GET", url="/widgets/1"))

    assert isinstance(excinfo.value.__cause__, httpx.TimeoutException)
    assert excinfo.value.status_code is None


@pytest.mark.asyncio
async def test_network_error_raises_transport_error(transport: HttpxTransport):
    with respx.mock:
        respx.get(f"{BASE_URL}/widgets/1").mock(side_effect=httpx.ConnectError)
        with pytest.raises(TransportError, match="Request failed"):
            await transport.send(RequestDescriptor(method="GET", url="/widgets/1"))


@pytest.mark.asyncio
async def test_non_json_body_raises_transport_error(transport: HttpxTransport):
    with respx.mock:
        respx.get(f"{BASE_URL}/widgets/1").mock(return_value=httpx.Response(200, text="<html>"))
        with pytest.raises(TransportError, match="non-JSON"):
            await transport.send(RequestDescriptor(method="GET", url="/widgets/1"))
