"""Tests for HttpClient over the default httpx transport."""

import gzip
import json

import httpx
import pytest
from pytest_httpx import HTTPXMock, IteratorStream

from httpweave.body import FormData
from httpweave.client import HttpClient
from httpweave.exceptions import HttpStatusError, TransportFailureError
from httpweave.middleware import compress_middleware, form_middleware, stream_middleware
from httpweave.response import ResponseMode


@pytest.mark.asyncio
async def test_get_success_sends_default_user_agent(settings, httpx_mock: HTTPXMock):
    httpx_mock.add_response(
        url="https://api.example.com/items?page=2", json={"items": [1, 2]}
    )

    async with HttpClient(settings=settings) as client:
        response = await client.send(
            client.get("https://api.example.com/items").with_query("page", 2)
        )

    assert response.status_code == 200
    assert response.successful
    assert response.json() == {"items": [1, 2]}
    sent = httpx_mock.get_request()
    assert sent.method == "GET"
    assert sent.headers["user-agent"] == "httpweave-tests/1.0"
    assert "accept-encoding" not in sent.headers


@pytest.mark.asyncio
async def test_json_body_is_sent_compact(settings, httpx_mock: HTTPXMock):
    httpx_mock.add_response(method="POST", url="https://api.example.com/things", status_code=201)

    async with HttpClient(settings=settings) as client:
        response = await client.fetch(
            "post", "https://api.example.com/things", body={"name": "weave", "size": 3}
        )

    assert response.status_code == 201
    sent = httpx_mock.get_request()
    assert sent.content == b'{"name":"weave","size":3}'
    assert sent.headers["content-type"] == "application/json"


@pytest.mark.asyncio
async def test_redirect_is_followed_with_method_headers_and_body(settings, httpx_mock: HTTPXMock):
    """Test a followed redirect replays the request against the resolved location."""
    httpx_mock.add_response(
        method="PUT",
        url="https://example.com/x",
        status_code=302,
        headers={"location": "/y"},
    )
    httpx_mock.add_response(method="PUT", url="https://example.com/y", text="moved here")

    async with HttpClient(settings=settings) as client:
        request = client.put(
            "https://example.com/x",
            headers={"X-Trace": "abc"},
            body="payload",
            follow_redirects=True,
        )
        response = await client.send(request)

    first, second = httpx_mock.get_requests()
    assert second.url == "https://example.com/y"
    assert second.method == "PUT"
    assert second.headers["x-trace"] == "abc"
    assert second.content == first.content == b"payload"
    assert response.text() == "moved here"
    assert response.history == [httpx.URL("https://example.com/x")]


@pytest.mark.asyncio
async def test_redirect_without_follow_is_a_status_error(settings, httpx_mock: HTTPXMock):
    httpx_mock.add_response(status_code=302, headers={"location": "/y"})

    async with HttpClient(settings=settings) as client:
        with pytest.raises(HttpStatusError) as exc_info:
            await client.send(client.get("https://example.com/x"))

    assert exc_info.value.status_code == 302
    assert len(httpx_mock.get_requests()) == 1


@pytest.mark.asyncio
async def test_not_found_raises_status_error_with_response(settings, httpx_mock: HTTPXMock):
    httpx_mock.add_response(status_code=404, text="nothing here")

    async with HttpClient(settings=settings) as client:
        with pytest.raises(HttpStatusError) as exc_info:
            await client.send(client.get("https://example.com/missing"))

    error = exc_info.value
    assert error.status_code == 404
    assert error.reason == "Not Found"
    assert error.response.text() == "nothing here"
    assert "Status: 404" in str(error)


@pytest.mark.asyncio
async def test_connection_error_raises_transport_failure(settings, httpx_mock: HTTPXMock):
    httpx_mock.add_exception(httpx.ConnectError("Connection refused"))

    async with HttpClient(settings=settings) as client:
        with pytest.raises(TransportFailureError) as exc_info:
            await client.send(client.get("https://unreachable.example.com"))

    assert "Connection refused" in str(exc_info.value)


@pytest.mark.asyncio
async def test_compressed_response_is_decoded(settings, httpx_mock: HTTPXMock):
    payload = json.dumps({"compressed": True}).encode()
    httpx_mock.add_response(
        headers={"content-encoding": "gzip", "content-type": "application/json"},
        stream=IteratorStream([gzip.compress(payload)]),
    )

    async with HttpClient([compress_middleware()], settings=settings) as client:
        response = await client.send(client.get("https://example.com/data").compressed())

    assert response.json() == {"compressed": True}
    assert httpx_mock.get_request().headers["accept-encoding"] == "gzip, deflate"


@pytest.mark.asyncio
async def test_streaming_response_yields_chunks(settings, httpx_mock: HTTPXMock):
    httpx_mock.add_response(stream=IteratorStream([b"first,", b"second,", b"third"]))

    async with HttpClient([stream_middleware()], settings=settings) as client:
        response = await client.send(client.get("https://example.com/feed").streamed())

    assert response.mode is ResponseMode.STREAMING
    assert b"".join([chunk async for chunk in response.aiter_bytes()]) == b"first,second,third"


@pytest.mark.asyncio
async def test_form_body_is_sent_as_multipart(settings, httpx_mock: HTTPXMock):
    httpx_mock.add_response(method="POST")

    async with HttpClient([form_middleware()], settings=settings) as client:
        request = client.post("https://example.com/upload").with_body(
            FormData({"title": "report"}).attach("file", ("a.txt", b"contents", "text/plain"))
        )
        await client.send(request)

    sent = httpx_mock.get_request()
    assert sent.headers["content-type"].startswith("multipart/form-data; boundary=")
    assert sent.headers["content-length"] == str(len(sent.content))
    assert b"contents" in sent.content
    assert b'filename="a.txt"' in sent.content


@pytest.mark.asyncio
async def test_context_manager_closes_the_owned_http_client(settings):
    async with HttpClient(settings=settings) as client:
        http_client = client._transport._http_client
        assert not http_client.is_closed
    assert http_client.is_closed


@pytest.mark.asyncio
async def test_supplied_http_client_is_left_open(settings):
    async with httpx.AsyncClient() as http_client:
        async with HttpClient(settings=settings, http_client=http_client):
            pass
        assert not http_client.is_closed
