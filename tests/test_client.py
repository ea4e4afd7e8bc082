"""Tests for the HTTP client and the event logger."""

import json

import httpx
import pytest

from buildr.client.api import BuildrClient, GenerationHTTPError
from buildr.client.events import EventLogger
from buildr.client.session import SessionContext


def buildr_client(handler) -> BuildrClient:
    return BuildrClient(http=httpx.AsyncClient(base_url="http://buildr.test", transport=httpx.MockTransport(handler)))


async def test_stream_generation_yields_bytes():
    """Test streaming the generation body."""
    body = b'data: {"content": "hi"}\n\ndata: [DONE]\n\n'
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(200, content=body, headers={"content-type": "text/event-stream"})

    client = buildr_client(handler)
    chunks = [chunk async for chunk in client.stream_generation({"messages": [{"role": "user", "content": "hi"}]})]
    await client.aclose()

    assert b"".join(chunks) == body
    assert seen[0]["messages"][0]["content"] == "hi"


async def test_stream_generation_http_error():
    """Test that an error status raises with the server's message."""
    client = buildr_client(lambda request: httpx.Response(500, json={"error": "Something went wrong"}))

    with pytest.raises(GenerationHTTPError) as excinfo:
        async for _ in client.stream_generation({"messages": []}):
            pass
    await client.aclose()

    assert excinfo.value.status_code == 500
    assert str(excinfo.value) == "Something went wrong"


async def test_stream_generation_error_without_json():
    """Test the fallback message for a non-JSON error body."""
    client = buildr_client(lambda request: httpx.Response(502, text="Bad Gateway"))

    with pytest.raises(GenerationHTTPError, match="HTTP 502"):
        async for _ in client.stream_generation({"messages": []}):
            pass
    await client.aclose()


async def test_project_calls():
    """Test the project endpoints the client uses."""
    requests = []

    def handler(request):
        requests.append(request)
        if request.method == "DELETE":
            return httpx.Response(204)
        return httpx.Response(200, json=[] if request.method == "GET" else {"id": "p1"})

    client = buildr_client(handler)
    assert await client.list_projects("ana") == []
    assert await client.create_project("ana", "Bakery", code="<html></html>") == {"id": "p1"}
    await client.update_code("p1", "<html>v2</html>", save_as_version=True)
    await client.delete_project("p1")
    await client.aclose()

    assert [(r.method, r.url.path) for r in requests] == [
        ("GET", "/api/projects"),
        ("POST", "/api/projects"),
        ("PATCH", "/api/projects/p1"),
        ("DELETE", "/api/projects/p1"),
    ]
    assert requests[0].url.params["owner"] == "ana"
    assert json.loads(requests[2].content) == {"code": "<html>v2</html>", "save_as_version": True}


async def test_event_logger_posts_camel_case_records(tmp_path):
    """Test the record sent for a build error."""
    posted = []

    async def post(record):
        posted.append(record)

    session = SessionContext.start(tmp_path, project_id="p1")
    events = EventLogger(session, post=post)
    events.build_error("build a site", "Stream ended early", 2048, "x" * 1500, 900)
    await events.drain()

    [record] = posted
    assert record["type"] == "build_error"
    assert record["severity"] == "error"
    assert record["sessionId"] == session.session_id
    assert record["projectId"] == "p1"
    assert record["bytesReceived"] == 2048
    assert len(record["lastValidChunk"]) == 1000
    assert record["requestDurationMs"] == 900


async def test_event_logger_swallows_delivery_errors(tmp_path):
    """Test that a failed post never surfaces."""

    async def post(record):
        raise httpx.ConnectError("offline")

    events = EventLogger(SessionContext.start(tmp_path), post=post)
    events.build_start("build a site")
    await events.drain()


def test_event_logger_without_loop(tmp_path):
    """Test logging outside of an event loop."""
    posted = []

    async def post(record):
        posted.append(record)

    EventLogger(SessionContext.start(tmp_path), post=post).user_action("undo")

    assert posted == []
