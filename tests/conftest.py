"""
Shared fixtures and test doubles for the upload queue tests.
"""

import asyncio
from typing import Any, Dict, List, Optional, Tuple

import pytest
import pytest_asyncio
from aiohttp import test_utils, web

from upload_queue.core.domain.config import QueueConfig
from upload_queue.core.domain.events import Event
from upload_queue.core.domain.files import FileDescriptor, ProgressEvent, TransportResponse
from upload_queue.core.interfaces.transport import (
    ITransport, ITransportHandle, ITransportListener, TransportRequest
)
from upload_queue.core.services.queue import UploadQueue

# Maximum time (seconds) to wait for a request to finish.
TEST_TIMEOUT_SECONDS = 10.0


class FakeHandle(ITransportHandle):
    """Request handle driven by the test."""

    def __init__(self, request: TransportRequest, listener: ITransportListener):
        self.request = request
        self.listener = listener
        self.done = False
        self.aborted = False

    def abort(self) -> None:
        if self.done:
            return
        self.aborted = True
        self.fail(None, "abort")

    def progress(self, loaded: int) -> None:
        self.listener.on_progress(ProgressEvent(loaded=loaded, total=self.request.size))

    def succeed(self, status: int = 200, body: str = "ok") -> None:
        if self.done:
            return
        self.done = True
        self.listener.on_success(TransportResponse(status=status, body=body))

    def fail(self, response: Optional[TransportResponse] = None, status: str = "error") -> None:
        if self.done:
            return
        self.done = True
        self.listener.on_failure(response, status)


class FakeTransport(ITransport):
    """
    In-memory transport.

    ``mode`` decides what happens inside :meth:`start`: ``"manual"`` leaves
    the request outstanding, ``"succeed"`` and ``"fail"`` finish it before
    returning, like a zero-latency network.
    """

    def __init__(self, mode: str = "manual"):
        self.mode = mode
        self.handles: List[FakeHandle] = []

    def start(self, request: TransportRequest, listener: ITransportListener) -> FakeHandle:
        handle = FakeHandle(request, listener)
        self.handles.append(handle)

        if self.mode == "succeed":
            handle.progress(request.size)
            handle.succeed()
        elif self.mode == "fail":
            handle.fail(TransportResponse(status=500, body="boom"), "error")

        return handle

    @property
    def outstanding(self) -> List[FakeHandle]:
        return [h for h in self.handles if not h.done]

    @property
    def sent_names(self) -> List[str]:
        return [h.request.filename for h in self.handles]


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class EventRecorder:
    """Records every event emitted by a queue, in order."""

    def __init__(self) -> None:
        self.events: List[Event] = []

    def __call__(self, event: Event) -> None:
        self.events.append(event)

    @property
    def names(self) -> List[str]:
        return [e.name for e in self.events]

    def of(self, name: Any) -> List[Event]:
        name = getattr(name, 'value', name)
        return [e for e in self.events if e.name == name]

    def pairs(self) -> List[Tuple[str, Any]]:
        return [(e.name, e.data) for e in self.events]


class UploadServer:
    """Local endpoint recording the multipart forms it receives."""

    def __init__(self) -> None:
        self.uploads: List[Dict[str, Any]] = []
        self.arrived = asyncio.Event()
        self.release = asyncio.Event()
        self.server: Optional[test_utils.TestServer] = None

    def url(self, path: str) -> str:
        assert self.server is not None
        return str(self.server.make_url(path))

    async def upload(self, request: web.Request) -> web.Response:
        form = await request.post()
        record: Dict[str, Any] = {"token": request.headers.get("X-Upload-Token")}
        for name, value in form.items():
            if isinstance(value, web.FileField):
                record[name] = {
                    "filename": value.filename,
                    "content_type": value.content_type,
                    "data": value.file.read(),
                }
            else:
                record[name] = value
        self.uploads.append(record)
        return web.json_response({"stored": len(self.uploads)})

    async def broken(self, request: web.Request) -> web.Response:
        await request.read()
        return web.Response(status=500, text="disk full")

    async def slow(self, request: web.Request) -> web.Response:
        await request.read()
        self.arrived.set()
        await self.release.wait()
        return web.Response(text="late")


@pytest_asyncio.fixture
async def upload_server():
    endpoint = UploadServer()
    app = web.Application()
    app.router.add_post("/upload", endpoint.upload)
    app.router.add_post("/broken", endpoint.broken)
    app.router.add_post("/slow", endpoint.slow)

    server = test_utils.TestServer(app)
    await server.start_server()
    endpoint.server = server

    yield endpoint

    endpoint.release.set()
    await server.close()


def make_file(name: str = "test.txt", size: int = 100,
              mime_type: str = "text/plain") -> FileDescriptor:
    return FileDescriptor(name=name, size=size, mime_type=mime_type, source=b"x" * size)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()


@pytest.fixture
def make_queue(transport: FakeTransport, recorder: EventRecorder, clock: FakeClock):
    """Build a queue on the fake transport with the recorder listening to everything."""

    def factory(**config: Any) -> UploadQueue:
        queue = UploadQueue(transport, QueueConfig(**config), clock=clock)
        queue.on("*", recorder)
        return queue

    return factory
