"""
HTTP transport built on aiohttp.

Each request is a multipart/form-data POST running as its own asyncio task.
The file part is streamed from its byte source in chunks and every chunk
handed to the connection is reported as a progress event.
"""

import asyncio
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Optional, Set

import aiofiles
import aiohttp
from loguru import logger

from ...core.domain.files import ByteSource, ProgressEvent, TransportResponse
from ...core.interfaces.transport import (
    ITransport, ITransportHandle, ITransportListener, TransportRequest
)
from ..config.models import TransportConfig

ABORT_STATUS = "abort"
ERROR_STATUS = "error"


class _RequestOutcome:
    """Makes sure a listener hears about a request's end exactly once."""

    def __init__(self, listener: ITransportListener):
        self.listener = listener
        self.reported = False

    def success(self, response: TransportResponse) -> None:
        if not self.reported:
            self.reported = True
            self.listener.on_success(response)

    def failure(self, response: Optional[TransportResponse], status: str) -> None:
        if not self.reported:
            self.reported = True
            self.listener.on_failure(response, status)


class AiohttpRequestHandle(ITransportHandle):
    """Handle on a request task."""

    def __init__(self, task: 'asyncio.Task[None]'):
        self._task = task

    @property
    def task(self) -> 'asyncio.Task[None]':
        return self._task

    @property
    def done(self) -> bool:
        return self._task.done()

    def abort(self) -> None:
        if not self._task.done():
            self._task.cancel()


class AiohttpTransport(ITransport):
    """
    Multipart upload transport using an aiohttp client session.

    The session is created on first use inside the running event loop and
    closed by :meth:`close` unless it was supplied by the caller. No total
    timeout is applied: a request that never answers keeps its slot.
    """

    def __init__(
        self,
        config: Optional[TransportConfig] = None,
        session: Optional[aiohttp.ClientSession] = None
    ):
        self._config = config or TransportConfig()
        self._session = session
        self._owns_session = session is None
        self._tasks: Set['asyncio.Task[None]'] = set()
        self._closed = False

    async def __aenter__(self) -> 'AiohttpTransport':
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def outstanding(self) -> int:
        """Number of requests still running."""
        return len(self._tasks)

    def start(self, request: TransportRequest,
              listener: ITransportListener) -> ITransportHandle:
        """
        Start a request on the running event loop.

        Raises:
            RuntimeError: If called outside a running event loop or after
                the transport was closed
        """
        if self._closed:
            raise RuntimeError(f"Transport is closed, not sending {request.filename}")
        loop = asyncio.get_running_loop()
        outcome = _RequestOutcome(listener)

        task = loop.create_task(self._send(request, outcome))
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._on_task_done(t, request, outcome))

        return AiohttpRequestHandle(task)

    async def close(self) -> None:
        """
        Abort outstanding requests and close the owned session.

        The transport refuses new requests from here on, including those a
        queue starts while reacting to the aborts.
        """
        self._closed = True
        while self._tasks:
            tasks = list(self._tasks)
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
            logger.debug("HTTP transport session closed")
        if self._owns_session:
            self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._closed:
            raise RuntimeError("Transport is closed")
        if self._session is None or self._session.closed:
            connector_args: Dict[str, Any] = {'limit': self._config.connection_limit}
            if not self._config.verify_ssl:
                connector_args['ssl'] = False

            self._session = aiohttp.ClientSession(
                connector=aiohttp.TCPConnector(**connector_args),
                timeout=aiohttp.ClientTimeout(),
                headers=self._config.headers
            )
            self._owns_session = True
        return self._session

    async def _send(self, request: TransportRequest, outcome: _RequestOutcome) -> None:
        session = self._get_session()
        form = self._build_form(request, outcome.listener)

        try:
            async with session.post(request.url, data=form) as resp:
                body = await resp.read()
                response = TransportResponse(
                    status=resp.status,
                    body=body.decode(resp.charset or 'utf-8', errors='replace'),
                    headers=dict(resp.headers),
                    reason=resp.reason
                )
        except asyncio.CancelledError:
            logger.debug(f"Upload of {request.filename} aborted")
            outcome.failure(None, ABORT_STATUS)
            raise
        except (aiohttp.ClientError, OSError) as e:
            logger.error(f"Upload of {request.filename} to {request.url} failed: {e}")
            outcome.failure(None, ERROR_STATUS)
            return

        if response.ok:
            outcome.success(response)
        else:
            logger.warning(
                f"Upload of {request.filename} rejected by server: {response.status} {response.reason}")
            outcome.failure(response, ERROR_STATUS)

    def _build_form(self, request: TransportRequest,
                    listener: ITransportListener) -> aiohttp.FormData:
        form = aiohttp.FormData()
        form.add_field(
            request.field_name,
            self._stream(request, listener),
            filename=request.filename,
            content_type=request.content_type or 'application/octet-stream'
        )
        for name, value in request.extra_fields.items():
            if not isinstance(value, (str, bytes, bytearray)):
                value = str(value)
            form.add_field(name, value)
        return form

    async def _stream(self, request: TransportRequest,
                      listener: ITransportListener) -> AsyncIterator[bytes]:
        loaded = 0
        async for chunk in self._read_source(request.source):
            yield chunk
            loaded += len(chunk)
            listener.on_progress(ProgressEvent(loaded=loaded, total=request.size))

    async def _read_source(self, source: ByteSource) -> AsyncIterator[bytes]:
        chunk_size = self._config.chunk_size

        if isinstance(source, (bytes, bytearray, memoryview)):
            view = memoryview(source)
            for offset in range(0, len(view), chunk_size):
                yield bytes(view[offset:offset + chunk_size])
            return

        async with aiofiles.open(Path(source), 'rb') as f:
            while True:
                chunk = await f.read(chunk_size)
                if not chunk:
                    break
                yield chunk

    def _on_task_done(self, task: 'asyncio.Task[None]', request: TransportRequest,
                      outcome: _RequestOutcome) -> None:
        self._tasks.discard(task)

        if task.cancelled():
            # cancelled before the request coroutine got to run
            outcome.failure(None, ABORT_STATUS)
            return

        error = task.exception()
        if error is not None:
            logger.error(f"Unexpected error uploading {request.filename}: {error!r}")
            outcome.failure(None, ERROR_STATUS)
