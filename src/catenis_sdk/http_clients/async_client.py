"""
Asynchronous HTTP client for Catenis API communication

Requests are built and signed by the same core as the blocking client and
sent through an ``aiohttp`` session. Every call is handed back to the
caller as an ``asyncio.Future``.

When the client is given an event loop, calls are not scheduled on it
right away: they are put on a task queue that is drained either by a
periodic pump running on that loop or explicitly by the caller.
"""

import asyncio
import logging
from collections import deque
from typing import Any, Awaitable, Callable, Deque, Mapping, Optional, Tuple

import aiohttp
import yarl

from ..config import ClientConfig
from ..exceptions import CatenisClientError, CatenisError
from ..http_client import ApiRequest, ApiRequestBuilder, process_response, JSON_CONTENT_TYPE
from ..version import USER_AGENT

logger = logging.getLogger(__name__)

CoroutineFactory = Callable[[], Awaitable[Any]]


def _transfer_outcome(task: asyncio.Future, future: asyncio.Future) -> None:
    if future.done():
        return

    if task.cancelled():
        future.cancel()
    elif task.exception() is not None:
        future.set_exception(task.exception())
    else:
        future.set_result(task.result())


class TaskQueue:
    """
    FIFO queue of deferred calls bound to one event loop.

    Each queued call is represented by a future created when it is
    queued; the call itself only starts when the queue is run.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop):
        self.loop = loop
        self._queue: Deque[Tuple[CoroutineFactory, asyncio.Future]] = deque()

    def __len__(self) -> int:
        return len(self._queue)

    def add(self, coro_factory: CoroutineFactory) -> asyncio.Future:
        """Queue a call and return the future for its outcome"""
        future = self.loop.create_future()
        self._queue.append((coro_factory, future))

        return future

    def run(self) -> int:
        """
        Start every call currently queued.

        Returns:
            int: Number of calls started
        """
        started = 0

        while self._queue:
            coro_factory, future = self._queue.popleft()

            if future.cancelled():
                continue

            task = self.loop.create_task(coro_factory())
            task.add_done_callback(lambda t, f=future: _transfer_outcome(t, f))
            future.add_done_callback(lambda f, t=task: t.cancel() if f.cancelled() else None)
            started += 1

        return started


class LoopPump:
    """Periodically runs a task queue on its event loop"""

    def __init__(self, task_queue: TaskQueue, interval_ms: int):
        self.task_queue = task_queue
        self.interval = interval_ms / 1000
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def running(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        if self._handle is None:
            self._schedule()
            logger.debug(f"Task queue pump started with interval {self.interval}s")

    def _schedule(self) -> None:
        self._handle = self.task_queue.loop.call_later(self.interval, self._tick)

    def _tick(self) -> None:
        self.task_queue.run()
        self._schedule()

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
            logger.debug("Task queue pump stopped")


class AiohttpTransport:
    """Asynchronous transport built on an ``aiohttp`` client session"""

    def __init__(self, config: ClientConfig, session: Optional[aiohttp.ClientSession] = None):
        self.config = config
        self._session = session
        self._session_loop: Optional[asyncio.AbstractEventLoop] = None

    def _create_session(self) -> aiohttp.ClientSession:
        headers = {
            'User-Agent': USER_AGENT,
            'Accept': JSON_CONTENT_TYPE,
        }

        if not self.config.use_compression:
            headers['Accept-Encoding'] = 'identity'

        return aiohttp.ClientSession(
            headers=headers,
            timeout=aiohttp.ClientTimeout(total=self.config.request_timeout)
        )

    def _get_session(self) -> aiohttp.ClientSession:
        loop = asyncio.get_running_loop()

        if self._session is None or self._session.closed:
            self._session = self._create_session()
            self._session_loop = loop
        elif self._session_loop is not None and self._session_loop is not loop:
            # Sessions cannot be shared across event loops
            logger.debug("Event loop changed; creating new HTTP session")
            self._session = self._create_session()
            self._session_loop = loop

        return self._session

    @property
    def has_open_session(self) -> bool:
        return self._session is not None and not self._session.closed

    async def send(self, request: ApiRequest) -> Any:
        """
        Send a prepared request and unwrap its response.

        Raises:
            CatenisApiError: If the endpoint returns an error
            CatenisClientError: On network errors, timeouts or malformed responses
        """
        session = self._get_session()

        try:
            logger.debug(f"Making async {request.method.value} request to {request.url}")

            async with session.request(
                request.method.value,
                yarl.URL(request.url, encoded=True),
                headers=request.headers,
                data=request.body or None
            ) as response:
                status = response.status
                reason = response.reason
                body = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise CatenisClientError(cause=e) from e

        logger.debug(f"Received {status} response from {request.url}")

        return process_response(status, reason, body)

    async def close(self) -> None:
        if self.has_open_session:
            await self._session.close()
            logger.debug("Async HTTP session closed")

        self._session = None
        self._session_loop = None


class AsyncCatenisHttpClient:
    """
    Asynchronous Catenis API HTTP client.

    The ``submit_*`` methods return futures; the ``send_*`` coroutines may
    be awaited directly.
    """

    def __init__(
        self,
        builder: ApiRequestBuilder,
        transport: Optional[AiohttpTransport] = None,
        event_loop: Optional[asyncio.AbstractEventLoop] = None,
        pump_task_queue: bool = True,
        pump_interval: int = 10
    ):
        self.builder = builder
        self.transport = transport if transport is not None else AiohttpTransport(builder.config)
        self._event_loop = event_loop
        self._owned_loop: Optional[asyncio.AbstractEventLoop] = None
        self.task_queue: Optional[TaskQueue] = None
        self.pump: Optional[LoopPump] = None

        if event_loop is not None:
            self.task_queue = TaskQueue(event_loop)

            if pump_task_queue:
                self.pump = LoopPump(self.task_queue, pump_interval)
                self.pump.start()

    @property
    def event_loop(self) -> asyncio.AbstractEventLoop:
        """
        Event loop async calls are scheduled on when none is running.

        This is the injected loop when there is one; otherwise a loop owned
        by the client is created on first use.
        """
        if self._event_loop is not None:
            return self._event_loop

        if self._owned_loop is None or self._owned_loop.is_closed():
            self._owned_loop = asyncio.new_event_loop()
            logger.debug("Created event loop for asynchronous requests")

        return self._owned_loop

    async def send_request(self, request: ApiRequest) -> Any:
        try:
            return await self.transport.send(self.builder.prepare(request))
        except CatenisError:
            raise
        except Exception as e:
            raise CatenisClientError(cause=e) from e

    async def send_get_request(
        self,
        method_path: str,
        url_params: Optional[Mapping[str, Any]] = None,
        query_params: Optional[Mapping[str, Any]] = None,
        do_not_sign: bool = False
    ) -> Any:
        return await self.send_request(
            self.builder.build_get_request(method_path, url_params, query_params, do_not_sign)
        )

    async def send_post_request(
        self,
        method_path: str,
        json_data: Mapping[str, Any],
        url_params: Optional[Mapping[str, Any]] = None,
        query_params: Optional[Mapping[str, Any]] = None,
        do_not_sign: bool = False
    ) -> Any:
        return await self.send_request(
            self.builder.build_post_request(method_path, json_data, url_params, query_params, do_not_sign)
        )

    def submit(self, coro_factory: CoroutineFactory) -> asyncio.Future:
        """
        Schedule a call and return the future for its outcome.

        Args:
            coro_factory: Callable returning the coroutine to run
        """
        if self.task_queue is not None:
            return self.task_queue.add(coro_factory)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = self.event_loop

        return loop.create_task(coro_factory())

    def submit_get_request(
        self,
        method_path: str,
        url_params: Optional[Mapping[str, Any]] = None,
        query_params: Optional[Mapping[str, Any]] = None,
        do_not_sign: bool = False
    ) -> asyncio.Future:
        return self.submit(
            lambda: self.send_get_request(method_path, url_params, query_params, do_not_sign)
        )

    def submit_post_request(
        self,
        method_path: str,
        json_data: Mapping[str, Any],
        url_params: Optional[Mapping[str, Any]] = None,
        query_params: Optional[Mapping[str, Any]] = None,
        do_not_sign: bool = False
    ) -> asyncio.Future:
        return self.submit(
            lambda: self.send_post_request(method_path, json_data, url_params, query_params, do_not_sign)
        )

    def run_task_queue(self) -> int:
        """
        Start the calls waiting on the task queue.

        Returns:
            int: Number of calls started (always 0 without an injected loop)
        """
        if self.task_queue is None:
            return 0

        return self.task_queue.run()

    async def aclose(self) -> None:
        """Stop the task queue pump and close the HTTP session"""
        if self.pump is not None:
            self.pump.stop()

        await self.transport.close()

    def close(self) -> None:
        """
        Release resources without a running event loop.

        The HTTP session is closed on the client-owned loop when there is
        one; sessions opened on other loops must be closed with ``aclose()``.
        """
        if self.pump is not None:
            self.pump.stop()

        if self._owned_loop is not None and not self._owned_loop.is_closed():
            if not self._owned_loop.is_running():
                self._owned_loop.run_until_complete(self.transport.close())
                self._owned_loop.close()
                logger.debug("Closed client event loop")
        elif self.transport.has_open_session:
            logger.warning("Async HTTP session left open; use aclose() from its event loop")
