"""
WebSocket notification channel

A notification channel is a WebSocket connection to the Catenis
notification service for one notification event. The connection is
authenticated by sending, as its first message, the timestamp and
Authorization values of a signed request for the channel's URL.
"""

import asyncio
import json
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import websockets
from websockets.exceptions import ConnectionClosedError

from ..exceptions import OpenWsConnError, WsNotifyChannelAlreadyOpenError, WsNotifyChannelError
from ..signing import TIMESTAMP_HEADER

logger = logging.getLogger(__name__)

NOTIFY_WS_SUBPROTOCOL = "notify.catenis.io"
NOTIFY_CHANNEL_OPEN_MSG = "NOTIFICATION_CHANNEL_OPEN"

CLOSE_NORMAL = 1000
CLOSE_POLICY_VIOLATION = 1008


class NotifyEvent(str, Enum):
    """Events emitted by a notification channel"""
    OPEN = "open"
    NOTIFY = "notify"
    ERROR = "error"
    CLOSE = "close"


class ChannelState(Enum):
    """Notification channel connection states"""
    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


EventHandler = Callable[..., Any]


class WsNotifyChannel:
    """
    Catenis WebSocket notification channel

    Handlers receive:
        open: no arguments
        notify: the decoded notification message
        error: the exception describing the problem
        close: the close code and the close reason
    """

    def __init__(self, client, event_name: str):
        """
        Args:
            client: Catenis API client the channel belongs to
            event_name: Name of the notification event to listen to
        """
        self.client = client
        self.event_name = event_name
        self.state = ChannelState.IDLE
        self._ws = None
        self._reader_task: Optional[asyncio.Task] = None
        self._handlers: Dict[NotifyEvent, List[EventHandler]] = {event: [] for event in NotifyEvent}

    @property
    def is_open(self) -> bool:
        return self._ws is not None

    def on(self, event: NotifyEvent, handler: EventHandler) -> EventHandler:
        """Register an event handler. Handlers may be coroutine functions."""
        self._handlers[NotifyEvent(event)].append(handler)
        return handler

    def off(self, event: NotifyEvent, handler: Optional[EventHandler] = None) -> None:
        """Remove a handler, or every handler of the event when none is given"""
        event = NotifyEvent(event)

        if handler is None:
            self._handlers[event].clear()
        elif handler in self._handlers[event]:
            self._handlers[event].remove(handler)

    async def _emit(self, event: NotifyEvent, *args) -> None:
        for handler in list(self._handlers[event]):
            try:
                result = handler(*args)

                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                logger.warning(f"Notification channel '{event.value}' handler failed: {e}")

    async def open(self) -> None:
        """
        Open the notification channel.

        Returns once the connection is established and the authentication
        message has been sent. The service confirms the channel by sending
        the channel open message, reported as an ``open`` event.

        Raises:
            WsNotifyChannelAlreadyOpenError: If the channel is open or being opened
            OpenWsConnError: If the connection cannot be established
        """
        if self._ws is not None or self.state is ChannelState.CONNECTING:
            raise WsNotifyChannelAlreadyOpenError()

        self.state = ChannelState.CONNECTING
        ws = None

        try:
            request = self.client._get_ws_notify_request(self.event_name)

            logger.debug(f"Opening notification channel for event {self.event_name}: {request.url}")
            ws = await websockets.connect(
                request.url,
                subprotocols=[NOTIFY_WS_SUBPROTOCOL],
                open_timeout=self.client.config.request_timeout
            )

            auth_msg = {
                TIMESTAMP_HEADER.lower(): request.get_header(TIMESTAMP_HEADER),
                'authorization': request.get_header('Authorization'),
            }
            await ws.send(json.dumps(auth_msg))
        except asyncio.CancelledError:
            self.state = ChannelState.CLOSED

            if ws is not None:
                await ws.close()

            raise
        except Exception as e:
            self.state = ChannelState.CLOSED

            if ws is not None:
                await ws.close()

            raise OpenWsConnError(e) from e

        self._ws = ws
        self.state = ChannelState.OPEN
        self._reader_task = asyncio.get_running_loop().create_task(self._read_messages(ws))

        logger.debug(f"Notification channel for event {self.event_name} connected")

    async def _read_messages(self, ws) -> None:
        try:
            try:
                async for message in ws:
                    if isinstance(message, bytes):
                        message = message.decode('utf-8', errors='replace')

                    if message == NOTIFY_CHANNEL_OPEN_MSG:
                        logger.debug(f"Notification channel for event {self.event_name} open")
                        await self._emit(NotifyEvent.OPEN)
                        continue

                    try:
                        data = json.loads(message)
                    except ValueError as e:
                        await self._emit(
                            NotifyEvent.ERROR,
                            WsNotifyChannelError(f"Invalid notification message received: {message}", cause=e)
                        )
                        continue

                    await self._emit(NotifyEvent.NOTIFY, data)
            except ConnectionClosedError as e:
                await self._emit(NotifyEvent.ERROR, e)
                await ws.close(CLOSE_POLICY_VIOLATION)

            self.state = ChannelState.CLOSED
            logger.debug(
                f"Notification channel for event {self.event_name} closed: [{ws.close_code}] {ws.close_reason}"
            )
            await self._emit(NotifyEvent.CLOSE, ws.close_code, ws.close_reason)
        finally:
            # The socket is cleared only after the close event has been emitted
            self._ws = None
            self.state = ChannelState.CLOSED

    async def close(self) -> None:
        """Close the notification channel. Does nothing if it is not open."""
        if self._ws is None:
            return

        await self._ws.close(CLOSE_NORMAL)

    async def wait_closed(self) -> None:
        """Wait until the channel is closed and its close event has been emitted"""
        if self._reader_task is not None:
            await asyncio.shield(self._reader_task)

    async def __aenter__(self) -> 'WsNotifyChannel':
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
        await self.wait_closed()
