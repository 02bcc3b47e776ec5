"""
Asynchronous HTTP client module for Catenis SDK

This module provides the aiohttp based transport, the task queue used to
defer calls onto an injected event loop and the periodic pump that drains
it.
"""

from .async_client import (
    AsyncCatenisHttpClient,
    AiohttpTransport,
    TaskQueue,
    LoopPump,
)

__all__ = [
    'AsyncCatenisHttpClient',
    'AiohttpTransport',
    'TaskQueue',
    'LoopPump',
]
