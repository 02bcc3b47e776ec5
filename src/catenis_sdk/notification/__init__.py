"""
Catenis notification module

This module provides the WebSocket notification channel used to receive
Catenis notification events.
"""

from .ws_notify_channel import (
    WsNotifyChannel,
    NotifyEvent,
    ChannelState,
    NOTIFY_WS_SUBPROTOCOL,
    NOTIFY_CHANNEL_OPEN_MSG,
)

__all__ = [
    'WsNotifyChannel',
    'NotifyEvent',
    'ChannelState',
    'NOTIFY_WS_SUBPROTOCOL',
    'NOTIFY_CHANNEL_OPEN_MSG',
]
