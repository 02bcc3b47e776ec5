"""
Exception classes for Catenis Python SDK
"""

from typing import Optional, Dict, Any


class CatenisError(Exception):
    """Base exception for all Catenis SDK errors"""

    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.error_code = error_code
        self.details = details or {}


class ValidationError(CatenisError):
    """Exception raised for invalid client options or method arguments"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "VALIDATION_ERROR", details)


class CatenisClientError(CatenisError):
    """
    Exception raised for local failures while processing a request.

    Covers network errors, timeouts and responses that do not follow the
    expected JSON envelope. The underlying exception, when there is one, is
    kept in ``cause``.
    """

    def __init__(self, message: Optional[str] = None, cause: Optional[BaseException] = None,
                 details: Optional[Dict[str, Any]] = None):
        if message is None:
            message = "Error processing client request"

            if cause is not None:
                message += f": {cause}"

        super().__init__(message, "CLIENT_ERROR", details)
        self.cause = cause


class CatenisApiError(CatenisError):
    """Exception raised when the Catenis API endpoint returns an error response"""

    def __init__(self, http_status_message: str, http_status_code: int,
                 catenis_message: Optional[str] = None):
        message = (
            f"Error returned from Catenis API endpoint: [{http_status_code}] "
            f"{catenis_message if catenis_message is not None else http_status_message}"
        )
        super().__init__(message, "API_ERROR", {
            'http_status_code': http_status_code,
            'http_status_message': http_status_message,
            'catenis_message': catenis_message,
        })
        self.http_status_message = http_status_message
        self.http_status_code = http_status_code
        self.catenis_message = catenis_message


class WsNotifyChannelError(CatenisError):
    """Exception raised for WebSocket notification channel errors"""

    def __init__(self, message: str, error_code: str = "WS_NOTIFY_ERROR",
                 cause: Optional[BaseException] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)
        self.cause = cause


class OpenWsConnError(WsNotifyChannelError):
    """Exception raised when the notification channel's WebSocket connection cannot be open"""

    def __init__(self, cause: Optional[BaseException] = None):
        message = "Error opening WebSocket connection"

        if cause is not None:
            message += f": {cause}"

        super().__init__(message, "OPEN_WS_CONN_ERROR", cause)


class WsNotifyChannelAlreadyOpenError(WsNotifyChannelError):
    """Exception raised when trying to open a notification channel that is already open"""

    def __init__(self):
        super().__init__("WebSocket notification channel is already open", "WS_CHANNEL_ALREADY_OPEN")
