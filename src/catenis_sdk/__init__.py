"""
Catenis Python SDK
Client for the Catenis API with CTN1 request signing and WebSocket notifications
"""

from .version import __version__
from .exceptions import (
    CatenisError,
    ValidationError,
    CatenisClientError,
    CatenisApiError,
    WsNotifyChannelError,
    OpenWsConnError,
    WsNotifyChannelAlreadyOpenError,
)
from .config import (
    ClientConfig,
    ApiVersion,
    Environment,
    ServiceType,
    ServiceEndpoints,
)
from .api_client import ApiClient
from .http_client import (
    ApiRequest,
    ApiRequestBuilder,
    CatenisHttpClient,
    RequestsTransport,
    process_response,
)
from .http_clients import (
    AsyncCatenisHttpClient,
    AiohttpTransport,
    TaskQueue,
    LoopPump,
)
from .notification import (
    WsNotifyChannel,
    NotifyEvent,
    ChannelState,
)
from .endpoint_url import assemble_endpoint_url
from .signing import (
    RequestSigner,
    create_signer,
    SignableRequest,
    SignatureResult,
    SigningKeyCache,
    build_canonical_request,
)

__all__ = [
    '__version__',
    # Client
    'ApiClient',
    'ClientConfig',
    'ApiVersion',
    'Environment',
    'ServiceType',
    'ServiceEndpoints',
    # Transport
    'ApiRequest',
    'ApiRequestBuilder',
    'CatenisHttpClient',
    'RequestsTransport',
    'AsyncCatenisHttpClient',
    'AiohttpTransport',
    'TaskQueue',
    'LoopPump',
    'process_response',
    'assemble_endpoint_url',
    # Notifications
    'WsNotifyChannel',
    'NotifyEvent',
    'ChannelState',
    # Signing
    'RequestSigner',
    'create_signer',
    'SignableRequest',
    'SignatureResult',
    'SigningKeyCache',
    'build_canonical_request',
    # Exceptions
    'CatenisError',
    'ValidationError',
    'CatenisClientError',
    'CatenisApiError',
    'WsNotifyChannelError',
    'OpenWsConnError',
    'WsNotifyChannelAlreadyOpenError',
]
