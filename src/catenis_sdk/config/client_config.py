"""
Client configuration for Catenis Python SDK

Provides the construction-time options of the API client and the service
endpoints (API and WebSocket notification roots) derived from them.
"""

import asyncio
import re
from dataclasses import dataclass, field, fields
from enum import Enum
from functools import total_ordering
from typing import Any, Dict, Mapping, Optional, Union

from ..exceptions import ValidationError


DEFAULT_HOST = "catenis.io"
DEFAULT_API_VERSION = "0.10"
DEFAULT_COMPRESS_THRESHOLD = 1024
DEFAULT_PUMP_INTERVAL_MS = 10

API_PATH = "/api/"
NOTIFY_ROOT_PATH = "notify"
WS_NOTIFY_ROOT_PATH = "ws"

# Option names as accepted by the other Catenis API clients
_OPTION_ALIASES = {
    'useCompression': 'use_compression',
    'compressThreshold': 'compress_threshold',
    'eventLoop': 'event_loop',
    'pumpTaskQueue': 'pump_task_queue',
    'pumpInterval': 'pump_interval',
}


@total_ordering
class ApiVersion:
    """Catenis API version number in the form <major>.<minor>"""

    _VERSION_PATTERN = re.compile(r'^(\d+)\.(\d+)$')

    def __init__(self, version: Union[str, 'ApiVersion']):
        if isinstance(version, ApiVersion):
            self.major = version.major
            self.minor = version.minor
            return

        match = self._VERSION_PATTERN.match(version) if isinstance(version, str) else None

        if match is None:
            raise ValidationError(f"Invalid API version: {version}")

        self.major = int(match.group(1))
        self.minor = int(match.group(2))

    @classmethod
    def is_valid(cls, version: Any) -> bool:
        return isinstance(version, ApiVersion) or (
            isinstance(version, str) and cls._VERSION_PATTERN.match(version) is not None
        )

    def _key(self):
        return self.major, self.minor

    def __eq__(self, other) -> bool:
        if not ApiVersion.is_valid(other):
            return NotImplemented
        return self._key() == ApiVersion(other)._key()

    def __lt__(self, other) -> bool:
        if not ApiVersion.is_valid(other):
            return NotImplemented
        return self._key() < ApiVersion(other)._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"

    def __repr__(self) -> str:
        return f"ApiVersion('{self}')"


class Environment(str, Enum):
    """Catenis environments"""
    PROD = "prod"
    SANDBOX = "sandbox"
    BETA = "beta"

    @property
    def subdomain(self) -> str:
        return "" if self is Environment.PROD else "sandbox."


class ServiceType(Enum):
    """Types of service an endpoint may belong to"""
    API = "api"
    WS_NOTIFY = "ws_notify"


@dataclass
class ClientConfig:
    """
    Catenis API client configuration

    Attributes:
        host: Host name (with optional port) of the target Catenis API server
        environment: Environment of the target server: 'prod', 'sandbox' or 'beta'
        secure: Use a secure connection (HTTPS/WSS)
        version: Version of the Catenis API to target
        use_compression: Compress request/response bodies
        compress_threshold: Minimum size, in bytes, of a request body for it to be compressed
        timeout: Time, in seconds, to wait for a response; 0 means no timeout
        event_loop: Event loop used to process asynchronous calls
        pump_task_queue: Periodically run the client's task queue on the event loop
        pump_interval: Interval, in milliseconds, for running the task queue
    """
    host: str = DEFAULT_HOST
    environment: Union[str, Environment] = Environment.PROD
    secure: bool = True
    version: Union[str, ApiVersion] = DEFAULT_API_VERSION
    use_compression: bool = True
    compress_threshold: int = DEFAULT_COMPRESS_THRESHOLD
    timeout: float = 0
    event_loop: Optional[asyncio.AbstractEventLoop] = field(default=None, repr=False)
    pump_task_queue: bool = True
    pump_interval: int = DEFAULT_PUMP_INTERVAL_MS

    def __post_init__(self):
        """Validate client configuration."""
        if not self.host or not isinstance(self.host, str):
            raise ValidationError("Host cannot be empty")

        try:
            self.environment = Environment(self.environment)
        except ValueError:
            raise ValidationError(f"Invalid environment: {self.environment}")

        self.version = ApiVersion(self.version)

        if not isinstance(self.secure, bool):
            raise ValidationError("Secure option must be a boolean")

        if not isinstance(self.use_compression, bool):
            raise ValidationError("Use compression option must be a boolean")

        if isinstance(self.compress_threshold, bool) or not isinstance(self.compress_threshold, int) \
                or self.compress_threshold <= 0:
            raise ValidationError("Compress threshold must be a positive integer")

        if isinstance(self.timeout, bool) or not isinstance(self.timeout, (int, float)) or self.timeout < 0:
            raise ValidationError("Timeout must be non-negative")

        if self.event_loop is not None and not isinstance(self.event_loop, asyncio.AbstractEventLoop):
            raise ValidationError("Event loop must be an asyncio event loop")

        if isinstance(self.pump_interval, bool) or not isinstance(self.pump_interval, int) \
                or self.pump_interval <= 0:
            raise ValidationError("Pump interval must be a positive integer")

    @classmethod
    def from_options(cls, options: Optional[Mapping[str, Any]] = None) -> 'ClientConfig':
        """
        Create configuration from an options mapping.

        Both snake_case and camelCase option names are accepted. Options
        set to None are ignored.

        Raises:
            ValidationError: On unknown options or invalid values
        """
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}

        for name, value in (options or {}).items():
            name = _OPTION_ALIASES.get(name, name)

            if name not in known:
                raise ValidationError(f"Unknown client option: {name}")

            if value is not None:
                kwargs[name] = value

        return cls(**kwargs)

    @property
    def host_name(self) -> str:
        """Host name including the environment sub-domain"""
        return self.environment.subdomain + self.host

    @property
    def request_timeout(self) -> Optional[float]:
        """Timeout to hand to the transport; None waits indefinitely"""
        return self.timeout if self.timeout > 0 else None


@dataclass(frozen=True)
class ServiceEndpoints:
    """Root URLs of the Catenis API and WebSocket notification services"""
    api_root: str
    ws_notify_root: str

    @classmethod
    def from_config(cls, config: ClientConfig) -> 'ServiceEndpoints':
        api_base_path = f"{API_PATH}{config.version}/"
        ws_notify_base_path = f"{api_base_path}{NOTIFY_ROOT_PATH}/{WS_NOTIFY_ROOT_PATH}/"

        http_scheme = "https" if config.secure else "http"
        ws_scheme = "wss" if config.secure else "ws"

        return cls(
            api_root=f"{http_scheme}://{config.host_name}{api_base_path}",
            ws_notify_root=f"{ws_scheme}://{config.host_name}{ws_notify_base_path}",
        )

    def root_for(self, service_type: ServiceType) -> str:
        return self.ws_notify_root if service_type is ServiceType.WS_NOTIFY else self.api_root
