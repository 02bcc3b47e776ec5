"""
Type definitions for request signing functionality

This module provides the constants, data classes and enums used by the
Catenis CTN1-HMAC-SHA256 request signing scheme.
"""

from datetime import datetime, timedelta
from typing import Dict, Optional, Callable
from dataclasses import dataclass, field
from enum import Enum


# Signing scheme constants
SIGN_VERSION_ID = "CTN1"
SIGN_METHOD_ID = "CTN1-HMAC-SHA256"
SCOPE_REQUEST = "ctn1_request"
SIGN_VALID_DAYS = 7
SIGN_VALID_PERIOD = timedelta(days=SIGN_VALID_DAYS)
TIMESTAMP_HEADER = "X-BCoT-Timestamp"
AUTHORIZATION_HEADER = "Authorization"


class HttpMethod(str, Enum):
    """HTTP methods used by the Catenis API"""
    GET = "GET"
    POST = "POST"


@dataclass
class SignableRequest:
    """
    Request to be signed

    Attributes:
        method: HTTP method (GET, POST)
        url: Complete request URL (http, https, ws or wss)
        headers: Request headers as key-value pairs
        body: Request body exactly as it is transmitted
    """
    method: HttpMethod
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def __post_init__(self):
        """Validate request after initialization"""
        if not self.url:
            raise ValueError("Request URL cannot be empty")

        if not isinstance(self.headers, dict):
            raise ValueError("Headers must be a dictionary")

        if self.body is None:
            self.body = b""
        elif isinstance(self.body, str):
            self.body = self.body.encode('utf-8')

        # Normalize headers to lowercase for consistent processing
        self.headers = {k.lower(): v for k, v in self.headers.items()}

    def get_header(self, name: str) -> str:
        """Return the value of a header, or an empty string if it is not set"""
        return self.headers.get(name.lower(), "")

    def set_header(self, name: str, value: str) -> None:
        """Set (replace) a header value"""
        self.headers[name.lower()] = value


@dataclass
class SigningConfig:
    """
    Configuration for request signing

    Attributes:
        device_id: Catenis device ID used in the signature credential
        api_access_secret: Device's API access secret
        timestamp_generator: Optional callable returning the current UTC time
    """
    device_id: str
    api_access_secret: str
    timestamp_generator: Optional[Callable[[], datetime]] = None

    def __post_init__(self):
        """Validate signing configuration"""
        if not self.device_id:
            raise ValueError("Device ID cannot be empty")

        if not self.api_access_secret:
            raise ValueError("API access secret cannot be empty")

    def __repr__(self) -> str:
        return f"SigningConfig(device_id='{self.device_id}', api_access_secret='***')"


@dataclass
class SignatureScope:
    """Scope binding a signature to a calendar day and the request purpose"""
    date_stamp: str
    scope_name: str = SCOPE_REQUEST

    def __str__(self) -> str:
        return f"{self.date_stamp}/{self.scope_name}"


@dataclass
class SignatureResult:
    """
    Result of signing a request

    Attributes:
        timestamp: Value set for the timestamp header
        authorization: Value set for the Authorization header
        scope: Signature scope used
        canonical_request: Canonical request that was hashed
        string_to_sign: String that was signed
        headers: Headers added to the request
    """
    timestamp: str
    authorization: str
    scope: SignatureScope
    canonical_request: str
    string_to_sign: str

    @property
    def headers(self) -> Dict[str, str]:
        return {
            TIMESTAMP_HEADER: self.timestamp,
            AUTHORIZATION_HEADER: self.authorization,
        }


# Type aliases for convenience
TimestampGenerator = Callable[[], datetime]
HeaderDict = Dict[str, str]
