"""
Catenis Python SDK - Request Signing Module

CTN1-HMAC-SHA256 request signing. This module provides the canonical
request builder, the signing key cache and the signer used to authenticate
with the Catenis API and its WebSocket notification service.
"""

from .types import (
    SignableRequest,
    SigningConfig,
    SignatureScope,
    SignatureResult,
    HttpMethod,
    SIGN_VERSION_ID,
    SIGN_METHOD_ID,
    SCOPE_REQUEST,
    SIGN_VALID_DAYS,
    TIMESTAMP_HEADER,
)

from .canonical_request import (
    CanonicalRequestBuilder,
    build_canonical_request,
)

from .key_cache import (
    SigningKeyCache,
    SigningKeyState,
    derive_signing_key,
)

from .signer import (
    RequestSigner,
    create_signer,
)

from .utils import (
    hash_data,
    sign_data,
    format_timestamp,
    format_date_stamp,
    parse_url,
)

# Public API exports
__all__ = [
    # Core signing functionality
    'RequestSigner',
    'create_signer',
    'CanonicalRequestBuilder',
    'build_canonical_request',
    'SigningKeyCache',
    'SigningKeyState',
    'derive_signing_key',
    # Types
    'SignableRequest',
    'SigningConfig',
    'SignatureScope',
    'SignatureResult',
    'HttpMethod',
    # Constants
    'SIGN_VERSION_ID',
    'SIGN_METHOD_ID',
    'SCOPE_REQUEST',
    'SIGN_VALID_DAYS',
    'TIMESTAMP_HEADER',
    # Utilities
    'hash_data',
    'sign_data',
    'format_timestamp',
    'format_date_stamp',
    'parse_url',
]
