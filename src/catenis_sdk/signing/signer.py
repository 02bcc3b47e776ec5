"""
CTN1-HMAC-SHA256 request signer

This module provides the signer that adds the timestamp and Authorization
headers expected by the Catenis API to HTTP requests and to the requests
used to open WebSocket notification channels.
"""

import logging
from datetime import datetime
from typing import Optional

from .types import (
    SignableRequest,
    SigningConfig,
    SignatureScope,
    SignatureResult,
    SIGN_METHOD_ID,
    TIMESTAMP_HEADER,
    AUTHORIZATION_HEADER,
)
from .utils import hash_data, sign_data, format_timestamp, utc_now, as_utc, parse_url
from .canonical_request import CanonicalRequestBuilder
from .key_cache import SigningKeyCache

logger = logging.getLogger(__name__)


class RequestSigner:
    """
    CTN1-HMAC-SHA256 request signer

    Signing mutates the request in place: the timestamp header, the Host
    header (when missing) and the Authorization header are set on it.
    """

    def __init__(self, config: SigningConfig, key_cache: Optional[SigningKeyCache] = None):
        """
        Initialize the signer with configuration.

        Args:
            config: Signing configuration
            key_cache: Optional signing key cache to share
        """
        self.config = config
        self.key_cache = key_cache or SigningKeyCache(config.api_access_secret)

    def sign_request(self, request: SignableRequest, now: Optional[datetime] = None) -> SignatureResult:
        """
        Sign a request.

        Args:
            request: Request to sign
            now: Optional signing moment; defaults to the configured
                timestamp generator or the current UTC time

        Returns:
            SignatureResult: Signing result with headers and intermediate values
        """
        if now is None:
            now = (self.config.timestamp_generator or utc_now)()

        now = as_utc(now)
        timestamp = format_timestamp(now)

        request.set_header(TIMESTAMP_HEADER, timestamp)

        if not request.get_header('Host'):
            request.set_header('Host', parse_url(request.url)['host'])

        # First step: compute canonical request
        canonical_request = CanonicalRequestBuilder(request).build()

        # Second step: get the signing key and assemble string to sign
        date_stamp, sign_key = self.key_cache.get_signing_key(now)
        scope = SignatureScope(date_stamp)

        string_to_sign = (
            f"{SIGN_METHOD_ID}\n"
            f"{timestamp}\n"
            f"{scope}\n"
            f"{hash_data(canonical_request)}\n"
        )

        # Third step: generate the signature
        signature = sign_data(string_to_sign, sign_key, hex_encode=True)
        credential = f"{self.config.device_id}/{scope}"

        # Fourth step: add authorization header
        authorization = f"{SIGN_METHOD_ID} Credential={credential}, Signature={signature}"
        request.set_header(AUTHORIZATION_HEADER, authorization)

        logger.debug(f"Signed {request.method.value} {request.url} with credential {credential}")

        return SignatureResult(
            timestamp=timestamp,
            authorization=authorization,
            scope=scope,
            canonical_request=canonical_request,
            string_to_sign=string_to_sign
        )


def create_signer(
    device_id: str,
    api_access_secret: str,
    timestamp_generator=None
) -> RequestSigner:
    """
    Create a new request signer.

    Args:
        device_id: Catenis device ID
        api_access_secret: Device's API access secret
        timestamp_generator: Optional callable returning the current UTC time

    Returns:
        RequestSigner: Configured signer instance
    """
    return RequestSigner(SigningConfig(device_id, api_access_secret, timestamp_generator))
