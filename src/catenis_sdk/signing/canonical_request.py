"""
Canonical request construction for CTN1 request signatures

The canonical request is the deterministic text representation of an HTTP
request that the Catenis service recomputes from the request it receives.
Header values and body bytes must therefore be exactly the ones sent.
"""

from typing import Union

from .types import SignableRequest, TIMESTAMP_HEADER
from .utils import hash_data, parse_url


class CanonicalRequestBuilder:
    """
    Canonical request builder for CTN1 signatures
    """

    def __init__(self, request: SignableRequest):
        """
        Initialize canonical request builder.

        Args:
            request: Request to be signed. It must already carry the
                timestamp header.
        """
        self.request = request

    def build(self) -> str:
        """
        Build the canonical request for signing.

        Returns:
            str: Canonical request string
        """
        return build_canonical_request(
            self.request.method.value,
            parse_url(self.request.url)['target_uri'],
            self._host_header(),
            self.request.get_header(TIMESTAMP_HEADER),
            self.request.body
        )

    def _host_header(self) -> str:
        host = self.request.get_header('Host')

        if not host:
            host = parse_url(self.request.url)['host']

        return host


def build_canonical_request(
    method: str,
    request_target: str,
    host: str,
    timestamp: str,
    body: Union[str, bytes, None] = b""
) -> str:
    """
    Build canonical request string.

    The empty line after the essential headers marks the end of the
    headers block.

    Args:
        method: HTTP method
        request_target: Path and query string of the request
        host: Value of the Host header
        timestamp: Value of the timestamp header
        body: Request body bytes as transmitted

    Returns:
        str: Canonical request string
    """
    if body is None:
        body = b""

    essential_headers = (
        f"host:{host}\n"
        f"{TIMESTAMP_HEADER.lower()}:{timestamp}\n"
    )

    return (
        f"{method}\n"
        f"{request_target}\n"
        f"{essential_headers}\n"
        f"{hash_data(body)}\n"
    )
