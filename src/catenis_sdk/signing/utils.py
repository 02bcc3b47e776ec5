"""
Utility functions for request signing

This module provides the hashing, HMAC and timestamp helpers used by the
CTN1 signing scheme, plus URL parsing for the request target.
"""

import hashlib
from datetime import datetime, timezone
from typing import Dict, Union
from urllib.parse import urlsplit

from cryptography.hazmat.primitives import hashes, hmac


SIGNABLE_URL_SCHEMES = ('http', 'https', 'ws', 'wss')
DEFAULT_PORTS = {'http': 80, 'https': 443, 'ws': 80, 'wss': 443}


def _to_bytes(data: Union[str, bytes]) -> bytes:
    if isinstance(data, str):
        return data.encode('utf-8')
    return data


def hash_data(data: Union[str, bytes]) -> str:
    """
    Generate the SHA-256 hash of a byte sequence.

    Args:
        data: Data to hash (strings are UTF-8 encoded)

    Returns:
        str: Lowercase hex digest
    """
    return hashlib.sha256(_to_bytes(data)).hexdigest()


def sign_data(data: Union[str, bytes], secret: Union[str, bytes], hex_encode: bool = False) -> Union[bytes, str]:
    """
    Sign a byte sequence with HMAC-SHA256.

    Args:
        data: Data to be signed
        secret: Key to be used for signing
        hex_encode: Return a lowercase hex string instead of the raw digest

    Returns:
        bytes or str: Raw digest, or its hex encoding if ``hex_encode`` is set
    """
    signer = hmac.HMAC(_to_bytes(secret), hashes.SHA256())
    signer.update(_to_bytes(data))
    digest = signer.finalize()

    return to_hex(digest) if hex_encode else digest


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(moment: datetime) -> datetime:
    """Interpret naive datetimes as UTC and convert aware ones to UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """Format a moment as an ISO 8601 basic timestamp: YYYYMMDDTHHMMSSZ"""
    return as_utc(moment).strftime('%Y%m%dT%H%M%SZ')


def format_date_stamp(moment: datetime) -> str:
    """Format the day of a moment as YYYYMMDD"""
    return as_utc(moment).strftime('%Y%m%d')


def to_hex(data: bytes) -> str:
    """
    Convert bytes to lowercase hex string.

    Args:
        data: Bytes to convert

    Returns:
        str: Lowercase hex string
    """
    return data.hex().lower()


def parse_url(url: str) -> Dict[str, str]:
    """
    Parse URL to extract components needed for signing.

    Args:
        url: URL string to parse

    Returns:
        dict: Dictionary with parsed URL components:
            - origin: scheme + netloc
            - host: value for the Host header (port omitted when it is the default)
            - pathname: path component
            - search: query string (including ?)
            - target_uri: pathname + search

    Raises:
        ValueError: If URL format is invalid
    """
    parsed = urlsplit(url)

    if not parsed.scheme or not parsed.netloc:
        raise ValueError(f"Invalid URL format: {url}")

    if parsed.scheme not in SIGNABLE_URL_SCHEMES:
        raise ValueError(f"Unsupported URL scheme: {parsed.scheme}")

    host = parsed.hostname or ""

    if ':' in host:
        # IPv6 literal
        host = f"[{host}]"

    if parsed.port is not None and parsed.port != DEFAULT_PORTS[parsed.scheme]:
        host = f"{host}:{parsed.port}"

    pathname = parsed.path or "/"
    search = f"?{parsed.query}" if parsed.query else ""

    return {
        "origin": f"{parsed.scheme}://{parsed.netloc}",
        "host": host,
        "pathname": pathname,
        "search": search,
        "target_uri": pathname + search,
    }
