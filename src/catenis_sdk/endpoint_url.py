"""
Endpoint URL assembly

Builds the absolute URL of a Catenis API (or WebSocket notification)
endpoint from a relative path template, its URL parameters and its query
string parameters. The URL produced here is the one that gets signed, so it
must also be exactly the one that goes over the wire.
"""

import re
from datetime import datetime
from typing import Any, Mapping, Optional
from urllib.parse import quote, urlsplit, urlunsplit

from .config import ServiceEndpoints, ServiceType

# RFC 3986 pchar set plus '/' as the segment separator. '%' is always
# encoded so the path is left untouched when a transport requotes it
_PATH_SAFE_CHARS = "/:@!$&'()*+,;=-._~"

_DUPLICATE_SLASHES = re.compile(r'/{2,}')


def format_method_path(path_template: str, url_params: Optional[Mapping[str, Any]] = None) -> str:
    """
    Replace the ``:name`` tokens of a path template with parameter values.

    Tokens with no corresponding parameter are left untouched.

    Args:
        path_template: Relative endpoint path, e.g. 'messages/:messageId'
        url_params: Mapping of token name to value

    Returns:
        str: Formatted path
    """
    formatted_path = path_template

    for name, value in (url_params or {}).items():
        formatted_path = re.sub(
            rf':{re.escape(name)}\b',
            lambda _match, value=value: str(value),
            formatted_path
        )

    return formatted_path


def format_query_value(value: Any) -> str:
    """Render a query string value the way the Catenis API expects it"""
    if isinstance(value, bool):
        return "1" if value else "0"

    if isinstance(value, datetime):
        return value.isoformat()

    return str(value)


def build_query_string(query_params: Optional[Mapping[str, Any]] = None) -> str:
    """
    Build a query string preserving the caller's parameter order.

    Parameters set to None are skipped.
    """
    parts = []

    for name, value in (query_params or {}).items():
        if value is None:
            continue

        parts.append(f"{quote(str(name), safe='')}={quote(format_query_value(value), safe='')}")

    return '&'.join(parts)


def _resolve_against_root(root_url: str, relative_path: str, query: str) -> str:
    root = urlsplit(root_url)

    if relative_path.startswith('/'):
        path = relative_path
    else:
        # Merge with the root path up to (and including) its last slash
        path = root.path[:root.path.rfind('/') + 1] + relative_path

    path = _DUPLICATE_SLASHES.sub('/', path)

    return urlunsplit((root.scheme, root.netloc, path, query, ''))


def assemble_endpoint_url(
    path_template: str,
    url_params: Optional[Mapping[str, Any]] = None,
    query_params: Optional[Mapping[str, Any]] = None,
    service_root: str = None
) -> str:
    """
    Assemble the absolute URL of a service endpoint.

    Args:
        path_template: Endpoint path relative to the service root
        url_params: Values for the ``:name`` tokens of the path
        query_params: Query string parameters, in order
        service_root: Absolute root URL of the service (ends with '/')

    Returns:
        str: Absolute endpoint URL with duplicate slashes collapsed

    Raises:
        ValueError: If no service root is given
    """
    if not service_root:
        raise ValueError("Service root URL cannot be empty")

    path = quote(format_method_path(path_template, url_params), safe=_PATH_SAFE_CHARS)
    query = build_query_string(query_params)

    return _resolve_against_root(service_root, path, query)


class EndpointUrlAssembler:
    """Assembles endpoint URLs against a client's service endpoints"""

    def __init__(self, endpoints: ServiceEndpoints):
        self.endpoints = endpoints

    def assemble(
        self,
        service_type: ServiceType,
        path_template: str,
        url_params: Optional[Mapping[str, Any]] = None,
        query_params: Optional[Mapping[str, Any]] = None
    ) -> str:
        return assemble_endpoint_url(
            path_template,
            url_params,
            query_params,
            self.endpoints.root_for(service_type)
        )

    def method_url(
        self,
        method_path: str,
        url_params: Optional[Mapping[str, Any]] = None,
        query_params: Optional[Mapping[str, Any]] = None
    ) -> str:
        """URL of a Catenis API method endpoint"""
        return self.assemble(ServiceType.API, method_path, url_params, query_params)

    def ws_notify_url(self, event_path: str, url_params: Optional[Mapping[str, Any]] = None) -> str:
        """URL of a WebSocket notification endpoint"""
        return self.assemble(ServiceType.WS_NOTIFY, event_path, url_params)
