"""
HTTP client integration for Catenis API communication

This module holds the transport-independent request core (request
assembly, body compression, signing and response unwrapping) together with
the blocking transport built on ``requests``.
"""

import json
import logging
import zlib
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

import requests

from .config import ClientConfig, ServiceEndpoints
from .endpoint_url import EndpointUrlAssembler
from .exceptions import CatenisApiError, CatenisClientError, CatenisError
from .signing import RequestSigner, SignableRequest, HttpMethod, parse_url
from .version import USER_AGENT

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = 'application/json'
DEFLATE_ENCODING = 'deflate'


@dataclass
class ApiRequest(SignableRequest):
    """
    Request to a Catenis API endpoint

    Attributes:
        do_not_sign: Send the request without an Authorization header
    """
    do_not_sign: bool = False


def encode_json_body(json_data: Mapping[str, Any]) -> bytes:
    """
    Serialize a request payload as compact UTF-8 JSON.

    Raises:
        CatenisClientError: If the payload is not JSON serializable
    """
    try:
        return json.dumps(json_data, ensure_ascii=False, separators=(',', ':')).encode('utf-8')
    except (TypeError, ValueError) as e:
        raise CatenisClientError(cause=e) from e


def process_response(status_code: int, reason: str, body: Union[bytes, str, None]) -> Any:
    """
    Unwrap the JSON envelope returned by a Catenis API endpoint.

    Args:
        status_code: HTTP status code
        reason: HTTP reason phrase
        body: Raw response body

    Returns:
        The ``data`` member of a successful response

    Raises:
        CatenisApiError: If the status code is not 200
        CatenisClientError: If a 200 response does not carry the expected envelope
    """
    if isinstance(body, bytes):
        body = body.decode('utf-8', errors='replace')

    body = body or ''

    if status_code != 200:
        catenis_message = None

        if body:
            json_body = _parse_json_object(body)

            if json_body is not None and json_body.get('status') is not None \
                    and json_body.get('message') is not None:
                catenis_message = json_body['message']

        raise CatenisApiError(reason, status_code, catenis_message)

    if body:
        json_body = _parse_json_object(body)

        if json_body is not None and json_body.get('status') == 'success' \
                and json_body.get('data') is not None:
            return json_body['data']

    raise CatenisClientError(f"Unexpected response returned by API endpoint: {body}")


def _parse_json_object(text: str) -> Optional[Dict[str, Any]]:
    try:
        value = json.loads(text)
    except ValueError:
        return None

    return value if isinstance(value, dict) else None


class ApiRequestBuilder:
    """
    Builds and signs requests to Catenis API endpoints.

    Shared by the blocking and the asynchronous transports so requests are
    assembled and signed the same way regardless of how they are sent.
    """

    def __init__(self, config: ClientConfig, endpoints: ServiceEndpoints,
                 signer: Optional[RequestSigner] = None):
        self.config = config
        self.endpoints = endpoints
        self.url_assembler = EndpointUrlAssembler(endpoints)
        self.signer = signer

    def _base_headers(self) -> Dict[str, str]:
        headers = {}

        if self.config.use_compression:
            headers['Accept-Encoding'] = DEFLATE_ENCODING

        return headers

    def build_get_request(
        self,
        method_path: str,
        url_params: Optional[Mapping[str, Any]] = None,
        query_params: Optional[Mapping[str, Any]] = None,
        do_not_sign: bool = False
    ) -> ApiRequest:
        """Build an (unsigned) GET request for an API method"""
        url = self.url_assembler.method_url(method_path, url_params, query_params)
        headers = self._base_headers()
        headers['Host'] = parse_url(url)['host']

        return ApiRequest(HttpMethod.GET, url, headers, do_not_sign=do_not_sign)

    def build_post_request(
        self,
        method_path: str,
        json_data: Mapping[str, Any],
        url_params: Optional[Mapping[str, Any]] = None,
        query_params: Optional[Mapping[str, Any]] = None,
        do_not_sign: bool = False
    ) -> ApiRequest:
        """
        Build an (unsigned) POST request for an API method.

        When compression is enabled, bodies at least ``compress_threshold``
        bytes long are deflated. The body kept on the request is the one
        that is hashed for signing and sent.
        """
        url = self.url_assembler.method_url(method_path, url_params, query_params)
        headers = self._base_headers()
        headers['Host'] = parse_url(url)['host']
        headers['Content-Type'] = JSON_CONTENT_TYPE

        body = encode_json_body(json_data)

        if self.config.use_compression and len(body) >= self.config.compress_threshold:
            original_size = len(body)
            body = zlib.compress(body)
            headers['Content-Encoding'] = DEFLATE_ENCODING

            logger.debug(f"Compressed request body for {url}: {original_size} -> {len(body)} bytes")

        return ApiRequest(HttpMethod.POST, url, headers, body, do_not_sign=do_not_sign)

    def build_ws_notify_request(self, event_name: str) -> SignableRequest:
        """Build the signed request used to open a notification channel"""
        url = self.url_assembler.ws_notify_url(':eventName', {'eventName': event_name})
        request = SignableRequest(HttpMethod.GET, url, {'Host': parse_url(url)['host']})

        if self.signer is not None:
            self.signer.sign_request(request)

        return request

    def prepare(self, request: ApiRequest) -> ApiRequest:
        """Sign the request unless it is marked as unsigned or there are no credentials"""
        if not request.do_not_sign and self.signer is not None:
            self.signer.sign_request(request)

        return request


class RequestsTransport:
    """Blocking transport built on a ``requests`` session"""

    def __init__(self, config: ClientConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session if session is not None else self._create_session()

    def _create_session(self) -> requests.Session:
        session = requests.Session()

        session.headers.update({
            'User-Agent': USER_AGENT,
            'Accept': JSON_CONTENT_TYPE,
        })

        if not self.config.use_compression:
            session.headers['Accept-Encoding'] = 'identity'

        return session

    def send(self, request: ApiRequest) -> Any:
        """
        Send a prepared request and unwrap its response.

        Raises:
            CatenisApiError: If the endpoint returns an error
            CatenisClientError: On network errors, timeouts or malformed responses
        """
        try:
            logger.debug(f"Making {request.method.value} request to {request.url}")
            response = self.session.request(
                request.method.value,
                request.url,
                headers=request.headers,
                data=request.body or None,
                timeout=self.config.request_timeout
            )
        except requests.exceptions.RequestException as e:
            raise CatenisClientError(cause=e) from e

        logger.debug(f"Received {response.status_code} response from {request.url}")

        return process_response(response.status_code, response.reason, response.content)

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()
        logger.debug("HTTP session closed")


class CatenisHttpClient:
    """
    Blocking Catenis API HTTP client.

    Builds, signs and sends one request per call, without retries.
    """

    def __init__(self, builder: ApiRequestBuilder, transport: Optional[RequestsTransport] = None):
        self.builder = builder
        self.transport = transport if transport is not None else RequestsTransport(builder.config)

    def send_request(self, request: ApiRequest) -> Any:
        """
        Sign and send a request.

        Failures other than Catenis errors are wrapped in a CatenisClientError.
        """
        try:
            return self.transport.send(self.builder.prepare(request))
        except CatenisError:
            raise
        except Exception as e:
            raise CatenisClientError(cause=e) from e

    def send_get_request(
        self,
        method_path: str,
        url_params: Optional[Mapping[str, Any]] = None,
        query_params: Optional[Mapping[str, Any]] = None,
        do_not_sign: bool = False
    ) -> Any:
        return self.send_request(
            self.builder.build_get_request(method_path, url_params, query_params, do_not_sign)
        )

    def send_post_request(
        self,
        method_path: str,
        json_data: Mapping[str, Any],
        url_params: Optional[Mapping[str, Any]] = None,
        query_params: Optional[Mapping[str, Any]] = None,
        do_not_sign: bool = False
    ) -> Any:
        return self.send_request(
            self.builder.build_post_request(method_path, json_data, url_params, query_params, do_not_sign)
        )

    def close(self) -> None:
        self.transport.close()

    def __enter__(self):
        """Context manager entry"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit"""
        self.close()
