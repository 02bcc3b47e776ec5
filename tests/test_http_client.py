"""
Unit tests for the request core and the blocking HTTP transport
"""

import hashlib
import json
import zlib
from datetime import datetime, timezone
from unittest.mock import Mock
import pytest
import requests

from catenis_sdk.config import ClientConfig, ServiceEndpoints
from catenis_sdk.http_client import (
    ApiRequest,
    ApiRequestBuilder,
    CatenisHttpClient,
    RequestsTransport,
    encode_json_body,
    process_response,
)
from catenis_sdk.signing import HttpMethod, create_signer
from catenis_sdk.exceptions import CatenisApiError, CatenisClientError

FROZEN_NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_builder(with_signer=True, **options) -> ApiRequestBuilder:
    config = ClientConfig(**options)
    signer = create_signer("dev1", "s3cr3t", lambda: FROZEN_NOW) if with_signer else None

    return ApiRequestBuilder(config, ServiceEndpoints.from_config(config), signer)


def make_response(status_code=200, reason="OK", body=b'{"status":"success","data":{"ok":true}}'):
    response = Mock()
    response.status_code = status_code
    response.reason = reason
    response.content = body
    return response


class TestProcessResponse:
    """Test response unwrapping"""

    def test_success(self):
        """Test returning the data of a success envelope"""
        body = b'{"status":"success","data":{"messageId":"mdx8vuCGWdb5TMnlwnN2"}}'

        assert process_response(200, "OK", body) == {"messageId": "mdx8vuCGWdb5TMnlwnN2"}

    def test_api_error_with_catenis_message(self):
        """Test error carrying the service message"""
        body = '{"status":"error","message":"Invalid message ID"}'

        with pytest.raises(CatenisApiError) as exc_info:
            process_response(400, "Bad Request", body)

        error = exc_info.value
        assert error.http_status_code == 400
        assert error.http_status_message == "Bad Request"
        assert error.catenis_message == "Invalid message ID"
        assert str(error) == "Error returned from Catenis API endpoint: [400] Invalid message ID"
        assert error.error_code == "API_ERROR"

    def test_api_error_without_json_body(self):
        """Test error falling back to the reason phrase"""
        with pytest.raises(CatenisApiError) as exc_info:
            process_response(503, "Service Unavailable", b"<html>down</html>")

        assert exc_info.value.catenis_message is None
        assert str(exc_info.value) == "Error returned from Catenis API endpoint: [503] Service Unavailable"

    def test_malformed_success_body(self):
        """Test protocol error for 200 responses without the success envelope"""
        for body in (b"", b"not json", b'{"status":"error","data":{}}', b'{"status":"success"}', b'[1,2]'):
            with pytest.raises(CatenisClientError, match="Unexpected response returned by API endpoint"):
                process_response(200, "OK", body)

    def test_malformed_body_is_carried(self):
        """Test that the raw body is part of the error message"""
        with pytest.raises(CatenisClientError) as exc_info:
            process_response(200, "OK", b'{"foo":1}')

        assert '{"foo":1}' in str(exc_info.value)


class TestApiRequestBuilder:
    """Test request assembly"""

    def test_get_request(self):
        """Test GET request headers and URL"""
        builder = make_builder()

        request = builder.build_get_request("messages/:messageId", {'messageId': 'm1'}, {'encoding': 'utf8'})

        assert request.method is HttpMethod.GET
        assert request.url == "https://catenis.io/api/0.10/messages/m1?encoding=utf8"
        assert request.get_header("Host") == "catenis.io"
        assert request.get_header("Accept-Encoding") == "deflate"
        assert request.body == b""

    def test_no_accept_encoding_without_compression(self):
        """Test that Accept-Encoding is not set when compression is off"""
        request = make_builder(use_compression=False).build_get_request("messages")

        assert request.get_header("Accept-Encoding") == ""

    def test_post_request_small_body(self):
        """Test that small bodies are not compressed"""
        builder = make_builder()

        request = builder.build_post_request("messages/log", {'message': 'olá'})

        assert request.body == '{"message":"olá"}'.encode('utf-8')
        assert request.get_header("Content-Type") == "application/json"
        assert request.get_header("Content-Encoding") == ""

    def test_post_request_compressed(self):
        """Test that bodies at the threshold are compressed"""
        builder = make_builder(compress_threshold=20)
        payload = {'message': 'x' * 6}
        raw = encode_json_body(payload)
        assert len(raw) == 20

        request = builder.build_post_request("messages/log", payload)

        assert request.get_header("Content-Encoding") == "deflate"
        assert zlib.decompress(request.body) == raw

    def test_compression_disabled(self):
        """Test that large bodies are sent as is when compression is off"""
        builder = make_builder(use_compression=False, compress_threshold=10)

        request = builder.build_post_request("messages/log", {'message': 'x' * 100})

        assert request.get_header("Content-Encoding") == ""
        assert json.loads(request.body) == {'message': 'x' * 100}

    def test_signature_covers_compressed_bytes(self):
        """Test that the signed body hash is the hash of the bytes sent"""
        builder = make_builder(compress_threshold=10)
        request = builder.prepare(builder.build_post_request("messages/log", {'message': 'x' * 100}))

        result = builder.signer.sign_request(request)

        assert result.canonical_request.endswith(f"\n{hashlib.sha256(request.body).hexdigest()}\n")

    def test_prepare_signs(self):
        """Test that prepared requests carry authentication headers"""
        builder = make_builder()

        request = builder.prepare(builder.build_get_request("messages"))

        assert request.get_header("X-BCoT-Timestamp") == "20240101T120000Z"
        assert request.get_header("Authorization").startswith(
            "CTN1-HMAC-SHA256 Credential=dev1/20240101/ctn1_request, Signature="
        )

    def test_prepare_unsigned_endpoint(self):
        """Test that requests marked as unsigned are left alone"""
        builder = make_builder()

        request = builder.prepare(builder.build_get_request("messages/m1/origin", do_not_sign=True))

        assert request.get_header("Authorization") == ""
        assert request.get_header("X-BCoT-Timestamp") == ""

    def test_prepare_without_credentials(self):
        """Test that nothing is signed without credentials"""
        builder = make_builder(with_signer=False)

        request = builder.prepare(builder.build_get_request("messages"))

        assert request.get_header("Authorization") == ""

    def test_ws_notify_request(self):
        """Test the signed notification channel request"""
        builder = make_builder()

        request = builder.build_ws_notify_request("new-msg-received")

        assert request.url == "wss://catenis.io/api/0.10/notify/ws/new-msg-received"
        assert request.get_header("Host") == "catenis.io"
        assert request.get_header("Authorization").startswith("CTN1-HMAC-SHA256 Credential=dev1/")

    def test_signed_target_matches_sent_target(self):
        """Test that requests sends the same request target that was signed"""
        builder = make_builder()

        for device_id in ('50%off', '10%25', "a b:c@d'e~f"):
            request = builder.build_get_request(
                "devices/:deviceId", {'deviceId': device_id}, {'isProdUniqueId': True}
            )
            result = builder.signer.sign_request(request)
            signed_target = result.canonical_request.split('\n')[1]

            prepared = requests.Request(request.method.value, request.url, headers=request.headers).prepare()

            assert prepared.url == request.url
            assert prepared.path_url == signed_target

    def test_unserializable_payload(self):
        """Test that unserializable payloads raise a client error"""
        with pytest.raises(CatenisClientError) as exc_info:
            make_builder().build_post_request("messages/log", {'message': object()})

        assert isinstance(exc_info.value.cause, TypeError)


class TestRequestsTransport:
    """Test blocking transport"""

    def setup_method(self):
        """Set up test fixtures"""
        self.session = Mock(spec=requests.Session)
        self.builder = make_builder()
        self.client = CatenisHttpClient(self.builder, RequestsTransport(self.builder.config, self.session))

    def test_send_get_request(self):
        """Test sending a signed GET request"""
        self.session.request.return_value = make_response()

        result = self.client.send_get_request("messages", query_params={'limit': 1})

        assert result == {"ok": True}
        args, kwargs = self.session.request.call_args
        assert args == ("GET", "https://catenis.io/api/0.10/messages?limit=1")
        assert kwargs['headers']['authorization'].startswith("CTN1-HMAC-SHA256")
        assert kwargs['headers']['host'] == "catenis.io"
        assert kwargs['data'] is None
        assert kwargs['timeout'] is None

    def test_send_post_request(self):
        """Test sending a POST request body"""
        self.session.request.return_value = make_response()

        self.client.send_post_request("messages/log", {'message': 'hi'})

        kwargs = self.session.request.call_args.kwargs
        assert kwargs['data'] == b'{"message":"hi"}'
        assert kwargs['headers']['content-type'] == "application/json"

    def test_timeout_is_passed(self):
        """Test that a configured timeout reaches the session"""
        builder = make_builder(timeout=5)
        client = CatenisHttpClient(builder, RequestsTransport(builder.config, self.session))
        self.session.request.return_value = make_response()

        client.send_get_request("messages")

        assert self.session.request.call_args.kwargs['timeout'] == 5

    def test_api_error(self):
        """Test that error responses raise API errors"""
        self.session.request.return_value = make_response(
            401, "Unauthorized", b'{"status":"error","message":"Authorization failed; invalid signature"}'
        )

        with pytest.raises(CatenisApiError, match="invalid signature"):
            self.client.send_get_request("messages")

    def test_network_error_is_wrapped(self):
        """Test that transport errors are wrapped with the cause chained"""
        cause = requests.exceptions.ConnectionError("connection refused")
        self.session.request.side_effect = cause

        with pytest.raises(CatenisClientError) as exc_info:
            self.client.send_get_request("messages")

        assert exc_info.value.cause is cause
        assert exc_info.value.__cause__ is cause
        assert str(exc_info.value) == "Error processing client request: connection refused"

    def test_signing_error_is_wrapped(self):
        """Test that failures while signing are wrapped in a client error"""
        request = ApiRequest(HttpMethod.GET, "ftp://catenis.io/api/0.10/messages")

        with pytest.raises(CatenisClientError) as exc_info:
            self.client.send_request(request)

        assert isinstance(exc_info.value.cause, ValueError)
        assert "Unsupported URL scheme" in str(exc_info.value)
        self.session.request.assert_not_called()

    def test_catenis_errors_are_not_rewrapped(self):
        """Test that API errors pass through unchanged"""
        self.session.request.return_value = make_response(404, "Not Found", b"")

        with pytest.raises(CatenisApiError):
            self.client.send_get_request("messages")

    def test_single_attempt(self):
        """Test that failed requests are not retried"""
        self.session.request.side_effect = requests.exceptions.Timeout("timed out")

        with pytest.raises(CatenisClientError):
            self.client.send_get_request("messages")

        assert self.session.request.call_count == 1

    def test_default_session_headers(self):
        """Test headers of a transport-created session"""
        transport = RequestsTransport(ClientConfig(use_compression=False))

        assert transport.session.headers['Accept'] == "application/json"
        assert transport.session.headers['User-Agent'].startswith("Catenis API Python client")
        assert transport.session.headers['Accept-Encoding'] == "identity"

        transport.close()

    def test_context_manager(self):
        """Test closing the session on exit"""
        with self.client:
            pass

        self.session.close.assert_called_once()


class TestApiRequest:
    """Test API request type"""

    def test_defaults(self):
        """Test default request values"""
        request = ApiRequest(HttpMethod.GET, "https://catenis.io/api/0.10/messages")

        assert request.do_not_sign is False
        assert request.body == b""
        assert request.headers == {}


if __name__ == '__main__':
    pytest.main([__file__])
