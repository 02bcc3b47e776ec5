"""
Unit tests for endpoint URL assembly
"""

from datetime import datetime, timezone
import pytest

from catenis_sdk.config import ClientConfig, ServiceEndpoints, ServiceType
from catenis_sdk.endpoint_url import (
    EndpointUrlAssembler,
    assemble_endpoint_url,
    build_query_string,
    format_method_path,
    format_query_value,
)

API_ROOT = "https://catenis.io/api/0.10/"


class TestFormatMethodPath:
    """Test path parameter substitution"""

    def test_substitution(self):
        """Test replacing path tokens"""
        path = format_method_path("permission/events/:eventName/rights/:deviceId",
                                  {'eventName': 'receive-msg', 'deviceId': 'd8YpQ7jgPBJEkBrnvp58'})

        assert path == "permission/events/receive-msg/rights/d8YpQ7jgPBJEkBrnvp58"

    def test_word_boundary(self):
        """Test that a token does not match a longer token name"""
        path = format_method_path("x/:id/:identity", {'id': '1'})

        assert path == "x/1/:identity"

    def test_unmatched_tokens_are_kept(self):
        """Test that tokens without values stay as they are"""
        assert format_method_path("messages/:messageId", {}) == "messages/:messageId"
        assert format_method_path("messages/:messageId") == "messages/:messageId"

    def test_value_with_backslash(self):
        """Test that values are inserted literally"""
        assert format_method_path("a/:v", {'v': r'x\1'}) == r"a/x\1"


class TestQueryString:
    """Test query string construction"""

    def test_booleans(self):
        """Test boolean rendering"""
        assert format_query_value(False) == "0"
        assert format_query_value(True) == "1"

    def test_datetime(self):
        """Test datetime rendering"""
        moment = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

        assert format_query_value(moment) == "2024-01-01T12:00:00+00:00"

    def test_order_and_none(self):
        """Test that caller order is kept and None values are skipped"""
        query = build_query_string({'skip': 10, 'action': None, 'limit': 5})

        assert query == "skip=10&limit=5"

    def test_encoding(self):
        """Test percent-encoding of keys and values"""
        query = build_query_string({'msgToSign': 'a b&c=d/é'})

        assert query == "msgToSign=a%20b%26c%3Dd%2F%C3%A9"


class TestAssembleEndpointUrl:
    """Test absolute URL assembly"""

    def test_simple(self):
        """Test assembling a method URL"""
        url = assemble_endpoint_url("messages/:messageId", {'messageId': 'mdx8vuCGWdb5TMnlwnN2'},
                                    service_root=API_ROOT)

        assert url == "https://catenis.io/api/0.10/messages/mdx8vuCGWdb5TMnlwnN2"

    def test_false_query_value(self):
        """Test that False is sent as 0"""
        url = assemble_endpoint_url("messages", query_params={'async': False}, service_root=API_ROOT)

        assert url == "https://catenis.io/api/0.10/messages?async=0"

    def test_empty_path_param_collapses_slashes(self):
        """Test that empty path parameters do not produce double slashes"""
        url = assemble_endpoint_url("messages/:messageId/container", {'messageId': ''}, service_root=API_ROOT)

        assert url == "https://catenis.io/api/0.10/messages/container"
        assert "//" not in url.split("://", 1)[1]

    def test_path_encoding(self):
        """Test that characters outside pchar are percent-encoded"""
        url = assemble_endpoint_url("assets/:assetId", {'assetId': 'a b?c#d'}, service_root=API_ROOT)

        assert url == "https://catenis.io/api/0.10/assets/a%20b%3Fc%23d"

    def test_percent_sign_is_encoded(self):
        """Test that literal percent signs in path parameters are encoded"""
        url = assemble_endpoint_url("devices/:deviceId", {'deviceId': '50%off 10%25'}, service_root=API_ROOT)

        assert url == "https://catenis.io/api/0.10/devices/50%25off%2010%2525"

    def test_pchar_is_kept(self):
        """Test that pchar characters are not encoded"""
        url = assemble_endpoint_url("assets/:assetId", {'assetId': "a:b@c!$&'()*+,;=-._~"},
                                    service_root=API_ROOT)

        assert url.endswith("/assets/a:b@c!$&'()*+,;=-._~")

    def test_missing_root(self):
        """Test that a service root is required"""
        with pytest.raises(ValueError, match="Service root URL cannot be empty"):
            assemble_endpoint_url("messages")


class TestEndpointUrlAssembler:
    """Test assembling URLs against service endpoints"""

    def setup_method(self):
        """Set up test fixtures"""
        self.assembler = EndpointUrlAssembler(ServiceEndpoints.from_config(ClientConfig()))

    def test_method_url(self):
        """Test API method URL"""
        url = self.assembler.method_url("messages", query_params={'limit': 10, 'skip': 0})

        assert url == "https://catenis.io/api/0.10/messages?limit=10&skip=0"

    def test_ws_notify_url(self):
        """Test notification URL"""
        url = self.assembler.ws_notify_url(':eventName', {'eventName': 'new-msg-received'})

        assert url == "wss://catenis.io/api/0.10/notify/ws/new-msg-received"

    def test_service_type_selection(self):
        """Test selecting the root by service type"""
        api_url = self.assembler.assemble(ServiceType.API, "x")
        ws_url = self.assembler.assemble(ServiceType.WS_NOTIFY, "x")

        assert api_url == "https://catenis.io/api/0.10/x"
        assert ws_url == "wss://catenis.io/api/0.10/notify/ws/x"


if __name__ == '__main__':
    pytest.main([__file__])
