"""
Catenis API client

The client exposes every Catenis API method twice: as a blocking method
and as an ``*_async`` method that returns an ``asyncio.Future`` for the
method's result.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Union

import requests

from . import endpoints
from .config import ClientConfig, ServiceEndpoints
from .endpoints import EndpointCall
from .exceptions import CatenisClientError, ValidationError
from .http_client import ApiRequestBuilder, CatenisHttpClient, RequestsTransport
from .http_clients.async_client import AsyncCatenisHttpClient
from .notification import WsNotifyChannel
from .signing import HttpMethod, SignableRequest, create_signer

logger = logging.getLogger(__name__)


class ApiClient:
    """
    Client for the Catenis API

    Example:
        >>> client = ApiClient(device_id, api_access_secret, environment='sandbox')
        >>> client.log_message('My message')
        {'messageId': 'mdx8vuCGWdb5TMnlwnN2'}
    """

    def __init__(
        self,
        device_id: Optional[str] = None,
        api_access_secret: Optional[str] = None,
        config: Optional[ClientConfig] = None,
        timestamp_generator: Optional[Callable[[], datetime]] = None,
        session: Optional[requests.Session] = None,
        **options
    ):
        """
        Initialize the Catenis API client.

        Args:
            device_id: Catenis device ID; None for a client that only
                accesses public endpoints
            api_access_secret: Device's API access secret
            config: Client configuration; when omitted it is built from ``options``
            timestamp_generator: Optional callable returning the current UTC
                time used to sign requests
            session: Optional ``requests`` session for blocking calls
            **options: Client options (see ``ClientConfig``)

        Raises:
            ValidationError: On invalid credentials or options
        """
        if config is None:
            config = ClientConfig.from_options(options)
        elif options:
            raise ValidationError("Client options cannot be combined with a config object")

        if bool(device_id) != bool(api_access_secret):
            raise ValidationError("Device ID and API access secret must be provided together")

        self.config = config
        self.device_id = device_id
        self.endpoints = ServiceEndpoints.from_config(config)

        signer = create_signer(device_id, api_access_secret, timestamp_generator) if device_id else None

        self.request_builder = ApiRequestBuilder(config, self.endpoints, signer)
        self.http = CatenisHttpClient(self.request_builder, RequestsTransport(config, session))
        self.async_http = AsyncCatenisHttpClient(
            self.request_builder,
            event_loop=config.event_loop,
            pump_task_queue=config.pump_task_queue,
            pump_interval=config.pump_interval
        )

        logger.info(f"Initialized Catenis API client for: {self.endpoints.api_root}")

        if signer is None:
            logger.info("No device credentials provided; requests will not be signed")

    @property
    def event_loop(self) -> asyncio.AbstractEventLoop:
        """Event loop asynchronous calls are scheduled on when no loop is running"""
        return self.async_http.event_loop

    def run_task_queue(self) -> int:
        """
        Start the asynchronous calls waiting on the client's task queue.

        Only needed when the client was given an event loop and
        ``pump_task_queue`` is disabled.

        Returns:
            int: Number of calls started
        """
        return self.async_http.run_task_queue()

    def _call(self, call: EndpointCall) -> Any:
        if call.method is HttpMethod.POST:
            return self.http.send_post_request(
                call.path, call.json_data, call.url_params, call.query_params, call.do_not_sign
            )

        return self.http.send_get_request(call.path, call.url_params, call.query_params, call.do_not_sign)

    def _call_async(self, call_factory: Callable[[], EndpointCall]) -> asyncio.Future:
        async def run():
            call = call_factory()

            if call.method is HttpMethod.POST:
                return await self.async_http.send_post_request(
                    call.path, call.json_data, call.url_params, call.query_params, call.do_not_sign
                )

            return await self.async_http.send_get_request(
                call.path, call.url_params, call.query_params, call.do_not_sign
            )

        return self.async_http.submit(run)

    def _get_ws_notify_request(self, event_name: str) -> SignableRequest:
        """Signed request used to authenticate a notification channel"""
        if self.request_builder.signer is None:
            raise CatenisClientError("Device credentials are required to open a notification channel")

        return self.request_builder.build_ws_notify_request(event_name)

    # Messages

    def log_message(self, message: Union[str, Mapping[str, Any]], options: Optional[Mapping[str, Any]] = None):
        """
        Log a message to the blockchain.

        Args:
            message: The message contents, or a mapping describing one chunk
                of a message sent in chunks (data, isFinal, continuationToken)
            options: encoding, encrypt, offChain, storage and async options

        Returns:
            dict: messageId, or continuationToken/provisionalMessageId
        """
        return self._call(endpoints.log_message(message, options))

    def send_message(
        self,
        message: Union[str, Mapping[str, Any]],
        target_device: Mapping[str, Any],
        options: Optional[Mapping[str, Any]] = None
    ):
        """
        Send a message to another device.

        Args:
            message: The message contents or a message chunk mapping
            target_device: Mapping with the target device's id and isProdUniqueId
            options: encoding, encrypt, offChain, storage, readConfirmation and async options
        """
        return self._call(endpoints.send_message(message, target_device, options))

    def read_message(self, message_id: str, options: Union[str, Mapping[str, Any], None] = None):
        """
        Read a message.

        Args:
            message_id: ID of the message to read
            options: Encoding of the returned contents, or a mapping of read
                options (encoding, continuationToken, dataChunkSize, async)
        """
        return self._call(endpoints.read_message(message_id, options))

    def retrieve_message_container(self, message_id: str):
        return self._call(endpoints.retrieve_message_container(message_id))

    def retrieve_message_origin(self, message_id: str, msg_to_sign: Optional[str] = None):
        """Retrieve the origin of a message. This endpoint does not require authentication."""
        return self._call(endpoints.retrieve_message_origin(message_id, msg_to_sign))

    def retrieve_message_progress(self, message_id: str):
        return self._call(endpoints.retrieve_message_progress(message_id))

    def list_messages(
        self,
        selector: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
        skip: Optional[int] = None
    ):
        """
        List messages that satisfy the given search criteria.

        Args:
            selector: action, direction, fromDevices, toDevices, readState,
                startDate and endDate criteria
            limit: Maximum number of messages to return
            skip: Number of messages to skip
        """
        return self._call(endpoints.list_messages(selector, limit, skip))

    # Permissions

    def list_permission_events(self):
        return self._call(endpoints.list_permission_events())

    def retrieve_permission_rights(self, event_name: str):
        return self._call(endpoints.retrieve_permission_rights(event_name))

    def set_permission_rights(self, event_name: str, rights: Mapping[str, Any]):
        """
        Set permission rights at different levels for a permission event.

        Args:
            event_name: Name of the permission event
            rights: Mapping with the rights per level (system, catenisNode,
                client, device)
        """
        return self._call(endpoints.set_permission_rights(event_name, rights))

    def check_effective_permission_right(self, event_name: str, device_id: str, is_prod_unique_id: bool = False):
        return self._call(endpoints.check_effective_permission_right(event_name, device_id, is_prod_unique_id))

    # Notifications and devices

    def list_notification_events(self):
        return self._call(endpoints.list_notification_events())

    def retrieve_device_identification_info(self, device_id: str, is_prod_unique_id: bool = False):
        return self._call(endpoints.retrieve_device_identification_info(device_id, is_prod_unique_id))

    # Assets

    def issue_asset(
        self,
        asset_info: Mapping[str, Any],
        amount: Union[int, float],
        holding_device: Optional[Mapping[str, Any]] = None
    ):
        """
        Issue an amount of a new asset.

        Args:
            asset_info: Mapping with the asset's name, description,
                canReissue and decimalPlaces
            amount: Amount of the asset to issue
            holding_device: Device that shall hold the issued amount;
                defaults to the issuing device
        """
        return self._call(endpoints.issue_asset(asset_info, amount, holding_device))

    def reissue_asset(
        self,
        asset_id: str,
        amount: Union[int, float],
        holding_device: Optional[Mapping[str, Any]] = None
    ):
        return self._call(endpoints.reissue_asset(asset_id, amount, holding_device))

    def transfer_asset(self, asset_id: str, amount: Union[int, float], receiving_device: Mapping[str, Any]):
        return self._call(endpoints.transfer_asset(asset_id, amount, receiving_device))

    def retrieve_asset_info(self, asset_id: str):
        return self._call(endpoints.retrieve_asset_info(asset_id))

    def get_asset_balance(self, asset_id: str):
        return self._call(endpoints.get_asset_balance(asset_id))

    def list_owned_assets(self, limit: Optional[int] = None, skip: Optional[int] = None):
        return self._call(endpoints.list_owned_assets(limit, skip))

    def list_issued_assets(self, limit: Optional[int] = None, skip: Optional[int] = None):
        return self._call(endpoints.list_issued_assets(limit, skip))

    def retrieve_asset_issuance_history(
        self,
        asset_id: str,
        start_date: Union[str, datetime, None] = None,
        end_date: Union[str, datetime, None] = None,
        limit: Optional[int] = None,
        skip: Optional[int] = None
    ):
        """
        Retrieve issuance events for an asset within a period of time.

        Args:
            asset_id: ID of the asset
            start_date: Earliest issuance date, as a datetime or ISO 8601 string
            end_date: Latest issuance date, as a datetime or ISO 8601 string
            limit: Maximum number of events to return
            skip: Number of events to skip
        """
        return self._call(endpoints.retrieve_asset_issuance_history(asset_id, start_date, end_date, limit, skip))

    def list_asset_holders(self, asset_id: str, limit: Optional[int] = None, skip: Optional[int] = None):
        return self._call(endpoints.list_asset_holders(asset_id, limit, skip))

    # Notification channels

    def create_ws_notify_channel(self, event_name: str) -> WsNotifyChannel:
        """
        Create a WebSocket notification channel for a notification event.

        The channel is not open; call its ``open()`` coroutine.
        """
        return WsNotifyChannel(self, event_name)

    # Asynchronous methods

    def log_message_async(self, message, options=None) -> asyncio.Future:
        return self._call_async(lambda: endpoints.log_message(message, options))

    def send_message_async(self, message, target_device, options=None) -> asyncio.Future:
        return self._call_async(lambda: endpoints.send_message(message, target_device, options))

    def read_message_async(self, message_id, options=None) -> asyncio.Future:
        return self._call_async(lambda: endpoints.read_message(message_id, options))

    def retrieve_message_container_async(self, message_id) -> asyncio.Future:
        return self._call_async(lambda: endpoints.retrieve_message_container(message_id))

    def retrieve_message_origin_async(self, message_id, msg_to_sign=None) -> asyncio.Future:
        return self._call_async(lambda: endpoints.retrieve_message_origin(message_id, msg_to_sign))

    def retrieve_message_progress_async(self, message_id) -> asyncio.Future:
        return self._call_async(lambda: endpoints.retrieve_message_progress(message_id))

    def list_messages_async(self, selector=None, limit=None, skip=None) -> asyncio.Future:
        return self._call_async(lambda: endpoints.list_messages(selector, limit, skip))

    def list_permission_events_async(self) -> asyncio.Future:
        return self._call_async(endpoints.list_permission_events)

    def retrieve_permission_rights_async(self, event_name) -> asyncio.Future:
        return self._call_async(lambda: endpoints.retrieve_permission_rights(event_name))

    def set_permission_rights_async(self, event_name, rights) -> asyncio.Future:
        return self._call_async(lambda: endpoints.set_permission_rights(event_name, rights))

    def check_effective_permission_right_async(self, event_name, device_id, is_prod_unique_id=False) -> asyncio.Future:
        return self._call_async(
            lambda: endpoints.check_effective_permission_right(event_name, device_id, is_prod_unique_id)
        )

    def list_notification_events_async(self) -> asyncio.Future:
        return self._call_async(endpoints.list_notification_events)

    def retrieve_device_identification_info_async(self, device_id, is_prod_unique_id=False) -> asyncio.Future:
        return self._call_async(
            lambda: endpoints.retrieve_device_identification_info(device_id, is_prod_unique_id)
        )

    def issue_asset_async(self, asset_info, amount, holding_device=None) -> asyncio.Future:
        return self._call_async(lambda: endpoints.issue_asset(asset_info, amount, holding_device))

    def reissue_asset_async(self, asset_id, amount, holding_device=None) -> asyncio.Future:
        return self._call_async(lambda: endpoints.reissue_asset(asset_id, amount, holding_device))

    def transfer_asset_async(self, asset_id, amount, receiving_device) -> asyncio.Future:
        return self._call_async(lambda: endpoints.transfer_asset(asset_id, amount, receiving_device))

    def retrieve_asset_info_async(self, asset_id) -> asyncio.Future:
        return self._call_async(lambda: endpoints.retrieve_asset_info(asset_id))

    def get_asset_balance_async(self, asset_id) -> asyncio.Future:
        return self._call_async(lambda: endpoints.get_asset_balance(asset_id))

    def list_owned_assets_async(self, limit=None, skip=None) -> asyncio.Future:
        return self._call_async(lambda: endpoints.list_owned_assets(limit, skip))

    def list_issued_assets_async(self, limit=None, skip=None) -> asyncio.Future:
        return self._call_async(lambda: endpoints.list_issued_assets(limit, skip))

    def retrieve_asset_issuance_history_async(
        self, asset_id, start_date=None, end_date=None, limit=None, skip=None
    ) -> asyncio.Future:
        return self._call_async(
            lambda: endpoints.retrieve_asset_issuance_history(asset_id, start_date, end_date, limit, skip)
        )

    def list_asset_holders_async(self, asset_id, limit=None, skip=None) -> asyncio.Future:
        return self._call_async(lambda: endpoints.list_asset_holders(asset_id, limit, skip))

    # Resource management

    def close(self) -> None:
        """Close HTTP sessions and cleanup resources"""
        self.http.close()
        self.async_http.close()
        logger.debug("Catenis API client closed")

    async def aclose(self) -> None:
        """Close HTTP sessions from within the event loop used for asynchronous calls"""
        self.http.close()
        await self.async_http.aclose()
        logger.debug("Catenis API client closed")

    def __enter__(self):
        """Context manager entry"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit"""
        self.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
