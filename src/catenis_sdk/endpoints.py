"""
Catenis API endpoint marshaling

Maps each API method onto its HTTP method, endpoint path and parameters.
Optional arguments set to None are left out of the request.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .exceptions import ValidationError
from .signing import HttpMethod


@dataclass
class EndpointCall:
    """
    Parameters of a call to a Catenis API endpoint

    Attributes:
        method: HTTP method
        path: Endpoint path relative to the API root, with ``:name`` tokens
        url_params: Values for the path tokens
        query_params: Query string parameters
        json_data: Payload of POST requests
        do_not_sign: Endpoint is accessed without authentication
    """
    method: HttpMethod
    path: str
    url_params: Optional[Dict[str, Any]] = None
    query_params: Optional[Dict[str, Any]] = None
    json_data: Optional[Dict[str, Any]] = None
    do_not_sign: bool = False


def filter_non_null_keys(options: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Copy of a mapping without the keys whose value is None"""
    return {key: value for key, value in (options or {}).items() if value is not None}


def _date_param(value: Union[str, datetime, None]) -> Optional[str]:
    if isinstance(value, datetime):
        return value.isoformat()

    if isinstance(value, str) and value:
        return value

    return None


def _paging_params(query_params: Dict[str, Any], limit: Optional[int], skip: Optional[int]) -> None:
    if limit is not None:
        query_params['limit'] = limit

    if skip is not None:
        query_params['skip'] = skip


def _or_none(params: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    return params or None


def split_device_list(devices: Iterable[Mapping[str, Any]]) -> Tuple[List[str], List[str]]:
    """
    Split a list of virtual device entries into device IDs and product unique IDs.

    Entries without a non-empty string ``id`` are ignored.
    """
    device_ids = []
    prod_unique_ids = []

    for device in devices:
        if not isinstance(device, Mapping):
            continue

        device_id = device.get('id')

        if not isinstance(device_id, str) or not device_id:
            continue

        if device.get('isProdUniqueId'):
            prod_unique_ids.append(device_id)
        else:
            device_ids.append(device_id)

    return device_ids, prod_unique_ids


# Messages

def log_message(message: Union[str, Mapping[str, Any]], options: Optional[Mapping[str, Any]] = None) -> EndpointCall:
    json_data = {'message': message}
    filtered_options = filter_non_null_keys(options)

    if filtered_options:
        json_data['options'] = filtered_options

    return EndpointCall(HttpMethod.POST, 'messages/log', json_data=json_data)


def send_message(
    message: Union[str, Mapping[str, Any]],
    target_device: Mapping[str, Any],
    options: Optional[Mapping[str, Any]] = None
) -> EndpointCall:
    json_data = {
        'message': message,
        'targetDevice': dict(target_device),
    }
    filtered_options = filter_non_null_keys(options)

    if filtered_options:
        json_data['options'] = filtered_options

    return EndpointCall(HttpMethod.POST, 'messages/send', json_data=json_data)


def read_message(message_id: str, options: Union[str, Mapping[str, Any], None] = None) -> EndpointCall:
    """
    Args:
        message_id: ID of the message to read
        options: Either the encoding to use for the message contents or a
            mapping of read options (encoding, continuationToken, dataChunkSize, async)
    """
    if isinstance(options, str):
        query_params = {'encoding': options}
    elif options is None or isinstance(options, Mapping):
        query_params = filter_non_null_keys(options)
    else:
        raise ValidationError(f"Invalid read message options: {options!r}")

    return EndpointCall(
        HttpMethod.GET,
        'messages/:messageId',
        url_params={'messageId': message_id},
        query_params=_or_none(query_params)
    )


def retrieve_message_container(message_id: str) -> EndpointCall:
    return EndpointCall(HttpMethod.GET, 'messages/:messageId/container', url_params={'messageId': message_id})


def retrieve_message_origin(message_id: str, msg_to_sign: Optional[str] = None) -> EndpointCall:
    query_params = {'msgToSign': msg_to_sign} if msg_to_sign is not None else None

    return EndpointCall(
        HttpMethod.GET,
        'messages/:messageId/origin',
        url_params={'messageId': message_id},
        query_params=query_params,
        do_not_sign=True
    )


def retrieve_message_progress(message_id: str) -> EndpointCall:
    return EndpointCall(HttpMethod.GET, 'messages/:messageId/progress', url_params={'messageId': message_id})


def list_messages(
    selector: Optional[Mapping[str, Any]] = None,
    limit: Optional[int] = None,
    skip: Optional[int] = None
) -> EndpointCall:
    """
    Args:
        selector: Message filter with the keys action, direction, fromDevices,
            toDevices, readState, startDate and endDate
        limit: Maximum number of messages to return
        skip: Number of messages to skip
    """
    query_params: Dict[str, Any] = {}

    if selector:
        for key in ('action', 'direction'):
            if selector.get(key) is not None:
                query_params[key] = selector[key]

        for key, prefix in (('fromDevices', 'fromDevice'), ('toDevices', 'toDevice')):
            devices = selector.get(key)

            if isinstance(devices, (list, tuple)):
                device_ids, prod_unique_ids = split_device_list(devices)

                if device_ids:
                    query_params[f'{prefix}Ids'] = ','.join(device_ids)

                if prod_unique_ids:
                    query_params[f'{prefix}ProdUniqueIds'] = ','.join(prod_unique_ids)

        if selector.get('readState') is not None:
            query_params['readState'] = selector['readState']

        for key in ('startDate', 'endDate'):
            date = _date_param(selector.get(key))

            if date is not None:
                query_params[key] = date

    _paging_params(query_params, limit, skip)

    return EndpointCall(HttpMethod.GET, 'messages', query_params=_or_none(query_params))


# Permissions

def list_permission_events() -> EndpointCall:
    return EndpointCall(HttpMethod.GET, 'permission/events')


def retrieve_permission_rights(event_name: str) -> EndpointCall:
    return EndpointCall(
        HttpMethod.GET,
        'permission/events/:eventName/rights',
        url_params={'eventName': event_name}
    )


def set_permission_rights(event_name: str, rights: Mapping[str, Any]) -> EndpointCall:
    return EndpointCall(
        HttpMethod.POST,
        'permission/events/:eventName/rights',
        url_params={'eventName': event_name},
        json_data=dict(rights)
    )


def check_effective_permission_right(event_name: str, device_id: str, is_prod_unique_id: bool = False) -> EndpointCall:
    return EndpointCall(
        HttpMethod.GET,
        'permission/events/:eventName/rights/:deviceId',
        url_params={'eventName': event_name, 'deviceId': device_id},
        query_params={'isProdUniqueId': True} if is_prod_unique_id else None
    )


# Notifications and devices

def list_notification_events() -> EndpointCall:
    return EndpointCall(HttpMethod.GET, 'notification/events')


def retrieve_device_identification_info(device_id: str, is_prod_unique_id: bool = False) -> EndpointCall:
    return EndpointCall(
        HttpMethod.GET,
        'devices/:deviceId',
        url_params={'deviceId': device_id},
        query_params={'isProdUniqueId': True} if is_prod_unique_id else None
    )


# Assets

def issue_asset(
    asset_info: Mapping[str, Any],
    amount: Union[int, float],
    holding_device: Optional[Mapping[str, Any]] = None
) -> EndpointCall:
    json_data = {
        'assetInfo': dict(asset_info),
        'amount': amount,
    }

    if holding_device is not None:
        json_data['holdingDevice'] = dict(holding_device)

    return EndpointCall(HttpMethod.POST, 'assets/issue', json_data=json_data)


def reissue_asset(
    asset_id: str,
    amount: Union[int, float],
    holding_device: Optional[Mapping[str, Any]] = None
) -> EndpointCall:
    json_data: Dict[str, Any] = {'amount': amount}

    if holding_device is not None:
        json_data['holdingDevice'] = dict(holding_device)

    return EndpointCall(
        HttpMethod.POST,
        'assets/:assetId/issue',
        url_params={'assetId': asset_id},
        json_data=json_data
    )


def transfer_asset(asset_id: str, amount: Union[int, float], receiving_device: Mapping[str, Any]) -> EndpointCall:
    return EndpointCall(
        HttpMethod.POST,
        'assets/:assetId/transfer',
        url_params={'assetId': asset_id},
        json_data={
            'amount': amount,
            'receivingDevice': dict(receiving_device),
        }
    )


def retrieve_asset_info(asset_id: str) -> EndpointCall:
    return EndpointCall(HttpMethod.GET, 'assets/:assetId', url_params={'assetId': asset_id})


def get_asset_balance(asset_id: str) -> EndpointCall:
    return EndpointCall(HttpMethod.GET, 'assets/:assetId/balance', url_params={'assetId': asset_id})


def list_owned_assets(limit: Optional[int] = None, skip: Optional[int] = None) -> EndpointCall:
    query_params: Dict[str, Any] = {}
    _paging_params(query_params, limit, skip)

    return EndpointCall(HttpMethod.GET, 'assets/owned', query_params=_or_none(query_params))


def list_issued_assets(limit: Optional[int] = None, skip: Optional[int] = None) -> EndpointCall:
    query_params: Dict[str, Any] = {}
    _paging_params(query_params, limit, skip)

    return EndpointCall(HttpMethod.GET, 'assets/issued', query_params=_or_none(query_params))


def retrieve_asset_issuance_history(
    asset_id: str,
    start_date: Union[str, datetime, None] = None,
    end_date: Union[str, datetime, None] = None,
    limit: Optional[int] = None,
    skip: Optional[int] = None
) -> EndpointCall:
    query_params: Dict[str, Any] = {}

    for key, value in (('startDate', start_date), ('endDate', end_date)):
        date = _date_param(value)

        if date is not None:
            query_params[key] = date

    _paging_params(query_params, limit, skip)

    return EndpointCall(
        HttpMethod.GET,
        'assets/:assetId/issuance',
        url_params={'assetId': asset_id},
        query_params=_or_none(query_params)
    )


def list_asset_holders(asset_id: str, limit: Optional[int] = None, skip: Optional[int] = None) -> EndpointCall:
    query_params: Dict[str, Any] = {}
    _paging_params(query_params, limit, skip)

    return EndpointCall(
        HttpMethod.GET,
        'assets/:assetId/holders',
        url_params={'assetId': asset_id},
        query_params=_or_none(query_params)
    )
