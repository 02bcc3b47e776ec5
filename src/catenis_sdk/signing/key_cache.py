"""
Signing key cache

Deriving the signing key takes two chained HMAC operations over the
long-term secret. The derived key is scoped to the date stamp it was
derived for and is reused for as long as that date is within the
signature validity period.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from .types import SIGN_VERSION_ID, SCOPE_REQUEST, SIGN_VALID_PERIOD
from .utils import sign_data, format_date_stamp, as_utc

logger = logging.getLogger(__name__)


@dataclass
class SigningKeyState:
    """Last derived signing key and the moment its date stamp was taken from"""
    last_sign_date: Optional[datetime] = None
    last_sign_key: Optional[bytes] = None


class SigningKeyCache:
    """Thread-safe holder of the derived signing key"""

    def __init__(self, api_access_secret: str):
        self._api_access_secret = api_access_secret
        self._state = SigningKeyState()
        self._lock = threading.RLock()

    @property
    def state(self) -> SigningKeyState:
        """Snapshot of the current cache state"""
        with self._lock:
            return SigningKeyState(self._state.last_sign_date, self._state.last_sign_key)

    def get_signing_key(self, now: datetime) -> Tuple[str, bytes]:
        """
        Get the signing key to use for a request signed at ``now``.

        The validity window slides: whenever a new key is needed the
        reference date is reset to ``now`` itself, not to the start of
        its day.

        Args:
            now: Moment the request is being signed

        Returns:
            tuple: (date stamp, signing key)
        """
        now = as_utc(now)

        with self._lock:
            state = self._state

            if state.last_sign_date is not None and now - state.last_sign_date < SIGN_VALID_PERIOD:
                use_same_key = state.last_sign_key is not None
            else:
                state.last_sign_date = now
                use_same_key = False

            date_stamp = format_date_stamp(state.last_sign_date)

            if not use_same_key:
                state.last_sign_key = derive_signing_key(date_stamp, self._api_access_secret)
                logger.debug(f"Derived new signing key for date stamp {date_stamp}")

            return date_stamp, state.last_sign_key

    def clear(self) -> None:
        """Discard the cached key"""
        with self._lock:
            self._state = SigningKeyState()


def derive_signing_key(date_stamp: str, api_access_secret: str) -> bytes:
    """
    Derive the signing key for a given date stamp.

    Args:
        date_stamp: Date formatted as YYYYMMDD
        api_access_secret: Device's API access secret

    Returns:
        bytes: Raw signing key
    """
    date_key = sign_data(date_stamp, SIGN_VERSION_ID + api_access_secret)

    return sign_data(SCOPE_REQUEST, date_key)
