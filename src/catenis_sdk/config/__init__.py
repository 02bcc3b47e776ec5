"""
Configuration management for Catenis Python SDK

This module provides the API client options and the service endpoints
derived from them.
"""

from .client_config import (
    ClientConfig,
    ApiVersion,
    Environment,
    ServiceType,
    ServiceEndpoints,
    DEFAULT_HOST,
    DEFAULT_API_VERSION,
    DEFAULT_COMPRESS_THRESHOLD,
    DEFAULT_PUMP_INTERVAL_MS,
)

__all__ = [
    'ClientConfig',
    'ApiVersion',
    'Environment',
    'ServiceType',
    'ServiceEndpoints',
    'DEFAULT_HOST',
    'DEFAULT_API_VERSION',
    'DEFAULT_COMPRESS_THRESHOLD',
    'DEFAULT_PUMP_INTERVAL_MS',
]
