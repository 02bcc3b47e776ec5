"""Catenis Python SDK version"""

__version__ = "1.0.0"

USER_AGENT = f"Catenis API Python client/{__version__}"
