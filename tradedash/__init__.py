"""Analytics dashboard backend for the trading bot reporting service."""

from .version import APP_VERSION

__all__ = ["APP_VERSION"]
