"""
optionkit Configuration

Loads optionkit.toml; environment variables override TOML values.
"""

from .loader import (
    ClientConfig,
    NetworkConfig,
    QuoteConfig,
    StreamConfig,
    load_config,
)

__all__ = [
    "ClientConfig",
    "NetworkConfig",
    "QuoteConfig",
    "StreamConfig",
    "load_config",
]
