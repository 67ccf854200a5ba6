"""
optionkit TOML Configuration Loader

Loads the sections of optionkit.toml with environment variable overrides.

Environment variable mapping:
    [network] chain_id          → OPTIONKIT_CHAIN_ID
    [network] name              → OPTIONKIT_NETWORK_NAME
    [quotes] ttl_seconds        → OPTIONKIT_QUOTE_TTL
    [quotes] router_address     → OPTIONKIT_ROUTER_ADDRESS
    [quotes] default_referrer   → OPTIONKIT_REFERRER
    [quotes] show_errors        → OPTIONKIT_SHOW_ERRORS
    [stream] interval_seconds   → OPTIONKIT_STREAM_INTERVAL
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from optionkit.address import normalize_address
from optionkit.constants import (
    DEFAULT_REFERRER,
    QUOTE_TTL_SECONDS,
    STREAM_INTERVAL_SECONDS,
    ZERO_ADDRESS,
    parse_bool,
)
from optionkit.exceptions import ConfigurationError, DomainRangeError

logger = logging.getLogger(__name__)


def _env_bool(value: str) -> bool:
    parsed = parse_bool(value)
    if not isinstance(parsed, bool):
        raise ConfigurationError(f"Expected True/False, got {value!r}")
    return parsed


def _address(value: str, name: str) -> str:
    try:
        return normalize_address(value)
    except DomainRangeError as e:
        raise ConfigurationError(f"{name}: {e}") from e


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------

@dataclass
class NetworkConfig:
    """[network] section."""
    chain_id: int = 42161
    name: str = "arbitrum"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NetworkConfig":
        return cls(
            chain_id=int(data.get("chain_id", 42161)),
            name=data.get("name", "arbitrum"),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("OPTIONKIT_CHAIN_ID"):
            self.chain_id = int(v)
        if v := os.environ.get("OPTIONKIT_NETWORK_NAME"):
            self.name = v


@dataclass
class QuoteConfig:
    """[quotes] section."""
    ttl_seconds: int = QUOTE_TTL_SECONDS
    router_address: str = ZERO_ADDRESS      # ERC-20 router that pulls pool premiums
    default_referrer: str = DEFAULT_REFERRER
    show_errors: bool = False               # log source failures with tracebacks

    def __post_init__(self):
        if self.ttl_seconds <= 0:
            raise ConfigurationError(f"ttl_seconds must be positive, got {self.ttl_seconds}")
        self.router_address = _address(self.router_address, "router_address")
        self.default_referrer = _address(self.default_referrer, "default_referrer")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuoteConfig":
        return cls(
            ttl_seconds=int(data.get("ttl_seconds", QUOTE_TTL_SECONDS)),
            router_address=data.get("router_address", ZERO_ADDRESS),
            default_referrer=data.get("default_referrer", DEFAULT_REFERRER),
            show_errors=bool(data.get("show_errors", False)),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("OPTIONKIT_QUOTE_TTL"):
            self.ttl_seconds = int(v)
        if v := os.environ.get("OPTIONKIT_ROUTER_ADDRESS"):
            self.router_address = _address(v, "OPTIONKIT_ROUTER_ADDRESS")
        if v := os.environ.get("OPTIONKIT_REFERRER"):
            self.default_referrer = _address(v, "OPTIONKIT_REFERRER")
        if v := os.environ.get("OPTIONKIT_SHOW_ERRORS"):
            self.show_errors = _env_bool(v)


@dataclass
class StreamConfig:
    """[stream] section."""
    interval_seconds: float = STREAM_INTERVAL_SECONDS

    def __post_init__(self):
        if self.interval_seconds <= 0:
            raise ConfigurationError(
                f"interval_seconds must be positive, got {self.interval_seconds}"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StreamConfig":
        return cls(interval_seconds=float(data.get("interval_seconds", STREAM_INTERVAL_SECONDS)))

    def apply_env(self) -> None:
        if v := os.environ.get("OPTIONKIT_STREAM_INTERVAL"):
            self.interval_seconds = float(v)


# ---------------------------------------------------------------------------
# Top level
# ---------------------------------------------------------------------------

@dataclass
class ClientConfig:
    """Complete client configuration."""
    network: NetworkConfig = field(default_factory=NetworkConfig)
    quotes: QuoteConfig = field(default_factory=QuoteConfig)
    stream: StreamConfig = field(default_factory=StreamConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClientConfig":
        return cls(
            network=NetworkConfig.from_dict(data.get("network", {})),
            quotes=QuoteConfig.from_dict(data.get("quotes", {})),
            stream=StreamConfig.from_dict(data.get("stream", {})),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "ClientConfig":
        """
        Load configuration from a TOML file.

        A missing file is not an error: defaults (with env overrides) are used.

        Raises:
            ConfigurationError: if the file is not valid TOML or holds invalid values
        """
        path = Path(config_path)
        if not path.exists():
            logger.debug("Config file not found: %s, using defaults", config_path)
            cfg = cls()
            cfg.apply_env()
            return cfg

        try:
            with open(path, "rb") as f:
                raw = tomllib.load(f)
            cfg = cls.from_dict(raw)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML in {config_path}: {e}") from e
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid value in {config_path}: {e}") from e

        cfg.apply_env()
        return cfg

    def apply_env(self) -> None:
        try:
            self.network.apply_env()
            self.quotes.apply_env()
            self.stream.apply_env()
        except ValueError as e:
            raise ConfigurationError(f"Invalid environment override: {e}") from e


def load_config(path: Optional[str] = None) -> ClientConfig:
    """
    Load client configuration.

    Resolution order:
        1. Explicit *path* argument
        2. OPTIONKIT_CONFIG env var
        3. ./optionkit.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("OPTIONKIT_CONFIG", "optionkit.toml")
    return ClientConfig.from_file(path)
