"""
Test suite for optionkit configuration loading

Covers:
  - TOML sections and defaults
  - OPTIONKIT_* environment overrides
  - Validation errors
"""

import pytest
from eth_utils import to_checksum_address

from optionkit.config import ClientConfig, QuoteConfig, StreamConfig, load_config
from optionkit.constants import DEFAULT_REFERRER, QUOTE_TTL_SECONDS, ZERO_ADDRESS
from optionkit.exceptions import ConfigurationError

ROUTER = "0x" + "5e" * 20

ENV_VARS = [
    "OPTIONKIT_CONFIG",
    "OPTIONKIT_CHAIN_ID",
    "OPTIONKIT_NETWORK_NAME",
    "OPTIONKIT_QUOTE_TTL",
    "OPTIONKIT_ROUTER_ADDRESS",
    "OPTIONKIT_REFERRER",
    "OPTIONKIT_SHOW_ERRORS",
    "OPTIONKIT_STREAM_INTERVAL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def write(tmp_path, text):
    path = tmp_path / "optionkit.toml"
    path.write_text(text)
    return str(path)


class TestDefaults:

    def test_missing_file_uses_defaults(self, tmp_path):
        cfg = ClientConfig.from_file(str(tmp_path / "absent.toml"))
        assert cfg.network.chain_id == 42161
        assert cfg.quotes.ttl_seconds == QUOTE_TTL_SECONDS
        assert cfg.quotes.router_address == ZERO_ADDRESS
        assert cfg.quotes.default_referrer == to_checksum_address(DEFAULT_REFERRER)
        assert cfg.quotes.show_errors is False
        assert cfg.stream.interval_seconds == 15.0

    def test_load_config_resolves_env_path(self, tmp_path, monkeypatch):
        path = write(tmp_path, "[network]\nname = \"arbitrum-sepolia\"\nchain_id = 421614\n")
        monkeypatch.setenv("OPTIONKIT_CONFIG", path)
        cfg = load_config()
        assert cfg.network.name == "arbitrum-sepolia"
        assert cfg.network.chain_id == 421614

    def test_load_config_from_cwd(self, tmp_path, monkeypatch):
        write(tmp_path, "[stream]\ninterval_seconds = 5\n")
        monkeypatch.chdir(tmp_path)
        assert load_config().stream.interval_seconds == 5.0


class TestFile:

    def test_sections(self, tmp_path):
        path = write(tmp_path, f"""
[quotes]
ttl_seconds = 120
router_address = "{ROUTER}"
show_errors = true

[stream]
interval_seconds = 2.5
""")
        cfg = ClientConfig.from_file(path)
        assert cfg.quotes.ttl_seconds == 120
        assert cfg.quotes.router_address == to_checksum_address(ROUTER)
        assert cfg.quotes.show_errors is True
        assert cfg.stream.interval_seconds == 2.5

    def test_invalid_toml(self, tmp_path):
        path = write(tmp_path, "[quotes\nttl_seconds = ")
        with pytest.raises(ConfigurationError, match="Invalid TOML"):
            ClientConfig.from_file(path)

    def test_invalid_value(self, tmp_path):
        path = write(tmp_path, "[quotes]\nttl_seconds = \"soon\"\n")
        with pytest.raises(ConfigurationError):
            ClientConfig.from_file(path)

    def test_invalid_address(self, tmp_path):
        path = write(tmp_path, "[quotes]\nrouter_address = \"0x1234\"\n")
        with pytest.raises(ConfigurationError, match="router_address"):
            ClientConfig.from_file(path)


class TestEnvironment:

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = write(tmp_path, "[quotes]\nttl_seconds = 120\n")
        monkeypatch.setenv("OPTIONKIT_QUOTE_TTL", "30")
        monkeypatch.setenv("OPTIONKIT_ROUTER_ADDRESS", ROUTER)
        monkeypatch.setenv("OPTIONKIT_SHOW_ERRORS", " TRUE ")
        monkeypatch.setenv("OPTIONKIT_STREAM_INTERVAL", "0.5")

        cfg = ClientConfig.from_file(path)
        assert cfg.quotes.ttl_seconds == 30
        assert cfg.quotes.router_address == to_checksum_address(ROUTER)
        assert cfg.quotes.show_errors is True
        assert cfg.stream.interval_seconds == 0.5

    def test_bad_bool(self, tmp_path, monkeypatch):
        monkeypatch.setenv("OPTIONKIT_SHOW_ERRORS", "yes")
        with pytest.raises(ConfigurationError):
            ClientConfig.from_file(str(tmp_path / "absent.toml"))

    def test_bad_number(self, tmp_path, monkeypatch):
        monkeypatch.setenv("OPTIONKIT_CHAIN_ID", "arbitrum")
        with pytest.raises(ConfigurationError, match="environment"):
            ClientConfig.from_file(str(tmp_path / "absent.toml"))


class TestValidation:

    def test_ttl_must_be_positive(self):
        with pytest.raises(ConfigurationError):
            QuoteConfig(ttl_seconds=0)

    def test_interval_must_be_positive(self):
        with pytest.raises(ConfigurationError):
            StreamConfig(interval_seconds=0)
