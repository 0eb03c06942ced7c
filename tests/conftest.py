from __future__ import annotations

import pytest

from nsupdate_parser.config import AppConfig

ENV_VARS = (
    "NSUPDATE_SERVER",
    "NSUPDATE_PORT",
    "NSUPDATE_ZONE",
    "NSUPDATE_TIMEOUT",
    "NSUPDATE_TSIG_KEYFILE_B64",
    "NSUPDATE_TSIG_NAME",
    "NSUPDATE_TSIG_ALGORITHM",
    "NSUPDATE_TSIG_SECRET",
    "DEFAULT_MX_PREFERENCE",
    "LOG_LEVEL",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Isolate tests from the caller's environment and any .env file."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("nsupdate_parser.config.load_dotenv", lambda: None)
    return monkeypatch


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(
        server="127.0.0.1",
        port=53,
        zone=None,
        tsig=None,
        timeout=1.0,
        default_mx_preference=10,
        log_level="INFO",
    )
