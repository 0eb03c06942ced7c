"""Environment-driven configuration loader."""

from __future__ import annotations

import base64
import os
import re
from dataclasses import dataclass

from dotenv import load_dotenv

from .models import ConfigError


@dataclass(frozen=True)
class TsigKey:
    """Holds TSIG credentials used to sign updates."""

    name: str
    algorithm: str
    secret: str


@dataclass(frozen=True)
class AppConfig:
    """Application-wide configuration values."""

    server: str
    port: int
    zone: str | None
    tsig: TsigKey | None
    timeout: float
    default_mx_preference: int
    log_level: str


KEY_BLOCK_PATTERN = re.compile(r'key\s+"(?P<name>[^"]+)"\s*\{(?P<body>[^}]*)\}', re.IGNORECASE)
# `algorithm hmac-sha256;` or `secret "base64==";` inside the key block.
KEY_STATEMENT_PATTERN = re.compile(r'(?P<field>algorithm|secret)\s+"?(?P<value>[^";\s]+)"?\s*;', re.IGNORECASE)


def _parse_int(name: str, default: str) -> int:
    """Read an integer environment variable."""
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got '{raw}'.") from exc


def _parse_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got '{raw}'.") from exc


def _parse_keyfile(encoded: str, overrides: dict[str, str | None]) -> TsigKey | None:
    """Decode a base64-encoded BIND keyfile, or build a key from overrides alone.

    Returns None when neither a key file nor a full set of overrides is given.
    """
    values: dict[str, str] = {}
    if encoded:
        try:
            decoded = base64.b64decode(encoded).decode("utf-8")
        except (ValueError, UnicodeDecodeError) as exc:
            raise ConfigError("Failed to decode TSIG key file base64 payload.") from exc
        block = KEY_BLOCK_PATTERN.search(decoded)
        if not block:
            raise ConfigError("TSIG key file does not match expected format.")
        values["name"] = block.group("name")
        for statement in KEY_STATEMENT_PATTERN.finditer(block.group("body")):
            values[statement.group("field").lower()] = statement.group("value")
    values.update({field: value for field, value in overrides.items() if value})

    fields = ("name", "algorithm", "secret")
    if not encoded and not all(values.get(field) for field in fields):
        return None
    absent = [field for field in fields if not values.get(field)]
    if absent:
        raise ConfigError(f"TSIG key file missing {', '.join(absent)}.")
    return TsigKey(name=values["name"], algorithm=values["algorithm"], secret=values["secret"])


def normalise_zone(zone: str | None) -> str | None:
    """Return the zone with a trailing dot, or None when unset."""
    if not zone or not zone.strip():
        return None
    stripped = zone.strip()
    return stripped if stripped.endswith(".") else f"{stripped}."


def load_config() -> AppConfig:
    """Load configuration values from the environment (and .env)."""
    load_dotenv()
    server = os.getenv("NSUPDATE_SERVER", "127.0.0.1")
    tsig = _parse_keyfile(
        os.getenv("NSUPDATE_TSIG_KEYFILE_B64", ""),
        overrides={
            "name": os.getenv("NSUPDATE_TSIG_NAME"),
            "algorithm": os.getenv("NSUPDATE_TSIG_ALGORITHM"),
            "secret": os.getenv("NSUPDATE_TSIG_SECRET"),
        },
    )
    port = _parse_int("NSUPDATE_PORT", "53")
    if not 0 < port < 65536:
        raise ConfigError("NSUPDATE_PORT must be between 1 and 65535.")

    return AppConfig(
        server=server,
        port=port,
        zone=normalise_zone(os.getenv("NSUPDATE_ZONE")),
        tsig=tsig,
        timeout=_parse_float("NSUPDATE_TIMEOUT", "10"),
        default_mx_preference=_parse_int("DEFAULT_MX_PREFERENCE", "10"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
