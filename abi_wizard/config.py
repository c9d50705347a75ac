"""Shared configuration loader for abi-wizard."""

from __future__ import annotations

import os
import re
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml


class ConfigurationError(RuntimeError):
    """Raised when configuration is invalid."""


DEFAULT_HOME = Path.home() / ".abi-wizard"
DEFAULT_CONFIG_PATH = DEFAULT_HOME / "config.yaml"
DEFAULT_ABI_DIR = DEFAULT_HOME / "abis"
DEFAULT_ADDRESS_BOOK_PATH = DEFAULT_HOME / "address_book.json"
DEFAULT_RPC_URL = "http://localhost:8545"
DEFAULT_WAIT_TIME = "5s"

_DURATION_RE = re.compile(r"([0-9]+(?:\.[0-9]+)?)(ms|s|m|h)")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


@dataclass
class Settings:
    """Values read from ``config.yaml`` and the environment."""

    rpc_url: str = DEFAULT_RPC_URL
    private_key: str | None = None
    chain_id: int = 0
    wait_time: str = DEFAULT_WAIT_TIME

    @property
    def wait_seconds(self) -> float:
        return parse_duration(self.wait_time)


def parse_duration(raw: str) -> float:
    """Parse durations such as ``5s``, ``1m30s`` or ``500ms`` into seconds."""

    text = str(raw).strip()
    if not text:
        raise ConfigurationError("duration cannot be empty")
    total = 0.0
    position = 0
    for match in _DURATION_RE.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()
    if position != len(text):
        raise ConfigurationError(f"invalid duration: {raw}")
    return total


def _load_config_file(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise ConfigurationError(f"Config file not found: {path}")
        return {}

    try:
        loaded = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:  # pragma: no cover - delegated to PyYAML
        raise ConfigurationError(f"Invalid YAML in config file {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ConfigurationError(f"Expected {path} to contain a YAML mapping")
    return loaded


def _coerce_int(raw: Any, *, source: str) -> int | None:
    if raw is None or raw == "":
        return None
    try:
        value = int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid chain id in {source}: {raw}") from exc
    if value < 0:
        raise ConfigurationError(f"Chain id in {source} must not be negative: {raw}")
    return value


def _first_value(*values: Any, default: Any = None) -> Any:
    for value in values:
        if value is not None:
            return value
    return default


def config_exists(config_path: str | Path | None = None) -> bool:
    path = Path(config_path).expanduser() if config_path is not None else DEFAULT_CONFIG_PATH
    return path.exists()


def load_settings(
    *,
    config_path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Settings:
    """Load settings from overrides, environment variables and optional YAML."""

    env_map = os.environ if env is None else env
    path = Path(config_path).expanduser() if config_path is not None else DEFAULT_CONFIG_PATH
    file_config = _load_config_file(path, required=config_path is not None)
    override_map = dict(overrides or {})

    rpc_url = _first_value(
        override_map.get("rpc_url"),
        env_map.get("ABI_WIZARD_RPC_URL") or None,
        file_config.get("rpc_url"),
        default=DEFAULT_RPC_URL,
    )
    private_key = _first_value(
        override_map.get("private_key"),
        env_map.get("ABI_WIZARD_PRIVATE_KEY") or None,
        file_config.get("private_key") or None,
    )
    chain_id = _first_value(
        _coerce_int(override_map.get("chain_id"), source="overrides"),
        _coerce_int(env_map.get("ABI_WIZARD_CHAIN_ID"), source="environment"),
        _coerce_int(file_config.get("chain_id"), source=str(path)),
        default=0,
    )
    wait_time = str(
        _first_value(
            override_map.get("wait_time"),
            env_map.get("ABI_WIZARD_WAIT_TIME") or None,
            file_config.get("wait_time"),
            default=DEFAULT_WAIT_TIME,
        )
    )
    parse_duration(wait_time)

    return Settings(
        rpc_url=str(rpc_url),
        private_key=str(private_key) if private_key is not None else None,
        chain_id=chain_id,
        wait_time=wait_time,
    )


def write_settings(path: str | Path, settings: Settings) -> None:
    """Persist ``settings`` as YAML, omitting unset values.

    The private key is never written. A ``private_key`` entry already in the
    file is kept as is, and so are entries this tool does not manage.
    """

    target = Path(path).expanduser()
    data = dict(_load_config_file(target, required=False))
    for key, value in asdict(settings).items():
        if key != "private_key" and value is not None:
            data[key] = value
    target.parent.mkdir(parents=True, exist_ok=True)
    try:
        target.write_text(yaml.safe_dump(data, sort_keys=False))
    except OSError as exc:
        raise ConfigurationError(f"Failed to write config file {target}: {exc}") from exc
