"""Shared configuration loader for deploykit."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping
from urllib.parse import urlparse

import yaml

from .amounts import AmountError, resolve_locale, to_base_units


class ConfigurationError(RuntimeError):
    """Raised when configuration is invalid."""


DEFAULT_CONFIG_PATH = Path.home() / ".deploykit.yaml"
DEFAULT_URL = "http://localhost:8080"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_POLL_INTERVAL_SECONDS = 1.0
DEFAULT_TRANSACTION_FEE = "0.02"
DEFAULT_TOLERANCE = "0.000001"


@dataclass
class NetworkConfig:
    """Gateway endpoint plus the fee figures used when planning transfers.

    ``transaction_fee`` and ``tolerance`` are held in base units.
    """

    url: str = DEFAULT_URL
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS
    transaction_fee: int = 20_000_000
    tolerance: int = 1_000


@dataclass
class ContractConfig:
    name: str
    address: str
    keys: Path | None = None
    abi: str | None = None
    image: str | None = None
    constructor: dict[str, Any] = field(default_factory=dict)


@dataclass
class ToolConfig:
    """Settings shared by every command: network, locale, signing keys, contract."""

    net: NetworkConfig
    keys: Path
    contract: ContractConfig
    locale: str | None = None


@dataclass
class DeployConfig(ToolConfig):
    giver: ContractConfig | None = None
    required_for_deployment: int = 0


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


def _first_value(*values: Any, default: Any = None) -> Any:
    for value in values:
        if value is not None:
            return value
    return default


def _section(data: Mapping[str, Any], key: str, *, source: str) -> dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"Expected '{key}' to be a mapping in {source}")
    return value


def _coerce_seconds(raw: Any, *, source: str) -> float | None:
    if raw is None:
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid duration in {source}: {raw}") from exc
    if value <= 0:
        raise ConfigurationError(f"Duration in {source} must be positive: {raw}")
    return value


def _coerce_base_units(raw: Any, *, source: str) -> int:
    try:
        value = to_base_units(raw)
    except AmountError as exc:
        raise ConfigurationError(f"Invalid amount in {source}: {raw}") from exc
    if value < 0:
        raise ConfigurationError(f"Amount in {source} must not be negative: {raw}")
    return value


def _validate_url(raw: str) -> str:
    parsed = urlparse(raw)
    if parsed.scheme.lower() not in {"http", "https"} or not parsed.hostname:
        raise ConfigurationError(f"Invalid network URL: {raw}")
    return raw.rstrip("/")


def _validate_locale(raw: str | None) -> str | None:
    if raw is None:
        return None
    try:
        resolve_locale(raw)
    except AmountError as exc:
        raise ConfigurationError(str(exc)) from exc
    return str(raw)


def _resolve_path(raw: Any, base_dir: Path | None) -> Path:
    path = Path(str(raw)).expanduser()
    if not path.is_absolute() and base_dir is not None:
        path = base_dir / path
    return path


def _contract_config(
    section: Mapping[str, Any], *, key: str, source: str, base_dir: Path | None
) -> ContractConfig:
    if not section:
        raise ConfigurationError(f"Missing '{key}' section in {source}")
    address = section.get("address")
    if not address:
        raise ConfigurationError(f"'{key}.address' must be set in {source}")
    constructor = section.get("constructor") or {}
    if not isinstance(constructor, dict):
        raise ConfigurationError(f"'{key}.constructor' must be a mapping in {source}")
    keys = section.get("keys")
    return ContractConfig(
        name=str(section.get("name") or key),
        address=str(address),
        keys=_resolve_path(keys, base_dir) if keys else None,
        abi=section.get("abi"),
        image=section.get("image"),
        constructor=dict(constructor),
    )


def _load_raw(
    config_path: str | Path | None,
) -> tuple[dict[str, Any], Path, Path | None]:
    explicit_path = config_path is not None
    path = Path(config_path).expanduser() if explicit_path else DEFAULT_CONFIG_PATH
    data = _load_config_file(path, required=explicit_path)
    base_dir = path.parent if data else None
    return data, path, base_dir


def _key_path(explicit: Any, from_file: Any, base_dir: Path | None) -> Path | None:
    # Paths from the command line or environment are relative to the working
    # directory; only paths written in the config file follow the file.
    if explicit:
        return Path(str(explicit)).expanduser()
    if from_file:
        return _resolve_path(from_file, base_dir)
    return None


def _network_config(
    data: Mapping[str, Any],
    env_map: Mapping[str, str],
    override_map: Mapping[str, Any],
    source: str,
) -> NetworkConfig:
    net_section = _section(data, "net", source=source)
    tx_section = _section(net_section, "transactions", source=f"{source} net")

    url = _first_value(
        override_map.get("url"), env_map.get("DEPLOYKIT_NET_URL"), net_section.get("url"), DEFAULT_URL
    )
    timeout = _first_value(
        _coerce_seconds(override_map.get("timeout"), source="overrides"),
        _coerce_seconds(env_map.get("DEPLOYKIT_NET_TIMEOUT"), source="environment"),
        _coerce_seconds(net_section.get("timeout"), source=f"{source} net.timeout"),
        DEFAULT_TIMEOUT_SECONDS,
    )
    poll_interval = _first_value(
        _coerce_seconds(net_section.get("poll_interval"), source=f"{source} net.poll_interval"),
        DEFAULT_POLL_INTERVAL_SECONDS,
    )
    fee = _coerce_base_units(
        _first_value(tx_section.get("fee"), DEFAULT_TRANSACTION_FEE),
        source=f"{source} net.transactions.fee",
    )
    tolerance = _coerce_base_units(
        _first_value(tx_section.get("tolerance"), DEFAULT_TOLERANCE),
        source=f"{source} net.transactions.tolerance",
    )
    return NetworkConfig(
        url=_validate_url(str(url)),
        timeout=timeout,
        poll_interval=poll_interval,
        transaction_fee=fee,
        tolerance=tolerance,
    )


def _tool_config(
    data: Mapping[str, Any],
    source: str,
    base_dir: Path | None,
    env_map: Mapping[str, str],
    override_map: Mapping[str, Any],
) -> ToolConfig:
    net = _network_config(data, env_map, override_map, source)
    locale = _validate_locale(
        _first_value(override_map.get("locale"), env_map.get("DEPLOYKIT_LOCALE"), data.get("locale"))
    )
    keys = _key_path(
        _first_value(override_map.get("keys"), env_map.get("DEPLOYKIT_KEYS")),
        data.get("keys"),
        base_dir,
    )
    if keys is None:
        raise ConfigurationError(
            "A key file path must be provided via --keys, DEPLOYKIT_KEYS or the 'keys' config entry"
        )
    contract_section = dict(_section(data, "contract", source=source))
    if override_map.get("address"):
        contract_section["address"] = override_map["address"]
    contract = _contract_config(contract_section, key="contract", source=source, base_dir=base_dir)

    return ToolConfig(net=net, keys=keys, contract=contract, locale=locale)


def load_tool_config(
    *,
    config_path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> ToolConfig:
    """Load the settings used by ``call`` and ``info`` commands."""

    env_map = os.environ if env is None else env
    data, path, base_dir = _load_raw(config_path)
    return _tool_config(data, str(path), base_dir, env_map, dict(overrides or {}))


def load_deploy_config(
    *,
    config_path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> DeployConfig:
    """Load the settings used by the ``deploy`` command, including the giver."""

    env_map = os.environ if env is None else env
    data, path, base_dir = _load_raw(config_path)
    source = str(path)
    base = _tool_config(data, source, base_dir, env_map, dict(overrides or {}))

    giver_section = _section(data, "giver", source=source)
    giver = _contract_config(giver_section, key="giver", source=source, base_dir=base_dir)
    giver.keys = _key_path(env_map.get("DEPLOYKIT_GIVER_KEYS"), giver_section.get("keys"), base_dir)
    if giver.keys is None:
        raise ConfigurationError(f"'giver.keys' must be set in {source}")

    required = data.get("required_for_deployment")
    if required is None:
        raise ConfigurationError(f"'required_for_deployment' must be set in {source}")

    return DeployConfig(
        net=base.net,
        keys=base.keys,
        contract=base.contract,
        locale=base.locale,
        giver=giver,
        required_for_deployment=_coerce_base_units(
            required, source=f"{source} required_for_deployment"
        ),
    )
