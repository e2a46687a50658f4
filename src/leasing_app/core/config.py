"""Configuration loader for leasing policy, storage and runtime keys."""

from __future__ import annotations

import os
import secrets
import sys
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from leasing_app.core.crypto import MetadataCipher
from leasing_app.core.errors import ConfigurationError

DEFAULT_CONFIG_REL_PATH = Path("config/leasing.yaml")
RUNTIME_ENV_REL_PATH = Path("config/runtime.env")
DEFAULT_DB_KEY_ENV = "LEASING_DB_KEY"
DEFAULT_ENCRYPTION_KEY_ENV = "LEASING_ENCRYPTION_KEY"
_RUNTIME_ENV_LOADED = False

DEFAULT_EMPLOYEE_DISCOUNTS = {
    "STANDARD": Decimal("1.0"),
    "PREMIUM": Decimal("0.9"),
    "VIP": Decimal("0.8"),
}


@dataclass(frozen=True)
class LeasingConfig:
    """Pricing and policy limits.

    ``max_leasing_duration`` is in months, ``min_leasing_duration`` in days.
    """

    max_leasing_duration: int = 60
    min_leasing_duration: int = 30
    max_price: Decimal = Decimal("1000000")
    supported_currencies: frozenset[str] = frozenset({"USD", "EUR", "GBP", "CAD"})
    employee_discounts: dict[str, Decimal] = field(
        default_factory=lambda: dict(DEFAULT_EMPLOYEE_DISCOUNTS)
    )
    long_term_discount: Decimal = Decimal("0.8")
    long_term_threshold: int = 12


@dataclass(frozen=True)
class DatabaseConfig:
    backend: str = "memory"
    path: str = "data/leasing.db"
    key_env: str = DEFAULT_DB_KEY_ENV
    allow_sqlite_fallback: bool = False


@dataclass(frozen=True)
class EncryptionConfig:
    key_env: str = DEFAULT_ENCRYPTION_KEY_ENV


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    format: str = "standard"
    retention_days: int = 1095


@dataclass(frozen=True)
class EmployeeRecord:
    employee_id: str
    company_id: str
    tier: str = "STANDARD"


@dataclass(frozen=True)
class AppConfig:
    leasing: LeasingConfig = field(default_factory=LeasingConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    encryption: EncryptionConfig = field(default_factory=EncryptionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    employees: tuple[EmployeeRecord, ...] = ()
    inventory_items: tuple[str, ...] = ()


def _runtime_root() -> Path:
    """Return the writable root holding ``config/``."""
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[3]


def _split_key_value(raw_line: str) -> tuple[str, str] | None:
    """Parse a ``KEY=VALUE`` or ``export KEY=VALUE`` line."""
    line = raw_line.strip()
    if not line or line.startswith("#"):
        return None
    if line.startswith("export "):
        line = line[len("export ") :]
    if "=" not in line:
        return None

    key, value = (part.strip() for part in line.split("=", 1))
    if not key:
        return None
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        value = value[1:-1]
    return key, value


def _iter_env_candidates() -> list[Path]:
    """Return files that may hold runtime keys, first match wins per key."""
    seen: set[Path] = set()
    paths: list[Path] = []
    for root in (Path.cwd(), _runtime_root()):
        for candidate in (root / ".env.local", root / RUNTIME_ENV_REL_PATH):
            resolved = candidate.resolve()
            if resolved not in seen:
                seen.add(resolved)
                paths.append(resolved)
    return paths


def _load_env_from_file(path: Path) -> None:
    if not path.is_file():
        return
    with path.open("r", encoding="utf-8") as file:
        for line in file:
            parsed = _split_key_value(line)
            if parsed and parsed[0] not in os.environ:
                os.environ[parsed[0]] = parsed[1]


def _ensure_runtime_env_loaded() -> None:
    """Load local env files once per process."""
    global _RUNTIME_ENV_LOADED
    if _RUNTIME_ENV_LOADED:
        return
    for path in _iter_env_candidates():
        _load_env_from_file(path)
    _RUNTIME_ENV_LOADED = True


def _bootstrap_runtime_keys(db_path: str | None = None) -> None:
    """Generate and persist keys when neither the environment nor a key file has them."""
    db_key = os.getenv(DEFAULT_DB_KEY_ENV)
    encryption_key = os.getenv(DEFAULT_ENCRYPTION_KEY_ENV)
    if db_key and encryption_key:
        return

    runtime_env = _runtime_root() / RUNTIME_ENV_REL_PATH
    if db_path and Path(db_path).exists() and not runtime_env.exists():
        raise ConfigurationError(
            "Runtime key file is missing while the agreement database exists. "
            f"Restore {RUNTIME_ENV_REL_PATH} or set {DEFAULT_DB_KEY_ENV}/{DEFAULT_ENCRYPTION_KEY_ENV}."
        )

    db_key = db_key or secrets.token_urlsafe(48)
    encryption_key = encryption_key or MetadataCipher.generate_base64_key()
    os.environ[DEFAULT_DB_KEY_ENV] = db_key
    os.environ[DEFAULT_ENCRYPTION_KEY_ENV] = encryption_key

    runtime_env.parent.mkdir(parents=True, exist_ok=True)
    runtime_env.write_text(
        f"{DEFAULT_DB_KEY_ENV}='{db_key}'\n{DEFAULT_ENCRYPTION_KEY_ENV}='{encryption_key}'\n",
        encoding="utf-8",
    )


def ensure_runtime_keys(db_path: str | None = None) -> None:
    """Ensure runtime keys are loaded or bootstrapped for a configured DB path."""
    _ensure_runtime_env_loaded()
    _bootstrap_runtime_keys(db_path)


def get_required_env(name: str) -> str:
    """Return a required environment variable or raise ConfigurationError."""
    _ensure_runtime_env_loaded()
    if name in {DEFAULT_DB_KEY_ENV, DEFAULT_ENCRYPTION_KEY_ENV}:
        _bootstrap_runtime_keys()
    value = os.getenv(name)
    if not value:
        raise ConfigurationError(f"Required environment variable is missing: {name}")
    return value


def resolve_default_config_path() -> Path:
    """Resolve the YAML path from LEASING_CONFIG_PATH, the cwd or the repo root."""
    env_path = os.getenv("LEASING_CONFIG_PATH")
    if env_path:
        return Path(env_path)

    candidates = [Path.cwd() / DEFAULT_CONFIG_REL_PATH, _runtime_root() / DEFAULT_CONFIG_REL_PATH]
    for candidate in candidates:
        if candidate.exists():
            return candidate
    return candidates[0]


def _decimal(value: Any, key: str) -> Decimal:
    try:
        return Decimal(str(value))
    except InvalidOperation as error:
        raise ConfigurationError(f"{key} must be a decimal number, got: {value!r}") from error


def _integer(value: Any, key: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as error:
        raise ConfigurationError(f"{key} must be an integer, got: {value!r}") from error


def _env_override(raw: dict[str, Any], key: str, env_name: str) -> None:
    value = os.getenv(env_name)
    if value:
        raw[key] = value


def _build_leasing(raw: dict[str, Any]) -> LeasingConfig:
    raw = dict(raw)
    _env_override(raw, "max_price", "LEASING_MAX_PRICE")
    _env_override(raw, "long_term_discount", "LEASING_LONG_TERM_DISCOUNT")
    _env_override(raw, "long_term_threshold", "LEASING_LONG_TERM_THRESHOLD")
    _env_override(raw, "max_leasing_duration", "LEASING_MAX_DURATION_MONTHS")
    _env_override(raw, "min_leasing_duration", "LEASING_MIN_DURATION_DAYS")

    defaults = LeasingConfig()
    discounts = dict(defaults.employee_discounts)
    for tier, multiplier in (raw.get("employee_discounts") or {}).items():
        discounts[str(tier).upper()] = _decimal(multiplier, f"employee_discounts.{tier}")

    currencies = raw.get("supported_currencies")
    config = LeasingConfig(
        max_leasing_duration=_integer(
            raw.get("max_leasing_duration", defaults.max_leasing_duration), "max_leasing_duration"
        ),
        min_leasing_duration=_integer(
            raw.get("min_leasing_duration", defaults.min_leasing_duration), "min_leasing_duration"
        ),
        max_price=_decimal(raw.get("max_price", defaults.max_price), "max_price"),
        supported_currencies=(
            frozenset(str(code).upper() for code in currencies)
            if currencies
            else defaults.supported_currencies
        ),
        employee_discounts=discounts,
        long_term_discount=_decimal(
            raw.get("long_term_discount", defaults.long_term_discount), "long_term_discount"
        ),
        long_term_threshold=_integer(
            raw.get("long_term_threshold", defaults.long_term_threshold), "long_term_threshold"
        ),
    )
    if config.max_price <= 0:
        raise ConfigurationError("max_price must be positive")
    if not Decimal("0") < config.long_term_discount <= Decimal("1"):
        raise ConfigurationError("long_term_discount must be in (0, 1]")
    return config


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load the app configuration from YAML; a missing file yields defaults."""
    path = config_path or resolve_default_config_path()
    raw: dict[str, Any] = {}
    if path.exists():
        with path.open("r", encoding="utf-8") as file:
            raw = yaml.safe_load(file) or {}
    elif config_path is not None:
        raise ConfigurationError(f"Configuration file not found: {path}")

    db_raw = raw.get("db") or {}
    log_raw = raw.get("logging") or {}
    return AppConfig(
        leasing=_build_leasing(raw.get("leasing") or {}),
        database=DatabaseConfig(
            backend=str(db_raw.get("backend", "memory")),
            path=str(db_raw.get("path", DatabaseConfig.path)),
            key_env=str(db_raw.get("key_env", DEFAULT_DB_KEY_ENV)),
            allow_sqlite_fallback=bool(db_raw.get("allow_sqlite_fallback", False)),
        ),
        encryption=EncryptionConfig(
            key_env=str((raw.get("encryption") or {}).get("key_env", DEFAULT_ENCRYPTION_KEY_ENV)),
        ),
        logging=LoggingConfig(
            level=os.getenv("LEASING_LOG_LEVEL", str(log_raw.get("level", "INFO"))),
            format=str(log_raw.get("format", "standard")),
            retention_days=_integer(log_raw.get("retention_days", 1095), "logging.retention_days"),
        ),
        employees=tuple(
            EmployeeRecord(
                employee_id=str(entry["id"]),
                company_id=str(entry["company_id"]),
                tier=str(entry.get("tier", "STANDARD")).upper(),
            )
            for entry in raw.get("employees") or []
        ),
        inventory_items=tuple(str(item) for item in raw.get("inventory") or []),
    )
