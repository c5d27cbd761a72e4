"""Environment-driven configuration for PCRM.

Environment Variables:
    PCRM_DEDUPE_NAME_THRESHOLD: Minimum trigram similarity for a fuzzy name match (0.45)
    PCRM_DEDUPE_EMAIL_WEIGHT: Score added for a shared email (0.8)
    PCRM_DEDUPE_PHONE_WEIGHT: Score added for a shared phone (0.8)
    PCRM_DEDUPE_NAME_WEIGHT: Multiplier applied to name similarity (0.6)
    PCRM_DEDUPE_CITY_BONUS: Score added for the same city on a name match (0.1)
    PCRM_DEDUPE_ORG_BONUS: Score added for a shared organization on a name match (0.1)
    PCRM_AUDIT_LOG_PATH: JSONL audit log path (default: ./var/audit/audit_events.jsonl)
    PCRM_OTEL_ENABLED: Set to "1" to enable tracing (default: disabled)
    PCRM_OTEL_SERVICE_NAME: Service name for spans (default: "pcrm")
    PCRM_OTEL_EXPORTER: "console" or "memory" (default: "console")
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEDUPE_NAME_THRESHOLD_ENV = "PCRM_DEDUPE_NAME_THRESHOLD"
DEDUPE_EMAIL_WEIGHT_ENV = "PCRM_DEDUPE_EMAIL_WEIGHT"
DEDUPE_PHONE_WEIGHT_ENV = "PCRM_DEDUPE_PHONE_WEIGHT"
DEDUPE_NAME_WEIGHT_ENV = "PCRM_DEDUPE_NAME_WEIGHT"
DEDUPE_CITY_BONUS_ENV = "PCRM_DEDUPE_CITY_BONUS"
DEDUPE_ORG_BONUS_ENV = "PCRM_DEDUPE_ORG_BONUS"

AUDIT_LOG_PATH_ENV = "PCRM_AUDIT_LOG_PATH"
DEFAULT_AUDIT_LOG_PATH = "./var/audit/audit_events.jsonl"

OTEL_ENABLED_ENV = "PCRM_OTEL_ENABLED"
OTEL_SERVICE_NAME_ENV = "PCRM_OTEL_SERVICE_NAME"
OTEL_EXPORTER_ENV = "PCRM_OTEL_EXPORTER"


class ConfigError(Exception):
    """Raised when an environment variable holds an unusable value."""

    def __init__(self, key: str, value: str, reason: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid value for {key}={value!r}: {reason}")


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean from environment variable."""
    val = os.environ.get(key, "").strip().lower()
    if val in ("1", "true", "yes"):
        return True
    if val in ("0", "false", "no", ""):
        return default
    return default


def get_env_str(key: str, default: str = "") -> str:
    """Get string from environment variable."""
    return os.environ.get(key, default).strip()


def get_env_float(key: str, default: float, *, minimum: float = 0.0) -> float:
    """Get a non-negative float from environment variable.

    Raises:
        ConfigError: If the value is not a number or is below ``minimum``.
    """
    raw = os.environ.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigError(key, raw, "not a number") from e
    if value < minimum:
        raise ConfigError(key, raw, f"must be >= {minimum}")
    return value


@dataclass(frozen=True)
class DedupeSettings:
    """Thresholds and weights for the duplicate scorer."""

    name_threshold: float = 0.45
    email_weight: float = 0.8
    phone_weight: float = 0.8
    name_weight: float = 0.6
    city_bonus: float = 0.1
    organization_bonus: float = 0.1


DEFAULT_DEDUPE_SETTINGS = DedupeSettings()


def load_dedupe_settings() -> DedupeSettings:
    """Build DedupeSettings from the environment, falling back to defaults.

    Returns:
        Settings with any overridden values applied.

    Raises:
        ConfigError: If an override is malformed or out of range.
    """
    defaults = DEFAULT_DEDUPE_SETTINGS
    threshold = get_env_float(DEDUPE_NAME_THRESHOLD_ENV, defaults.name_threshold)
    if threshold > 1.0:
        raise ConfigError(DEDUPE_NAME_THRESHOLD_ENV, str(threshold), "must be <= 1.0")

    settings = DedupeSettings(
        name_threshold=threshold,
        email_weight=get_env_float(DEDUPE_EMAIL_WEIGHT_ENV, defaults.email_weight),
        phone_weight=get_env_float(DEDUPE_PHONE_WEIGHT_ENV, defaults.phone_weight),
        name_weight=get_env_float(DEDUPE_NAME_WEIGHT_ENV, defaults.name_weight),
        city_bonus=get_env_float(DEDUPE_CITY_BONUS_ENV, defaults.city_bonus),
        organization_bonus=get_env_float(DEDUPE_ORG_BONUS_ENV, defaults.organization_bonus),
    )
    if settings != defaults:
        logger.info("Dedupe settings overridden from environment: %s", settings)
    return settings
