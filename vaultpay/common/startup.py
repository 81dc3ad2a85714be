"""Startup-time helpers for safe config logging."""

from vaultpay.common.config import GatewaySettings
from vaultpay.common.logging import logger


SECRET_MARKERS = ("key", "secret", "password", "token")


def _safe_value(name: str, value) -> str:
    """Return a printable setting value, redacting secret-like field names."""

    if value in (None, ""):
        return "<unset>"
    if any(marker in name for marker in SECRET_MARKERS):
        return "<redacted>"
    return str(value)


def log_startup_config(config: GatewaySettings, keys: list[str]) -> None:
    """Log selected settings fields for quick troubleshooting."""

    snapshot = {"service": config.service_name}
    for key in keys:
        snapshot[key] = _safe_value(key, getattr(config, key, None))
    logger.info("startup_config=%s", snapshot)
