"""
Aggregator settings

Loads and validates aggregator settings with sane defaults. Settings come
from the ``aggregator`` block of a mapping or YAML file, for example::

    aggregator:
      descriptor_key: config
      signed_url_expiry_seconds: 900
      on_unparseable: abort
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from loguru import logger

from tools.common import load_config

# Default aggregator settings
DEFAULT_SETTINGS = {
    "descriptor_key": "config",
    "content_type": "application/json",
    "signed_url_expiry_seconds": 15 * 60,
    "nonce_header": "x-nonce",
    "on_unparseable": "abort",
}

MAX_SIGNED_URL_EXPIRY_SECONDS = 7 * 24 * 60 * 60  # V4 signing limit

# abort: fail the resolution; skip: log and ignore the document
UNPARSEABLE_POLICIES = ("abort", "skip")


@dataclass(frozen=True)
class AggregatorSettings:
    descriptor_key: str = DEFAULT_SETTINGS["descriptor_key"]
    content_type: str = DEFAULT_SETTINGS["content_type"]
    signed_url_expiry_seconds: int = DEFAULT_SETTINGS["signed_url_expiry_seconds"]
    nonce_header: str = DEFAULT_SETTINGS["nonce_header"]
    on_unparseable: str = DEFAULT_SETTINGS["on_unparseable"]


def load_settings(source: Optional[Union[str, Path, Mapping[str, Any]]] = None) -> AggregatorSettings:
    """
    Load aggregator settings with defaults.

    Args:
        source: None, a configuration mapping, or a path to a YAML file

    Returns:
        Validated AggregatorSettings
    """
    if source is None:
        config: Mapping[str, Any] = {}
    elif isinstance(source, Mapping):
        config = source
    else:
        config = load_config(str(source)) or {}

    overrides = config.get("aggregator") or {}
    if not isinstance(overrides, Mapping):
        raise ValueError("aggregator settings must be a mapping")

    unknown = set(overrides) - set(DEFAULT_SETTINGS)
    if unknown:
        raise ValueError(f"Unknown aggregator settings: {sorted(unknown)}")

    resolved = DEFAULT_SETTINGS.copy()
    resolved.update(overrides)

    _validate_settings(resolved)

    logger.debug(f"Resolved aggregator settings: {resolved}")
    return AggregatorSettings(**resolved)


def _validate_settings(settings: Dict[str, Any]) -> None:
    """
    Validate aggregator settings.

    Raises:
        ValueError: If a setting is invalid
    """
    for key in ("descriptor_key", "content_type", "nonce_header"):
        if not isinstance(settings.get(key), str) or not settings[key]:
            raise ValueError(f"settings.{key} must be a non-empty string")

    expiry = settings.get("signed_url_expiry_seconds")
    if not isinstance(expiry, int) or isinstance(expiry, bool):
        raise ValueError("settings.signed_url_expiry_seconds must be an integer")
    if expiry <= 0 or expiry > MAX_SIGNED_URL_EXPIRY_SECONDS:
        raise ValueError(
            f"settings.signed_url_expiry_seconds must be in (0, {MAX_SIGNED_URL_EXPIRY_SECONDS}]"
        )

    if settings.get("on_unparseable") not in UNPARSEABLE_POLICIES:
        raise ValueError(f"settings.on_unparseable must be one of {list(UNPARSEABLE_POLICIES)}")
