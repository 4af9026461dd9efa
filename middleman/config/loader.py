"""Configuration file loading and validation.

Loads a YAML configuration file, expands ``${ENV_VAR}`` placeholders,
and validates against the Pydantic models defined in :mod:`schema`.

The public API is :func:`load_config`, which returns a validated
:class:`MiddlemanConfig`, and :func:`parse_config` for already-parsed
data.
"""

import logging
import os
from typing import Any, Dict, List

import yaml
from pydantic import ValidationError

from middleman.config.env import expand_env_vars
from middleman.config.schema import MiddlemanConfig
from middleman.constants import CONFIG_EXTENSIONS
from middleman.errors import ConfigurationError

logger = logging.getLogger(__name__)


def _read_config_file(cfg_fpath: str) -> Dict[str, Any]:
    """Read and parse a YAML config file from *cfg_fpath*.

    Raises :class:`ConfigurationError` on I/O or parse errors.
    """
    ext = os.path.splitext(cfg_fpath)[1].lower()
    if ext not in CONFIG_EXTENSIONS:
        raise ConfigurationError(
            f"Unsupported config file extension '{ext}'. "
            "Only YAML files (.yaml, .yml) are supported."
        )

    try:
        with open(cfg_fpath, "r", encoding="utf-8") as f:
            raw_data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Error reading configuration file: {cfg_fpath}\n  {exc}") from exc

    if not isinstance(raw_data, dict):
        raise ConfigurationError(
            "Top-level configuration content must be a YAML mapping (dictionary)."
        )
    return raw_data


def _format_validation_errors(exc: ValidationError) -> str:
    """Format Pydantic validation errors into a readable multi-line string."""
    lines: List[str] = []
    for err in exc.errors():
        loc = " → ".join(str(part) for part in err["loc"]) or "(root)"
        lines.append(f"  • {loc}: {err['msg']}")
    return "\n".join(lines)


# ── Public API ───────────────────────────────────────────────────────────


def parse_config(raw_data: Dict[str, Any]) -> MiddlemanConfig:
    """Expand and validate already-parsed configuration data.

    Raises:
        ConfigurationError: On validation failures (all errors reported at once).
    """
    raw_data = expand_env_vars(raw_data)

    try:
        config = MiddlemanConfig.model_validate(raw_data)
    except ValidationError as exc:
        error_summary = _format_validation_errors(exc)
        raise ConfigurationError(
            f"Configuration validation failed ({len(exc.errors())} error(s)):\n" f"{error_summary}"
        ) from exc
    return config


def load_config(cfg_fpath: str) -> MiddlemanConfig:
    """Load, expand, validate, and return the configuration.

    Steps:
        1. Read YAML file
        2. Expand ``${VAR}`` environment variable references
        3. Validate against :class:`MiddlemanConfig` (Pydantic)

    Raises:
        ConfigurationError: On file I/O errors, parse errors, or
            validation failures.
    """
    logger.debug("Loading configuration file: %s", cfg_fpath)

    if not os.path.exists(cfg_fpath):
        raise ConfigurationError(f"Configuration file does not exist: {cfg_fpath}")

    config = parse_config(_read_config_file(cfg_fpath))

    logger.info(
        "Configuration '%s' loaded (v%s). %d component(s), %d pipeline(s).",
        cfg_fpath,
        config.version,
        len(config.components),
        len(config.pipelines),
    )
    return config
