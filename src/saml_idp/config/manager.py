"""Configuration manager for loading and managing configuration.

This module provides the main configuration loading and management functionality,
including support for JSON configuration files, environment variable overrides,
and configuration validation.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from saml_idp.config.defaults import DEFAULT_CONFIG, DEFAULT_CONFIG_PATH
from saml_idp.config.schema import IdpConfig
from saml_idp.utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Environment variable prefix for all configuration overrides
ENV_PREFIX = "SAML_IDP_"


def load_config(config_path: Optional[Path] = None) -> IdpConfig:
    """Load configuration from file and environment variables.

    Configuration is loaded with the following precedence (highest to lowest):
    1. Per-call assertion options (handled by the assertion builder)
    2. Environment variables (SAML_IDP_* prefix)
    3. Configuration file (JSON)
    4. Default values

    Args:
        config_path: Path to configuration file. If None, uses ./config/config.json

    Returns:
        Validated IdpConfig instance

    Raises:
        ConfigurationError: If configuration is invalid or malformed

    Example:
        >>> config = load_config(Path("custom/config.json"))
        >>> config.session_expiry
        0
    """
    # Load .env file if present in project root
    load_dotenv()

    if config_path is None:
        config_path = Path(DEFAULT_CONFIG_PATH)

    config_dict = _load_config_file(config_path)
    config_dict = _apply_env_overrides(config_dict)
    _check_sensitive_values(config_dict)

    try:
        return IdpConfig(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(
            f"Configuration validation failed:\n{e}\n\n"
            f"Fix: Check your configuration file at {config_path} and ensure all "
            f"values match the expected format."
        ) from e


def _load_config_file(config_path: Path) -> dict[str, Any]:
    """Load configuration file or return defaults.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary

    Raises:
        ConfigurationError: If JSON is malformed
    """
    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config_dict = json.load(f)
            logger.info(f"Loaded configuration from {config_path}")
            return config_dict
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Invalid JSON in config file: {config_path}\n"
                f"Error: {e}\n"
                f"Fix: Check JSON syntax at line {e.lineno}, column {e.colno}"
            ) from e
        except OSError as e:
            raise ConfigurationError(
                f"Failed to read config file: {config_path}\n"
                f"Error: {e}\n"
                f"Fix: Check file permissions and path"
            ) from e
    else:
        logger.info(
            f"Config file not found: {config_path}. Using default configuration."
        )
        # Return a deep copy of defaults to avoid mutation
        return json.loads(json.dumps(DEFAULT_CONFIG))


def _apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides with SAML_IDP_ prefix.

    Environment variables follow the pattern: SAML_IDP_<FIELD>
    For example: SAML_IDP_SESSION_EXPIRY, SAML_IDP_LOG_LEVEL

    Args:
        config_dict: Configuration dictionary to update

    Returns:
        Updated configuration dictionary with environment overrides applied
    """
    if session_expiry := os.getenv(f"{ENV_PREFIX}SESSION_EXPIRY"):
        config_dict["session_expiry"] = _parse_int(session_expiry, "SESSION_EXPIRY")
        logger.debug("Override: session_expiry from environment")

    if default_format := os.getenv(f"{ENV_PREFIX}NAME_ID_DEFAULT_FORMAT"):
        config_dict.setdefault("name_id", {})["default_format"] = default_format
        logger.debug("Override: name_id.default_format from environment")

    # Signing section
    if cert_path := os.getenv(f"{ENV_PREFIX}CERT_PATH"):
        config_dict.setdefault("signing", {})["cert_path"] = cert_path
        logger.debug("Override: signing.cert_path from environment")

    if key_path := os.getenv(f"{ENV_PREFIX}KEY_PATH"):
        config_dict.setdefault("signing", {})["key_path"] = key_path
        logger.debug("Override: signing.key_path from environment")

    if algorithm := os.getenv(f"{ENV_PREFIX}SIGNATURE_ALGORITHM"):
        config_dict.setdefault("signing", {})["algorithm"] = algorithm
        logger.debug("Override: signing.algorithm from environment")

    # Encryption section
    if encryption_cert := os.getenv(f"{ENV_PREFIX}ENCRYPTION_CERT_PATH"):
        config_dict.setdefault("encryption", {})["cert_path"] = encryption_cert
        logger.debug("Override: encryption.cert_path from environment")

    if block_encryption := os.getenv(f"{ENV_PREFIX}BLOCK_ENCRYPTION"):
        config_dict.setdefault("encryption", {})["block_encryption"] = block_encryption
        logger.debug("Override: encryption.block_encryption from environment")

    if key_transport := os.getenv(f"{ENV_PREFIX}KEY_TRANSPORT"):
        config_dict.setdefault("encryption", {})["key_transport"] = key_transport
        logger.debug("Override: encryption.key_transport from environment")

    # Logging section
    if log_level := os.getenv(f"{ENV_PREFIX}LOG_LEVEL"):
        config_dict.setdefault("logging", {})["level"] = log_level
        logger.debug("Override: log_level from environment")

    if log_file := os.getenv(f"{ENV_PREFIX}LOG_FILE"):
        config_dict.setdefault("logging", {})["log_file"] = log_file
        logger.debug("Override: log_file from environment")

    if redact_pii := os.getenv(f"{ENV_PREFIX}REDACT_PII"):
        config_dict.setdefault("logging", {})["redact_pii"] = _parse_bool(redact_pii)
        logger.debug("Override: redact_pii from environment")

    return config_dict


def _parse_bool(value: str) -> bool:
    """Parse boolean value from string.

    Args:
        value: String value to parse (case-insensitive)

    Returns:
        Boolean value
    """
    return value.lower() in ("true", "1", "yes", "on")


def _parse_int(value: str, name: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid integer in {ENV_PREFIX}{name}: {value!r}. "
            f"Fix: Set {ENV_PREFIX}{name} to a whole number of seconds."
        ) from e


def _check_sensitive_values(config_dict: dict[str, Any]) -> None:
    """Check for sensitive values in configuration and warn user.

    Sensitive values like passwords should be in environment variables,
    not in configuration files.

    Args:
        config_dict: Configuration dictionary to check
    """
    signing = config_dict.get("signing", {}) or {}
    if "pkcs12_password" in signing:
        logger.warning(
            "WARNING: PKCS12 password found in configuration file! "
            "Passwords should be stored in environment variables, not config files. "
            f"Use {ENV_PREFIX}PKCS12_PASSWORD environment variable instead."
        )
