"""Configuration manager for loading and managing configuration.

This module provides the main configuration loading and management functionality,
including support for JSON configuration files, environment variable overrides,
configuration validation and runtime merging of SOAP options.
"""

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from soap_test_util.config.defaults import DEFAULT_CONFIG, DEFAULT_CONFIG_PATH
from soap_test_util.config.schema import (
    Config,
    LoggingConfig,
    SoapConfig,
    TransportConfig,
)
from soap_test_util.utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Environment variable prefix for all configuration overrides
ENV_PREFIX = "SOAP_TEST_"


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file and environment variables.

    Configuration is loaded with the following precedence (highest to lowest):
    1. CLI arguments (handled by caller)
    2. Environment variables (SOAP_TEST_* prefix)
    3. Configuration file (JSON)
    4. Default values

    Args:
        config_path: Path to configuration file. If None, uses ./config/config.json

    Returns:
        Validated Config instance

    Raises:
        ConfigurationError: If configuration is invalid or malformed

    Example:
        >>> config = load_config(Path("custom/config.json"))
        >>> endpoint = config.soap.endpoint
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(DEFAULT_CONFIG_PATH)

    config_dict = _load_config_file(config_path)
    config_dict = _apply_env_overrides(config_dict)

    try:
        return Config(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(
            f"Configuration validation failed:\n{e}\n\n"
            f"Fix: Check your configuration file at {config_path} and ensure "
            f"soap.endpoint and soap.schema are set."
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

    logger.info(
        f"Config file not found: {config_path}. Using default configuration."
    )
    # Deep copy of defaults to avoid mutation
    return json.loads(json.dumps(DEFAULT_CONFIG))


def _apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides with SOAP_TEST_ prefix.

    For example: SOAP_TEST_ENDPOINT, SOAP_TEST_SCHEMA, SOAP_TEST_LOG_LEVEL

    Args:
        config_dict: Configuration dictionary to update

    Returns:
        Updated configuration dictionary with environment overrides applied
    """
    # SOAP section
    if endpoint := os.getenv(f"{ENV_PREFIX}ENDPOINT"):
        config_dict.setdefault("soap", {})["endpoint"] = endpoint
        logger.debug("Override: endpoint from environment")

    if schema := os.getenv(f"{ENV_PREFIX}SCHEMA"):
        config_dict.setdefault("soap", {})["schema"] = schema
        logger.debug("Override: schema from environment")

    if schema_url := os.getenv(f"{ENV_PREFIX}SCHEMA_URL"):
        config_dict.setdefault("soap", {})["schema_url"] = schema_url
        logger.debug("Override: schema_url from environment")

    # An empty SOAPAction is meaningful, so test for presence not truthiness
    soap_action = os.getenv(f"{ENV_PREFIX}SOAP_ACTION")
    if soap_action is not None:
        config_dict.setdefault("soap", {})["SOAPAction"] = soap_action
        logger.debug("Override: SOAPAction from environment")

    if collect_buffer := os.getenv(f"{ENV_PREFIX}FRAMEWORK_COLLECT_BUFFER"):
        config_dict.setdefault("soap", {})["framework_collect_buffer"] = _parse_bool(
            collect_buffer
        )
        logger.debug("Override: framework_collect_buffer from environment")

    # Transport section
    if verify_tls := os.getenv(f"{ENV_PREFIX}VERIFY_TLS"):
        config_dict.setdefault("transport", {})["verify_tls"] = _parse_bool(verify_tls)
        logger.debug("Override: verify_tls from environment")

    if timeout := os.getenv(f"{ENV_PREFIX}TIMEOUT"):
        config_dict.setdefault("transport", {})["timeout"] = int(timeout)
        logger.debug("Override: timeout from environment")

    # Logging section
    if log_level := os.getenv(f"{ENV_PREFIX}LOG_LEVEL"):
        config_dict.setdefault("logging", {})["level"] = log_level
        logger.debug("Override: log_level from environment")

    if log_file := os.getenv(f"{ENV_PREFIX}LOG_FILE"):
        config_dict.setdefault("logging", {})["log_file"] = log_file
        logger.debug("Override: log_file from environment")

    if redact_secrets := os.getenv(f"{ENV_PREFIX}REDACT_SECRETS"):
        config_dict.setdefault("logging", {})["redact_secrets"] = _parse_bool(
            redact_secrets
        )
        logger.debug("Override: redact_secrets from environment")

    return config_dict


def _parse_bool(value: str) -> bool:
    """Parse boolean value from string.

    Args:
        value: String value to parse (case-insensitive)

    Returns:
        Boolean value
    """
    return value.lower() in ("true", "1", "yes", "on")


def _recognized_soap_keys() -> dict[str, str]:
    """Map every accepted option name (alias or attribute) to its field name."""
    keys = {}
    for name, field in SoapConfig.model_fields.items():
        keys[name] = name
        if field.alias:
            keys[field.alias] = name
    return keys


def merge_soap_config(config: SoapConfig, partial: Mapping[str, Any]) -> SoapConfig:
    """Merge recognized options from ``partial`` into a new SoapConfig.

    Unknown keys are logged and ignored. The merged result is validated
    again, so invalid values raise instead of being stored.

    Args:
        config: Current SOAP configuration
        partial: Options to replace, keyed by option name or attribute name

    Returns:
        New validated SoapConfig

    Raises:
        ConfigurationError: If a merged value fails validation

    Example:
        >>> merged = merge_soap_config(config, {"endpoint": "http://other/soap"})
        >>> merged.endpoint
        'http://other/soap'
    """
    recognized = _recognized_soap_keys()
    updates: dict[str, Any] = {}
    for key, value in partial.items():
        field_name = recognized.get(key)
        if field_name is None:
            logger.warning(f"Ignoring unknown SOAP configuration option: {key}")
            continue
        updates[field_name] = value

    merged = {**config.model_dump(), **updates}
    try:
        return SoapConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid SOAP configuration update:\n{e}"
        ) from e


def get_soap_config(config: Config) -> SoapConfig:
    """Get SOAP endpoint configuration.

    Args:
        config: Configuration instance

    Returns:
        SoapConfig instance
    """
    return config.soap


def get_transport_config(config: Config) -> TransportConfig:
    """Get transport configuration.

    Args:
        config: Configuration instance

    Returns:
        TransportConfig instance
    """
    return config.transport


def get_logging_config(config: Config) -> LoggingConfig:
    """Get logging configuration.

    Args:
        config: Configuration instance

    Returns:
        LoggingConfig instance
    """
    return config.logging
