"""Configuration schema models using pydantic.

This module defines the configuration structure and validation rules using pydantic.
All configuration values are validated according to the schema defined here.
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from soap_test_util.config.defaults import SOAP_ENVELOPE_NS


class SoapConfig(BaseModel):
    """Configuration for the SOAP endpoint under test.

    Field aliases keep the option names used in configuration files
    (``schema``, ``SOAPAction``); Python code uses the attribute names.

    Attributes:
        endpoint: Target URL, or a path when the service runs in-process
        target_namespace: Namespace URI of operation elements (``schema``)
        schema_url: Envelope namespace URI (SOAP 1.1 by default)
        soap_action: Override for the SOAPAction header (``SOAPAction``).
            An empty string selects SOAP 1.2 semantics.
        framework_collect_buffer: Capture standard output of in-process services

    Example:
        >>> config = SoapConfig(endpoint="http://localhost:8080/soap",
        ...                     schema="http://example.com/users")
        >>> config.target_namespace
        'http://example.com/users'
    """

    model_config = ConfigDict(populate_by_name=True)

    endpoint: str = Field(..., description="SOAP endpoint URL")
    target_namespace: str = Field(
        ...,
        alias="schema",
        description="Target namespace URI for operation elements"
    )
    schema_url: str = Field(
        default=SOAP_ENVELOPE_NS,
        description="SOAP envelope namespace URI"
    )
    soap_action: Optional[str] = Field(
        default=None,
        alias="SOAPAction",
        description="SOAPAction header override"
    )
    framework_collect_buffer: bool = Field(
        default=True,
        description="Capture stdout of in-process services as the response"
    )

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        """Validate endpoint is an HTTP/HTTPS URL or an absolute path.

        Args:
            v: Endpoint string to validate

        Returns:
            Validated endpoint string

        Raises:
            ValueError: If endpoint is neither a URL nor an absolute path
        """
        if not v.startswith(("http://", "https://", "/")):
            raise ValueError(
                f"Invalid endpoint: {v}. Must start with http://, https:// or /"
            )
        return v

    @field_validator("target_namespace", "schema_url")
    @classmethod
    def validate_namespace(cls, v: str) -> str:
        """Reject empty namespace URIs."""
        if not v.strip():
            raise ValueError("Namespace URI must not be empty")
        return v


class TransportConfig(BaseModel):
    """Configuration for HTTP/HTTPS transport.

    Attributes:
        verify_tls: Whether to verify TLS certificates
        timeout: Request timeout in seconds
    """

    verify_tls: bool = True
    timeout: int = Field(
        default=30,
        ge=1,
        description="Request timeout in seconds"
    )


class LoggingConfig(BaseModel):
    """Configuration for logging.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file
        redact_secrets: Whether to mask credentials in logged XML
    """

    level: str = Field(
        default="INFO",
        description="Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )
    log_file: Path = Field(
        default=Path("logs/soap-test-util.log"),
        description="Log file path"
    )
    redact_secrets: bool = Field(
        default=False,
        description="Mask password, token and secret values in logs"
    )

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level.

        Args:
            v: Log level string

        Returns:
            Validated log level (uppercase)

        Raises:
            ValueError: If log level is not valid
        """
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(valid_levels)}"
            )
        return v_upper


class Config(BaseModel):
    """Root configuration model.

    Attributes:
        soap: SOAP endpoint configuration
        transport: HTTP/HTTPS transport configuration
        logging: Logging configuration

    Example:
        >>> config = Config(
        ...     soap=SoapConfig(endpoint="http://localhost:8080/soap",
        ...                     schema="http://example.com/users")
        ... )
        >>> config.transport.timeout
        30
    """

    soap: SoapConfig
    transport: TransportConfig = TransportConfig()
    logging: LoggingConfig = LoggingConfig()
