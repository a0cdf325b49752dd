"""Default configuration values.

This module defines the default configuration values used when no configuration
file is provided or when configuration values are not specified.
"""

from typing import Any

# SOAP namespaces recognized for envelope and payload construction
SOAP_ENCODING_NS = "http://schemas.xmlsoap.org/soap/encoding/"
SOAP_ENVELOPE_NS = "http://schemas.xmlsoap.org/soap/envelope/"
XSD_NS = "http://www.w3.org/2001/XMLSchema"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"

# Default configuration dictionary
# The soap section has no defaults: endpoint and schema must be provided
DEFAULT_CONFIG: dict[str, Any] = {
    "transport": {
        # Verify TLS certificates by default for security
        "verify_tls": True,
        # Request timeout: 30 seconds
        "timeout": 30,
    },
    "logging": {
        "level": "INFO",
        "log_file": "logs/soap-test-util.log",
        # Credentials in header blocks are logged unless the user opts in
        "redact_secrets": False,
    },
}

# Default configuration file path
DEFAULT_CONFIG_PATH = "config/config.json"
