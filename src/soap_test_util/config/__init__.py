"""Config module.

This module provides configuration management functionality.
"""

from soap_test_util.config.manager import (
    get_logging_config,
    get_soap_config,
    get_transport_config,
    load_config,
    merge_soap_config,
)
from soap_test_util.config.schema import (
    Config,
    LoggingConfig,
    SoapConfig,
    TransportConfig,
)

__all__ = [
    # Main configuration loading
    "load_config",
    "merge_soap_config",
    # Helper functions
    "get_soap_config",
    "get_transport_config",
    "get_logging_config",
    # Configuration models
    "Config",
    "SoapConfig",
    "TransportConfig",
    "LoggingConfig",
]
