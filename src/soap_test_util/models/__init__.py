"""Models module."""

from soap_test_util.models.state import (
    ModuleState,
    PayloadMode,
    RequestState,
    ResponseState,
    TransportResponse,
)

__all__ = [
    "ModuleState",
    "PayloadMode",
    "RequestState",
    "ResponseState",
    "TransportResponse",
]
