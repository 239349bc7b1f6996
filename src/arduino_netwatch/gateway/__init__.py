"""
External call gateway.

Invokes a named remote operation on the board and normalizes its outcome:
a result payload, or one of the GatewayError subclasses.
"""

from .base_gateway import BaseCallGateway, generate_jsonrpc_request
from .exceptions import (
    EmptyResponseError,
    GatewayError,
    GatewayTimeoutError,
    MalformedPayloadError,
    RemoteApplicationError,
    TransportError,
)
from .http_gateway import HTTPCallGateway

__all__ = [
    "BaseCallGateway",
    "EmptyResponseError",
    "GatewayError",
    "GatewayTimeoutError",
    "HTTPCallGateway",
    "MalformedPayloadError",
    "RemoteApplicationError",
    "TransportError",
    "generate_jsonrpc_request",
]
