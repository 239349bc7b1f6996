"""
Exceptions raised by the external call gateway and the discovery cycle.
"""
from typing import Any

NO_RESPONSE_MESSAGE = "No response from device"
TRANSPORT_FAILURE_PREFIX = "Failed to get response from device: "

class GatewayError(Exception):
    """Base class for all gateway errors."""
    pass

class RemoteApplicationError(GatewayError):
    """Raised when the board answered with an error value instead of a result.
    The original value is kept verbatim in `error`."""
    def __init__(self, error: Any, operation: str | None = None):
        if isinstance(error, dict) and "message" in error:
            message = str(error["message"]) # JSON-RPC error object
        else:
            message = error if isinstance(error, str) else str(error)
        super().__init__(message)
        self.error = error
        self.operation = operation

class EmptyResponseError(GatewayError):
    """Raised when the board answered with neither a result nor an error."""
    def __init__(self, message: str = NO_RESPONSE_MESSAGE, operation: str | None = None):
        super().__init__(message)
        self.operation = operation

class TransportError(GatewayError):
    """Raised when the board did not answer at all (unreachable, refused, bad HTTP status)."""
    def __init__(self, reason: Any, operation: str | None = None):
        super().__init__(f"{TRANSPORT_FAILURE_PREFIX}{reason}")
        self.reason = reason
        self.operation = operation

class GatewayTimeoutError(TransportError):
    """Raised when a call to the board times out."""
    pass

class MalformedPayloadError(GatewayError):
    """Discovery payload had an unexpected shape. Logged by the discovery cycle,
    never propagated to snapshot readers."""
    pass
