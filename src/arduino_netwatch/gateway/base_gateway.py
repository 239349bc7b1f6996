"""
Base external call gateway.
"""
import abc
import uuid
from collections.abc import Mapping
from typing import Any

import structlog

from ..config import Config, GatewayConfig
from ..utils.resilience import CircuitBreaker, CircuitBreakerOpenError
from .exceptions import (
    EmptyResponseError,
    RemoteApplicationError,
    TransportError,
)


def generate_jsonrpc_request(method: str, params: dict[str, Any] | None = None, request_id: str | int | None = None) -> dict[str, Any]:
    """Generates a JSONRPC 2.0 request dictionary."""
    if request_id is None:
        request_id = str(uuid.uuid4())
    return {
        "jsonrpc": "2.0",
        "method": method,
        "params": params if params is not None else {},
        "id": request_id,
    }

class BaseCallGateway(abc.ABC):
    """
    Abstract gateway that performs one named remote operation on the board and
    normalizes the outcome: the result payload is returned, every failure is raised
    as a GatewayError subclass.

    Transports implement `_send_request_raw`. No retries happen at this layer.
    """

    def __init__(self, config: Config):
        self.config = config
        self.gateway_config: GatewayConfig = config.gateway
        self.logger = structlog.get_logger(__name__).bind(gateway=self.__class__.__name__)

        if self.gateway_config.enable_circuit_breaker:
            self._circuit_breaker: CircuitBreaker | None = CircuitBreaker(
                failure_threshold=self.gateway_config.cb_failure_threshold,
                recovery_timeout_seconds=self.gateway_config.cb_recovery_timeout_seconds,
                half_open_max_successes=self.gateway_config.cb_half_open_max_successes,
                name=f"CB-{self.__class__.__name__}",
            )
        else:
            self._circuit_breaker = None

    @property
    def circuit_breaker(self) -> CircuitBreaker | None:
        return self._circuit_breaker

    @abc.abstractmethod
    async def _send_request_raw(self, request_payload: dict[str, Any]) -> Any:
        """
        Sends a JSONRPC request payload and returns the decoded response.
        Implementations raise TransportError (or GatewayTimeoutError) when the board
        does not answer.
        """
        pass

    async def close(self) -> None:
        """Releases transport resources. Nothing to release by default."""
        pass

    async def invoke(self, operation_name: str, arguments: dict[str, Any] | None = None) -> Any:
        """
        Invokes `operation_name` on the board and returns its result payload.

        Raises:
            RemoteApplicationError: the board reported an error value.
            EmptyResponseError: the board answered with neither result nor error.
            TransportError: the board did not answer.
        """
        if not operation_name:
            raise ValueError("operation_name must be a non-empty string")

        request_payload = generate_jsonrpc_request(operation_name, arguments or {})
        log = self.logger.bind(operation=operation_name, request_id=request_payload["id"])
        log.debug("Invoking remote operation.")

        try:
            if self._circuit_breaker:
                response = await self._circuit_breaker.call(self._send_request_raw, request_payload)
            else:
                response = await self._send_request_raw(request_payload)
        except CircuitBreakerOpenError as cboe:
            log.warning("Circuit breaker is OPEN. Call rejected.", remaining_time=cboe.remaining_time)
            raise TransportError(f"device unavailable, retry in {cboe.remaining_time:.1f}s", operation=operation_name) from cboe
        except TransportError as e:
            if e.operation is None:
                e.operation = operation_name
            log.warning("Remote operation failed at transport level.", error=str(e), error_type=type(e).__name__)
            raise
        except (OSError, TimeoutError) as e:
            log.warning("Remote operation failed with an unwrapped transport error.", error=str(e), error_type=type(e).__name__)
            raise TransportError(e, operation=operation_name) from e

        return self._normalize_response(operation_name, request_payload, response, log)

    def _normalize_response(self, operation_name: str, request_payload: dict[str, Any], response: Any, log: Any) -> Any:
        if not isinstance(response, Mapping):
            log.warning("Response is not a JSON object.", response_snippet=str(response)[:200])
            raise EmptyResponseError(operation=operation_name)

        if "id" in response and response["id"] != request_payload["id"]:
            log.warning("JSONRPC response ID mismatch", expected_id=request_payload["id"], received_id=response["id"])

        result = response.get("result")
        if result is not None:
            return result

        error = response.get("error")
        if error is not None:
            log.warning("Remote operation returned an error.", remote_error=error)
            raise RemoteApplicationError(error, operation=operation_name)

        log.warning("Response carried neither result nor error.", response_snippet=str(response)[:200])
        raise EmptyResponseError(operation=operation_name)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
