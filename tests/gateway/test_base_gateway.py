"""
Unit tests for BaseCallGateway outcome normalization.
"""
import pytest

from arduino_netwatch.config import Config, GatewayConfig
from arduino_netwatch.gateway.base_gateway import generate_jsonrpc_request
from arduino_netwatch.gateway.exceptions import (
    EmptyResponseError,
    GatewayError,
    GatewayTimeoutError,
    RemoteApplicationError,
    TransportError,
)
from arduino_netwatch.utils.resilience import CircuitBreakerOpenError, CircuitBreakerState
from conftest import ScriptedGateway


def test_generate_jsonrpc_request_defaults():
    request = generate_jsonrpc_request("netinfo")
    assert request["jsonrpc"] == "2.0"
    assert request["method"] == "netinfo"
    assert request["params"] == {}
    assert isinstance(request["id"], str) and request["id"]


@pytest.mark.asyncio
async def test_invoke_returns_result(app_config):
    gateway = ScriptedGateway(app_config, {"iwinfo": {"result": "AP1 MySSID WPA2 -45 dBm"}})

    result = await gateway.invoke("iwinfo", {})

    assert result == "AP1 MySSID WPA2 -45 dBm"
    request = gateway.requests[0]
    assert request["method"] == "iwinfo"
    assert request["params"] == {}


@pytest.mark.asyncio
async def test_invoke_passes_arguments(app_config):
    gateway = ScriptedGateway(app_config, {"netinfo": {"result": {"deviceinfo": {}}}})
    await gateway.invoke("netinfo", {"verbose": True})
    assert gateway.requests[0]["params"] == {"verbose": True}


@pytest.mark.asyncio
async def test_invoke_empty_string_result_is_returned(app_config):
    gateway = ScriptedGateway(app_config, {"iwinfo": {"result": ""}})
    assert await gateway.invoke("iwinfo") == ""


@pytest.mark.asyncio
async def test_invoke_propagates_remote_error_verbatim(app_config):
    remote_error = {"code": -32000, "message": "netinfo unavailable"}
    gateway = ScriptedGateway(app_config, {"netinfo": {"error": remote_error}})

    with pytest.raises(RemoteApplicationError, match="netinfo unavailable") as exc_info:
        await gateway.invoke("netinfo", {})

    assert exc_info.value.error == remote_error
    assert exc_info.value.operation == "netinfo"


@pytest.mark.asyncio
async def test_invoke_propagates_plain_string_error(app_config):
    gateway = ScriptedGateway(app_config, {"netinfo": {"error": "Permission denied"}})

    with pytest.raises(RemoteApplicationError) as exc_info:
        await gateway.invoke("netinfo", {})

    assert str(exc_info.value) == "Permission denied"
    assert exc_info.value.error == "Permission denied"


@pytest.mark.asyncio
@pytest.mark.parametrize("response", [{}, {"result": None}, None, "garbage", ["not", "an", "object"]])
async def test_invoke_without_result_or_error_synthesizes_empty_response(app_config, response):
    async def reply(_request):
        return response
    gateway = ScriptedGateway(app_config, {"netinfo": reply})

    with pytest.raises(EmptyResponseError, match="No response from device"):
        await gateway.invoke("netinfo", {})


@pytest.mark.asyncio
async def test_invoke_transport_error_carries_prefix(app_config):
    gateway = ScriptedGateway(app_config, {"netinfo": TransportError("connection refused")})

    with pytest.raises(TransportError) as exc_info:
        await gateway.invoke("netinfo", {})

    assert str(exc_info.value) == "Failed to get response from device: connection refused"
    assert exc_info.value.operation == "netinfo"


@pytest.mark.asyncio
async def test_invoke_wraps_unwrapped_os_error(app_config):
    original = ConnectionResetError("reset by peer")
    gateway = ScriptedGateway(app_config, {"netinfo": original})

    with pytest.raises(TransportError, match="^Failed to get response from device: reset by peer") as exc_info:
        await gateway.invoke("netinfo", {})

    assert exc_info.value.__cause__ is original


@pytest.mark.asyncio
async def test_invoke_does_not_retry(app_config):
    gateway = ScriptedGateway(app_config, {"netinfo": GatewayTimeoutError("timed out")})

    with pytest.raises(GatewayTimeoutError):
        await gateway.invoke("netinfo", {})

    assert len(gateway.requests) == 1


@pytest.mark.asyncio
async def test_invoke_rejects_empty_operation_name(app_config):
    gateway = ScriptedGateway(app_config)
    with pytest.raises(ValueError):
        await gateway.invoke("", {})
    assert gateway.requests == []


@pytest.mark.asyncio
async def test_all_failures_share_gateway_error_base(app_config):
    for scripted in ({"error": "x"}, {}, TransportError("down")):
        gateway = ScriptedGateway(app_config, {"netinfo": scripted})
        with pytest.raises(GatewayError):
            await gateway.invoke("netinfo")


@pytest.mark.asyncio
async def test_circuit_breaker_opens_after_repeated_transport_failures():
    config = Config(gateway=GatewayConfig(enable_circuit_breaker=True, cb_failure_threshold=2, cb_recovery_timeout_seconds=60))
    gateway = ScriptedGateway(config, {"netinfo": TransportError("unreachable")})

    for _ in range(2):
        with pytest.raises(TransportError):
            await gateway.invoke("netinfo")
    assert gateway.circuit_breaker.state == CircuitBreakerState.OPEN

    with pytest.raises(TransportError, match="device unavailable") as exc_info:
        await gateway.invoke("netinfo")

    assert isinstance(exc_info.value.__cause__, CircuitBreakerOpenError)
    assert len(gateway.requests) == 2 # Third call never reached the transport


@pytest.mark.asyncio
async def test_remote_errors_do_not_trip_circuit_breaker():
    config = Config(gateway=GatewayConfig(enable_circuit_breaker=True, cb_failure_threshold=1))
    gateway = ScriptedGateway(config, {"netinfo": {"error": "busy"}})

    for _ in range(3):
        with pytest.raises(RemoteApplicationError):
            await gateway.invoke("netinfo")

    assert gateway.circuit_breaker.state == CircuitBreakerState.CLOSED
    assert len(gateway.requests) == 3


@pytest.mark.asyncio
async def test_gateway_async_context_manager_closes(app_config):
    gateway = ScriptedGateway(app_config)
    async with gateway as entered:
        assert entered is gateway
    assert gateway.closed is True
