"""Shared fixtures: a scripted in-process gateway and test configuration."""
from typing import Any

import pytest
import structlog

from arduino_netwatch.config import Config, DiscoveryConfig, GatewayConfig
from arduino_netwatch.gateway.base_gateway import BaseCallGateway

# Route structlog through stdlib logging so pytest captures it and stdout stays clean
structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.processors.KeyValueRenderer(key_order=["event"]),
    ],
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=False,
)

NETINFO_RESULT = {
    "deviceinfo": {"eth0": {}},
    "arptable": [
        {"Device": "eth0", "IP address": "10.0.0.5", "Mask": "255.255.255.0", "HW address": "aa:bb:cc:dd:ee:ff"},
    ],
}


class ScriptedGateway(BaseCallGateway):
    """
    Gateway whose raw responses are scripted per operation name.
    A scripted value may be a response dict, an exception to raise, or an async callable.
    """

    def __init__(self, config: Config, responses: dict[str, Any] | None = None):
        super().__init__(config)
        self.responses: dict[str, Any] = dict(responses or {})
        self.requests: list[dict[str, Any]] = []
        self.closed = False

    async def _send_request_raw(self, request_payload: dict[str, Any]) -> Any:
        self.requests.append(request_payload)
        scripted = self.responses[request_payload["method"]]
        if isinstance(scripted, BaseException):
            raise scripted
        if callable(scripted):
            return await scripted(request_payload)
        if isinstance(scripted, dict):
            return {"jsonrpc": "2.0", "id": request_payload["id"], **scripted}
        return scripted

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def app_config():
    return Config(
        discovery=DiscoveryConfig(poll_interval_seconds=3600),
        gateway=GatewayConfig(enable_circuit_breaker=False),
    )

@pytest.fixture
def scripted_gateway(app_config):
    return ScriptedGateway(app_config, {"netinfo": {"result": NETINFO_RESULT}})
