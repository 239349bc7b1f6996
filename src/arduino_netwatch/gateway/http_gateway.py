"""
Gateway implementation using JSON-RPC over HTTP/HTTPS.
"""
import json
from typing import Any

import aiohttp
import structlog

from ..config import Config
from .base_gateway import BaseCallGateway
from .exceptions import GatewayTimeoutError, TransportError

logger = structlog.get_logger(__name__)

class HTTPCallGateway(BaseCallGateway):
    """
    Gateway that POSTs JSON-RPC requests to the board's endpoint.
    A session passed in is shared and left open; a session created here is closed by `close()`.
    """

    def __init__(self, config: Config, aiohttp_session: aiohttp.ClientSession | None = None):
        super().__init__(config)
        self._session = aiohttp_session
        self._owns_session = aiohttp_session is None
        self.endpoint = str(self.gateway_config.endpoint)
        self.logger = logger.bind(endpoint=self.endpoint, transport="http")

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self.logger.debug("Creating aiohttp session.")
            ssl_context = None
            if self.endpoint.startswith("https") and not self.gateway_config.ssl_verify:
                self.logger.warning("SSL verification is DISABLED for the gateway.")
                ssl_context = False # Tells aiohttp to skip verification

            connector = aiohttp.TCPConnector(
                limit=self.gateway_config.connection_pool_total_limit,
                limit_per_host=self.gateway_config.connection_pool_per_host_limit,
                ssl=ssl_context,
            )
            self._session = aiohttp.ClientSession(connector=connector)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
            self.logger.debug("aiohttp session closed.")
        self._session = None

    async def _send_request_raw(self, request_payload: dict[str, Any]) -> Any:
        session = await self._get_session()
        from .. import __version__

        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": f"ArduinoNetwatch/{__version__} ({self.config.service_name})",
        }
        request_timeout_seconds = self.gateway_config.request_timeout_seconds
        timeout = aiohttp.ClientTimeout(total=request_timeout_seconds, connect=self.gateway_config.connect_timeout_seconds)

        self.logger.debug("Sending HTTP JSONRPC request", method=request_payload.get("method"))
        try:
            async with session.post(self.endpoint, json=request_payload, headers=headers, timeout=timeout) as response:
                try:
                    response_text = await response.text()
                except UnicodeDecodeError as e:
                    self.logger.error("Failed to decode response body", status=response.status, error=str(e))
                    raise TransportError(f"undecodable response from {self.endpoint}: {e}") from e
                self.logger.debug("Received HTTP response", status=response.status, content_length=len(response_text))

                if response.status >= 300:
                    self.logger.error("HTTP error status received", status=response.status, reason=response.reason, response_body=response_text[:500])
                    raise TransportError(f"HTTP error {response.status} {response.reason} from {self.endpoint}")

                try:
                    return json.loads(response_text)
                except json.JSONDecodeError as e:
                    self.logger.error("Failed to decode JSON response", error=str(e), response_text=response_text[:500])
                    raise TransportError(f"undecodable response from {self.endpoint}: {e}") from e

        except aiohttp.ClientConnectorError as e:
            self.logger.error("Client connector error", error_os_error=e.os_error, error_str=str(e))
            raise TransportError(f"connection failed to {self.endpoint}: {e.os_error or str(e)}") from e
        except TimeoutError as e: # aiohttp raises asyncio.TimeoutError, an alias of TimeoutError
            self.logger.error("Request timed out", timeout_total=request_timeout_seconds)
            raise GatewayTimeoutError(f"request to {self.endpoint} timed out after {request_timeout_seconds}s") from e
        except aiohttp.ClientError as e:
            self.logger.error("AIOHTTP client error", error_type=type(e).__name__, error_message=str(e))
            raise TransportError(f"HTTP client error for {self.endpoint}: {e}") from e
