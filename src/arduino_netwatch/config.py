"""Configuration management for Arduino Netwatch."""

import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class DiscoveryConfig(BaseModel): # Nested under Config (BaseSettings)
    """Configuration for the periodic device discovery cycle."""

    poll_interval_seconds: float = Field(default=15.0, gt=0, le=3600, description="Period of the discovery timer in seconds.")
    netinfo_method: str = Field(default="netinfo", min_length=1, description="Remote operation returning the device-info and ARP tables.")
    iwinfo_method: str = Field(default="iwinfo", min_length=1, description="Remote operation returning the WIFI status line.")


class GatewayConfig(BaseModel):
    """Configuration for the external call gateway (JSON-RPC over HTTP)."""

    endpoint: HttpUrl = Field(default="http://arduino.local/rpc", validate_default=True, description="JSON-RPC endpoint of the board.")
    request_timeout_seconds: float = Field(default=10.0, gt=0, description="Total timeout for a single remote call.")
    connect_timeout_seconds: float = Field(default=5.0, gt=0, description="Timeout for establishing the connection to the board.")
    connection_pool_total_limit: int = Field(default=10, ge=1, description="Total connection pool limit for the aiohttp session.")
    connection_pool_per_host_limit: int = Field(default=4, ge=1, description="Per-host connection pool limit for the aiohttp session.")
    ssl_verify: bool = Field(default=True, description="Verify TLS certificates when the endpoint is https.")
    enable_circuit_breaker: bool = Field(default=True, description="Stop calling an unresponsive board for a while after repeated transport failures.")
    cb_failure_threshold: int = Field(default=5, ge=1, description="Consecutive transport failures that open the circuit.")
    cb_recovery_timeout_seconds: float = Field(default=60.0, gt=0, description="Seconds the circuit stays open before a trial call is allowed.")
    cb_half_open_max_successes: int = Field(default=1, ge=1, description="Successful trial calls needed to close the circuit again.")


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format ('json' or 'console')")
    file: Optional[Path] = Field(default=None, description="Log file path")


class Config(BaseSettings):
    """Main configuration. Loads from environment variables prefixed with ARDUINO_NETWATCH_."""

    model_config = SettingsConfigDict(
        env_prefix='ARDUINO_NETWATCH_',
        env_nested_delimiter='__', # e.g., ARDUINO_NETWATCH_DISCOVERY__POLL_INTERVAL_SECONDS
        extra='ignore',
        env_file='.env',
        env_file_encoding='utf-8'
    )

    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    service_name: str = Field(default="ArduinoService", description="Name used in log records and the User-Agent header.")

    @classmethod
    def from_file(cls, file_path: Path) -> "Config":
        """Create configuration strictly from a JSON file.
        Environment variables are not layered on top of the file contents.
        """
        with open(file_path) as f:
            config_data = json.load(f)
        return cls.model_validate(config_data)
