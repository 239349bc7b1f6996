from enum import Enum

from pydantic import BaseModel


class BasePydanticModel(BaseModel):
    model_config = {
        "extra": "forbid",
        "populate_by_name": True,
        "use_enum_values": True,
        "frozen": True,
    }

class ServiceState(str, Enum):
    IDLE = "idle"
    POLLING = "polling"
    STOPPED = "stopped"

class ConnectionStatus(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
