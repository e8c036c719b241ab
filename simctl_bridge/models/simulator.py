from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union

class SimulatorState(str, Enum):
    CREATING = "Creating"
    SHUTDOWN = "Shutdown"
    BOOTING = "Booting"
    BOOTED = "Booted"
    SHUTTING_DOWN = "Shutting Down"

@dataclass
class Simulator:
    """Represents an available iOS simulator device"""
    udid: str
    name: str
    os_version: str
    build_version: str
    runtime_name: str
    state: SimulatorState
    data_path: Optional[str] = None
    log_path: Optional[str] = None
    kind: str = "Simulator"
    sdk: str = "iphonesimulator"
    
    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['state'] = self.state.value
        return data

@dataclass
class StdioSinks:
    """Files receiving a launched app's console output"""
    stdout: Union[str, Path]
    stderr: Union[str, Path]
