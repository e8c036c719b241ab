"""
Models for the JSON printed by `xcrun simctl list --json`.

Every read of simctl's listing goes through these models so that a change in
the tool's output shape surfaces here as a ValidationError. Device records
are kept as raw dicts in the listing and only validated as `SimctlDevice`
once a caller has picked out the ones it actually uses.
"""

from typing import Any, Dict, Iterator, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field

from simctl_bridge.models.simulator import SimulatorState

class SimctlRuntime(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    
    identifier: str
    is_available: bool = Field(False, alias="isAvailable")
    name: Optional[str] = None
    version: Optional[str] = None
    build_version: Optional[str] = Field(None, alias="buildversion")

class SimctlDevice(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    
    udid: str = Field(min_length=1)
    name: str
    state: SimulatorState
    is_available: bool = Field(False, alias="isAvailable")
    data_path: Optional[str] = Field(None, alias="dataPath")
    log_path: Optional[str] = Field(None, alias="logPath")

class SimctlDeviceList(BaseModel):
    """Output of `simctl list devices --json`"""
    devices: Dict[str, List[Dict[str, Any]]]
    
    def available_entries(self) -> Iterator[Tuple[str, Dict[str, Any]]]:
        """(runtime identifier, raw device record) for every device flagged available"""
        for runtime_identifier, entries in self.devices.items():
            for entry in entries:
                if entry.get("isAvailable") is True:
                    yield runtime_identifier, entry
    
    def available_udids(self) -> List[str]:
        return [entry.get("udid") for _, entry in self.available_entries()]

class SimctlList(SimctlDeviceList):
    """Output of `simctl list --json`"""
    runtimes: List[SimctlRuntime]
    
    def available_runtimes(self) -> Dict[str, SimctlRuntime]:
        return {
            runtime.identifier: runtime
            for runtime in self.runtimes
            if runtime.is_available
        }
