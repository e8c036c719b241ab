from pydantic import BaseModel, Field
from typing import Dict, List

class InstallRequest(BaseModel):
    path: str

class LaunchRequest(BaseModel):
    bundle_id: str
    stdout_path: str
    stderr_path: str
    args: List[str] = Field(default_factory=list)
    env: Dict[str, str] = Field(default_factory=dict)
    wait_for_debugger: bool = False

class PidResponse(BaseModel):
    success: bool = True
    udid: str
    bundle_id: str
    pid: int

class ValidityResponse(BaseModel):
    success: bool = True
    udid: str
    valid: bool
