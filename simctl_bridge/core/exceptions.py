from typing import List, Optional

class SimctlBridgeException(Exception):
    """Base exception for simctl bridge"""
    pass

class ExecutionError(SimctlBridgeException):
    """External command could not be started or exited with a failure status"""
    
    def __init__(self, command: List[str], returncode: Optional[int], stdout: str = "", stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        
        detail = stderr.strip() or stdout.strip() or "no output"
        super().__init__(f"Command '{' '.join(command)}' failed (exit status {returncode}): {detail}")

class PidNotFoundException(SimctlBridgeException):
    """No running process found for the app"""
    
    def __init__(self, udid: str, bundle_id: str):
        self.udid = udid
        self.bundle_id = bundle_id
        super().__init__(f"Could not find pid for {bundle_id} on simulator {udid}")

class LaunchException(SimctlBridgeException):
    """App was spawned but its pid never became available"""
    pass
