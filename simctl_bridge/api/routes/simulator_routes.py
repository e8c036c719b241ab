from fastapi import APIRouter, HTTPException
from simctl_bridge.core.exceptions import ExecutionError, LaunchException, PidNotFoundException
from simctl_bridge.core.logging import logger
from simctl_bridge.models.responses import InstallRequest, LaunchRequest, PidResponse, ValidityResponse
from simctl_bridge.models.simulator import StdioSinks
from simctl_bridge.services.simulator_service import simulator_service

router = APIRouter(prefix="/api/simulators", tags=["simulators"])

def _execution_failed(action: str, e: ExecutionError) -> HTTPException:
    logger.error(f"Error {action}: {e}")
    return HTTPException(status_code=500, detail=e.stderr.strip() or str(e))

@router.get("/")
async def list_simulators():
    """List available iOS simulators"""
    simulators = await simulator_service.list_simulators()
    return {
        "success": True,
        "simulators": [simulator.to_dict() for simulator in simulators]
    }

@router.get("/{udid}/valid", response_model=ValidityResponse)
async def validate_simulator(udid: str):
    """Check whether a simulator is present and available"""
    valid = await simulator_service.is_valid(udid)
    return ValidityResponse(udid=udid, valid=valid)

@router.post("/{udid}/boot")
async def boot_simulator(udid: str):
    """Boot a simulator and wait until it is ready"""
    try:
        await simulator_service.boot(udid)
        return {"success": True, "udid": udid}
    except ExecutionError as e:
        raise _execution_failed(f"booting simulator {udid}", e)

@router.post("/{udid}/install")
async def install_app(udid: str, request: InstallRequest):
    """Install an app bundle on a simulator"""
    try:
        await simulator_service.install(udid, request.path)
        return {"success": True, "udid": udid, "path": request.path}
    except ExecutionError as e:
        raise _execution_failed(f"installing {request.path}", e)

@router.post("/{udid}/launch", response_model=PidResponse)
async def launch_app(udid: str, request: LaunchRequest):
    """Launch an installed app and return its pid"""
    try:
        pid = await simulator_service.launch(
            udid,
            request.bundle_id,
            request.args,
            request.env,
            StdioSinks(stdout=request.stdout_path, stderr=request.stderr_path),
            wait_for_debugger=request.wait_for_debugger
        )
        return PidResponse(udid=udid, bundle_id=request.bundle_id, pid=pid)
    except LaunchException as e:
        logger.error(f"Error launching {request.bundle_id}: {e}")
        raise HTTPException(status_code=504, detail=str(e))
    except ExecutionError as e:
        raise _execution_failed(f"launching {request.bundle_id}", e)

@router.get("/{udid}/apps/{bundle_id}/pid", response_model=PidResponse)
async def get_app_pid(udid: str, bundle_id: str):
    """Get the pid of a running app"""
    try:
        pid = await simulator_service.get_pid_for(udid, bundle_id)
        return PidResponse(udid=udid, bundle_id=bundle_id, pid=pid)
    except PidNotFoundException as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ExecutionError as e:
        raise _execution_failed(f"getting pid for {bundle_id}", e)
