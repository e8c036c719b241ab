import asyncio
import os
import re
import time
from typing import Dict, List, Optional, Tuple, Union

from pydantic import ValidationError

from simctl_bridge.config.settings import settings
from simctl_bridge.core.exceptions import ExecutionError, LaunchException, PidNotFoundException
from simctl_bridge.core.logging import logger
from simctl_bridge.models.simctl import SimctlDevice, SimctlDeviceList, SimctlList, SimctlRuntime
from simctl_bridge.models.simulator import Simulator, StdioSinks
from simctl_bridge.utils.process_utils import ProcessUtils, StreamingProcess

RUNTIME_PREFIX = "com.apple.CoreSimulator.SimRuntime."
IOS_RUNTIME_PREFIX = RUNTIME_PREFIX + "iOS"

_RUNTIME_TAIL = re.compile(r'^(.*?)-(.*)$')
_NUMBER_CHUNK = re.compile(r'(\d+)')

def _natural_key(value: str) -> list:
    # Odd positions of the split are always the digit runs
    return [int(part) if i % 2 else part.casefold()
            for i, part in enumerate(_NUMBER_CHUNK.split(value))]

def _elapsed_ms(start: float) -> int:
    return int((time.time() - start) * 1000)

class SimulatorService:
    """Drives `xcrun simctl` for discovery, boot, install and launch"""

    def __init__(self, xcrun: Optional[str] = None, poll_interval: Optional[float] = None,
                 launch_timeout: Optional[float] = None):
        self.xcrun = xcrun or settings.XCRUN_PATH
        self.poll_interval = settings.PID_POLL_INTERVAL if poll_interval is None else poll_interval
        self.launch_timeout = settings.LAUNCH_PID_TIMEOUT if launch_timeout is None else launch_timeout
        self._console_streams: Dict[Tuple[str, str], StreamingProcess] = {}

    def _simctl_command(self, *args: str) -> List[str]:
        return [self.xcrun, 'simctl', *args]

    async def _run_simctl(self, *args: str) -> Tuple[str, str]:
        return await ProcessUtils.run_command(self._simctl_command(*args))

    # Discovery

    async def list_simulators(self) -> List[Simulator]:
        """List available iOS simulators, newest runtime first"""
        try:
            stdout, stderr = await self._run_simctl('list', '--json')
            if stderr:
                logger.error(stderr)

            listing = SimctlList.model_validate_json(stdout)
        except (ExecutionError, ValidationError) as e:
            logger.error(f"Failed to list simulators: {e}")
            return []

        runtimes = listing.available_runtimes()
        simulators = []

        for runtime_identifier, entry in listing.available_entries():
            if not runtime_identifier.startswith(IOS_RUNTIME_PREFIX):
                continue

            try:
                device = SimctlDevice.model_validate(entry)
            except ValidationError as e:
                logger.warning(f"Skipping unreadable simulator {entry.get('udid')} ({runtime_identifier}): {e}")
                continue

            simulators.append(self._to_simulator(device, runtime_identifier, runtimes.get(runtime_identifier)))

        simulators.sort(key=lambda s: _natural_key(s.name))
        simulators.sort(key=lambda s: _natural_key(s.runtime_name), reverse=True)

        logger.info(f"Found {len(simulators)} simulators")
        return simulators

    def _to_simulator(self, device: SimctlDevice, runtime_identifier: str,
                      runtime: Optional[SimctlRuntime]) -> Simulator:
        # A booted device can outlive its runtime, in which case simctl still
        # reports it available but the runtime is missing from the listing
        fallback = runtime_identifier.replace(RUNTIME_PREFIX, '', 1)
        fallback_version = _RUNTIME_TAIL.sub(r'\2', fallback).replace('-', '.')
        fallback_name = _RUNTIME_TAIL.sub(r'\1 \2', fallback).replace('-', '.')

        return Simulator(
            udid=device.udid,
            name=device.name,
            os_version=(runtime and runtime.version) or fallback_version,
            build_version=(runtime and runtime.build_version) or fallback,
            runtime_name=(runtime and runtime.name) or fallback_name,
            state=device.state,
            data_path=device.data_path,
            log_path=device.log_path,
            sdk=settings.SIMULATOR_SDK
        )

    async def is_valid(self, simulator: Union[Simulator, str]) -> bool:
        """Check that the simulator is still present and available"""
        udid = simulator.udid if isinstance(simulator, Simulator) else simulator

        try:
            stdout, stderr = await self._run_simctl('list', 'devices', '--json')
            if stderr:
                logger.error(stderr)

            listing = SimctlDeviceList.model_validate_json(stdout)
        except (ExecutionError, ValidationError) as e:
            logger.error(f"Failed to validate simulator {udid}: {e}")
            return False

        return udid in listing.available_udids()

    # Lifecycle

    async def boot(self, udid: str):
        """Boot the simulator if required and wait until it has finished booting"""
        logger.info(f"Booting simulator (udid: {udid}) if required")
        start = time.time()

        await self._run_simctl('bootstatus', udid, '-b')

        logger.info(f"Booted in {_elapsed_ms(start)} ms")

    async def install(self, udid: str, path: str):
        logger.info(f"Installing app (path: {path}) to simulator (udid: {udid})")
        start = time.time()

        await self._run_simctl('install', udid, str(path))

        logger.info(f"Installed in {_elapsed_ms(start)} ms")

    async def launch(self, udid: str, bundle_id: str, args: Optional[List[str]], env: Optional[Dict[str, str]],
                     stdio: StdioSinks, wait_for_debugger: bool = False) -> int:
        """
        Launch an installed app and return its pid

        Args:
            udid: Simulator to launch on
            bundle_id: Bundle identifier of the app
            args: Extra arguments passed to the app
            env: Environment variables for the app
            stdio: Files receiving the app's console stdout/stderr
            wait_for_debugger: Suspend the app until a debugger attaches

        Returns:
            int: pid of the app process inside the simulator
        """
        logger.info(f"Launching app (id: {bundle_id}) on simulator (udid: {udid})")
        start = time.time()

        await self.start_app(udid, bundle_id, args, env, stdio, wait_for_debugger)

        try:
            pid = await self.wait_for_pid(udid, bundle_id)
        except LaunchException:
            logger.error(f"Launch failed in {_elapsed_ms(start)} ms")
            raise

        logger.info(f"Launched in {_elapsed_ms(start)} ms")
        return pid

    def _launch_command(self, udid: str, bundle_id: str, args: List[str], wait_for_debugger: bool) -> List[str]:
        command = self._simctl_command('launch')
        if wait_for_debugger:
            command.append('--wait-for-debugger')
        command.extend(['--terminate-running-process', '--console-pty', udid, bundle_id])
        command.extend(args)
        return command

    def _launch_env(self, env: Dict[str, str]) -> Dict[str, str]:
        # simctl forwards SIMCTL_CHILD_* variables to the app with the prefix removed
        launch_env = dict(os.environ)
        for key, value in env.items():
            launch_env[f"{settings.SIMCTL_CHILD_ENV_PREFIX}{key}"] = value
        return launch_env

    async def start_app(self, udid: str, bundle_id: str, args: Optional[List[str]], env: Optional[Dict[str, str]],
                        stdio: StdioSinks, wait_for_debugger: bool = False) -> StreamingProcess:
        """Spawn `simctl launch` and start piping the app console into the stdio files"""
        command = self._launch_command(udid, bundle_id, args or [], wait_for_debugger)

        handle = await ProcessUtils.spawn_streaming(
            command, stdio.stdout, stdio.stderr, env=self._launch_env(env or {})
        )

        key = (udid, bundle_id)
        self._console_streams[key] = handle
        handle.streaming.add_done_callback(lambda _: self._forget_console_stream(key, handle))
        return handle

    def _forget_console_stream(self, key: Tuple[str, str], handle: StreamingProcess):
        if not handle.streaming.cancelled() and handle.streaming.exception() is not None:
            logger.error(f"Console streaming for {key[1]} stopped: {handle.streaming.exception()}")
        if self._console_streams.get(key) is handle:
            del self._console_streams[key]

    def console_stream(self, udid: str, bundle_id: str) -> Optional[StreamingProcess]:
        """The live console handle of the last launch of this app, if still streaming"""
        return self._console_streams.get((udid, bundle_id))

    async def wait_for_pid(self, udid: str, bundle_id: str) -> int:
        """Poll for the app pid until the launch timeout runs out"""
        # simctl only prints the pid once the app exits, so ask launchd instead
        start = time.time()
        while time.time() - start < self.launch_timeout:
            try:
                return await self.get_pid_for(udid, bundle_id)
            except (PidNotFoundException, ExecutionError):
                logger.info("Waiting for app to launch")
                await asyncio.sleep(self.poll_interval)

        raise LaunchException("Could not launch and get pid")

    async def get_pid_for(self, udid: str, bundle_id: str) -> int:
        """Find the pid of a running app via launchctl inside the simulator"""
        logger.info(f"Getting pid (bundle id: {bundle_id}) for simulator (udid: {udid})")
        start = time.time()

        stdout, _ = await self._run_simctl('spawn', udid, 'launchctl', 'list')

        pattern = re.compile(rf'^(\d+).+?UIKitApplication:{re.escape(bundle_id)}.*$', re.MULTILINE)
        match = pattern.search(stdout)
        if not match:
            raise PidNotFoundException(udid, bundle_id)

        logger.info(f"Got pid in {_elapsed_ms(start)} ms")
        return int(match.group(1))

# Global simulator service
simulator_service = SimulatorService()
