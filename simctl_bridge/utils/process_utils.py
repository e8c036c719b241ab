import asyncio
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union
from simctl_bridge.core.exceptions import ExecutionError
from simctl_bridge.core.logging import logger

PIPE_CHUNK_SIZE = 64 * 1024

class StreamingProcess:
    """
    A spawned process whose stdout/stderr are being piped into files

    Both pipes are read until EOF no matter what happens to the files, so the
    child never blocks on a full pipe. Writing stops when `cancel()` is
    called or a file cannot be opened or written; the rest of that stream is
    discarded.
    """

    def __init__(self, command: List[str], process: asyncio.subprocess.Process):
        self.command = command
        self.process = process
        self.streaming: Optional[asyncio.Future] = None
        self._discarding = False

    @property
    def pid(self) -> int:
        return self.process.pid

    def start_piping(self, stdout_path: Union[str, Path], stderr_path: Union[str, Path]):
        self.streaming = asyncio.gather(
            self._pipe_to_file(self.process.stdout, stdout_path),
            self._pipe_to_file(self.process.stderr, stderr_path)
        )

    def done(self) -> bool:
        """True once both streams reached EOF"""
        return self.streaming.done()

    async def wait(self) -> Optional[int]:
        """Wait for both streams to drain and return the process exit status"""
        await self.streaming
        return await self.process.wait()

    def cancel(self):
        """Stop writing output into the files; the process keeps running and its output is discarded"""
        self._discarding = True

    async def _pipe_to_file(self, reader: asyncio.StreamReader, path: Union[str, Path]):
        error: Optional[OSError] = None
        try:
            sink = await asyncio.to_thread(open, path, 'wb')
        except OSError as e:
            logger.error(f"Cannot open console output file {path}: {e}")
            sink, error = None, e

        try:
            while True:
                chunk = await reader.read(PIPE_CHUNK_SIZE)
                if not chunk:
                    break
                if sink is None:
                    continue
                if self._discarding:
                    sink.close()
                    sink = None
                    continue
                try:
                    await asyncio.to_thread(sink.write, chunk)
                except OSError as e:
                    logger.error(f"Cannot write console output to {path}: {e}")
                    sink.close()
                    sink, error = None, e
        finally:
            if sink is not None:
                sink.close()

        if error is not None:
            raise error

class ProcessUtils:
    """Process invocation helpers"""

    @staticmethod
    async def run_command(command: List[str], env: Optional[Dict[str, str]] = None) -> Tuple[str, str]:
        """Run a command to completion and return its (stdout, stderr)"""
        logger.debug(f"Running: {' '.join(command)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env
            )
        except OSError as e:
            raise ExecutionError(command, None, "", str(e)) from e

        stdout, stderr = await process.communicate()
        stdout_text = stdout.decode('utf-8', errors='replace')
        stderr_text = stderr.decode('utf-8', errors='replace')

        if process.returncode != 0:
            raise ExecutionError(command, process.returncode, stdout_text, stderr_text)

        return stdout_text, stderr_text

    @staticmethod
    async def spawn_streaming(command: List[str], stdout_path: Union[str, Path], stderr_path: Union[str, Path],
                              env: Optional[Dict[str, str]] = None) -> StreamingProcess:
        """Start a command without waiting for it and pipe its output into two files"""
        logger.debug(f"Spawning: {' '.join(command)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env
            )
        except OSError as e:
            raise ExecutionError(command, None, "", str(e)) from e

        handle = StreamingProcess(command, process)
        handle.start_piping(stdout_path, stderr_path)
        return handle
