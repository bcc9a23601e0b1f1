"""Language server subprocess transport.

Spawns the server with asyncio and forwards its output to callbacks:
stdout chunks go to ``on_stdout`` synchronously (the session decodes and
dispatches inline), stderr lines go to the debug log, and process exit
calls ``on_exit``.
"""

import asyncio
from pathlib import Path
from typing import Callable, List, Optional

from lsppp.utils.logging_utils import Logger

READ_CHUNK = 4096


class ProcessTransport:
    """Owns one language server process."""

    def __init__(
        self,
        command: List[str],
        on_stdout: Callable[[bytes], None],
        on_exit: Optional[Callable[[Optional[int]], None]] = None,
        cwd: Optional[str] = None,
    ):
        """initialize transport

        Args:
            command: server argv, e.g. ["clangd", "--background-index"]
            on_stdout: receives every raw stdout chunk
            on_exit: called with the return code once the process is gone
            cwd: working directory for the server
        """
        self.command = command
        self.on_stdout = on_stdout
        self.on_exit = on_exit
        self.cwd = Path(cwd) if cwd else None
        self.process: Optional[asyncio.subprocess.Process] = None
        self._reader_task: Optional[asyncio.Task] = None
        self._stderr_task: Optional[asyncio.Task] = None
        self._stopping = False
        self.logger = Logger.instance()

    @property
    def is_running(self) -> bool:
        return self.process is not None and self.process.returncode is None

    async def start(self):
        """spawn the server process and start the reader tasks"""
        if self.process is not None:
            return  # already running

        self._stopping = False
        self.process = await asyncio.create_subprocess_exec(
            *self.command,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(self.cwd) if self.cwd else None,
        )
        self.logger.info(f"started {' '.join(self.command)} (pid {self.process.pid})")

        self._reader_task = asyncio.create_task(self._read_stdout())
        self._stderr_task = asyncio.create_task(self._read_stderr())

    def send(self, data: bytes):
        """write bytes to the server's stdin (no-op once the process is gone)"""
        if self.process is None or self.process.stdin is None:
            return
        if self.process.stdin.is_closing():
            return
        self.process.stdin.write(data)

    async def drain(self):
        """flush buffered stdin data"""
        if self.process is not None and self.process.stdin is not None:
            try:
                await self.process.stdin.drain()
            except (ConnectionResetError, BrokenPipeError) as e:
                self.logger.debug(f"stdin closed while draining: {e}")

    async def stop(self):
        """stop the server process gracefully"""
        if self.process is None:
            return

        self._stopping = True
        process = self.process

        for task in (self._reader_task, self._stderr_task):
            if task:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

        if process.returncode is None:
            process.terminate()
            try:
                await asyncio.wait_for(process.wait(), timeout=5)
            except asyncio.TimeoutError:
                process.kill()
                await process.wait()

        self.process = None
        self._reader_task = None
        self._stderr_task = None
        self.logger.info("language server stopped")

    async def _read_stdout(self):
        """background task: read stdout and hand chunks to the session"""
        process = self.process
        try:
            while True:
                data = await process.stdout.read(READ_CHUNK)
                if not data:
                    break
                self.on_stdout(data)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # log error but don't crash
            self.logger.error(f"LSP reader error: {e}")

        returncode = await process.wait()
        self.process = None
        if not self._stopping:
            self.logger.warning(f"language server exited (code {returncode})")
            if self.on_exit is not None:
                self.on_exit(returncode)

    async def _read_stderr(self):
        """background task: log server stderr"""
        process = self.process
        try:
            while True:
                line = await process.stderr.readline()
                if not line:
                    break
                self.logger.debug(f"server stderr: {line.decode('utf-8', errors='replace').rstrip()}")
        except asyncio.CancelledError:
            raise
