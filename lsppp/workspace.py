"""Workspace - the shared headless editor and its LSP client.

The MCP tools all act on one Workspace so that buffers, the completion
overlay and the language server survive between tool calls. Tool calls are
serialized with an asyncio.Lock: an action is issued, then the call waits
(bounded by [client] request_timeout) for the server output that resolves
it, so the tool can report the resulting screen state.
"""

import asyncio
from typing import Optional

from lsppp.client import LSPClient
from lsppp.host import MemoryEditor
from lsppp.lsp.session import PendingRequest
from lsppp.lsp.transport import ProcessTransport
from lsppp.utils.config_utils import get_config_float
from lsppp.utils.logging_utils import Logger, logging_func
from lsppp.utils.singleton_utils import SingletonInstance


class Workspace(SingletonInstance):
    """One editor, one client, one language server."""

    def __init__(
        self,
        root_dir: Optional[str] = None,
        transport_factory=ProcessTransport,
        width: int = 80,
        height: int = 24,
    ):
        self.editor = MemoryEditor(width, height)
        self.client = LSPClient(self.editor, transport_factory, root_dir)
        self.client.install()
        self._request_lock = asyncio.Lock()
        self.logger = Logger.instance()

    @property
    def request_timeout(self) -> float:
        return get_config_float("client", "request_timeout", 30.0)

    async def settle(self, pending: Optional[PendingRequest]) -> bool:
        """wait for a request's response; False if superseded, cancelled or timed out"""
        if pending is None:
            return False
        answered = await pending.wait(self.request_timeout)
        if not answered:
            self.logger.warning(f"{pending.method} (id {pending.id}) not answered: {pending.state}")
        return answered

    async def settle_outstanding(self) -> bool:
        """wait for whatever request the last editor action left pending"""
        pending = self.client.session.pending
        if pending is None or pending.done:
            return True
        return await self.settle(pending)

    async def _settle_autostart(self):
        task = self.client.start_task
        if task is None:
            return
        self.client.start_task = None
        await self.settle(await task)

    # ═══════════════════════════════════════════════════════════════════
    # operations used by the MCP tools
    # ═══════════════════════════════════════════════════════════════════

    @logging_func("start language server")
    async def start(self) -> str:
        async with self._request_lock:
            await self.settle(await self.client.start_server())
            return self.editor.status

    @logging_func("stop language server")
    async def stop(self) -> str:
        async with self._request_lock:
            await self.client.stop_server()
            return self.editor.status

    async def open_file(self, path: str) -> str:
        async with self._request_lock:
            buf = self.editor.open_file(path)
            await self._settle_autostart()
            return f"{buf.path} ({buf.filetype or 'plain'}, {len(buf.lines)} lines)"

    async def run(self, action) -> str:
        """run a synchronous editor action, then wait for its response

        Returns:
            the rendered screen
        """
        async with self._request_lock:
            pending = action()
            if isinstance(pending, PendingRequest):
                await self.settle(pending)
            else:
                await self.settle_outstanding()
            await self._settle_autostart()
            return self.editor.render()
