"""shared fixtures: an in-process fake language server and config overrides"""

import asyncio
from typing import Any, Dict, List

import pytest

from lsppp.lsp.json_value import encode
from lsppp.lsp.protocol import JSONRPCProtocol
from lsppp.utils import config_utils


def frame(message: Dict[str, Any]) -> bytes:
    body = encode(message).encode("utf-8")
    return f"Content-Length: {len(body)}\r\n\r\n".encode() + body


class FakeServer:
    """Stands in for the server process behind ProcessTransport.

    Everything the client writes is decoded into ``received``. Replies are
    pushed back through ``on_stdout`` exactly as the real reader task would.
    Methods listed in ``responses`` are answered automatically on the next
    event loop iteration.
    """

    def __init__(self, command, on_stdout, on_exit=None, cwd=None):
        self.command = command
        self.on_stdout = on_stdout
        self.on_exit = on_exit
        self.cwd = cwd
        self.protocol = JSONRPCProtocol()
        self.received: List[Dict[str, Any]] = []
        self.responses: Dict[str, Any] = {}
        self.started = False
        self.stopped = False

    async def start(self):
        self.started = True

    def send(self, data: bytes):
        for message in self.protocol.feed(data):
            self.received.append(message)
            method = message.get("method")
            if "id" in message and method in self.responses:
                asyncio.get_running_loop().call_soon(self.reply, message["id"], self.responses[method])

    async def drain(self):
        pass

    async def stop(self):
        self.stopped = True

    # ═══════════════════════════════════════════════════════════════════
    # server -> client
    # ═══════════════════════════════════════════════════════════════════

    def reply(self, request_id, result=None):
        self.on_stdout(frame({"jsonrpc": "2.0", "id": request_id, "result": result}))

    def notify(self, method: str, params: Any):
        self.on_stdout(frame({"jsonrpc": "2.0", "method": method, "params": params}))

    def request(self, request_id, method: str, params: Any):
        self.on_stdout(frame({"jsonrpc": "2.0", "id": request_id, "method": method, "params": params}))

    # ═══════════════════════════════════════════════════════════════════
    # inspection
    # ═══════════════════════════════════════════════════════════════════

    @property
    def methods(self) -> List[str]:
        return [message.get("method") for message in self.received]

    def last(self, method: str) -> Dict[str, Any]:
        for message in reversed(self.received):
            if message.get("method") == method:
                return message
        raise AssertionError(f"{method} was never sent")


@pytest.fixture
def servers():
    """every FakeServer created by the factory, in order"""
    return []


@pytest.fixture
def server_factory(servers):
    """transport factory producing FakeServer instances"""
    def factory(command, on_stdout, on_exit=None, cwd=None):
        server = FakeServer(command, on_stdout, on_exit, cwd)
        servers.append(server)
        return server
    return factory


@pytest.fixture(autouse=True)
def clean_config():
    """tests start from the built-in defaults"""
    for section in config_utils.global_config.sections():
        config_utils.global_config.remove_section(section)
    yield config_utils.global_config
    for section in config_utils.global_config.sections():
        config_utils.global_config.remove_section(section)
