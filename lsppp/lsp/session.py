"""Protocol session: single-slot request/response correlation.

The session owns everything that must be reset together when the language
server is restarted: the request id counter, the pending request slot, and
the stream buffer of the framer. It never blocks. A request is handed to the
outbound transport and the matching response is delivered later, inline,
from whichever feed() call completes it.

Only one request is tracked at a time. Issuing a new request supersedes the
pending one; a response for a superseded request is ignored. Completion
queries are issued with ``retain=True`` so the slot survives the response
and keeps serving the most recent query while the user is typing.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from lsppp.lsp.json_value import NULL, type_name
from lsppp.lsp.protocol import JSONRPCProtocol
from lsppp.utils.logging_utils import Logger

ResponseHandler = Callable[["Session", Dict[str, Any]], None]
NotificationHandler = Callable[["Session", Any], None]
SendFunc = Callable[[bytes], None]

PENDING = "pending"
RESOLVED = "resolved"
SUPERSEDED = "superseded"
CANCELLED = "cancelled"


@dataclass
class PendingRequest:
    """Handle for the one outstanding request of a session."""

    id: int
    method: str
    handler: ResponseHandler
    retain: bool = False
    state: str = PENDING
    _waiters: List[asyncio.Future] = field(default_factory=list, repr=False)

    @property
    def done(self) -> bool:
        return self.state != PENDING

    def settle(self, state: str):
        """record the outcome and wake anyone awaiting wait()"""
        if self.done:
            return
        self.state = state
        for waiter in self._waiters:
            if not waiter.done():
                waiter.set_result(state == RESOLVED)
        self._waiters.clear()

    async def wait(self, timeout: Optional[float] = None) -> bool:
        """Wait until the request is answered, superseded or cancelled.

        Returns:
            True if the response reached the handler, False otherwise
            (including timeout)
        """
        if self.done:
            return self.state == RESOLVED

        future = asyncio.get_running_loop().create_future()
        self._waiters.append(future)
        try:
            return await asyncio.wait_for(future, timeout=timeout)
        except asyncio.TimeoutError:
            return False
        finally:
            if future in self._waiters:
                self._waiters.remove(future)


class Session:
    """JSON-RPC client session with a single pending-request slot."""

    def __init__(self, send: Optional[SendFunc] = None):
        """initialize session

        Args:
            send: outbound transport; None until a server is attached
        """
        self.protocol = JSONRPCProtocol()
        self.request_id = 0
        self.pending: Optional[PendingRequest] = None
        self.notification_handlers: Dict[str, NotificationHandler] = {}
        self._send: Optional[SendFunc] = send
        self.logger = Logger.instance()

    # ═══════════════════════════════════════════════════════════════════
    # lifecycle
    # ═══════════════════════════════════════════════════════════════════

    @property
    def is_alive(self) -> bool:
        """whether an outbound transport is attached"""
        return self._send is not None

    def attach(self, send: SendFunc):
        """Start a fresh session on a new transport."""
        self._reset()
        self._send = send

    def detach(self):
        """Tear the session down: nothing from the old server may leak into
        the next one."""
        self._reset()
        self._send = None

    def _reset(self):
        self._clear_pending(CANCELLED)
        self.protocol.clear()
        self.request_id = 0

    def _clear_pending(self, state: str):
        if self.pending is not None:
            self.pending.settle(state)
            self.pending = None

    # ═══════════════════════════════════════════════════════════════════
    # outbound
    # ═══════════════════════════════════════════════════════════════════

    def request(
        self,
        method: str,
        params: Any,
        handler: ResponseHandler,
        retain: bool = False,
    ) -> Optional[PendingRequest]:
        """Send a request and install its handler in the pending slot.

        Args:
            method: JSON-RPC method name
            params: request params
            handler: called as handler(session, response) when the answer arrives
            retain: keep the slot after the response is dispatched

        Returns:
            The pending request handle, or None without a transport
        """
        if self._send is None:
            self.logger.debug(f"no server attached, dropping request {method}")
            return None

        request_id = self._next_id()
        if self.pending is not None:
            self.logger.debug(
                f"request {self.pending.id} ({self.pending.method}) superseded by {method}"
            )
            self._clear_pending(SUPERSEDED)

        pending = PendingRequest(id=request_id, method=method, handler=handler, retain=retain)
        self.pending = pending
        self._write({
            "jsonrpc": "2.0",
            "id": request_id,
            "method": method,
            "params": params,
        })
        return pending

    def notify(self, method: str, params: Any) -> bool:
        """Send a notification (no response expected, pending slot untouched).

        Returns:
            False without a transport
        """
        if self._send is None:
            self.logger.debug(f"no server attached, dropping notification {method}")
            return False

        # notifications consume a counter value too, ids stay unique per session
        self._next_id()
        self._write({
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
        })
        return True

    def _next_id(self) -> int:
        request_id = self.request_id
        self.request_id += 1
        return request_id

    def _write(self, message: Dict[str, Any]):
        data = self.protocol.encode(message)
        self.logger.debug(f">>> {message.get('method', 'reply')} ({len(data)} bytes)")
        self._send(data)

    # ═══════════════════════════════════════════════════════════════════
    # inbound
    # ═══════════════════════════════════════════════════════════════════

    def on_notification(self, method: str, handler: NotificationHandler):
        """register handler(session, params) for a server notification"""
        self.notification_handlers[method] = handler

    def remove_notification(self, method: str):
        self.notification_handlers.pop(method, None)

    def feed(self, data: bytes):
        """Push raw server output through the framer and dispatch every
        complete message, in order."""
        for message in self.protocol.feed(data):
            self._dispatch(message)

    def _dispatch(self, message: Dict[str, Any]):
        """handle one decoded JSON-RPC message"""
        if "method" in message:
            self._dispatch_notification(message)
        elif "jsonrpc" in message:
            self._dispatch_response(message)
        else:
            self.logger.debug("ignoring message without jsonrpc marker")

    def _dispatch_response(self, message: Dict[str, Any]):
        pending = self.pending
        response_id = message.get("id")
        if pending is None:
            self.logger.debug(f"response {response_id} with no pending request, ignored")
            return
        if response_id != pending.id:
            self.logger.debug(
                f"stale response {response_id} ignored (pending {pending.id} {pending.method})"
            )
            return

        if "error" in message:
            error = message["error"]
            detail = error.get("message", "Unknown error") if isinstance(error, dict) else error
            self.logger.warning(f"LSP error for {pending.method}: {detail}")

        if not pending.retain:
            self.pending = None
        # waiters resume on the event loop, after the handler below has run
        pending.settle(RESOLVED)

        try:
            pending.handler(self, message)
        except Exception as e:
            self.logger.error(f"response handler for {pending.method} failed: {e}")

    def _dispatch_notification(self, message: Dict[str, Any]):
        method = message.get("method")
        handler = self.notification_handlers.get(method)
        if handler is None:
            self.logger.debug(f"unhandled server message {method}")
            return

        params = message.get("params", NULL)
        try:
            handler(self, params)
        except Exception as e:
            self.logger.error(
                f"notification handler for {method} failed on {type_name(params)} params: {e}"
            )

        # server-to-client requests (e.g. window/workDoneProgress/create) expect a reply
        if "id" in message and self._send is not None:
            self._write({"jsonrpc": "2.0", "id": message["id"], "result": NULL})
