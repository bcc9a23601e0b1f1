"""LSP protocol layer: JSON engine, framing, session and server transport."""

from lsppp.lsp.json_value import NULL, JsonSyntaxError, JsonTypeError, decode, encode, parse
from lsppp.lsp.protocol import JSONRPCProtocol
from lsppp.lsp.session import PendingRequest, Session
from lsppp.lsp.transport import ProcessTransport

__all__ = [
    "NULL",
    "JsonSyntaxError",
    "JsonTypeError",
    "decode",
    "encode",
    "parse",
    "JSONRPCProtocol",
    "PendingRequest",
    "Session",
    "ProcessTransport",
]
