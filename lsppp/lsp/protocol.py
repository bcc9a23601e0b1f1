"""JSON-RPC protocol handling for LSP communication.

LSP uses JSON-RPC 2.0 over stdio with Content-Length headers:
  Content-Length: <length>\r\n
  \r\n
  <JSON payload>

This module handles buffering and parsing of these messages. A single read
from the server may carry a partial header, a partial body, or several
complete messages; feed() returns every complete one and keeps the rest.
"""

import re
from typing import Optional, Dict, Any, List

from lsppp.lsp import json_value
from lsppp.lsp.json_value import JsonSyntaxError
from lsppp.utils.logging_utils import Logger

# Content-Length must be present; other header lines (Content-Type) are skipped
HEADER_PATTERN = re.compile(
    rb"Content-Length:[ \t]*(\d+)\r\n(?:[^\r\n]+\r\n)*\r\n",
    re.IGNORECASE,
)


class JSONRPCProtocol:
    """Handles JSON-RPC message framing and decoding for LSP."""

    def __init__(self):
        self.buffer = b""

    def feed(self, data: bytes) -> List[Dict[str, Any]]:
        """Feed data and return complete messages.

        Args:
            data: Raw bytes from the language server's stdout

        Returns:
            List of decoded JSON-RPC messages, in arrival order
            (may be empty if incomplete)
        """
        self.buffer += data
        messages = []

        while True:
            body = self._try_extract_body()
            if body is None:
                break
            message = self._decode_body(body)
            if message is not None:
                messages.append(message)

        return messages

    def _try_extract_body(self) -> Optional[bytes]:
        """Slice one complete message body off the buffer.

        Returns:
            Body bytes, or None if no complete message is buffered yet
        """
        match = HEADER_PATTERN.search(self.buffer)
        if match is None:
            return None

        content_length = int(match.group(1))
        content_start = match.end()
        content_end = content_start + content_length

        if len(self.buffer) < content_end:
            # not enough data yet
            return None

        if match.start() > 0:
            Logger.instance().debug(
                f"discarding {match.start()} bytes before Content-Length header"
            )

        body = self.buffer[content_start:content_end]
        self.buffer = self.buffer[content_end:]
        return body

    def _decode_body(self, body: bytes) -> Optional[Dict[str, Any]]:
        """Decode one body; malformed bodies are logged and dropped."""
        text = body.decode("utf-8", errors="replace")
        try:
            message = json_value.decode(text)
        except JsonSyntaxError as e:
            Logger.instance().warning(f"dropping malformed message: {e}")
            return None

        if not isinstance(message, dict):
            Logger.instance().warning(
                f"dropping non-object message ({json_value.type_name(message)})"
            )
            return None
        return message

    def encode(self, message: Dict[str, Any]) -> bytes:
        """Encode a JSON-RPC message with Content-Length header.

        Args:
            message: JSON-RPC message dict

        Returns:
            Encoded bytes ready to send to the server's stdin
        """
        content_bytes = json_value.encode(message).encode("utf-8")
        header = f"Content-Length: {len(content_bytes)}\r\n\r\n"
        return header.encode("ascii") + content_bytes

    def clear(self):
        """Clear the internal buffer."""
        self.buffer = b""
