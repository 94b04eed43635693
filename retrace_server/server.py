"""Threaded line-delimited TCP server in front of a ResolutionService."""

from __future__ import annotations

import logging
import socketserver

from retrace_server.config import ServerConfig
from retrace_server.service import ResolutionService

logger = logging.getLogger(__name__)


class RetraceRequestHandler(socketserver.StreamRequestHandler):
    """Reads newline-delimited requests and writes one response line per request."""

    server: RetraceServer

    def handle(self) -> None:
        max_length = self.server.config.max_line_length
        while True:
            # Room for a full-length line plus CRLF; anything longer is overlong.
            raw = self.rfile.readline(max_length + 2)
            if not raw:
                return

            line = raw.rstrip(b"\r\n")
            if len(line) > max_length or (not raw.endswith(b"\n") and len(raw) > max_length):
                logger.warning(f"Closing {self.client_address}: request line exceeds {max_length} bytes")
                if not raw.endswith(b"\n"):
                    self._discard_line(max_length)
                self._send("ERROR: line too long")
                return

            request = line.decode("utf-8", errors="replace")
            response = self._respond(request)
            if self.server.config.verbose:
                logger.info(f"C: {request}")
                logger.info(f"S: {response}")
            self._send(response)

    def _respond(self, request: str) -> str:
        try:
            return self.server.service.handle_line(request)
        except Exception as e:
            logger.exception(f"Unexpected error handling {request!r}")
            return f"ERROR: {str(e) or type(e).__name__}"

    def _discard_line(self, chunk_size: int) -> None:
        """Consume the rest of an overlong line so the close is clean."""
        while True:
            chunk = self.rfile.readline(chunk_size)
            if not chunk or chunk.endswith(b"\n"):
                return

    def _send(self, response: str) -> None:
        self.wfile.write(response.encode("utf-8") + b"\n")
        self.wfile.flush()


class RetraceServer(socketserver.ThreadingMixIn, socketserver.TCPServer):
    allow_reuse_address = True
    daemon_threads = True

    def __init__(self, config: ServerConfig, service: ResolutionService | None = None) -> None:
        self.config = config
        self.service = service if service is not None else ResolutionService.from_config(config)
        super().__init__((config.host, config.port), RetraceRequestHandler)

    @property
    def address(self) -> tuple[str, int]:
        host, port = self.server_address[:2]
        return host, port
