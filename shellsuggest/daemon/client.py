"""Lightweight client for daemon communication.

This module provides a thin client that connects to the daemon via Unix socket.
It's invoked once per completion attempt, so it keeps imports minimal and
does exactly one exchange: connect, write one line, read one line.

Usage:
    client = CompletionClient(socket_path)
    suggestions = client.request("git comm", 8)
"""

import socket
from pathlib import Path
from typing import Optional, Tuple, Union

from shellsuggest.daemon.endpoint import Endpoint, EndpointStatus
from shellsuggest.daemon.protocol import (
    MAX_LINE_BYTES,
    CompletionRequest,
    ErrorResponse,
    Suggestion,
    deserialize_response,
    serialize_request,
)
from shellsuggest.errors import (
    DaemonNotRunningError,
    DaemonResponseError,
    ProtocolDecodeError,
)

# Responses may carry many suggestions; allow far more than a request line
MAX_RESPONSE_BYTES = 16 * MAX_LINE_BYTES


class CompletionClient:
    """
    Lightweight client for daemon communication.

    Designed for minimal overhead:
    - Uses stdlib socket
    - One request line, one response line
    - No retry: each invocation is an independent exchange
    """

    def __init__(
        self,
        socket_path: Union[str, Path],
        timeout: Optional[float] = None,
    ):
        """
        Initialize client.

        Args:
            socket_path: Path to Unix socket
            timeout: Socket timeout in seconds (None = block)
        """
        self.endpoint = Endpoint(socket_path)
        self.timeout = timeout

    @property
    def socket_path(self) -> Path:
        return self.endpoint.path

    def status(self) -> EndpointStatus:
        """Liveness from the socket file and a connection attempt only."""
        return self.endpoint.probe()

    def stop(self) -> EndpointStatus:
        """
        Best-effort stop: remove the socket file.

        The daemon notices its endpoint is gone and shuts itself down.
        Returns the status observed before removal.
        """
        status = self.endpoint.probe()
        if status is not EndpointStatus.NOT_RUNNING:
            self.endpoint.remove()
        return status

    def request(self, buffer: str, cursor: int) -> Tuple[Suggestion, ...]:
        """
        Ask the daemon for completions.

        Returns:
            Suggestions in display order (possibly empty)

        Raises:
            DaemonNotRunningError: If the socket is absent or refuses connections
            ProtocolDecodeError: If the response line cannot be decoded
            DaemonResponseError: If the daemon answered with an error
            OSError: Other socket errors after connecting
        """
        request = CompletionRequest(buffer=buffer, cursor=cursor)
        line = self._exchange(serialize_request(request))
        response = deserialize_response(line)
        if isinstance(response, ErrorResponse):
            raise DaemonResponseError(response.error)
        return response.suggestions

    def _exchange(self, payload: bytes) -> bytes:
        """Send one line and return the one line that comes back."""
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        sock.settimeout(self.timeout)

        try:
            try:
                sock.connect(str(self.socket_path))
            except (FileNotFoundError, ConnectionRefusedError) as e:
                raise DaemonNotRunningError(self.socket_path, e.strerror or str(e)) from e
            except OSError as e:
                raise DaemonNotRunningError(self.socket_path, str(e)) from e

            sock.sendall(payload)

            with sock.makefile("rb") as stream:
                line = stream.readline(MAX_RESPONSE_BYTES + 1)
        finally:
            sock.close()

        if not line:
            raise ProtocolDecodeError("Empty response: daemon closed the connection")
        if len(line) > MAX_RESPONSE_BYTES or not line.endswith(b"\n"):
            raise ProtocolDecodeError("Truncated response from daemon")
        return line
