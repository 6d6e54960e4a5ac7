"""Async Unix socket server for the shellsuggest daemon.

This module implements the long-running daemon process that:
1. Binds one Unix socket (the endpoint) and accepts connections continuously
2. Serves each connection as an independent one-shot session:
   read one request line, ask the suggestion provider, write one response line
3. Shuts down cooperatively on SIGTERM/SIGINT, idle timeout, or when the
   endpoint file is removed out from under it (that is what `stop` does)

Usage:
    python -m shellsuggest.daemon.server [--socket PATH] [--idle-timeout SECONDS]

    Or use the CLI:
    shellsuggest daemon
"""

import asyncio
import logging
import os
import signal
import sys
import time
from pathlib import Path
from typing import Optional, Set

from shellsuggest.core.configs import DaemonSettings, get_daemon_settings
from shellsuggest.daemon.endpoint import Endpoint, EndpointStatus
from shellsuggest.daemon.protocol import (
    MAX_LINE_BYTES,
    PROTOCOL_VERSION,
    CompletionRequest,
    CompletionResponse,
    ErrorResponse,
    Response,
    Suggestion,
    deserialize_request,
    serialize_response,
)
from shellsuggest.errors import BindError, ProtocolDecodeError, SessionError
from shellsuggest.providers import SuggestionProvider, load_provider

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Rejected sessions still consume their request line before the reply
REJECT_READ_TIMEOUT = 1.0


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the daemon process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )


class CompletionDaemon:
    """
    Async Unix socket server for completion sessions.

    Handles concurrent client connections using asyncio.
    Each session is processed independently; a failure in one session is
    logged and answered (when possible) but never reaches the accept loop.
    """

    def __init__(
        self,
        provider: SuggestionProvider,
        settings: Optional[DaemonSettings] = None,
        socket_path: Optional[Path] = None,
    ):
        """
        Initialize daemon server.

        Args:
            provider: Suggestion provider consulted once per session
            settings: Daemon settings (defaults from configuration)
            socket_path: Overrides settings.socket_path
        """
        self.settings = settings or get_daemon_settings()
        self.endpoint = Endpoint(socket_path or self.settings.socket_path)
        self.provider = provider

        self.server: Optional[asyncio.AbstractServer] = None
        self.last_request_time: float = time.time()
        self.active_sessions: int = 0
        self.sessions_served: int = 0
        self._session_tasks: Set[asyncio.Task] = set()
        self._watchers: Set[asyncio.Task] = set()
        self._endpoint_identity = None
        self._shutdown_event = asyncio.Event()
        self._ready_event = asyncio.Event()

    @property
    def socket_path(self) -> Path:
        return self.endpoint.path

    async def start(self, install_signal_handlers: bool = True) -> None:
        """
        Bind the endpoint and serve until shutdown.

        Raises:
            BindError: If the endpoint is live or cannot be bound
        """
        await self._bind()
        logger.info(f"Daemon listening on {self.socket_path}")

        loop = asyncio.get_running_loop()
        if install_signal_handlers:
            for sig in (signal.SIGTERM, signal.SIGINT):
                loop.add_signal_handler(sig, self._signal_handler)

        self._watch(self._endpoint_watcher())
        if self.settings.idle_timeout > 0:
            self._watch(self._idle_watcher())

        self._ready_event.set()
        try:
            # Serve until shutdown
            async with self.server:
                await self._shutdown_event.wait()
                self.server.close()
                await self._drain()
        finally:
            if install_signal_handlers:
                for sig in (signal.SIGTERM, signal.SIGINT):
                    loop.remove_signal_handler(sig)
            await self._cleanup()

    async def wait_ready(self) -> None:
        """Block until the endpoint is bound and accepting."""
        await self._ready_event.wait()

    def request_shutdown(self) -> None:
        """Ask the serving loop to stop. Safe to call more than once."""
        if not self._shutdown_event.is_set():
            self._shutdown_event.set()

    async def _bind(self) -> None:
        if self.endpoint.probe() is EndpointStatus.RUNNING:
            raise BindError(f"Endpoint {self.socket_path} is already in use by a live daemon")

        try:
            # Clean up stale socket
            self.endpoint.prepare()
            self.server = await asyncio.start_unix_server(
                self._handle_client,
                path=str(self.socket_path),
                limit=MAX_LINE_BYTES,
            )
            self.endpoint.secure()
        except OSError as e:
            if self.server is not None:
                self.server.close()
                self.server = None
            raise BindError(f"Cannot bind {self.socket_path}: {e}") from e

        self._endpoint_identity = self.endpoint.identity()

    def _watch(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._watchers.add(task)
        task.add_done_callback(self._watchers.discard)

    async def _handle_client(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        """Handle a single client connection (one session)."""
        task = asyncio.current_task()
        if task is not None:
            self._session_tasks.add(task)
            task.add_done_callback(self._session_tasks.discard)

        if self.active_sessions >= self.settings.max_sessions:
            logger.warning(
                f"Rejecting session: {self.active_sessions} active "
                f"(max {self.settings.max_sessions})"
            )
            await self._reject(
                reader,
                writer,
                ErrorResponse(
                    f"daemon busy: {self.settings.max_sessions} concurrent sessions"
                ),
            )
            return

        self.active_sessions += 1
        try:
            response = await self._run_session(reader)
            if response is not None:
                await self._write(writer, response)
            self.sessions_served += 1
        except SessionError as e:
            logger.warning(f"Session failed: {e}")
        except asyncio.CancelledError:
            logger.debug("Session cancelled during shutdown")
            raise
        except Exception as e:
            logger.exception(f"Unexpected error handling session: {e}")
        finally:
            self.active_sessions -= 1
            await self._close(writer)

    async def _run_session(self, reader: asyncio.StreamReader) -> Optional[Response]:
        """
        Read one request and compute its response.

        Read and compute share one deadline of session_timeout seconds.
        Returns None when the peer closed without sending anything.
        """
        loop = asyncio.get_running_loop()
        timeout = self.settings.session_timeout or None
        deadline = loop.time() + timeout if timeout else None

        def remaining() -> Optional[float]:
            return None if deadline is None else max(0.0, deadline - loop.time())

        try:
            line = await asyncio.wait_for(reader.readline(), remaining())
        except asyncio.TimeoutError:
            raise SessionError(f"No request received within {timeout:.1f}s")
        except ValueError:
            # StreamReader raises ValueError when the line exceeds its limit
            return ErrorResponse(f"Request exceeds {MAX_LINE_BYTES} bytes")
        except (ConnectionError, OSError) as e:
            raise SessionError(f"Read failed: {e}") from e

        if not line:
            logger.debug("Peer closed without a request")
            return None

        self.last_request_time = time.time()

        try:
            request = deserialize_request(line)
        except ProtocolDecodeError as e:
            logger.info(f"Rejected request: {e}")
            return ErrorResponse(str(e))

        if request.protocol_version != PROTOCOL_VERSION:
            logger.warning(
                f"Protocol version mismatch: got {request.protocol_version}, "
                f"expected {PROTOCOL_VERSION}"
            )

        try:
            return await asyncio.wait_for(self._complete(request), remaining())
        except asyncio.TimeoutError:
            logger.warning(f"Provider did not answer within {timeout:.1f}s")
            return ErrorResponse(f"timed out after {timeout:.1f}s")

    async def _complete(self, request: CompletionRequest) -> Response:
        """Delegate to the provider off the event loop."""
        logger.debug(f"Completing {request.buffer!r} at {request.cursor}")
        try:
            suggestions = await asyncio.to_thread(
                self.provider.provide, request.buffer, request.cursor
            )
            response = CompletionResponse.of(self._coerce(s) for s in suggestions or ())
        except Exception as e:
            logger.exception(f"Provider {type(self.provider).__name__} failed: {e}")
            return ErrorResponse(f"provider error: {e}")

        logger.debug(f"Returning {len(response.suggestions)} suggestions")
        return response

    @staticmethod
    def _coerce(item) -> Suggestion:
        # Providers may hand back plain dicts or (text, description) pairs
        if isinstance(item, Suggestion):
            return item
        if isinstance(item, dict):
            return Suggestion(str(item["text"]), str(item.get("description") or ""))
        if isinstance(item, (tuple, list)):
            text, *rest = item
            return Suggestion(str(text), str(rest[0]) if rest else "")
        return Suggestion(str(item))

    async def _write(self, writer: asyncio.StreamWriter, response: Response) -> None:
        try:
            writer.write(serialize_response(response))
            await writer.drain()
        except (ConnectionError, OSError) as e:
            raise SessionError(f"Write failed: {e}") from e

    async def _reject(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        response: Response,
    ) -> None:
        """Consume the request line, answer with response, close."""
        try:
            await asyncio.wait_for(reader.readline(), REJECT_READ_TIMEOUT)
        except (asyncio.TimeoutError, ValueError, ConnectionError, OSError):
            pass
        try:
            await self._write(writer, response)
        except SessionError as e:
            logger.debug(f"Could not deliver reply: {e}")
        finally:
            await self._close(writer)

    @staticmethod
    async def _close(writer: asyncio.StreamWriter) -> None:
        writer.close()
        try:
            await writer.wait_closed()
        except (ConnectionError, OSError):
            pass

    async def _drain(self) -> None:
        """Give in-flight sessions drain_timeout seconds, then cancel them.

        A drain_timeout of 0 cancels them at once.
        """
        pending = {t for t in self._session_tasks if not t.done()}
        if not pending:
            return

        logger.info(f"Draining {len(pending)} in-flight session(s)...")
        _, still_running = await asyncio.wait(
            pending, timeout=self.settings.drain_timeout
        )
        for task in still_running:
            task.cancel()
        if still_running:
            logger.warning(f"Cancelled {len(still_running)} session(s) after drain timeout")
            await asyncio.gather(*still_running, return_exceptions=True)

    async def _endpoint_watcher(self) -> None:
        """Shut down when the socket file is removed or replaced."""
        while not self._shutdown_event.is_set():
            await asyncio.sleep(self.settings.watch_interval)
            if self.endpoint.identity() != self._endpoint_identity:
                logger.info(f"Endpoint {self.socket_path} was removed, shutting down")
                self.request_shutdown()
                break

    async def _idle_watcher(self) -> None:
        """Watch for idle timeout and shutdown if exceeded."""
        interval = min(60.0, self.settings.idle_timeout)
        while not self._shutdown_event.is_set():
            await asyncio.sleep(interval)

            idle_time = time.time() - self.last_request_time
            if idle_time > self.settings.idle_timeout and self.active_sessions == 0:
                logger.info(
                    f"Idle timeout reached ({idle_time:.0f}s > "
                    f"{self.settings.idle_timeout:.0f}s), shutting down"
                )
                self.request_shutdown()
                break

    def _signal_handler(self) -> None:
        """Handle SIGTERM/SIGINT for graceful shutdown."""
        logger.info("Received shutdown signal")
        self.request_shutdown()

    async def _cleanup(self) -> None:
        """Cleanup on shutdown."""
        logger.info("Cleaning up...")

        for task in list(self._watchers):
            task.cancel()
        if self._watchers:
            await asyncio.gather(*self._watchers, return_exceptions=True)

        if self.server:
            self.server.close()
            await self.server.wait_closed()

        # Only remove the socket if it is still the one we bound
        if self._endpoint_identity is not None and (
            self.endpoint.identity() == self._endpoint_identity
        ):
            self.endpoint.remove()

        logger.info(f"Daemon stopped ({self.sessions_served} sessions served)")


def _daemonize(log_path: Path) -> None:
    """Double-fork to background and redirect stdio to the log file."""
    pid = os.fork()
    if pid > 0:
        # Parent exits
        os._exit(0)

    os.setsid()

    pid = os.fork()
    if pid > 0:
        os._exit(0)

    devnull = os.open(os.devnull, os.O_RDONLY)
    os.dup2(devnull, sys.stdin.fileno())
    os.close(devnull)

    log_path.parent.mkdir(parents=True, exist_ok=True)
    log_fd = os.open(str(log_path), os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o600)
    os.dup2(log_fd, sys.stdout.fileno())
    os.dup2(log_fd, sys.stderr.fileno())
    os.close(log_fd)


def run_daemon(
    settings: Optional[DaemonSettings] = None,
    provider: Optional[SuggestionProvider] = None,
    daemonize: bool = False,
) -> None:
    """
    Run the daemon server in the foreground (or background with daemonize).

    Args:
        settings: Daemon settings (default: loaded from configuration)
        provider: Suggestion provider (default: settings.provider via load_provider)
        daemonize: Fork to background (Unix only)

    Raises:
        BindError: If the endpoint cannot be acquired
        ProviderLoadError: If the configured provider cannot be loaded
    """
    settings = settings or get_daemon_settings()
    provider = provider or load_provider(settings.provider)

    if daemonize:
        _daemonize(settings.log_path)

    configure_logging(settings.log_level)

    server = CompletionDaemon(provider=provider, settings=settings)
    asyncio.run(server.start())


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="shellsuggest daemon server")
    parser.add_argument(
        "--socket",
        help="Path to Unix socket",
    )
    parser.add_argument(
        "--idle-timeout",
        type=float,
        default=None,
        help="Shutdown after this many seconds idle (0 = never)",
    )
    parser.add_argument(
        "--daemonize",
        action="store_true",
        help="Fork to background",
    )

    args = parser.parse_args()

    settings = get_daemon_settings(socket_path=Path(args.socket) if args.socket else None)
    if args.idle_timeout is not None:
        settings.idle_timeout = args.idle_timeout

    try:
        run_daemon(settings=settings, daemonize=args.daemonize)
    except BindError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
