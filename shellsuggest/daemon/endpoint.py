"""The daemon endpoint: one Unix socket file on disk.

The socket file is the only process-wide state shellsuggest has. One daemon
owns it while running: it prepares the path, binds, restricts permissions and
removes the file on shutdown. Everyone else only observes it, except for
`stop`, which deletes it as a best-effort signal (the daemon watches for that).
"""

import enum
import os
import socket
from pathlib import Path
from typing import Optional, Tuple, Union


class EndpointStatus(enum.Enum):
    NOT_RUNNING = "not running"
    STALE = "stale"
    RUNNING = "running"


class Endpoint:
    """Filesystem-addressable local channel used by daemon and clients."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"Endpoint({str(self.path)!r})"

    def exists(self) -> bool:
        # lexists: a dangling symlink still counts as an artifact to clean up
        return os.path.lexists(self.path)

    def identity(self) -> Optional[Tuple[int, int]]:
        """(device, inode) of the artifact, or None if absent."""
        try:
            st = os.lstat(self.path)
        except OSError:
            return None
        return (st.st_dev, st.st_ino)

    def prepare(self) -> None:
        """Create the parent directory and clear any stale artifact."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.remove()

    def secure(self) -> None:
        """Restrict the socket to its owner."""
        os.chmod(self.path, 0o600)

    def remove(self) -> bool:
        """Unlink the artifact. Returns True if something was removed."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        return True

    def connectable(self, timeout: float = 1.0) -> bool:
        """True if a connection to the socket succeeds right now."""
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        sock.settimeout(timeout)
        try:
            sock.connect(str(self.path))
        except OSError:
            return False
        finally:
            sock.close()
        return True

    def probe(self, timeout: float = 1.0) -> EndpointStatus:
        """
        Infer daemon liveness from the artifact and a connection attempt.

        Never modifies the filesystem.
        """
        if not self.exists():
            return EndpointStatus.NOT_RUNNING
        if self.connectable(timeout):
            return EndpointStatus.RUNNING
        return EndpointStatus.STALE
