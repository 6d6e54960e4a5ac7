"""Exception hierarchy for shellsuggest.

Every error raised on purpose by the package derives from ShellSuggestError,
and most also derive from the closest built-in so callers that only know
about ConnectionError / ValueError / OSError still catch them.
"""


class ShellSuggestError(Exception):
    """Base class for all shellsuggest errors."""


class DaemonNotRunningError(ShellSuggestError, ConnectionError):
    """The endpoint is absent or refuses connections."""

    def __init__(self, socket_path, reason: str = ""):
        self.socket_path = socket_path
        self.reason = reason
        message = f"daemon not running (socket: {socket_path})"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ProtocolDecodeError(ShellSuggestError, ValueError):
    """A protocol line could not be decoded."""


class BindError(ShellSuggestError, OSError):
    """The daemon could not acquire its listening endpoint."""


class SessionError(ShellSuggestError):
    """Read or write failure inside a single daemon session."""


class DaemonResponseError(ShellSuggestError):
    """The daemon answered a request with an error response."""


class ProviderLoadError(ShellSuggestError):
    """A configured suggestion provider could not be imported or built."""
