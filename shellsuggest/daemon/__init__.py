"""Daemon architecture for shellsuggest.

This package provides the long-running completion service and the pieces
the shell-side invocation needs to talk to it.

Architecture:
- Endpoint: the Unix socket file, the only process-wide state
- CompletionDaemon: Async Unix socket server, one session per connection
- CompletionClient: Lightweight client, one request/response per invocation
- protocol: JSON-lines request/response codec
"""

from shellsuggest.daemon.client import CompletionClient
from shellsuggest.daemon.endpoint import Endpoint, EndpointStatus
from shellsuggest.daemon.protocol import (
    CompletionRequest,
    CompletionResponse,
    ErrorResponse,
    Suggestion,
    serialize_request,
    deserialize_request,
    serialize_response,
    deserialize_response,
)

__all__ = [
    "CompletionClient",
    "CompletionRequest",
    "CompletionResponse",
    "Endpoint",
    "EndpointStatus",
    "ErrorResponse",
    "Suggestion",
    "serialize_request",
    "deserialize_request",
    "serialize_response",
    "deserialize_response",
]
