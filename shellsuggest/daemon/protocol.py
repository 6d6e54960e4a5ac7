"""JSON-lines protocol for daemon IPC.

One JSON object per line, UTF-8, terminated by a single newline.
Each session carries exactly one request line and one response line.

Request format:
    {
        "buffer": str,      # Raw command-line buffer (default "")
        "cursor": int,      # Cursor offset into buffer (default len(buffer))
        "version": int,     # Protocol version (default 1)
    }

Response format (exactly one of):
    {"suggestions": [{"text": str, "description": str}, ...]}
    {"error": str}

Unknown request fields are ignored so older daemons keep serving newer clients.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Tuple, Union

from shellsuggest.errors import ProtocolDecodeError

PROTOCOL_VERSION = 1
MAX_VERSION = 255

# Upper bound for a single request line (asyncio StreamReader limit)
MAX_LINE_BYTES = 64 * 1024


@dataclass(frozen=True)
class Suggestion:
    """A single completion candidate."""
    text: str
    description: str = ""

    def label(self) -> str:
        """Display form: text, plus ' - description' when there is one."""
        if self.description:
            return f"{self.text} - {self.description}"
        return self.text

    def to_dict(self) -> Dict[str, str]:
        return {"text": self.text, "description": self.description}


@dataclass(frozen=True)
class CompletionRequest:
    buffer: str
    cursor: int
    protocol_version: int = PROTOCOL_VERSION


@dataclass(frozen=True)
class CompletionResponse:
    suggestions: Tuple[Suggestion, ...] = field(default_factory=tuple)

    @classmethod
    def of(cls, suggestions: Iterable[Suggestion]) -> "CompletionResponse":
        return cls(tuple(suggestions))


@dataclass(frozen=True)
class ErrorResponse:
    error: str


Response = Union[CompletionResponse, ErrorResponse]


def _encode_line(payload: Dict[str, Any]) -> bytes:
    return json.dumps(payload, ensure_ascii=False).encode("utf-8") + b"\n"


def _decode_object(data: bytes, what: str) -> Dict[str, Any]:
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ProtocolDecodeError(f"Invalid UTF-8 in {what}: {e}") from e

    text = text.strip()
    if not text:
        raise ProtocolDecodeError(f"Empty {what}")

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise ProtocolDecodeError(f"Invalid JSON in {what}: {e}") from e

    if not isinstance(payload, dict):
        raise ProtocolDecodeError(
            f"Invalid {what}: expected a JSON object, got {type(payload).__name__}"
        )
    return payload


def _non_negative_int(payload: Dict[str, Any], key: str, default: int) -> int:
    value = payload.get(key, default)
    # bool is a subclass of int, but true/false are not valid offsets
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ProtocolDecodeError(
            f"Invalid request: '{key}' must be a non-negative integer, got {value!r}"
        )
    return value


def serialize_request(request: CompletionRequest) -> bytes:
    """
    Serialize request to one newline-terminated line.

    Args:
        request: The completion request

    Returns:
        UTF-8 encoded JSON line
    """
    return _encode_line(
        {
            "buffer": request.buffer,
            "cursor": request.cursor,
            "version": request.protocol_version,
        }
    )


def deserialize_request(data: bytes) -> CompletionRequest:
    """
    Deserialize a request line, applying defaults for missing fields.

    Args:
        data: UTF-8 encoded JSON line (trailing newline optional)

    Returns:
        CompletionRequest

    Raises:
        ProtocolDecodeError: If data is not a valid request object
    """
    payload = _decode_object(data, "request")

    buffer = payload.get("buffer", "")
    if not isinstance(buffer, str):
        raise ProtocolDecodeError(
            f"Invalid request: 'buffer' must be a string, got {type(buffer).__name__}"
        )

    cursor = _non_negative_int(payload, "cursor", len(buffer))
    version = _non_negative_int(payload, "version", PROTOCOL_VERSION)
    if version > MAX_VERSION:
        raise ProtocolDecodeError(
            f"Invalid request: 'version' must fit in one byte (0-{MAX_VERSION}), got {version}"
        )

    return CompletionRequest(buffer=buffer, cursor=cursor, protocol_version=version)


def serialize_response(response: Response) -> bytes:
    """
    Serialize a success or error response to one newline-terminated line.

    Args:
        response: CompletionResponse or ErrorResponse

    Returns:
        UTF-8 encoded JSON line
    """
    if isinstance(response, ErrorResponse):
        return _encode_line({"error": response.error})
    return _encode_line(
        {"suggestions": [suggestion.to_dict() for suggestion in response.suggestions]}
    )


def deserialize_response(data: bytes) -> Response:
    """
    Deserialize a response line.

    Args:
        data: UTF-8 encoded JSON line

    Returns:
        CompletionResponse or ErrorResponse

    Raises:
        ProtocolDecodeError: If data is not a valid response object
    """
    payload = _decode_object(data, "response")

    if "error" in payload:
        error = payload["error"]
        if not isinstance(error, str):
            raise ProtocolDecodeError("Invalid response: 'error' must be a string")
        return ErrorResponse(error=error)

    entries = payload.get("suggestions")
    if not isinstance(entries, list):
        raise ProtocolDecodeError(
            "Invalid response: expected 'suggestions' list or 'error' string"
        )

    suggestions = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict) or not isinstance(entry.get("text"), str):
            raise ProtocolDecodeError(
                f"Invalid response: suggestion #{index} has no string 'text'"
            )
        description = entry.get("description") or ""
        if not isinstance(description, str):
            raise ProtocolDecodeError(
                f"Invalid response: suggestion #{index} has a non-string 'description'"
            )
        suggestions.append(Suggestion(text=entry["text"], description=description))

    return CompletionResponse(tuple(suggestions))
