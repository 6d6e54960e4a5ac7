"""Suggestion provider interface.

The daemon knows nothing about command grammars or ranking. It hands the
buffer and cursor to a provider and relays whatever ordered sequence comes
back. Real engines implement SuggestionProvider and are named in the config
(see shellsuggest.providers.load_provider).

Contract for implementations:
- provide() must not block indefinitely
- malformed or unrecognized input returns an empty sequence, not an error
- if the provider caches internally it must tolerate concurrent calls, since
  the daemon serves sessions in parallel worker threads
"""

from abc import ABC, abstractmethod
from typing import Iterable, Sequence

from shellsuggest.daemon.protocol import Suggestion


class SuggestionProvider(ABC):
    """Maps (buffer, cursor) to an ordered sequence of suggestions."""

    name = "base"

    @abstractmethod
    def provide(self, buffer: str, cursor: int) -> Sequence[Suggestion]:
        """Return completion candidates in display order."""


class EmptyProvider(SuggestionProvider):
    """Default provider: never suggests anything."""

    name = "empty"

    def provide(self, buffer: str, cursor: int) -> Sequence[Suggestion]:
        return ()


class StaticProvider(SuggestionProvider):
    """Returns the same fixed list for every request."""

    name = "static"

    def __init__(self, suggestions: Iterable[Suggestion]):
        self.suggestions = tuple(suggestions)

    def provide(self, buffer: str, cursor: int) -> Sequence[Suggestion]:
        return self.suggestions
