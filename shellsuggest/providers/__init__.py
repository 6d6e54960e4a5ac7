"""Suggestion providers for shellsuggest.

The completion engine is pluggable: configure ``provider = package.module:name``
and the daemon imports it at startup. ``name`` may be a SuggestionProvider
instance, a class, or a zero-argument factory returning one.
"""

import importlib
import logging

from shellsuggest.errors import ProviderLoadError
from shellsuggest.providers.base import EmptyProvider, StaticProvider, SuggestionProvider

logger = logging.getLogger(__name__)

__all__ = ["EmptyProvider", "StaticProvider", "SuggestionProvider", "load_provider"]


def load_provider(spec: str = "") -> SuggestionProvider:
    """
    Resolve a provider from a ``module:attribute`` string.

    Args:
        spec: Import spec; empty means the built-in EmptyProvider

    Returns:
        A ready-to-use provider instance

    Raises:
        ProviderLoadError: If the spec is malformed, the import fails, or the
            target does not produce an object with a callable ``provide``
    """
    spec = (spec or "").strip()
    if not spec:
        return EmptyProvider()

    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        raise ProviderLoadError(
            f"Invalid provider '{spec}': expected 'package.module:attribute'"
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ProviderLoadError(f"Cannot import provider module '{module_name}': {e}") from e

    try:
        target = getattr(module, attr)
    except AttributeError as e:
        raise ProviderLoadError(f"Module '{module_name}' has no attribute '{attr}'") from e

    if isinstance(target, type) or not callable(getattr(target, "provide", None)):
        if not callable(target):
            raise ProviderLoadError(f"Provider '{spec}' is neither a provider nor a factory")
        try:
            provider = target()
        except Exception as e:
            raise ProviderLoadError(f"Provider factory '{spec}' failed: {e}") from e
    else:
        provider = target

    if not callable(getattr(provider, "provide", None)):
        raise ProviderLoadError(f"Provider '{spec}' has no callable 'provide' method")

    logger.info(f"Loaded suggestion provider {spec}")
    return provider
