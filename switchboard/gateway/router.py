"""Model-name routing.

Resolution order for a model id:
  1. Cached result for the lower-cased id
  2. "name/rest" where name is a registered provider
  3. First adapter (in registration order) whose prefixes claim the id
  4. The configured fallback provider, if any
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from switchboard.gateway.errors import InvalidArgument, ModelNotFoundError
from switchboard.providers.base import BaseVendorAdapter

logger = logging.getLogger(__name__)


class ProviderRouter:
    """Resolves model ids to adapters. Immutable after construction apart from the cache."""

    def __init__(self, adapters: Sequence[BaseVendorAdapter], *, fallback: str | None = None):
        if not adapters:
            raise InvalidArgument("At least one provider must be configured")

        self._adapters = tuple(adapters)
        self._by_name: dict[str, BaseVendorAdapter] = {}
        for adapter in self._adapters:
            key = adapter.name.lower()
            if key in self._by_name:
                raise InvalidArgument(f"Duplicate provider name: {adapter.name}")
            self._by_name[key] = adapter

        self._fallback: BaseVendorAdapter | None = None
        if fallback:
            self._fallback = self._by_name.get(fallback.lower())
            if self._fallback is None:
                raise InvalidArgument(f"Fallback provider '{fallback}' is not configured")

        # Unlocked; concurrent misses store the same adapter
        self._cache: dict[str, BaseVendorAdapter] = {}

    @property
    def adapters(self) -> tuple[BaseVendorAdapter, ...]:
        return self._adapters

    @property
    def fallback(self) -> BaseVendorAdapter | None:
        return self._fallback

    def names(self) -> list[str]:
        return [a.name for a in self._adapters]

    def get(self, name: str) -> BaseVendorAdapter | None:
        return self._by_name.get(name.lower())

    def prefix_table(self) -> dict[str, tuple[str, ...]]:
        """Provider name -> claimed prefixes, in routing order."""
        return {a.name: a.model_prefixes for a in self._adapters}

    def resolve(self, model: str) -> BaseVendorAdapter:
        if not model or not model.strip():
            raise InvalidArgument("Model name is required")

        key = model.lower()
        adapter = self._cache.get(key)
        if adapter is not None:
            return adapter

        adapter = self._match(model)
        if adapter is None:
            raise ModelNotFoundError(model)

        self._cache[key] = adapter
        return adapter

    def _match(self, model: str) -> BaseVendorAdapter | None:
        if "/" in model:
            explicit = self._by_name.get(model.split("/", 1)[0].lower())
            if explicit is not None:
                logger.debug("Model %s routed to %s by explicit prefix", model, explicit.name)
                return explicit

        for adapter in self._adapters:
            if adapter.supports_model(model):
                logger.debug("Model %s routed to %s by prefix match", model, adapter.name)
                return adapter

        if self._fallback is not None:
            logger.info("No provider claims model %s, using fallback %s", model, self._fallback.name)
        return self._fallback

    def clear_cache(self) -> None:
        self._cache.clear()
