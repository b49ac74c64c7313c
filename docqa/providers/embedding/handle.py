"""Process-wide lazily initialized embedding provider handle.

Ingestion and retrieval must embed with the same model, so both resolve
their provider through one :class:`EmbeddingHandle`.  The provider is built
on first use and reused afterwards.

No lock guards the first build: two concurrent first callers may both run
the factory, and the last assignment wins.  Construction only creates a
client object, so the discarded instance has no side effects.
"""

from __future__ import annotations

from typing import Callable

import structlog

from docqa.interfaces.embedding_provider import IEmbeddingProvider
from docqa.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)


class EmbeddingHandle:
    """Read-through, single-assignment cache around an embedding factory.

    Parameters
    ----------
    factory:
        Zero-argument callable returning a ready provider, or ``None`` when
        no provider is configured.
    """

    def __init__(self, factory: Callable[[], IEmbeddingProvider | None]) -> None:
        self._factory = factory
        self._provider: IEmbeddingProvider | None = None

    def get(self) -> IEmbeddingProvider:
        """Return the cached provider, building it on first call.

        Raises
        ------
        ConfigurationError
            If the factory cannot produce a provider.
        """
        if self._provider is None:
            provider = self._factory()
            if provider is None:
                raise ConfigurationError(
                    message="No embedding provider is configured or reachable",
                )
            self._provider = provider
            logger.info(
                "embedding_provider_initialized",
                provider=provider.get_provider_name(),
                dimension=provider.get_dimension(),
            )
        return self._provider

    @property
    def is_initialized(self) -> bool:
        return self._provider is not None
