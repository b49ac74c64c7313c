"""Local embedding provider served by Ollama.

Talks to the OpenAI-compatible ``/v1`` endpoint an Ollama server exposes.
The model comes from ``ollama_embedding_model`` (``nomic-embed-text`` by
default).  Every chunk in the index and every question must be embedded by
the same model, so changing this setting requires re-ingesting all files.

Construction performs no network I/O.  An unreachable server surfaces on the
first :meth:`embed` call as :class:`RAGError`, never while resolving the
provider inside a request handler.
"""

from __future__ import annotations

import openai
import structlog

from docqa.config.settings import Settings
from docqa.interfaces.embedding_provider import IEmbeddingProvider
from docqa.utils.errors import RAGError

logger = structlog.get_logger(logger_name=__name__)

_OLLAMA_BATCH_LIMIT = 512

# Output widths of the embedding models Ollama ships.
_MODEL_DIMENSIONS: dict[str, int] = {
    "nomic-embed-text": 768,
    "mxbai-embed-large": 1024,
    "all-minilm": 384,
    "snowflake-arctic-embed": 1024,
}
_DEFAULT_DIMENSION = 768


class NomicEmbeddingProvider(IEmbeddingProvider):
    """Embeds text through an Ollama server; no API key required."""

    def __init__(self, settings: Settings) -> None:
        self._base_url = settings.ollama_base_url.rstrip("/")
        self._model = settings.ollama_embedding_model
        # Ollama tags such as "nomic-embed-text:latest" share the base width.
        self._dimension = _MODEL_DIMENSIONS.get(self._model.split(":", 1)[0], _DEFAULT_DIMENSION)
        self._client = openai.AsyncOpenAI(
            base_url=f"{self._base_url}/v1",
            api_key="ollama",  # ignored by Ollama, required by the SDK
            max_retries=0,
        )

    async def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        vectors: list[list[float]] = []
        for start in range(0, len(texts), _OLLAMA_BATCH_LIMIT):
            batch = texts[start : start + _OLLAMA_BATCH_LIMIT]
            try:
                response = await self._client.embeddings.create(input=batch, model=self._model)
            except openai.APIConnectionError as exc:
                raise RAGError(
                    message=f"Ollama server at {self._base_url} is unreachable",
                    provider_name=self.get_provider_name(),
                ) from exc
            except openai.APIError as exc:
                raise RAGError(
                    message=f"Ollama embedding error for model {self._model}: {exc}",
                    provider_name=self.get_provider_name(),
                ) from exc
            vectors.extend(item.embedding for item in response.data)
            logger.debug("ollama_embedding_batch", model=self._model, batch_size=len(batch))
        return vectors

    async def embed_single(self, text: str) -> list[float]:
        result = await self.embed([text])
        return result[0]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "nomic_embedding"

    @property
    def model(self) -> str:
        return self._model

    def is_available(self) -> bool:
        """Return ``True`` if an Ollama base URL and model are configured."""
        return bool(self._base_url and self._model)
