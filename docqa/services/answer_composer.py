"""Grounded answer generation over an owner's retrieved chunks.

Data flow for one question:

  1. PRECONDITION -- the owner must have at least one registered file,
                     otherwise :class:`NoDocumentsError` is raised before
                     any embedding or LLM call.
  2. RETRIEVE     -- the :class:`Retriever` returns the owner's top-k chunks.
  3. PROMPT       -- chunks are joined by blank lines inside a
                     ``<context>`` block, followed by the question.
  4. GENERATE     -- the LLM is called under a per-attempt timeout and
                     retried with linear backoff.
  5. CLEAN        -- ``<think>`` reasoning segments some models emit are
                     removed before the answer is returned.
"""

from __future__ import annotations

import asyncio
import re
from typing import TYPE_CHECKING

import structlog

from docqa.models.rag import QueryAnswer, RetrievedChunk
from docqa.utils.errors import (
    BadRequestError,
    GenerationFailedError,
    LLMError,
    NoDocumentsError,
)

if TYPE_CHECKING:
    from docqa.interfaces.file_registry import IFileRegistry
    from docqa.interfaces.llm_provider import ILLMProvider
    from docqa.services.retriever import Retriever

logger = structlog.get_logger(logger_name=__name__)

SYSTEM_PROMPT = (
    "You are an assistant that answers questions about the user's own uploaded "
    "documents.\n\n"
    "Guidelines:\n"
    "- Use ONLY the information inside the <context> block to answer.\n"
    "- If the context does not contain the answer, say that the documents do not "
    "cover it. Do not draw on outside knowledge.\n"
    "- Answer in the same language as the context.\n"
    "- Be concise."
)

USER_PROMPT_TEMPLATE = "<context>\n{context}\n</context>\n\nQuestion: {input}"

_THINK_BLOCK = re.compile(r"<think>.*?</think>", re.IGNORECASE | re.DOTALL)
# A close tag with no opener: the host dropped the opening tag.
_ORPHAN_CLOSE = re.compile(r"^.*?</think>", re.IGNORECASE | re.DOTALL)
# An opener with no close: output was cut off mid-reasoning.
_UNTERMINATED_OPEN = re.compile(r"<think>.*\Z", re.IGNORECASE | re.DOTALL)


def strip_reasoning(text: str) -> str:
    """Remove ``<think>`` segments from model output and trim the rest."""
    cleaned = _THINK_BLOCK.sub("", text)
    cleaned = _ORPHAN_CLOSE.sub("", cleaned, count=1)
    cleaned = _UNTERMINATED_OPEN.sub("", cleaned, count=1)
    return cleaned.strip()


def build_context(chunks: list[RetrievedChunk], separator: str = "\n\n") -> str:
    """Join chunk contents in retrieval order."""
    return separator.join(r.chunk.content for r in chunks)


class AnswerComposer:
    """Answers a question from the asking owner's documents only.

    Parameters
    ----------
    llm:
        Generation provider.
    retriever:
        Owner-scoped retriever.
    file_registry:
        Consulted for the "has uploaded anything" precondition.
    top_k:
        Chunks retrieved per question.
    timeout_seconds:
        Per-attempt limit on the LLM call.
    max_retries:
        Total attempts before giving up.
    retry_backoff:
        Base seconds slept between attempts, multiplied by the attempt number.
    """

    def __init__(
        self,
        llm: ILLMProvider,
        retriever: Retriever,
        file_registry: IFileRegistry,
        top_k: int = 4,
        timeout_seconds: float = 10.0,
        max_retries: int = 3,
        retry_backoff: float = 0.5,
        temperature: float = 0.0,
        max_tokens: int = 2000,
        context_separator: str = "\n\n",
    ) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self._llm = llm
        self._retriever = retriever
        self._file_registry = file_registry
        self._top_k = top_k
        self._timeout = timeout_seconds
        self._max_retries = max_retries
        self._retry_backoff = retry_backoff
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._context_separator = context_separator

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def answer(self, question: str | None, owner_id: str | None) -> QueryAnswer:
        """Return an answer to *question* grounded in *owner_id*'s chunks.

        Raises
        ------
        BadRequestError
            If either field is missing or blank.
        NoDocumentsError
            If the owner has no registered files.
        GenerationFailedError
            If every generation attempt failed or timed out.
        """
        if not question or not question.strip() or not owner_id or not owner_id.strip():
            raise BadRequestError(message="owner_id and question are required")

        if await self._file_registry.count_by_owner(owner_id) == 0:
            raise NoDocumentsError()

        context = await self._retriever.retrieve(question, owner_id, top_k=self._top_k)
        user_prompt = self.build_prompt(question, context)
        answer = await self._generate(user_prompt, owner_id=owner_id)

        logger.info(
            "answer_composed",
            owner_id=owner_id,
            context_chunks=len(context),
            answer_chars=len(answer),
        )
        return QueryAnswer(answer=answer, context=context)

    def build_prompt(self, question: str, context: list[RetrievedChunk]) -> str:
        """Render the user prompt for *question* over *context*."""
        return USER_PROMPT_TEMPLATE.format(
            context=build_context(context, self._context_separator),
            input=question,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _generate(self, user_prompt: str, *, owner_id: str) -> str:
        """Call the LLM with timeout and retries; return the cleaned answer."""
        last_error = ""

        for attempt in range(1, self._max_retries + 1):
            try:
                raw = await asyncio.wait_for(
                    self._llm.complete(
                        system_prompt=SYSTEM_PROMPT,
                        user_prompt=user_prompt,
                        temperature=self._temperature,
                        max_tokens=self._max_tokens,
                    ),
                    timeout=self._timeout,
                )
                answer = strip_reasoning(raw)
                if answer:
                    return answer
                last_error = "empty answer after removing reasoning"
                logger.warning("generation_empty_answer", owner_id=owner_id, attempt=attempt)
            except asyncio.TimeoutError:
                last_error = f"timed out after {self._timeout}s"
                logger.warning(
                    "generation_timeout",
                    owner_id=owner_id,
                    attempt=attempt,
                    timeout_s=self._timeout,
                )
            except LLMError as exc:
                last_error = exc.message
                logger.warning(
                    "generation_attempt_failed",
                    owner_id=owner_id,
                    attempt=attempt,
                    error=str(exc),
                )

            if attempt < self._max_retries and self._retry_backoff > 0:
                await asyncio.sleep(self._retry_backoff * attempt)

        logger.error(
            "generation_failed",
            owner_id=owner_id,
            attempts=self._max_retries,
            error=last_error,
        )
        raise GenerationFailedError(
            message=f"Answer generation failed after {self._max_retries} attempts: {last_error}",
            provider_name=self._llm.get_provider_name(),
        )
