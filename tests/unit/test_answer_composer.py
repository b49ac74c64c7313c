"""Unit tests for AnswerComposer: precondition, prompt, retries, cleanup."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from docqa.services.answer_composer import (
    SYSTEM_PROMPT,
    AnswerComposer,
    build_context,
    strip_reasoning,
)
from docqa.services.retriever import Retriever
from docqa.utils.errors import (
    BadRequestError,
    GenerationFailedError,
    LLMError,
    NoDocumentsError,
)
from tests.conftest import make_retrieved

_CONTEXT = [
    make_retrieved("Refunds are accepted within 30 days.", 0.9, sequence_id=0),
    make_retrieved("Refunds go to the original card.", 0.7, sequence_id=1),
]


@pytest.fixture
def mock_retriever() -> Retriever:
    mock = MagicMock(spec=Retriever)
    mock.retrieve = AsyncMock(return_value=list(_CONTEXT))
    return mock


@pytest.fixture
def composer_factory(mock_llm_provider, mock_retriever, mock_file_registry):
    mock_file_registry.count_by_owner.return_value = 1

    def _factory(**kwargs) -> AnswerComposer:
        kwargs.setdefault("retry_backoff", 0)
        return AnswerComposer(
            llm=mock_llm_provider,
            retriever=mock_retriever,
            file_registry=mock_file_registry,
            **kwargs,
        )

    return _factory


# ---------------------------------------------------------------------------
# Reasoning removal
# ---------------------------------------------------------------------------


class TestStripReasoning:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Plain answer.", "Plain answer."),
            ("<think>let me see</think>\n30 days.", "30 days."),
            ("<THINK>a</THINK>one <think>b</think>two", "one two"),
            ("dropped opener</think> 30 days.", "30 days."),
            ("30 days. <think>and then", "30 days."),
            ("<think>multi\nline\nreasoning</think>\n\nAnswer", "Answer"),
            ("  padded  ", "padded"),
        ],
    )
    def test_cases(self, raw: str, expected: str) -> None:
        assert strip_reasoning(raw) == expected

    def test_reasoning_only_is_empty(self) -> None:
        assert strip_reasoning("<think>nothing else</think>") == ""


class TestPrompt:
    def test_context_joined_in_order(self) -> None:
        assert build_context(_CONTEXT) == (
            "Refunds are accepted within 30 days.\n\nRefunds go to the original card."
        )

    def test_user_prompt_layout(self, composer_factory) -> None:
        prompt = composer_factory().build_prompt("How long?", _CONTEXT)

        assert prompt == (
            "<context>\n"
            "Refunds are accepted within 30 days.\n\nRefunds go to the original card.\n"
            "</context>\n\n"
            "Question: How long?"
        )

    def test_empty_context_still_renders(self, composer_factory) -> None:
        assert composer_factory().build_prompt("q", []) == "<context>\n\n</context>\n\nQuestion: q"

    def test_custom_separator(self, composer_factory) -> None:
        prompt = composer_factory(context_separator="\n---\n").build_prompt("q", _CONTEXT)
        assert "30 days.\n---\nRefunds go" in prompt


# ---------------------------------------------------------------------------
# answer()
# ---------------------------------------------------------------------------


class TestAnswer:
    @pytest.mark.asyncio
    async def test_returns_answer_and_exact_context(self, composer_factory, mock_llm_provider) -> None:
        result = await composer_factory().answer("How long do refunds take?", "alice")

        assert result.answer == "The refund window is 30 days."
        assert result.context == _CONTEXT
        kwargs = mock_llm_provider.complete.await_args.kwargs
        assert kwargs["system_prompt"] == SYSTEM_PROMPT
        assert kwargs["user_prompt"].endswith("Question: How long do refunds take?")
        assert kwargs["temperature"] == 0.0

    @pytest.mark.asyncio
    async def test_retrieves_with_configured_top_k(self, composer_factory, mock_retriever) -> None:
        await composer_factory(top_k=6).answer("q", "alice")
        mock_retriever.retrieve.assert_awaited_once_with("q", "alice", top_k=6)

    @pytest.mark.asyncio
    async def test_no_documents_short_circuits(
        self, composer_factory, mock_file_registry, mock_retriever, mock_llm_provider
    ) -> None:
        composer = composer_factory()
        mock_file_registry.count_by_owner.return_value = 0

        with pytest.raises(NoDocumentsError):
            await composer.answer("q", "alice")
        mock_retriever.retrieve.assert_not_awaited()
        mock_llm_provider.complete.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("question", "owner"), [(None, "alice"), ("", "alice"), ("q", None), ("q", " ")])
    async def test_missing_fields(self, composer_factory, question, owner) -> None:
        with pytest.raises(BadRequestError):
            await composer_factory().answer(question, owner)

    @pytest.mark.asyncio
    async def test_reasoning_removed_from_answer(self, composer_factory, mock_llm_provider) -> None:
        mock_llm_provider.complete.return_value = "<think>check context</think>\n30 days."
        result = await composer_factory().answer("q", "alice")
        assert result.answer == "30 days."

    @pytest.mark.asyncio
    async def test_empty_retrieval_still_calls_model(
        self, composer_factory, mock_retriever, mock_llm_provider
    ) -> None:
        mock_retriever.retrieve.return_value = []
        result = await composer_factory().answer("q", "alice")

        assert result.context == []
        mock_llm_provider.complete.assert_awaited_once()


class TestRetries:
    @pytest.mark.asyncio
    async def test_recovers_after_transient_failure(self, composer_factory, mock_llm_provider) -> None:
        mock_llm_provider.complete.side_effect = [LLMError("overloaded"), "Second try."]

        result = await composer_factory(max_retries=3).answer("q", "alice")

        assert result.answer == "Second try."
        assert mock_llm_provider.complete.await_count == 2

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_generation_failed(self, composer_factory, mock_llm_provider) -> None:
        mock_llm_provider.complete.side_effect = LLMError("down")

        with pytest.raises(GenerationFailedError) as exc_info:
            await composer_factory(max_retries=3).answer("q", "alice")

        assert mock_llm_provider.complete.await_count == 3
        assert exc_info.value.provider_name == "mock-llm"

    @pytest.mark.asyncio
    async def test_timeout_counts_as_failed_attempt(self, composer_factory, mock_llm_provider) -> None:
        async def _slow(**kwargs) -> str:
            await asyncio.sleep(5)
            return "too late"

        mock_llm_provider.complete.side_effect = _slow

        with pytest.raises(GenerationFailedError, match="timed out"):
            await composer_factory(max_retries=2, timeout_seconds=0.01).answer("q", "alice")
        assert mock_llm_provider.complete.await_count == 2

    @pytest.mark.asyncio
    async def test_reasoning_only_output_is_retried(self, composer_factory, mock_llm_provider) -> None:
        mock_llm_provider.complete.side_effect = ["<think>hmm</think>", "Real answer."]

        result = await composer_factory().answer("q", "alice")

        assert result.answer == "Real answer."

    @pytest.mark.asyncio
    async def test_backoff_grows_linearly(self, composer_factory, mock_llm_provider, monkeypatch) -> None:
        sleeps: list[float] = []

        async def _fake_sleep(seconds: float) -> None:
            sleeps.append(seconds)

        monkeypatch.setattr("docqa.services.answer_composer.asyncio.sleep", _fake_sleep)
        mock_llm_provider.complete.side_effect = LLMError("down")

        with pytest.raises(GenerationFailedError):
            await composer_factory(max_retries=3, retry_backoff=0.5).answer("q", "alice")

        assert sleeps == [0.5, 1.0]

    def test_max_retries_must_be_positive(self, composer_factory) -> None:
        with pytest.raises(ValueError):
            composer_factory(max_retries=0)
