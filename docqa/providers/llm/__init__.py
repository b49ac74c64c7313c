"""LLM provider adapters.

Three concrete implementations of ILLMProvider (docqa/interfaces/llm_provider.py):
    - AnthropicLLMProvider -- Claude via the Messages API
    - OpenAILLMProvider    -- gpt-4o-mini, or any OpenAI-compatible host
                              (Groq, TogetherAI) via OPENAI_BASE_URL
    - OllamaLLMProvider    -- a local model, no API key required

At startup, main.py picks the first one with credentials (Anthropic ->
OpenAI -> Ollama) and injects it into the AnswerComposer.
"""

from docqa.providers.llm.anthropic_provider import AnthropicLLMProvider
from docqa.providers.llm.ollama_provider import OllamaLLMProvider
from docqa.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["AnthropicLLMProvider", "OllamaLLMProvider", "OpenAILLMProvider"]
