"""LLM provider adapters.

Three streaming implementations of ILLMProvider:
    - OpenAILLMProvider    - gpt-4o-mini (also OpenAI-compatible APIs)
    - AnthropicLLMProvider - Claude Sonnet
    - OllamaLLMProvider    - local models via an Ollama server

container.py picks the first one whose credentials are configured.
"""

from profmatch.providers.llm.anthropic_provider import AnthropicLLMProvider
from profmatch.providers.llm.ollama_provider import OllamaLLMProvider
from profmatch.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["OpenAILLMProvider", "AnthropicLLMProvider", "OllamaLLMProvider"]
