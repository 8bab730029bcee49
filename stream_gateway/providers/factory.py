from typing import Dict
from stream_gateway.core import config
from stream_gateway.providers.base import StreamingAdapter
from stream_gateway.providers.anthropic import AnthropicAdapter
from stream_gateway.providers.gemini import GeminiAdapter
from stream_gateway.providers.groq import GroqAdapter
from stream_gateway.providers.openai import OpenAIAdapter


def build_adapters() -> Dict[str, StreamingAdapter]:
    """One adapter per catalog provider, keyed by provider name."""
    adapters = [
        OpenAIAdapter(config.OPENAI_API_KEY, base_url=config.OPENAI_BASE_URL),
        GeminiAdapter(config.GEMINI_API_KEY, base_url=config.GEMINI_BASE_URL),
        AnthropicAdapter(config.ANTHROPIC_API_KEY, base_url=config.ANTHROPIC_BASE_URL),
        GroqAdapter(config.GROQ_API_KEY, base_url=config.GROQ_BASE_URL),
    ]
    return {adapter.name: adapter for adapter in adapters}
