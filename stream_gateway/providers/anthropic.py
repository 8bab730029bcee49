# Anthropic Messages API over server-sent events
# usage is split: input tokens on message_start, running output tokens on message_delta;
# the sum is reported once when message_stop arrives

from typing import Any, AsyncIterator, Dict
from stream_gateway.core import config
from .base import HttpStreamingAdapter, StreamEvent, TextChunk, UpstreamProviderError, UsageReport


class AnthropicAdapter(HttpStreamingAdapter):
    name = "claude"

    def _url(self, model: str) -> str:
        return f"{self._base_url}/v1/messages"

    def _headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self._api_key,
            "anthropic-version": config.ANTHROPIC_VERSION,
        }

    def _payload(self, query: str, model: str) -> Dict[str, Any]:
        return {
            "model": model,
            "max_tokens": config.ANTHROPIC_MAX_TOKENS,
            "messages": [{"role": "user", "content": [{"type": "text", "text": query}]}],
            "stream": True,
        }

    async def _translate(self, payloads: AsyncIterator[Dict[str, Any]]) -> AsyncIterator[StreamEvent]:
        input_tokens = 0
        output_tokens = 0
        seen_usage = False
        async for part in payloads:
            kind = part.get("type")
            if kind == "content_block_delta":
                delta = part.get("delta") or {}
                if delta.get("type") == "text_delta" and delta.get("text"):
                    yield TextChunk(delta["text"])
            elif kind == "message_start":
                usage = (part.get("message") or {}).get("usage") or {}
                if "input_tokens" in usage:
                    input_tokens = int(usage["input_tokens"])
                    seen_usage = True
            elif kind == "message_delta":
                usage = part.get("usage") or {}
                if "output_tokens" in usage:
                    output_tokens = int(usage["output_tokens"])
                    seen_usage = True
            elif kind == "message_stop":
                if seen_usage:
                    yield UsageReport(input_tokens + output_tokens)
            elif kind == "error":
                err = part.get("error") or {}
                raise UpstreamProviderError(err.get("message") or err.get("type") or "error event")
