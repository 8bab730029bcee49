# OpenAI Responses API over server-sent events
# text arrives as response.output_text.delta, usage as a final distinct response.completed message

from typing import Any, AsyncIterator, Dict
from stream_gateway.core import config
from .base import HttpStreamingAdapter, StreamEvent, TextChunk, UpstreamProviderError, UsageReport


class OpenAIAdapter(HttpStreamingAdapter):
    name = "openai"

    def _url(self, model: str) -> str:
        return f"{self._base_url}/v1/responses"

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self._api_key}"}

    def _payload(self, query: str, model: str) -> Dict[str, Any]:
        return {
            "model": model,
            "input": [{"role": "user", "content": query}],
            "stream": True,
            "max_output_tokens": config.OPENAI_MAX_OUTPUT_TOKENS,
        }

    async def _translate(self, payloads: AsyncIterator[Dict[str, Any]]) -> AsyncIterator[StreamEvent]:
        async for part in payloads:
            kind = part.get("type")
            if kind == "response.output_text.delta":
                delta = part.get("delta")
                if isinstance(delta, str) and delta:
                    yield TextChunk(delta)
            elif kind == "response.completed":
                usage = (part.get("response") or {}).get("usage") or {}
                if "total_tokens" in usage:
                    yield UsageReport(int(usage["total_tokens"]))
            elif kind in ("error", "response.failed"):
                err = part.get("error") or (part.get("response") or {}).get("error") or {}
                raise UpstreamProviderError(part.get("message") or err.get("message") or kind)
