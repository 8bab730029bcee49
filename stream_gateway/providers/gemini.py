# Gemini streamGenerateContent with alt=sse
# every chunk repeats usageMetadata; the running total is reported once, after the last chunk

from typing import Any, AsyncIterator, Dict, Optional
from .base import HttpStreamingAdapter, StreamEvent, TextChunk, UpstreamProviderError, UsageReport


class GeminiAdapter(HttpStreamingAdapter):
    name = "gemini"

    def _url(self, model: str) -> str:
        return f"{self._base_url}/v1beta/models/{model}:streamGenerateContent?alt=sse"

    def _headers(self) -> Dict[str, str]:
        return {"x-goog-api-key": self._api_key}

    def _payload(self, query: str, model: str) -> Dict[str, Any]:
        return {"contents": [{"role": "user", "parts": [{"text": query}]}]}

    async def _translate(self, payloads: AsyncIterator[Dict[str, Any]]) -> AsyncIterator[StreamEvent]:
        total: Optional[int] = None
        async for chunk in payloads:
            if chunk.get("error"):
                err = chunk["error"]
                raise UpstreamProviderError(err.get("message") if isinstance(err, dict) else str(err))
            candidates = chunk.get("candidates") or []
            if candidates:
                # only the first candidate is streamed to the client
                parts = (candidates[0].get("content") or {}).get("parts") or []
                text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))
                if text:
                    yield TextChunk(text)
            usage = chunk.get("usageMetadata") or {}
            if usage.get("totalTokenCount") is not None:
                total = int(usage["totalTokenCount"])
        if total is not None:
            yield UsageReport(total)
