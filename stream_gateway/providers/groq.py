# Groq OpenAI-compatible chat completions over server-sent events
# usage rides on the final chunk, under x_groq.usage (or a top-level usage on newer deployments)

from typing import Any, AsyncIterator, Dict, Optional
from .base import HttpStreamingAdapter, StreamEvent, TextChunk, UpstreamProviderError, UsageReport


def _usage_total(part: Dict[str, Any]) -> Optional[int]:
    for usage in ((part.get("x_groq") or {}).get("usage"), part.get("usage")):
        if isinstance(usage, dict) and usage.get("total_tokens") is not None:
            return int(usage["total_tokens"])
    return None


class GroqAdapter(HttpStreamingAdapter):
    name = "groq"

    def _url(self, model: str) -> str:
        return f"{self._base_url}/openai/v1/chat/completions"

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self._api_key}"}

    def _payload(self, query: str, model: str) -> Dict[str, Any]:
        return {
            "model": model,
            "messages": [{"role": "user", "content": query}],
            "stream": True,
        }

    async def _translate(self, payloads: AsyncIterator[Dict[str, Any]]) -> AsyncIterator[StreamEvent]:
        async for part in payloads:
            if part.get("error"):
                err = part["error"]
                raise UpstreamProviderError(err.get("message") if isinstance(err, dict) else str(err))
            choices = part.get("choices") or []
            if choices:
                content = (choices[0].get("delta") or {}).get("content")
                if content:
                    yield TextChunk(content)
            total = _usage_total(part)
            if total is not None:
                yield UsageReport(total)
