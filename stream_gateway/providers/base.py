# provider-agnostic streaming contract
# every adapter turns one upstream streaming call into a finite sequence of StreamEvent values,
# so the normalizer never needs to know which provider it is driving

from __future__ import annotations
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, Optional, Union

import httpx

from stream_gateway.core import config


# raised inside adapters when the upstream reports a failure in-band;
# it never leaves an adapter, it is turned into a StreamError event
class UpstreamProviderError(Exception):
    pass


@dataclass(frozen=True)
class TextChunk:
    text: str


@dataclass(frozen=True)
class UsageReport:
    total_tokens: int


@dataclass(frozen=True)
class StreamError:
    message: str


@dataclass(frozen=True)
class StreamEnd:
    pass


StreamEvent = Union[TextChunk, UsageReport, StreamError, StreamEnd]


class StreamingAdapter(ABC):
    """One upstream provider behind a uniform event stream."""

    name: str

    @abstractmethod
    def stream(self, query: str, model: str) -> AsyncIterator[StreamEvent]:
        """Lazily produce events for a single completion; not restartable."""


async def iter_sse_payloads(response: httpx.Response) -> AsyncIterator[Dict[str, Any]]:
    """Yield the JSON object carried by each ``data:`` line of a server-sent event stream."""
    async for line in response.aiter_lines():
        line = line.strip()
        # blank separators, comments and event-name lines carry no payload
        if not line or not line.startswith("data:"):
            continue
        data = line[5:].strip()
        if data == "[DONE]":
            return
        try:
            payload = json.loads(data)
        except json.JSONDecodeError as e:
            raise UpstreamProviderError(f"malformed stream payload: {data[:100]!r}") from e
        if not isinstance(payload, dict):
            raise UpstreamProviderError(f"unexpected stream payload: {data[:100]!r}")
        yield payload


class HttpStreamingAdapter(StreamingAdapter):
    """
    Shared plumbing for providers reached over HTTP + server-sent events.
    Subclasses describe the request (url/headers/payload) and translate decoded
    payloads; this class owns the transport, error translation and the
    at-most-one UsageReport rule.
    """

    def __init__(self, api_key: str, *, base_url: str, timeout: Optional[httpx.Timeout] = None) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout or httpx.Timeout(
            config.UPSTREAM_READ_TIMEOUT, connect=config.UPSTREAM_CONNECT_TIMEOUT
        )

    @abstractmethod
    def _url(self, model: str) -> str: ...

    @abstractmethod
    def _headers(self) -> Dict[str, str]: ...

    @abstractmethod
    def _payload(self, query: str, model: str) -> Dict[str, Any]: ...

    @abstractmethod
    def _translate(self, payloads: AsyncIterator[Dict[str, Any]]) -> AsyncIterator[StreamEvent]:
        """Map decoded upstream messages to TextChunk / UsageReport events."""

    async def stream(self, query: str, model: str) -> AsyncIterator[StreamEvent]:
        if not self._api_key:
            yield StreamError(f"{self.name}: no API key configured")
            return

        reported = False
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                async with client.stream(
                    "POST", self._url(model), headers=self._headers(), json=self._payload(query, model)
                ) as r:
                    r.raise_for_status()
                    async for event in self._translate(iter_sse_payloads(r)):
                        if isinstance(event, UsageReport):
                            if reported:
                                continue
                            reported = True
                        yield event
        except httpx.HTTPStatusError as e:
            yield StreamError(f"{self.name} HTTP {e.response.status_code}")
            return
        except httpx.HTTPError as e:
            yield StreamError(f"{self.name} HTTP error: {e!r}")
            return
        except UpstreamProviderError as e:
            yield StreamError(f"{self.name} error: {e}")
            return
        except (KeyError, TypeError, ValueError) as e:
            yield StreamError(f"{self.name} malformed payload: {e!r}")
            return
        yield StreamEnd()
