# drives one provider adapter and republishes its events on the outbound channel
# the channel is closed exactly once, whatever happens on the way

from __future__ import annotations
import logging
from contextlib import aclosing
from typing import Mapping, Optional

from stream_gateway.providers.base import (
    StreamEnd,
    StreamError,
    StreamingAdapter,
    TextChunk,
    UsageReport,
)
from stream_gateway.schemas.stream import GenerationRequest
from stream_gateway.services.channel import (
    OutboundChannel,
    TransportWriteError,
    error_frame,
    text_frame,
    usage_frame,
)
from stream_gateway.services.ledger import QuotaExceededError, UsageLedger, estimate_tokens

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Unable to process request."
QUOTA_EXCEEDED_MESSAGE = "Monthly token limit exceeded."


class StreamNormalizer:
    def __init__(self, ledger: UsageLedger, adapters: Mapping[str, StreamingAdapter]) -> None:
        self._ledger = ledger
        self._adapters = adapters

    async def run(self, request: GenerationRequest, channel: OutboundChannel) -> None:
        try:
            try:
                await self._ledger.ensure_within_budget(request.identity)
            except QuotaExceededError as e:
                logger.info("quota exceeded, not dispatching: %s", e)
                await self._write_quietly(channel, error_frame(QUOTA_EXCEEDED_MESSAGE))
                return

            adapter = self._adapters.get(request.provider)
            if adapter is None:
                logger.error("no adapter registered for provider %r", request.provider)
                await self._write_quietly(channel, error_frame(GENERIC_ERROR_MESSAGE))
                return

            reported = await self._drive(adapter, request, channel)
            tokens = reported if reported is not None else estimate_tokens(request.query)
            await self._ledger.record_consumption(request.identity, tokens)
        except Exception:
            logger.exception("stream for %s/%s failed", request.provider, request.model)
            await self._write_quietly(channel, error_frame(GENERIC_ERROR_MESSAGE))
        finally:
            await channel.close()

    async def _drive(
        self, adapter: StreamingAdapter, request: GenerationRequest, channel: OutboundChannel
    ) -> Optional[int]:
        """Pump adapter events to the channel; returns the reported usage total, if any."""
        total: Optional[int] = None
        try:
            async with aclosing(adapter.stream(request.query, request.model)) as events:
                async for event in events:
                    if isinstance(event, TextChunk):
                        await channel.write(text_frame(event.text))
                    elif isinstance(event, UsageReport):
                        if event.total_tokens < 0:
                            logger.warning("%s reported negative usage %d, ignoring", adapter.name, event.total_tokens)
                        elif total is None:
                            total = event.total_tokens
                            await channel.write(usage_frame(total))
                    elif isinstance(event, StreamError):
                        # full detail stays server-side
                        logger.warning("%s stream failed: %s", adapter.name, event.message)
                        await channel.write(error_frame(GENERIC_ERROR_MESSAGE))
                        break
                    elif isinstance(event, StreamEnd):
                        break
        except TransportWriteError:
            logger.info("client disconnected, stopping %s stream", adapter.name)
        except Exception:
            logger.exception("%s adapter crashed", adapter.name)
            await self._write_quietly(channel, error_frame(GENERIC_ERROR_MESSAGE))
        return total

    @staticmethod
    async def _write_quietly(channel: OutboundChannel, frame: str) -> None:
        try:
            await channel.write(frame)
        except TransportWriteError:
            logger.info("client disconnected before final frame")
