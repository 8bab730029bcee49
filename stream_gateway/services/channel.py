# outbound event-stream channel: the normalizer owns the writable side,
# the HTTP response owns the readable side

from __future__ import annotations
import asyncio
import json
from typing import AsyncIterator


class TransportWriteError(Exception):
    """The client went away or the channel is already closed."""


_EOF = object()


def text_frame(text: str) -> str:
    # one data: line per text line so embedded newlines cannot end the frame early
    return "".join(f"data: {line}\n" for line in text.split("\n")) + "\n"


def usage_frame(total_tokens: int) -> str:
    return f"data: {json.dumps({'TOKEN_USAGE': total_tokens}, separators=(',', ':'))}\n\n"


def error_frame(message: str) -> str:
    return f"data: {json.dumps({'ERROR': message}, separators=(',', ':'))}\n\n"


class OutboundChannel:
    def __init__(self, *, maxsize: int = 64) -> None:
        self._queue: "asyncio.Queue[object]" = asyncio.Queue(maxsize=max(1, maxsize))
        self._closed = False
        self._aborted = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def aborted(self) -> bool:
        return self._aborted

    async def write(self, frame: str) -> None:
        if self._closed:
            raise TransportWriteError("channel closed")
        if self._aborted:
            raise TransportWriteError("client disconnected")
        # suspends while the reader is behind by a full buffer
        await self._queue.put(frame.encode("utf-8"))
        if self._aborted:
            raise TransportWriteError("client disconnected")

    async def close(self) -> None:
        if self._closed:
            raise RuntimeError("channel already closed")
        self._closed = True
        if not self._aborted:
            await self._queue.put(_EOF)

    def abort(self) -> None:
        """Reader side gave up; fail all further writes and release any blocked writer."""
        self._aborted = True
        while not self._queue.empty():
            self._queue.get_nowait()

    async def reader(self) -> AsyncIterator[bytes]:
        finished = False
        try:
            while True:
                item = await self._queue.get()
                if item is _EOF:
                    finished = True
                    return
                yield item  # type: ignore[misc]
        finally:
            if not finished:
                self.abort()
