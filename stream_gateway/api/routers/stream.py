import asyncio
import logging
from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse, StreamingResponse

from stream_gateway.api.deps import get_catalog, get_normalizer
from stream_gateway.core import config
from stream_gateway.core.catalog import ProviderCatalog
from stream_gateway.services.channel import OutboundChannel
from stream_gateway.services.normalizer import StreamNormalizer
from stream_gateway.services.validator import ValidationError, validate

router = APIRouter(tags=["stream"])
logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


@router.post("/stream")
async def stream(
    request: Request,
    catalog: ProviderCatalog = Depends(get_catalog),
    normalizer: StreamNormalizer = Depends(get_normalizer),
):
    try:
        body = await request.json()
    except ValueError:
        return PlainTextResponse("Invalid JSON body", status_code=400)

    try:
        gen_request = validate(body, catalog)
    except ValidationError as e:
        logger.info("rejected /stream request: %s", e.message)
        return PlainTextResponse(e.message, status_code=e.status_code)

    channel = OutboundChannel(maxsize=config.CHANNEL_BUFFER)

    # nobody awaits the task; the set keeps a strong reference until it finishes
    task = asyncio.create_task(normalizer.run(gen_request, channel))
    tasks: set = request.app.state.background_tasks
    tasks.add(task)
    task.add_done_callback(tasks.discard)

    return StreamingResponse(channel.reader(), media_type="text/event-stream", headers=SSE_HEADERS)
