# stream_gateway/main.py
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from stream_gateway import __version__
from stream_gateway.api.routers.stream import router as stream_router
from stream_gateway.core import config
from stream_gateway.core.catalog import ProviderCatalog
from stream_gateway.core.logging_config import setup_logging
from stream_gateway.providers.factory import build_adapters
from stream_gateway.services.ledger import UsageLedger
from stream_gateway.services.normalizer import StreamNormalizer
from stream_gateway.services.store import InMemoryStore


async def _not_found(request: Request, exc: StarletteHTTPException):
    # unknown paths and wrong methods on /stream both read as "not found"
    if exc.status_code in (404, 405):
        return PlainTextResponse("Not Found", status_code=404)
    return await http_exception_handler(request, exc)


def create_app() -> FastAPI:
    setup_logging(config.LOG_LEVEL)
    app = FastAPI(
        title="Stream Gateway",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    origins = [o.strip() for o in config.CORS_ORIGINS.split(",") if o.strip()]
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    app.add_exception_handler(StarletteHTTPException, _not_found)

    # shared, process-wide objects live on app.state and reach routers through Depends()
    app.state.catalog = ProviderCatalog()
    app.state.ledger = UsageLedger(
        InMemoryStore(max_keys=config.USAGE_STORE_MAX_KEYS),
        monthly_limit=config.MONTHLY_TOKEN_LIMIT,
        window_seconds=config.USAGE_WINDOW_DAYS * 24 * 60 * 60,
        key_prefix=config.USAGE_KEY_PREFIX,
    )
    app.state.normalizer = StreamNormalizer(app.state.ledger, build_adapters())
    app.state.background_tasks = set()

    app.include_router(stream_router)

    return app


app = create_app()
