from fastapi import Request
from stream_gateway.core.catalog import ProviderCatalog
from stream_gateway.services.normalizer import StreamNormalizer


def get_catalog(request: Request) -> ProviderCatalog:
    return request.app.state.catalog


def get_normalizer(request: Request) -> StreamNormalizer:
    return request.app.state.normalizer
