# checks an inbound /stream body before anything is streamed or charged
# order matters: the first failing check decides the message

from typing import Any, Dict, Optional
from stream_gateway.core.catalog import ProviderCatalog
from stream_gateway.schemas.stream import (
    AnonymousVisitor,
    AuthenticatedUser,
    CallerIdentity,
    GenerationRequest,
)


class ValidationError(Exception):
    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _identity(body: Dict[str, Any]) -> CallerIdentity:
    user_id, credential = _text(body.get("user_id")), _text(body.get("credential"))
    visitor_id = _text(body.get("visitor_id"))
    user = AuthenticatedUser(user_id=user_id, credential=credential) if user_id and credential else None
    visitor = AnonymousVisitor(visitor_id=visitor_id) if visitor_id else None
    # exactly one identity per request
    if (user is None) == (visitor is None):
        raise ValidationError("Invalid identity")
    return user or visitor  # type: ignore[return-value]


def validate(body: Any, catalog: ProviderCatalog) -> GenerationRequest:
    if not isinstance(body, dict):
        raise ValidationError("Invalid request format. Expected JSON object.")

    identity = _identity(body)

    provider = body.get("provider")
    if not isinstance(provider, str) or provider not in catalog:
        raise ValidationError(
            f"Invalid provider. Available options: {', '.join(catalog.providers())}"
        )

    model = body.get("model")
    if not isinstance(model, str) or not catalog.allows(provider, model):
        raise ValidationError(
            f"Invalid model for provider {provider}. "
            f"Available models: {', '.join(catalog.models(provider))}"
        )

    query = _text(body.get("query"))
    if query is None:
        raise ValidationError("Query cannot be empty.")

    return GenerationRequest(provider=provider, model=model, query=query, identity=identity)
