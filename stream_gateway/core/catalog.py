# static provider -> model allow-list, built once at startup and shared read-only

from __future__ import annotations
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Tuple

DEFAULT_MODELS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "openai": ("gpt-4o-mini", "gpt-4", "gpt-3.5-turbo"),
    "gemini": ("gemini-2.0-flash", "gemini-2.5-pro-exp-03-25"),
    "claude": ("claude-3-5-haiku-20241022", "claude-3-7-sonnet-20250219"),
    "groq": ("llama3-8b-8192", "llama3-70b-8192"),
})


class ProviderCatalog:
    def __init__(self, models: Optional[Mapping[str, Iterable[str]]] = None) -> None:
        if models is None:
            self._models = DEFAULT_MODELS
        else:
            self._models = MappingProxyType({name: tuple(ids) for name, ids in models.items()})

    @classmethod
    def from_mapping(cls, models: Mapping[str, Iterable[str]]) -> "ProviderCatalog":
        return cls(models)

    def providers(self) -> Tuple[str, ...]:
        return tuple(self._models)

    def models(self, provider: str) -> Tuple[str, ...]:
        return self._models.get(provider, ())

    def allows(self, provider: str, model: str) -> bool:
        return model in self.models(provider)

    def __contains__(self, provider: object) -> bool:
        return provider in self._models
