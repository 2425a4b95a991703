from typing import Any

from sqltune.llm.mock import MockEmbedder, MockGenerator
from sqltune.llm.ports import Embedder, Generator


class ProviderRegistry:
    """Registry pattern mapping provider names to embedder/generator classes."""

    _embedders: dict[str, type[Any]] = {
        "mock": MockEmbedder,
    }

    _generators: dict[str, type[Any]] = {
        "mock": MockGenerator,
    }

    @classmethod
    def register_embedder(cls, name: str, implementation: type[Any]) -> None:
        cls._embedders[name] = implementation

    @classmethod
    def register_generator(cls, name: str, implementation: type[Any]) -> None:
        cls._generators[name] = implementation

    @classmethod
    def get_embedder(cls, name: str) -> type[Any]:
        if name not in cls._embedders:
            raise ValueError(f"Unknown embedder provider: '{name}'")
        return cls._embedders[name]

    @classmethod
    def get_generator(cls, name: str) -> type[Any]:
        if name not in cls._generators:
            raise ValueError(f"Unknown generator provider: '{name}'")
        return cls._generators[name]

    @classmethod
    def create_embedder(cls, name: str, **kwargs: Any) -> Embedder:
        return cls.get_embedder(name)(**kwargs)

    @classmethod
    def create_generator(cls, name: str, **kwargs: Any) -> Generator:
        return cls.get_generator(name)(**kwargs)
