from sqltune.llm.mock import MockEmbedder, MockGenerator
from sqltune.llm.ports import Embedder, Generator
from sqltune.llm.registry import ProviderRegistry

__all__ = ["Embedder", "Generator", "MockEmbedder", "MockGenerator", "ProviderRegistry"]
