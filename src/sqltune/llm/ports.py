from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from sqltune.models.options import GenerationOptions


@runtime_checkable
class Embedder(Protocol):
    """Turns text into fixed-length vectors."""

    @property
    def dimension(self) -> int:
        """Length of every vector this embedder returns."""
        ...

    @property
    def model(self) -> str: ...

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Embed ``texts``, returning one vector per input in input order.

        Must raise InputError on an empty list.
        """
        ...


@runtime_checkable
class Generator(Protocol):
    """Produces a completion for a prompt."""

    @property
    def model(self) -> str: ...

    async def complete(
        self,
        prompt: str,
        options: GenerationOptions | Mapping[str, Any] | None = None,
    ) -> str:
        """Return completion text. Unrecognized option keys are ignored."""
        ...
