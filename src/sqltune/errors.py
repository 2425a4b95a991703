"""Exception taxonomy for the optimization pipeline."""


class SqlTuneError(Exception):
    """Base class for all sqltune errors."""


class InputError(SqlTuneError, ValueError):
    """Malformed call arguments, such as an empty embedding batch."""


class CollaboratorError(SqlTuneError):
    """An external collaborator (embedder, generator, retrieval) failed.

    ``stage`` names the pipeline step that failed.
    """

    stage = "collaborator"

    def __init__(self, message: str, *, stage: str | None = None) -> None:
        super().__init__(message)
        if stage is not None:
            self.stage = stage

    def __str__(self) -> str:
        return f"{self.stage}: {super().__str__()}"


class EmbeddingError(CollaboratorError):
    stage = "embedding"


class RetrievalError(CollaboratorError):
    stage = "retrieval"


class GenerationError(CollaboratorError):
    stage = "generation"


class ParseError(SqlTuneError):
    """Generated text did not contain a usable PROPOSED_SQL section."""


class NotFoundError(SqlTuneError, LookupError):
    """Lookup target is missing, or a transition targets a reviewed record."""


__all__ = [
    "SqlTuneError",
    "InputError",
    "CollaboratorError",
    "EmbeddingError",
    "RetrievalError",
    "GenerationError",
    "ParseError",
    "NotFoundError",
]
