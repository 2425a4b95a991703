from pydantic import BaseModel, ConfigDict, Field, model_validator


class SearchResult(BaseModel):
    """A knowledge passage returned by similarity search.

    ``score`` is ``1 - distance`` where ``distance`` is the cosine distance
    between the query embedding and the chunk embedding.
    """

    chunk_id: str
    document_id: str
    text: str
    title: str
    category: str = ""
    url: str = ""
    chunk_index: int = Field(default=0, ge=0)
    distance: float = Field(ge=0.0)
    score: float

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    @model_validator(mode="after")
    def _validate_score(self) -> "SearchResult":
        if abs(self.score - (1.0 - self.distance)) > 1e-6:
            raise ValueError("score must equal 1 - distance")
        return self

    @classmethod
    def from_distance(cls, distance: float, **fields: object) -> "SearchResult":
        # ChromaDB can report tiny negative distances for identical vectors
        distance = max(float(distance), 0.0)
        return cls(distance=distance, score=1.0 - distance, **fields)


__all__ = ["SearchResult"]
