from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class GenerationOptions(BaseModel):
    """Recognized generation options. Unknown keys are dropped."""

    max_tokens: int | None = Field(default=None, gt=0)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    top_p: float | None = Field(default=None, gt=0.0, le=1.0)
    stop: list[str] | None = None
    system: str | None = None

    model_config = ConfigDict(frozen=True, extra="ignore")

    @classmethod
    def coerce(cls, value: "GenerationOptions | Mapping[str, Any] | None") -> "GenerationOptions":
        if isinstance(value, GenerationOptions):
            return value
        if value is None:
            return cls()
        return cls.model_validate(dict(value))

    def as_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


__all__ = ["GenerationOptions"]
