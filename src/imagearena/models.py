"""Pydantic models for generation rounds."""

from __future__ import annotations

from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field


class GenerationRequest(BaseModel):
    """One request to the image-generation endpoint, owned by a single unit of work."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    prompt: str
    provider: str
    model: str | None = Field(default=None, serialization_alias="modelId")

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)


class ImageResult(BaseModel):
    provider: str
    image: str | None = None
    model: str | None = None


class GenerationError(BaseModel):
    provider: str
    message: str


class ProviderTiming(BaseModel):
    start_time: datetime
    completion_time: datetime | None = None
    elapsed: timedelta | None = None

    @property
    def elapsed_ms(self) -> float | None:
        if self.elapsed is None:
            return None
        return self.elapsed.total_seconds() * 1000


class RoundState(BaseModel):
    """Read-only snapshot of the aggregate state of a round."""

    round_id: int
    images: list[ImageResult] = []
    errors: list[GenerationError] = []
    timings: dict[str, ProviderTiming | None] = {}
    failed_providers: list[str] = []
    is_loading: bool = False
