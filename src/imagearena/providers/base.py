"""Capability descriptors for image-generation providers."""

from __future__ import annotations

from pydantic import BaseModel, model_validator


class ProviderDescriptor(BaseModel):
    key: str
    display_name: str | None = None
    models: list[str] = []
    default_model: str | None = None
    endpoint: str | None = None
    enabled: bool = True

    @model_validator(mode="after")
    def _fill_defaults(self) -> ProviderDescriptor:
        if self.display_name is None:
            self.display_name = self.key
        if self.default_model is None and self.models:
            self.default_model = self.models[0]
        return self
