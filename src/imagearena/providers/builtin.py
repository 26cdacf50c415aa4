"""Providers shipped with imagearena."""

from .base import ProviderDescriptor

BUILTIN_PROVIDERS: list[ProviderDescriptor] = [
    ProviderDescriptor(
        key="replicate",
        display_name="Replicate",
        models=[
            "black-forest-labs/flux-1.1-pro",
            "black-forest-labs/flux-schnell",
            "stability-ai/stable-diffusion-3.5-large",
            "ideogram-ai/ideogram-v2",
        ],
    ),
    ProviderDescriptor(
        key="vertex",
        display_name="Vertex AI",
        models=[
            "imagen-3.0-generate-001",
            "imagen-3.0-fast-generate-001",
        ],
    ),
    ProviderDescriptor(
        key="openai",
        display_name="OpenAI",
        models=["dall-e-3", "dall-e-2"],
    ),
    ProviderDescriptor(
        key="fireworks",
        display_name="Fireworks",
        models=[
            "accounts/fireworks/models/flux-1-dev-fp8",
            "accounts/fireworks/models/flux-1-schnell-fp8",
            "accounts/fireworks/models/playground-v2-5-1024px-aesthetic",
        ],
    ),
]
