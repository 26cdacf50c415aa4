"""
imagearena
Concurrent multi-provider image generation with live aggregate state
"""

__version__ = "0.1.0"

from .config import settings
from .exceptions import EndpointError, ProviderDisabledError, UnknownProviderError
from .models import GenerationError, GenerationRequest, ImageResult, ProviderTiming, RoundState
from .orchestrator import FanOutOrchestrator
from .providers import ProviderDescriptor, ProviderRegistry, initialize_provider_record, provider_registry

__all__ = [
    "settings",
    "__version__",
    "EndpointError",
    "UnknownProviderError",
    "ProviderDisabledError",
    "FanOutOrchestrator",
    "GenerationError",
    "GenerationRequest",
    "ImageResult",
    "ProviderTiming",
    "RoundState",
    "ProviderDescriptor",
    "ProviderRegistry",
    "initialize_provider_record",
    "provider_registry",
]
