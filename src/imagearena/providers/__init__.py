"""
Provider registry for image-generation backends.

The process-wide ``provider_registry`` is seeded with the built-in providers at
import time.
"""

from .base import ProviderDescriptor
from .builtin import BUILTIN_PROVIDERS
from .registry import ProviderRegistry, initialize_provider_record, provider_registry

for _descriptor in BUILTIN_PROVIDERS:
    provider_registry.register(_descriptor)

__all__ = [
    "ProviderDescriptor",
    "ProviderRegistry",
    "BUILTIN_PROVIDERS",
    "initialize_provider_record",
    "provider_registry",
]
