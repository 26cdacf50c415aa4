"""Provider registry and YAML loader."""

from __future__ import annotations

import copy
from collections.abc import Iterable
from typing import Any, TypeVar

import yaml

from ..exceptions import ProviderDisabledError, UnknownProviderError
from ..logging import get_logger
from .base import ProviderDescriptor

logger = get_logger(__name__)

V = TypeVar("V")


class ProviderRegistry:
    """
    Fixed mapping from provider key to its capability descriptor.

    Populated at startup (built-ins plus an optional YAML overlay) and only
    read afterwards.
    """

    def __init__(self, descriptors: Iterable[ProviderDescriptor] = ()):
        self._providers: dict[str, ProviderDescriptor] = {}
        for descriptor in descriptors:
            self.register(descriptor)

    def register(self, descriptor: ProviderDescriptor) -> None:
        """
        Register a provider descriptor.

        Raises:
            ValueError: If a provider with the same key is already registered
        """
        if descriptor.key in self._providers:
            raise ValueError(f"Provider '{descriptor.key}' is already registered")
        logger.debug("Registering provider", key=descriptor.key, models=len(descriptor.models))
        self._providers[descriptor.key] = descriptor

    def get(self, key: str) -> ProviderDescriptor | None:
        return self._providers.get(key)

    def require(self, key: str) -> ProviderDescriptor:
        """
        Get a provider that can take requests.

        Raises:
            UnknownProviderError: If the key is not registered
            ProviderDisabledError: If the provider is disabled
        """
        descriptor = self._providers.get(key)
        if descriptor is None:
            raise UnknownProviderError(key)
        if not descriptor.enabled:
            raise ProviderDisabledError(key)
        return descriptor

    def keys(self) -> list[str]:
        return list(self._providers.keys())

    def list_all(self) -> list[ProviderDescriptor]:
        return list(self._providers.values())

    def unregister(self, key: str) -> bool:
        if key in self._providers:
            del self._providers[key]
            return True
        return False

    def clear(self) -> None:
        self._providers.clear()

    def initialize_provider_record(self, default: V | None = None) -> dict[str, V | None]:
        """
        Build a mapping from every registered provider key to a copy of ``default``.

        All providers are included; callers filter by round selection themselves.
        """
        return {key: copy.deepcopy(default) for key in self._providers}

    def default_model_map(self, keys: Iterable[str] | None = None) -> dict[str, str | None]:
        """Map each provider key to its default model."""
        selected = self.keys() if keys is None else list(keys)
        return {key: self.require(key).default_model for key in selected}

    def load_from_yaml(self, yaml_path: str) -> None:
        """
        Overlay descriptors from a YAML file.

        Entries under ``providers:`` replace built-ins with the same key and
        add new keys otherwise.
        """
        with open(yaml_path, encoding="utf-8") as f:
            data: dict[str, Any] = yaml.safe_load(f) or {}
        providers = data.get("providers") or {}
        if not isinstance(providers, dict):
            raise ValueError("'providers' must be a mapping of provider key to config")

        for key, node in providers.items():
            if node is None:
                node = {}
            if not isinstance(node, dict):
                raise ValueError(f"Provider '{key}' config must be a mapping")
            node = dict(node)
            node.setdefault("key", key)
            if node["key"] != key:
                raise ValueError(f"Provider key mismatch: '{key}' declares key '{node['key']}'")
            descriptor = ProviderDescriptor(**node)
            self.unregister(key)
            self.register(descriptor)

        logger.info("Loaded providers from YAML", path=yaml_path, count=len(providers))

    def __len__(self) -> int:
        return len(self._providers)

    def __contains__(self, key: object) -> bool:
        return key in self._providers


provider_registry = ProviderRegistry()


def initialize_provider_record(default: V | None = None) -> dict[str, V | None]:
    """Per-provider record seeded from the process-wide registry."""
    return provider_registry.initialize_provider_record(default)
