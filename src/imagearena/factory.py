"""Factory for creating registries, endpoints and orchestrators from settings."""

from pathlib import Path

from .config import Settings, endpoint_headers, settings as default_settings
from .endpoint import HttpImageEndpoint
from .logging import get_logger
from .orchestrator import FanOutOrchestrator, RefreshCallback
from .providers import BUILTIN_PROVIDERS, ProviderRegistry

logger = get_logger(__name__)


def create_registry(config_path: str | None = None) -> ProviderRegistry:
    """Built-in providers, overlaid with the YAML file at ``config_path`` if it exists."""
    registry = ProviderRegistry(d.model_copy(deep=True) for d in BUILTIN_PROVIDERS)
    if config_path:
        path = Path(config_path)
        if path.exists():
            registry.load_from_yaml(str(path))
        else:
            logger.warning("Providers config path set but not found", path=str(path))
    return registry


def create_endpoint(
    config: Settings | None = None,
    registry: ProviderRegistry | None = None,
) -> HttpImageEndpoint:
    config = config or default_settings
    return HttpImageEndpoint(
        config.endpoint_url,
        timeout=config.endpoint_timeout,
        headers=endpoint_headers(config),
        registry=registry,
    )


def create_orchestrator(
    config: Settings | None = None,
    registry: ProviderRegistry | None = None,
    on_success: RefreshCallback | None = None,
) -> FanOutOrchestrator:
    """Wire an orchestrator to the HTTP endpoint configured in ``config``."""
    config = config or default_settings
    if registry is None:
        registry = create_registry(config.providers_config_path)

    orchestrator = FanOutOrchestrator(
        create_endpoint(config, registry),
        registry=registry,
        on_success=on_success,
        record_failure_timing=config.record_failure_timing,
    )
    logger.info(
        "Orchestrator created",
        endpoint_url=config.endpoint_url,
        providers=registry.keys(),
    )
    return orchestrator
