#!/usr/bin/env python3
"""
Main CLI entry point for imagearena.
"""

import asyncio
import sys

import click
import uvicorn

from imagearena import __version__
from imagearena.config import settings
from imagearena.exceptions import ProviderDisabledError, UnknownProviderError
from imagearena.factory import create_orchestrator, create_registry
from imagearena.logging import configure_logging, get_logger
from imagearena.models import RoundState

logger = get_logger(__name__)


def parse_provider_option(value: str) -> tuple[str, str | None]:
    """Split ``key=model`` into its parts; the model is optional."""
    key, sep, model = value.partition("=")
    key = key.strip()
    if not key:
        raise click.BadParameter(f"Invalid provider spec: {value!r}")
    return key, (model.strip() or None) if sep else None


@click.group()
@click.version_option(version=__version__, prog_name="imagearena")
def cli() -> None:
    """imagearena CLI - run generation rounds and serve the API."""
    pass


@cli.command()
@click.option("--host", default=settings.api_host, help="Host to bind to")
@click.option("--port", default=settings.api_port, type=int, help="Port to bind to")
@click.option("--reload", is_flag=True, default=False, help="Enable auto-reload for development")
@click.option(
    "--log-level",
    default="info",
    type=click.Choice(["debug", "info", "warning", "error"]),
    help="Log level (default: info)",
)
def serve(host: str, port: int, reload: bool, log_level: str) -> None:
    """Start the imagearena API server."""
    configure_logging(debug=(log_level == "debug"))
    logger.info("Starting imagearena API server", host=host, port=port, reload=reload)

    try:
        uvicorn.run(
            "imagearena.api.app:app",
            host=host,
            port=port,
            reload=reload,
            log_level=log_level,
            access_log=True,
        )
    except KeyboardInterrupt:
        logger.info("Server shutdown requested by user")
    except Exception as e:
        logger.error("Server startup failed", error=str(e))
        sys.exit(1)


@cli.command("providers")
def list_providers() -> None:
    """List registered providers and their models."""
    registry = create_registry(settings.providers_config_path)
    for descriptor in registry.list_all():
        status = "" if descriptor.enabled else " (disabled)"
        click.echo(f"{descriptor.key}{status} - {descriptor.display_name}")
        for model in descriptor.models:
            marker = "*" if model == descriptor.default_model else " "
            click.echo(f"  {marker} {model}")


@cli.command()
@click.option("--prompt", required=True, help="Prompt sent to every provider")
@click.option(
    "--provider",
    "provider_specs",
    multiple=True,
    required=True,
    help="Provider key, optionally with a model: openai=dall-e-3 (repeatable)",
)
@click.option("--endpoint-url", default=None, help="Override the image-generation endpoint URL")
@click.option("--debug", is_flag=True, default=False, help="Human-readable debug logs")
def generate(prompt: str, provider_specs: tuple[str, ...], endpoint_url: str | None, debug: bool) -> None:
    """Run one generation round and print what every provider returned."""
    configure_logging(debug=debug)

    config = settings.model_copy(update={"endpoint_url": endpoint_url}) if endpoint_url else settings
    registry = create_registry(config.providers_config_path)

    specs = [parse_provider_option(spec) for spec in provider_specs]
    providers = [key for key, _ in specs]
    try:
        defaults = registry.default_model_map(providers)
    except (UnknownProviderError, ProviderDisabledError) as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(2)
    provider_to_model = {key: model or defaults[key] for key, model in specs}

    async def do_generate() -> RoundState:
        orchestrator = create_orchestrator(config, registry=registry)
        try:
            return await orchestrator.start_generation(prompt, providers, provider_to_model)
        finally:
            await orchestrator.endpoint.aclose()

    state = asyncio.run(do_generate())
    _display_round(state, providers)

    if len(state.failed_providers) == len(set(providers)):
        sys.exit(1)


def _display_round(state: RoundState, providers: list[str]) -> None:
    selected = set(providers)
    messages = {}
    for error in state.errors:
        messages.setdefault(error.provider, error.message)

    for result in state.images:
        if result.provider not in selected:
            continue
        timing = state.timings.get(result.provider)
        elapsed = ""
        if timing is not None and timing.elapsed_ms is not None:
            elapsed = f" ({timing.elapsed_ms / 1000:.2f}s)"
        if result.provider in state.failed_providers:
            click.echo(f"✗ {result.provider} [{result.model}]: {messages.get(result.provider)}")
        else:
            click.echo(f"✓ {result.provider} [{result.model}]{elapsed}: {result.image}")


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    cli()
