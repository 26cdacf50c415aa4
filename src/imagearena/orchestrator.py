"""
Fan-out orchestrator for multi-provider image generation.

One round sends the same prompt to every selected provider concurrently.
Each provider's unit of work writes only its own slots in the aggregate
state, so partial results are visible while slower providers are still
running. ``is_loading`` clears once every unit has settled.

Rounds are tagged with an increasing id. A unit of work (or a join) whose
round has been superseded by a newer ``start_generation`` or by
``reset_state`` drops its writes instead of overwriting the newer round.
"""

from __future__ import annotations

import asyncio
import contextvars
import inspect
from collections.abc import Awaitable, Callable, Iterable, Mapping
from datetime import UTC, datetime

from .endpoint import ImageEndpoint
from .logging import get_logger, set_round_context
from .models import (
    GenerationError,
    GenerationRequest,
    ImageResult,
    ProviderTiming,
    RoundState,
)
from .providers import ProviderRegistry, provider_registry

logger = get_logger(__name__)

DEFAULT_ERROR_MESSAGE = "An unexpected error occurred"

RefreshCallback = Callable[[], Awaitable[None] | None]
StateListener = Callable[[RoundState], None]


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _error_message(error: BaseException) -> str:
    return str(error) or DEFAULT_ERROR_MESSAGE


class FanOutOrchestrator:
    """Runs generation rounds across providers and exposes the live aggregate state."""

    def __init__(
        self,
        endpoint: ImageEndpoint,
        registry: ProviderRegistry | None = None,
        on_success: RefreshCallback | None = None,
        clock: Callable[[], datetime] | None = None,
        record_failure_timing: bool = False,
    ):
        self.endpoint = endpoint
        self.registry = registry if registry is not None else provider_registry
        self.record_failure_timing = record_failure_timing
        self.on_success = on_success
        self._clock = clock or _utcnow
        self._listeners: list[StateListener] = []

        self._round_id = 0
        self._images: dict[str, ImageResult] = {}
        self._errors: list[GenerationError] = []
        self._timings: dict[str, ProviderTiming | None] = self.registry.initialize_provider_record()
        self._failed: list[str] = []
        self._is_loading = False

    # Read access

    @property
    def round_id(self) -> int:
        return self._round_id

    @property
    def images(self) -> list[ImageResult]:
        return [image.model_copy() for image in self._images.values()]

    @property
    def errors(self) -> list[GenerationError]:
        return [error.model_copy() for error in self._errors]

    @property
    def timings(self) -> dict[str, ProviderTiming | None]:
        return {
            key: timing.model_copy() if timing is not None else None
            for key, timing in self._timings.items()
        }

    @property
    def failed_providers(self) -> list[str]:
        return list(self._failed)

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    def snapshot(self) -> RoundState:
        return RoundState(
            round_id=self._round_id,
            images=self.images,
            errors=self.errors,
            timings=self.timings,
            failed_providers=self.failed_providers,
            is_loading=self._is_loading,
        )

    # Listeners

    def add_listener(self, listener: StateListener) -> None:
        """Call ``listener`` with a fresh snapshot after every state change."""
        self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # Operations

    def start_generation(
        self,
        prompt: str,
        providers: Iterable[str],
        provider_to_model: Mapping[str, str | None],
    ) -> asyncio.Task[RoundState]:
        """
        Start a round and return the task that joins it.

        The state reset and ``is_loading = True`` happen before this method
        returns. Awaiting the returned task waits until every provider has
        settled and yields the final snapshot.

        Must be called from a running event loop.

        Raises:
            ValueError: If no providers are selected
            UnknownProviderError: If a provider is not registered
            ProviderDisabledError: If a provider is disabled
        """
        selected = list(dict.fromkeys(providers))
        if not selected:
            raise ValueError("At least one provider must be selected")
        for key in selected:
            self.registry.require(key)
        # fail before touching state when called outside an event loop
        asyncio.get_running_loop()

        self._round_id += 1
        round_id = self._round_id
        context = contextvars.copy_context()
        context.run(set_round_context, round_id)

        self._is_loading = True
        # selected providers move to the end, in selection order
        for key in selected:
            self._images.pop(key, None)
            self._images[key] = ImageResult(provider=key, image=None, model=provider_to_model.get(key))
        self._errors = []
        self._failed = []

        now = self._clock()
        for key in selected:
            self._timings[key] = ProviderTiming(start_time=now)

        logger.info(
            "Starting generation round",
            round_id=round_id,
            providers=selected,
            prompt_length=len(prompt),
        )
        self._notify()

        units = [
            asyncio.create_task(
                self._generate_one(round_id, prompt, key, provider_to_model.get(key), now),
                context=context,
            )
            for key in selected
        ]
        return asyncio.create_task(self._join(round_id, units), context=context)

    def reset_state(self) -> None:
        """Clear all round state. An in-flight round can no longer write."""
        if self._is_loading:
            self._round_id += 1
        self._images = {}
        self._errors = []
        self._timings = self.registry.initialize_provider_record()
        self._failed = []
        self._is_loading = False
        logger.info("Round state reset", round_id=self._round_id)
        self._notify()

    # Units of work

    async def _generate_one(
        self,
        round_id: int,
        prompt: str,
        provider: str,
        model: str | None,
        start_time: datetime,
    ) -> None:
        logger.info("Generate image request", provider=provider, model=model)
        try:
            request = GenerationRequest(prompt=prompt, provider=provider, model=model)
            image = await self.endpoint.generate(request)
            succeeded = self._record_success(round_id, provider, model, start_time, image)
        except Exception as e:
            logger.error(
                "Image generation failed",
                provider=provider,
                model=model,
                error=str(e),
                error_type=type(e).__name__,
            )
            self._record_failure(round_id, provider, model, start_time, _error_message(e))
            return

        if succeeded:
            await self._refresh_history(provider)

    def _is_current(self, round_id: int, provider: str) -> bool:
        if round_id == self._round_id:
            return True
        logger.info(
            "Dropping result from superseded round",
            provider=provider,
            round_id=round_id,
            current_round_id=self._round_id,
        )
        return False

    def _record_success(
        self,
        round_id: int,
        provider: str,
        model: str | None,
        start_time: datetime,
        image: str | None,
    ) -> bool:
        if not self._is_current(round_id, provider):
            return False

        result = ImageResult(provider=provider, image=image, model=model)
        completion_time = self._clock()
        timing = ProviderTiming(
            start_time=start_time,
            completion_time=completion_time,
            elapsed=completion_time - start_time,
        )
        self._timings[provider] = timing
        self._images[provider] = result

        logger.info(
            "Successful image response",
            provider=provider,
            model=model,
            elapsed_ms=timing.elapsed_ms,
        )
        self._notify()
        return True

    def _record_failure(
        self,
        round_id: int,
        provider: str,
        model: str | None,
        start_time: datetime,
        message: str,
    ) -> None:
        if not self._is_current(round_id, provider):
            return

        self._errors.append(GenerationError(provider=provider, message=message))
        if provider not in self._failed:
            self._failed.append(provider)
        self._images[provider] = ImageResult(provider=provider, image=None, model=model)

        if self.record_failure_timing:
            completion_time = self._clock()
            self._timings[provider] = ProviderTiming(
                start_time=start_time,
                completion_time=completion_time,
                elapsed=completion_time - start_time,
            )
        self._notify()

    async def _join(self, round_id: int, units: list[asyncio.Task]) -> RoundState:
        try:
            await asyncio.gather(*units, return_exceptions=True)
        finally:
            if round_id == self._round_id:
                self._is_loading = False
                logger.info(
                    "Generation round settled",
                    round_id=round_id,
                    failed=len(self._failed),
                    errors=len(self._errors),
                )
                self._notify()
            else:
                logger.info("Superseded generation round settled", round_id=round_id)
        return self.snapshot()

    # Notifications

    async def _refresh_history(self, provider: str) -> None:
        if self.on_success is None:
            return
        try:
            result = self.on_success()
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.warning("History refresh failed", provider=provider, error=str(e))

    def _notify(self) -> None:
        if not self._listeners:
            return
        state = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.error("State listener failed", error=str(e))
