"""Background enrichment of recipes with AI nutrition and images."""

import asyncio
import contextlib
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from coconut_nutrition.services.cache import ImageCache, NutritionCache
from coconut_nutrition.services.generative import GenerativeAI, QuotaExceededError
from coconut_nutrition.services.recipes import RecipeStore

_logger = logging.getLogger(__name__)


@dataclass
class EnrichmentSession:
    """Mutable state shared by every enrichment pass in one process.

    ``quota_exceeded`` is sticky for the lifetime of the session. The in-flight
    sets hold ids with an outstanding request so no id is requested twice at
    the same time.
    """

    quota_exceeded: bool = False
    nutrition_in_flight: set[str] = field(default_factory=set)
    image_in_flight: set[str] = field(default_factory=set)
    stop_event: asyncio.Event = field(default_factory=asyncio.Event)

    @property
    def stopped(self) -> bool:
        """Return True once the session has been asked to stop."""
        return self.stop_event.is_set()

    def stop(self) -> None:
        """Signal every running pass to finish at the next iteration."""
        self.stop_event.set()


@dataclass
class PassReport:
    """Outcome of a single enrichment pass."""

    nutrition_attempted: list[str] = field(default_factory=list)
    nutrition_succeeded: list[str] = field(default_factory=list)
    images_attempted: list[str] = field(default_factory=list)
    images_succeeded: list[str] = field(default_factory=list)
    quota_tripped: bool = False
    cancelled: bool = False

    @property
    def made_progress(self) -> bool:
        """Return True when the pass filled at least one cache entry."""
        return bool(self.nutrition_succeeded or self.images_succeeded)


@dataclass(frozen=True)
class EnrichmentStatus:
    """Snapshot of enrichment progress."""

    quota_exceeded: bool
    running: bool
    recipes_total: int
    nutrition_ready: int
    images_ready: int
    pending_nutrition: list[str]
    pending_images: list[str]


@dataclass
class EnrichmentWorker:
    """Fills the nutrition and image caches one recipe at a time."""

    recipes: RecipeStore
    nutrition_cache: NutritionCache
    image_cache: ImageCache
    ai: GenerativeAI
    session: EnrichmentSession = field(default_factory=EnrichmentSession)
    nutrition_delay_range: tuple[float, float] = (1.5, 2.5)
    image_delay_seconds: float = 0.5
    idle_seconds: float = 30.0
    shutdown_grace_seconds: float = 5.0
    delay: Callable[[float], Awaitable[None]] | None = None
    jitter: Callable[[float, float], float] = random.uniform
    _task: asyncio.Task[None] | None = field(default=None, init=False, repr=False)

    def start(self) -> None:
        """Spawn the long-lived background task if it is not running."""
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.create_task(self._run_forever(), name="recipe-enrichment")

    async def stop(self) -> None:
        """Stop the background task and wait for it to finish."""
        self.session.stop()
        task = self._task
        if task is None:
            return
        done, _ = await asyncio.wait({task}, timeout=self.shutdown_grace_seconds)
        if not done:
            # A remote call is still outstanding; its result would be discarded anyway.
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._task = None

    @property
    def running(self) -> bool:
        """Return True while the background task is alive."""
        return self._task is not None and not self._task.done()

    def pending_nutrition_ids(self) -> list[str]:
        """Return ids still missing nutrition, empty once the quota is exhausted."""
        if self.session.quota_exceeded:
            return []
        return [
            recipe.id for recipe in self.recipes if recipe.id not in self.nutrition_cache
        ]

    def pending_image_ids(self) -> list[str]:
        """Return ids still missing a generated image."""
        return [recipe.id for recipe in self.recipes if recipe.id not in self.image_cache]

    def status(self) -> EnrichmentStatus:
        """Return a snapshot of enrichment progress."""
        return EnrichmentStatus(
            quota_exceeded=self.session.quota_exceeded,
            running=self.running,
            recipes_total=len(self.recipes),
            nutrition_ready=len(self.nutrition_cache),
            images_ready=len(self.image_cache),
            pending_nutrition=self.pending_nutrition_ids(),
            pending_images=self.pending_image_ids(),
        )

    async def run_pass(self) -> PassReport:
        """Run the nutrition pass and then the image pass over all recipes."""
        report = PassReport()
        if not self.session.quota_exceeded:
            await self._nutrition_pass(report)
            if report.quota_tripped or report.cancelled:
                return report
        await self._image_pass(report)
        return report

    async def _nutrition_pass(self, report: PassReport) -> None:
        in_flight = self.session.nutrition_in_flight
        for recipe in self.recipes:
            if self.session.stopped:
                report.cancelled = True
                return
            # Another pass may have tripped the breaker while this one waited.
            if self.session.quota_exceeded:
                return
            if recipe.id in self.nutrition_cache or recipe.id in in_flight:
                continue

            in_flight.add(recipe.id)
            report.nutrition_attempted.append(recipe.id)
            try:
                estimate = await self.ai.estimate_nutrition(
                    recipe.title, recipe.ingredients, recipe.steps
                )
                if estimate is not None and not self.session.stopped:
                    self.nutrition_cache.set(recipe.id, estimate)
                    report.nutrition_succeeded.append(recipe.id)
            except QuotaExceededError as exc:
                _logger.warning("AI quota exhausted at recipe %s: %s", recipe.id, exc)
                self.session.quota_exceeded = True
                report.quota_tripped = True
            except Exception:
                _logger.exception("Nutrition enrichment failed for %s", recipe.id)
            finally:
                low, high = self.nutrition_delay_range
                await self._wait(self.jitter(low, high))
                in_flight.discard(recipe.id)

            if report.quota_tripped:
                return

    async def _image_pass(self, report: PassReport) -> None:
        in_flight = self.session.image_in_flight
        for recipe in self.recipes:
            if self.session.stopped:
                report.cancelled = True
                return
            if recipe.id in self.image_cache or recipe.id in in_flight:
                continue

            in_flight.add(recipe.id)
            report.images_attempted.append(recipe.id)
            try:
                image_ref = await self.ai.generate_image(
                    recipe.title, recipe.category_label, recipe.ingredients
                )
                if image_ref and not self.session.stopped:
                    self.image_cache.set(recipe.id, image_ref)
                    report.images_succeeded.append(recipe.id)
            except Exception:
                _logger.exception("Image enrichment failed for %s", recipe.id)
            finally:
                await self._wait(self.image_delay_seconds)
                in_flight.discard(recipe.id)

    async def _run_forever(self) -> None:
        _logger.info("Enrichment worker started for %s recipes", len(self.recipes))
        while not self.session.stopped:
            if not self.pending_nutrition_ids() and not self.pending_image_ids():
                await self._wait(self.idle_seconds)
                continue
            try:
                report = await self.run_pass()
            except Exception:
                _logger.exception("Enrichment pass crashed")
                report = None
            if report is not None:
                _logger.info(
                    "Enrichment pass done: nutrition %s/%s, images %s/%s, quota=%s",
                    len(report.nutrition_succeeded),
                    len(report.nutrition_attempted),
                    len(report.images_succeeded),
                    len(report.images_attempted),
                    self.session.quota_exceeded,
                )
            if report is None or not report.made_progress:
                await self._wait(self.idle_seconds)
        _logger.info("Enrichment worker stopped")

    async def _wait(self, seconds: float) -> None:
        """Sleep between attempts, returning early once the session stops."""
        if self.delay is not None:
            await self.delay(seconds)
            return
        if seconds <= 0 or self.session.stopped:
            await asyncio.sleep(0)
            return
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(self.session.stop_event.wait(), timeout=seconds)
