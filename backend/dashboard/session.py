"""
Dashboard Session Controller

Orchestrates one dashboard session:

    initializing → training_and_fetching → analyzing → ready
                            ↘ error (fetch / training / analysis failure, empty catalog) ↺ retry()

Training (in a worker thread) and the catalog fetch run concurrently.
A ReadinessBarrier joins them: analysis runs exactly once, when both a
trained model and a non-empty catalog are available. Interactions in the
ready state only replace the ViewState; they never re-run inference.

Usage:
    async with DashboardSession(ProductClient().fetch_products) as session:
        await session.start()
        page = session.view()
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import replace
from enum import Enum
from functools import partial
from types import MappingProxyType
from typing import Any

import structlog

from core.config import Settings, get_settings
from inventory.records import Decision, ProductRecord
from inventory.summary import Summary, explain, reorder_percent, summarize, top_by_sales
from inventory.views import (
    Projection,
    ViewFilter,
    ViewState,
    apply_filters,
    clamp_page,
    project,
    sort_products,
    to_csv,
    toggle_sort,
    total_pages,
)
from ml.classifier import BOOTSTRAP_EXAMPLES, Scorer, TrainingExample, train
from ml.inference import classify

logger = structlog.get_logger()

Fetcher = Callable[[], Awaitable[Sequence[ProductRecord]]]
Trainer = Callable[[Sequence[TrainingExample], int], Scorer]

MODEL = "model"
PRODUCTS = "products"


def _log_task_failure(task: asyncio.Task) -> None:
    if task.cancelled() or task.exception() is None:
        return
    exc = task.exception()
    logger.error(
        "session.task_failed",
        task=task.get_name(),
        error=str(exc),
        exc_info=exc,
    )


class SessionState(str, Enum):
    INITIALIZING = "initializing"
    TRAINING_AND_FETCHING = "training_and_fetching"
    ANALYZING = "analyzing"
    READY = "ready"
    ERROR = "error"


class ReadinessBarrier:
    """
    Join over named preconditions.

    Each precondition is satisfied at most once. The continuation fires a
    single time, when the last one is satisfied; only ``reset`` re-arms it.
    """

    def __init__(self, names: Sequence[str], on_ready: Callable[[dict[str, Any]], None]):
        self._names = tuple(names)
        self._values: dict[str, Any] = {}
        self._on_ready = on_ready
        self.fired = False

    def is_satisfied(self, name: str) -> bool:
        return name in self._values

    @property
    def pending(self) -> list[str]:
        return [n for n in self._names if n not in self._values]

    def satisfy(self, name: str, value: Any) -> bool:
        """Record a precondition. Returns True if this call fired the continuation."""
        if name not in self._names:
            raise KeyError(f"Unknown precondition {name!r}")
        if name in self._values:
            raise RuntimeError(f"Precondition {name!r} already satisfied; reset it first")
        self._values[name] = value
        if self.fired or self.pending:
            return False
        self.fired = True
        self._on_ready(dict(self._values))
        return True

    def reset(self, *names: str) -> None:
        """Forget the given preconditions (all when none given) and re-arm."""
        for name in names or self._names:
            self._values.pop(name, None)
        self.fired = False


class DashboardSession:
    """Reactive state for one dashboard session."""

    def __init__(
        self,
        fetch_products: Fetcher,
        trainer: Trainer | None = None,
        examples: Sequence[TrainingExample] = BOOTSTRAP_EXAMPLES,
        epochs: int | None = None,
        page_size: int | None = None,
        settings: Settings | None = None,
    ):
        settings = settings or get_settings()
        self._fetch_products = fetch_products
        self._trainer = trainer or partial(
            train,
            learning_rate=settings.training_learning_rate,
            random_state=settings.training_random_state,
        )
        self._examples = list(examples)
        self._epochs = epochs or settings.training_epochs
        self.page_size = page_size or settings.page_size
        self._top_sellers_count = settings.top_sellers_count

        self._state = SessionState.INITIALIZING
        self._error: str | None = None
        self._model: Scorer | None = None
        self._products: tuple[ProductRecord, ...] = ()
        self._decisions: dict[int, Decision] = {}
        self._summary = Summary(total=0, reorder_count=0, safe_count=0)
        self._view_state = ViewState()
        self._tasks: set[asyncio.Task] = set()
        self._listeners: list[Callable[["DashboardSession"], None]] = []
        self._closed = False
        self._barrier = ReadinessBarrier([MODEL, PRODUCTS], on_ready=self._analyze)

    # ─── Lifecycle ──────────────────────────────────────────────────────

    async def __aenter__(self) -> "DashboardSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def start(self) -> None:
        """Launch training and fetch concurrently and wait until they settle."""
        if self._closed:
            raise RuntimeError("Session is closed")
        if self._state is not SessionState.INITIALIZING:
            raise RuntimeError(f"Session already started (state={self._state.value})")
        self._set_state(SessionState.TRAINING_AND_FETCHING)
        self._spawn(self._run_training(), name="train")
        self._spawn(self._run_fetch(), name="fetch")
        await self.wait_until_settled()

    async def retry(self) -> None:
        """Re-run whichever leg failed. A trained model is reused."""
        if self._state is not SessionState.ERROR:
            raise RuntimeError(f"Nothing to retry (state={self._state.value})")
        logger.info("session.retry", pending=self._barrier.pending, previous_error=self._error)
        self._error = None
        self._set_state(SessionState.TRAINING_AND_FETCHING)
        self._relaunch_pending()
        await self.wait_until_settled()

    async def refresh(self) -> None:
        """Re-fetch the catalog and recompute every decision."""
        if self._state not in (SessionState.READY, SessionState.ERROR):
            raise RuntimeError(f"Cannot refresh while {self._state.value}")
        self._barrier.reset(PRODUCTS)
        self._products = ()
        self._decisions = {}
        self._error = None
        self._set_state(SessionState.TRAINING_AND_FETCHING)
        self._relaunch_pending()
        await self.wait_until_settled()

    async def wait_until_settled(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Cancel in-flight work and release the classifier."""
        if self._closed:
            return
        self._closed = True
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        dispose = getattr(self._model, "dispose", None)
        if callable(dispose):
            dispose()
        self._model = None
        logger.info("session.closed", state=self._state.value)

    def subscribe(self, listener: Callable[["DashboardSession"], None]) -> None:
        """Call ``listener(session)`` after every state or view change."""
        self._listeners.append(listener)

    # ─── Analysis phase ─────────────────────────────────────────────────

    def _spawn(self, coro, name: str) -> None:
        task = asyncio.create_task(coro, name=f"dashboard-{name}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        task.add_done_callback(_log_task_failure)

    def _relaunch_pending(self) -> None:
        running = {t.get_name() for t in self._tasks if not t.done()}
        if not self._barrier.is_satisfied(MODEL) and "dashboard-train" not in running:
            self._spawn(self._run_training(), name="train")
        if not self._barrier.is_satisfied(PRODUCTS) and "dashboard-fetch" not in running:
            self._spawn(self._run_fetch(), name="fetch")

    async def _run_training(self) -> None:
        try:
            model = await asyncio.to_thread(self._trainer, self._examples, self._epochs)
        except Exception as e:
            logger.exception("session.training_failed")
            self._fail(f"Model training failed: {e}")
            return
        if self._closed:
            dispose = getattr(model, "dispose", None)
            if callable(dispose):
                dispose()
            return
        self._model = model
        self._barrier.satisfy(MODEL, model)

    async def _run_fetch(self) -> None:
        try:
            products = list(await self._fetch_products())
        except Exception as e:
            logger.error("session.fetch_failed", error=str(e))
            self._fail(f"Could not load products: {e}")
            return
        if not products:
            logger.warning("session.catalog_empty")
            self._fail("No products were returned by the catalog")
            return
        self._products = tuple(products)
        self._barrier.satisfy(PRODUCTS, self._products)

    def _analyze(self, ready: dict[str, Any]) -> None:
        # Anything raised here, subscribers included, must end in ERROR.
        try:
            self._set_state(SessionState.ANALYZING)
            decisions = classify(ready[MODEL], ready[PRODUCTS])
            self._decisions = decisions
            self._summary = summarize(self._products, decisions)
            self._view_state = replace(self._view_state, current_page=1)
            self._set_state(SessionState.READY)
        except Exception as e:
            logger.exception("session.analysis_failed", state=self._state.value)
            self._barrier.reset(PRODUCTS)
            self._decisions = {}
            self._summary = Summary(total=0, reorder_count=0, safe_count=0)
            self._fail(f"Analysis failed: {e}")
            return
        logger.info(
            "session.ready",
            total=self._summary.total,
            reorder=self._summary.reorder_count,
            safe=self._summary.safe_count,
        )

    def _fail(self, message: str) -> None:
        self._error = message
        self._set_state(SessionState.ERROR)

    def _set_state(self, new_state: SessionState) -> None:
        if new_state is self._state:
            return
        logger.info("session.state_changed", from_state=self._state.value, to_state=new_state.value)
        self._state = new_state
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # ─── Read-only state ────────────────────────────────────────────────

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def loading(self) -> bool:
        return self._state not in (SessionState.READY, SessionState.ERROR)

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def model(self) -> Scorer | None:
        return self._model

    @property
    def products(self) -> tuple[ProductRecord, ...]:
        return self._products

    @property
    def decisions(self) -> MappingProxyType:
        return MappingProxyType(self._decisions)

    @property
    def summary(self) -> Summary:
        return self._summary

    @property
    def reorder_percent(self) -> float:
        return reorder_percent(self._summary)

    @property
    def view_state(self) -> ViewState:
        return self._view_state

    def top_sellers(self, n: int | None = None) -> list[ProductRecord]:
        return top_by_sales(self._products, self._top_sellers_count if n is None else n)

    def explain(self, product_id: int) -> str:
        product = next((p for p in self._products if p.id == product_id), None)
        if product is None or product_id not in self._decisions:
            raise KeyError(f"No analyzed product with id {product_id}")
        return explain(product, self._decisions[product_id])

    def view(self) -> Projection:
        """Current visible slice. Empty until the session is ready."""
        if self._state is not SessionState.READY:
            return Projection(page_items=[], total_pages=0, filtered_count=0, current_page=1)
        return project(self._products, self._decisions, self._view_state, page_size=self.page_size)

    def export_csv(self, visible_only: bool = False) -> str:
        """Full catalog by default; ``visible_only`` exports the filtered, sorted slice."""
        products: Sequence[ProductRecord] = self._products
        if visible_only:
            products = sort_products(
                apply_filters(self._products, self._decisions, self._view_state),
                self._view_state.sort_key,
                self._view_state.sort_direction,
            )
        return to_csv(products, self._decisions)

    # ─── Interactions (ViewState only) ──────────────────────────────────

    def _update_view(self, view_state: ViewState) -> None:
        self._view_state = view_state
        self._notify()

    def search(self, term: str) -> None:
        self._update_view(replace(self._view_state, search_term=term, current_page=1))

    def set_filter(self, view_filter: ViewFilter | str) -> None:
        self._update_view(replace(self._view_state, filter=ViewFilter(view_filter), current_page=1))

    def sort_by(self, sort_key: str) -> None:
        self._update_view(toggle_sort(self._view_state, sort_key))

    def _page_count(self) -> int:
        if self._state is not SessionState.READY:
            return 0
        return total_pages(len(apply_filters(self._products, self._decisions, self._view_state)), self.page_size)

    def go_to_page(self, page: int) -> None:
        """Out-of-range requests are clamped to the first/last page."""
        self._update_view(replace(self._view_state, current_page=clamp_page(page, self._page_count())))

    def next_page(self) -> None:
        self.go_to_page(self._view_state.current_page + 1)

    def previous_page(self) -> None:
        self.go_to_page(self._view_state.current_page - 1)

    @property
    def can_go_previous(self) -> bool:
        return self._view_state.current_page > 1

    @property
    def can_go_next(self) -> bool:
        return self._view_state.current_page < self._page_count()
