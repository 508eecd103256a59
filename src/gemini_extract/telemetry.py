"""Scoped timings and counters for the extraction pipeline.

Telemetry is off unless reporters are passed explicitly or the environment sets
``GEMINI_EXTRACT_TELEMETRY=1`` (or ``DEBUG=1``). When off, every call goes to a
shared no-op object, so instrumented code pays nothing.

Scope names nest: a counter recorded inside ``extract.file`` and then
``extract.batch`` is reported as ``extract.file.extract.batch.<name>``. The
nesting lives in a context variable, so concurrent chunk tasks each see their
own path.
"""

from collections import defaultdict, deque
from collections.abc import Iterator, Mapping
from contextlib import AbstractContextManager, contextmanager
from contextvars import ContextVar
import logging
import os
import time
from types import TracebackType
from typing import Any, Protocol, Self, runtime_checkable

log = logging.getLogger(__name__)

_active_scopes: ContextVar[tuple[str, ...]] = ContextVar("active_scopes", default=())


def telemetry_enabled() -> bool:
    """Whether the environment asks for telemetry."""
    return "1" in (os.getenv("GEMINI_EXTRACT_TELEMETRY"), os.getenv("DEBUG"))


@runtime_checkable
class TelemetryReporter(Protocol):
    """Receives finished scope timings and recorded values."""

    def record_timing(self, scope: str, duration: float, **metadata: Any) -> None: ...  # noqa: D102
    def record_metric(self, scope: str, value: Any, **metadata: Any) -> None: ...  # noqa: D102


def _context_metadata(stack: tuple[str, ...], extra: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "depth": len(stack),
        "parent_scope": ".".join(stack) or None,
        **extra,
    }


class _DisabledTelemetry:
    """Accepts every telemetry call and records nothing."""

    __slots__ = ()

    enabled = False

    def __call__(self, name: str, /, **metadata: Any) -> Self:  # noqa: ARG002
        return self

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        return None

    def metric(self, name: str, value: Any, **metadata: Any) -> None:
        pass

    def count(self, name: str, increment: int = 1, **metadata: Any) -> None:
        pass

    def gauge(self, name: str, value: float, **metadata: Any) -> None:
        pass


class _ActiveTelemetry:
    """Forwards scope timings and values to every reporter."""

    __slots__ = ("reporters",)

    enabled = True

    def __init__(self, *reporters: TelemetryReporter):
        self.reporters = reporters

    def __call__(
        self, name: str, /, **metadata: Any
    ) -> AbstractContextManager["_ActiveTelemetry"]:
        if not name or not isinstance(name, str):
            raise ValueError("Scope name must be a non-empty string")
        return self._scope(name, metadata)

    @contextmanager
    def _scope(
        self, name: str, metadata: Mapping[str, Any]
    ) -> Iterator["_ActiveTelemetry"]:
        outer = _active_scopes.get()
        token = _active_scopes.set((*outer, name))
        started = time.perf_counter()
        try:
            yield self
        finally:
            elapsed = time.perf_counter() - started
            _active_scopes.reset(token)
            self._dispatch(
                "record_timing",
                ".".join((*outer, name)),
                elapsed,
                _context_metadata(outer, metadata),
            )

    def _dispatch(
        self, method: str, scope: str, value: Any, metadata: dict[str, Any]
    ) -> None:
        for reporter in self.reporters:
            try:
                getattr(reporter, method)(scope, value, **metadata)
            except Exception as e:
                # A broken reporter never fails an extraction
                log.error(
                    "Telemetry reporter %s failed on %s: %s",
                    type(reporter).__name__,
                    scope,
                    e,
                    exc_info=True,
                )

    def metric(self, name: str, value: Any, **metadata: Any) -> None:
        """Record ``value`` under ``name`` within the active scope path."""
        stack = _active_scopes.get()
        self._dispatch(
            "record_metric",
            ".".join((*stack, name)),
            value,
            _context_metadata(stack, metadata),
        )

    def count(self, name: str, increment: int = 1, **metadata: Any) -> None:
        self.metric(name, increment, metric_type="counter", **metadata)

    def gauge(self, name: str, value: float, **metadata: Any) -> None:
        self.metric(name, value, metric_type="gauge", **metadata)


_DISABLED = _DisabledTelemetry()

type Telemetry = _ActiveTelemetry | _DisabledTelemetry


def TelemetryContext(*reporters: TelemetryReporter) -> Telemetry:  # noqa: N802
    """Return the telemetry object components should record to.

    Explicit reporters always win. Otherwise the environment flags select a
    context that writes to the debug log, and the shared no-op is the default.
    """
    if reporters:
        return _ActiveTelemetry(*reporters)
    if telemetry_enabled():
        return _ActiveTelemetry(LoggingReporter())
    return _DISABLED


class LoggingReporter:
    """Writes every timing and value to the debug log."""

    def record_timing(self, scope: str, duration: float, **metadata: Any) -> None:
        log.debug("timing %s: %.4fs %s", scope, duration, metadata)

    def record_metric(self, scope: str, value: Any, **metadata: Any) -> None:
        log.debug("metric %s: %r %s", scope, value, metadata)


class MemoryReporter:
    """Keeps the most recent entries per scope in memory.

    Useful in tests and for printing a run summary with ``render()``.
    """

    def __init__(self, max_entries_per_scope: int = 1000):
        self.max_entries = max_entries_per_scope
        self.timings: defaultdict[str, deque[tuple[float, dict[str, Any]]]] = (
            defaultdict(self._new_buffer)
        )
        self.metrics: defaultdict[str, deque[tuple[Any, dict[str, Any]]]] = (
            defaultdict(self._new_buffer)
        )

    def _new_buffer(self) -> deque[Any]:
        return deque(maxlen=self.max_entries)

    def record_timing(self, scope: str, duration: float, **metadata: Any) -> None:
        self.timings[scope].append((duration, metadata))

    def record_metric(self, scope: str, value: Any, **metadata: Any) -> None:
        self.metrics[scope].append((value, metadata))

    def total(self, scope: str) -> float:
        """Sum of the numeric values recorded under ``scope``."""
        entries = self.metrics.get(scope, ())
        return sum(value for value, _ in entries if isinstance(value, int | float))

    def render(self) -> str:
        lines = ["Telemetry", "---------"]
        for scope in sorted(self.timings):
            durations = [duration for duration, _ in self.timings[scope]]
            lines.append(
                f"{scope}: {len(durations)} run(s), "
                f"{sum(durations):.3f}s total, {max(durations):.3f}s slowest"
            )
        for scope in sorted(self.metrics):
            lines.append(f"{scope}: {self.total(scope):g}")
        return "\n".join(lines)
