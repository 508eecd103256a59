"""
Global test configuration and shared fakes.
"""

from collections.abc import Callable
from contextlib import suppress
from datetime import datetime
import logging
import os
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest

from gemini_extract.config import resolve_config
from gemini_extract.conversion import ConversionCascade
from gemini_extract.core.types import ConversionKind
from gemini_extract.orchestrator import ExtractionOrchestrator
from gemini_extract.pipeline import (
    BatchScheduler,
    ClientHandle,
    RemoteExtractor,
    RetryingChunkProcessor,
    RetryPolicy,
)

VALID_KEY = "test_api_key_12345_67890_abcdef"


# --- Environment Isolation (Autouse) ---
@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-in escape hatch: mark a test with @pytest.mark.allow_dotenv
    to permit .env loading for that specific test.
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_gemini_env(request, monkeypatch):
    """Ensure a clean GEMINI_* environment and telemetry toggles for each test."""
    if request.node.get_closest_marker("allow_env_pollution"):
        return
    for key in list(os.environ.keys()):
        if key.startswith("GEMINI_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("DEBUG", raising=False)


@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Sets the log level for noisy external libraries to WARNING."""
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("google_genai").setLevel(logging.WARNING)


def pytest_configure(config):
    """Configure custom markers for test organization."""
    markers = [
        "unit: Fast, isolated unit tests",
        "integration: Component integration tests with mocked APIs",
        "allow_dotenv: Permit .env loading",
        "allow_env_pollution: Keep the caller's GEMINI_* environment",
    ]
    for marker in markers:
        config.addinivalue_line("markers", marker)


# --- Fakes ---


class FakeModels:
    """Stands in for ``client.aio.models`` and records every request."""

    def __init__(self, behavior: Callable[[int, dict[str, Any]], Any]):
        self._behavior = behavior
        self.calls: list[dict[str, Any]] = []

    async def generate_content(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        result = self._behavior(len(self.calls), kwargs)
        if isinstance(result, BaseException):
            raise result
        return SimpleNamespace(text=result)


class FakeClientFactory:
    """Builds fake SDK clients sharing one ``FakeModels`` recorder."""

    def __init__(self, behavior: Callable[[int, dict[str, Any]], Any]):
        self.models = FakeModels(behavior)
        self.created = 0

    def __call__(self, api_key: str) -> Any:
        self.created += 1
        return SimpleNamespace(aio=SimpleNamespace(models=self.models))


def prompt_of(call: dict[str, Any]) -> str:
    return call["contents"][0]


class SleepRecorder:
    """Async sleep replacement that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class FakeStrategy:
    """Conversion strategy that writes canned bytes or raises."""

    def __init__(
        self,
        name: str,
        *,
        payload: bytes | None = None,
        error: Exception | None = None,
        applies: bool = True,
    ):
        self.name = name
        self.payload = payload
        self.error = error
        self.applies = applies
        self.calls: list[Path] = []

    def applies_to(self, source: Path, kind: ConversionKind) -> bool:
        return self.applies

    async def convert(
        self, source: Path, kind: ConversionKind, output_path: Path
    ) -> None:
        self.calls.append(output_path)
        if self.payload is not None:
            output_path.write_bytes(self.payload)
        if self.error is not None:
            raise self.error


def valid_pdf_bytes(size: int = 512) -> bytes:
    body = b"%PDF-1.4\n"
    return body + b"0" * (size - len(body))


# --- Core Fixtures ---


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def fixed_now() -> Callable[[], datetime]:
    return lambda: datetime(2024, 5, 1, 12, 30, 45)


@pytest.fixture
def make_orchestrator(sleep_recorder, fixed_now):
    """Build an orchestrator around a fake client and injectable strategies."""

    def _build(
        behavior: Callable[[int, dict[str, Any]], Any] | None = None,
        *,
        strategies=(),
        api_key: str | None = VALID_KEY,
        telemetry=None,
    ) -> tuple[ExtractionOrchestrator, FakeClientFactory]:
        factory = FakeClientFactory(behavior or (lambda n, call: f"text {n}"))
        config = resolve_config({"api_key": api_key})
        extractor = RemoteExtractor(
            ClientHandle(config.api_key, factory), model=config.model
        )
        processor = RetryingChunkProcessor(
            extractor, RetryPolicy(), sleep=sleep_recorder
        )
        scheduler = BatchScheduler(processor, sleep=sleep_recorder)
        cascade = ConversionCascade(strategies)
        orchestrator = ExtractionOrchestrator(
            extractor, scheduler, cascade, now=fixed_now, telemetry=telemetry
        )
        return orchestrator, factory

    return _build
