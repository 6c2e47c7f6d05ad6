"""Tests for analyzer construction and bounded model loading."""
import time

import pytest

from facecam.core.exceptions import StartupError
from facecam.services.recognition.loader import ModelLoader, build_analyzer
from factories import FakeFaceAnalyzer


class SlowAnalyzer(FakeFaceAnalyzer):
    def load(self) -> None:
        time.sleep(0.5)
        super().load()


class TestModelLoader:
    """Test suite for ModelLoader."""

    async def test_load_returns_ready_analyzer(self):
        analyzer = FakeFaceAnalyzer()

        loaded = await ModelLoader(analyzer, max_polls=20, poll_interval=0.01).load()

        assert loaded is analyzer
        assert analyzer.loaded

    async def test_load_failure_raises_startup_error(self):
        analyzer = FakeFaceAnalyzer()
        analyzer.load_error = FileNotFoundError("buffalo_l not found")

        with pytest.raises(StartupError) as exc_info:
            await ModelLoader(analyzer, max_polls=20, poll_interval=0.01).load()

        assert "buffalo_l not found" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, FileNotFoundError)

    async def test_gives_up_after_max_polls(self):
        loader = ModelLoader(SlowAnalyzer(), max_polls=3, poll_interval=0.01)

        with pytest.raises(StartupError) as exc_info:
            await loader.load()

        assert exc_info.value.details["polls"] == 3


class TestBuildAnalyzer:

    def test_unknown_backend(self):
        with pytest.raises(StartupError) as exc_info:
            build_analyzer("tensorflow")
        assert exc_info.value.details["supported"] == ["composite", "insightface"]
