"""Shared fixtures for the facecam test suite."""
import asyncio
from typing import Callable

import numpy as np
import pytest

from facecam.services.gallery import FaceGallery
from factories import (
    DESCRIPTOR_SIZE,
    FailingGalleryStore,
    FakeFaceAnalyzer,
    FakeVideoSource,
    make_descriptor,
    make_face,
)


async def _wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not met in time")
        await asyncio.sleep(0.005)


@pytest.fixture
def wait_until():
    """Poll a condition on the running event loop."""
    return _wait_until


@pytest.fixture
def store():
    return FailingGalleryStore()


@pytest.fixture
def gallery(store):
    return FaceGallery(store, descriptor_size=DESCRIPTOR_SIZE, threshold=0.6)


@pytest.fixture
def analyzer():
    """Analyzer that sees one described face with age and gender."""
    return FakeFaceAnalyzer([
        make_face(descriptor=make_descriptor(0.1), age=31.4, gender="male", gender_confidence=0.97)
    ])


@pytest.fixture
def video():
    return FakeVideoSource()


@pytest.fixture
def frame():
    return np.zeros((360, 480, 3), dtype=np.uint8)
