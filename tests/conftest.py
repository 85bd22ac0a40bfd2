"""
==============================================================================
Pytest Configuration and Fixtures
==============================================================================

Provides fake camera / decoder / feedback backends, a scan session
controller, a method channel and an API client wired to them.

No fixture touches a real camera or libzbar.

==============================================================================
"""

import threading
from collections import namedtuple
from typing import Dict, Generator, List

import pytest
from fastapi.testclient import TestClient

from scanmaster.scanner import (
    CameraProvider,
    DecodeError,
    FeedbackProvider,
    ScanSessionController,
    StaticDecoder,
    StaticScanner,
)
from scanmaster.scanner.exceptions import CameraUnavailableError
from scanmaster.services import MethodChannel, get_method_channel


# ============================================================================
# DECODER RECORDS
# ============================================================================

# Same shape as pyzbar's Decoded record
FakeDecoded = namedtuple("FakeDecoded", ["data", "type", "rect", "polygon"])


def decoded(payload="hello", symbol="QRCODE", rect=(10, 20, 100, 100), polygon=None):
    """Build a raw decoder record."""
    data = payload.encode("utf-8") if isinstance(payload, str) else payload
    if polygon is None and rect is not None:
        left, top, width, height = rect
        polygon = [
            (left, top),
            (left, top + height),
            (left + width, top + height),
            (left + width, top),
        ]
    return FakeDecoded(data, symbol, rect, polygon or [])


# ============================================================================
# FAKE BACKENDS
# ============================================================================

class FakeCameraProvider(CameraProvider):
    """Camera whose frames are emitted by the test."""

    def __init__(self):
        self.fail = False
        self.acquired = []
        self.released = []
        self.torch_calls = []
        self._on_frame = None
        self._on_closed = None
        self._acquired_event = threading.Event()

    def acquire(self, facing, resolution, on_frame, on_closed=None):
        if self.fail:
            raise CameraUnavailableError("No camera")
        handle = object()
        self.acquired.append((facing, resolution, handle))
        self._on_frame = on_frame
        self._on_closed = on_closed
        self._acquired_event.set()
        return handle

    def release(self, handle):
        self.released.append(handle)

    def set_torch(self, handle, enabled):
        self.torch_calls.append(enabled)
        return True

    def has_flash(self):
        return True

    def available_cameras(self):
        return ["0", "1"]

    @property
    def on_frame(self):
        return self._on_frame

    def emit(self, *records) -> None:
        """Deliver one frame's records to the last acquirer."""
        self._on_frame(list(records))

    def close(self) -> None:
        """Simulate the device going away without release()."""
        self._on_closed()

    def wait_acquired(self, timeout: float = 2.0) -> bool:
        return self._acquired_event.wait(timeout)


class RecordingFeedback(FeedbackProvider):
    """Counts feedback calls."""

    def __init__(self):
        self.beeps = 0
        self.vibrations = 0

    def beep(self):
        self.beeps += 1

    def vibrate(self):
        self.vibrations += 1


class FakeDecoder(StaticDecoder):
    """
    Decoder returning records registered per image.

    Images are plain bytes; "frames" are the same bytes passed through
    load_image(). b"corrupt" fails to decode.
    """

    def __init__(self):
        self.images: Dict[bytes, List[FakeDecoded]] = {}
        self.symbols_seen = []

    def add(self, image: bytes, *records) -> bytes:
        self.images[image] = list(records)
        return image

    def decode(self, image_bytes, symbols=None):
        self.symbols_seen.append(symbols)
        if image_bytes == b"corrupt":
            raise DecodeError("Could not decode image bytes")
        return list(self.images.get(image_bytes, []))

    def load_image(self, image_bytes):
        if image_bytes == b"corrupt":
            raise DecodeError("Could not decode image bytes")
        return image_bytes

    def decode_frame(self, frame, symbols=None):
        return list(self.images.get(frame, []))


# ============================================================================
# SCANNER FIXTURES
# ============================================================================

@pytest.fixture
def camera() -> FakeCameraProvider:
    return FakeCameraProvider()


@pytest.fixture
def feedback() -> RecordingFeedback:
    return RecordingFeedback()


@pytest.fixture
def decoder() -> FakeDecoder:
    return FakeDecoder()


@pytest.fixture
def controller(camera, feedback) -> Generator[ScanSessionController, None, None]:
    """Session controller over the fake camera."""
    session_controller = ScanSessionController(camera, feedback)
    yield session_controller
    session_controller.stop()


@pytest.fixture
def channel(controller, camera, decoder) -> MethodChannel:
    """Method channel over fake backends."""
    return MethodChannel(
        controller=controller,
        static_scanner=StaticScanner(decoder),
        camera=camera,
        camera_timeout=2,
    )


# ============================================================================
# API CLIENT FIXTURE
# ============================================================================

@pytest.fixture(scope="function")
def client(channel: MethodChannel, decoder: FakeDecoder) -> Generator[TestClient, None, None]:
    """Create test client with scanner backends overridden."""
    from scanmaster.main import app
    from scanmaster.websockets.scanner import get_frame_decoder

    app.dependency_overrides[get_method_channel] = lambda: channel
    app.dependency_overrides[get_frame_decoder] = lambda: decoder

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
