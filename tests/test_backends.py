"""
==============================================================================
Decoder and Local Camera Backend Tests
==============================================================================

End-to-end checks against the real pyzbar decoder, using QR codes rendered
by the generator. Skipped when libzbar is not installed.

==============================================================================
"""

import time

import cv2
import numpy as np
import pytest

pytest.importorskip("pyzbar.pyzbar", exc_type=ImportError)

from scanmaster.scanner import ScanConfiguration, ScanSessionController, StaticScanner  # noqa: E402
from scanmaster.scanner.camera import OpenCVCameraProvider  # noqa: E402
from scanmaster.scanner.core import BarcodeScanner  # noqa: E402
from scanmaster.scanner.exceptions import DecodeError  # noqa: E402
from scanmaster.services import QrCodeGenerator  # noqa: E402


@pytest.fixture(scope="module")
def qr_png() -> bytes:
    return QrCodeGenerator().generate("WIFI:S:Backend;T:WPA;P:secret;;")


@pytest.fixture
def scanner() -> BarcodeScanner:
    return BarcodeScanner()


class FakeCapture:
    """Stands in for cv2.VideoCapture, replaying one frame."""

    def __init__(self, frame, opened=True):
        self.frame = frame
        self.opened = opened
        self.released = False
        self.props = {}

    def isOpened(self):
        return self.opened

    def set(self, prop, value):
        self.props[prop] = value
        return True

    def read(self):
        time.sleep(0.01)
        return True, self.frame.copy()

    def release(self):
        self.released = True


class DeadCapture(FakeCapture):
    """Opens, then fails every read."""

    def __init__(self):
        super().__init__(None)

    def read(self):
        return False, None


class TestBarcodeScanner:
    """Tests for the pyzbar decoder."""

    def test_decode_generated_qr(self, scanner, qr_png):
        records = scanner.decode(qr_png)

        assert len(records) == 1
        assert records[0].data == b"WIFI:S:Backend;T:WPA;P:secret;;"
        assert records[0].type == "QRCODE"

    def test_symbol_restriction(self, scanner, qr_png):
        """Restricting to another symbology finds nothing."""
        assert scanner.decode(qr_png, symbols=["EAN13"]) == []
        assert scanner.decode(qr_png, symbols=[]) == []

    def test_grayscale_frame(self, scanner, qr_png):
        frame = cv2.imdecode(np.frombuffer(qr_png, np.uint8), cv2.IMREAD_GRAYSCALE)
        assert len(scanner.decode_frame(frame)) == 1

    def test_bad_bytes(self, scanner):
        with pytest.raises(DecodeError):
            scanner.load_image(b"definitely not an image")

    def test_empty_frame(self, scanner):
        with pytest.raises(DecodeError):
            scanner.decode_frame(np.zeros((0, 0), dtype=np.uint8))

    def test_static_scan(self, scanner, qr_png):
        results = StaticScanner(scanner).scan_from_bytes(qr_png)

        assert len(results) == 1
        result = results[0]
        assert result.format == "QR_CODE"
        assert len(result.corner_points) == 4
        assert result.metadata["wifi"]["ssid"] == "Backend"
        assert "boundingBox" in result.metadata


class TestOpenCVCameraProvider:
    """Tests for the local camera worker with a fake capture device."""

    def test_session_over_camera(self, scanner, qr_png):
        frame = scanner.load_image(qr_png)
        capture = FakeCapture(frame)
        provider = OpenCVCameraProvider(scanner, capture_factory=lambda index: capture)
        controller = ScanSessionController(provider)

        future = controller.start(ScanConfiguration.from_arguments({"cameraResolution": "LOW"}))
        result = future.result(timeout=5)
        controller.stop()

        assert result.data.startswith("WIFI:")
        assert capture.released is True
        assert capture.props[cv2.CAP_PROP_FRAME_WIDTH] == 640

    def test_read_failure_ends_session(self, scanner):
        """A camera that opens but yields no frames ends the session with None."""
        capture = DeadCapture()
        provider = OpenCVCameraProvider(scanner, capture_factory=lambda index: capture)
        controller = ScanSessionController(provider)

        future = controller.start(ScanConfiguration())

        assert future.result(timeout=5) is None
        assert controller.is_active is False
        assert capture.released is True

    def test_camera_not_opened(self, scanner):
        capture = FakeCapture(None, opened=False)
        provider = OpenCVCameraProvider(scanner, capture_factory=lambda index: capture)
        controller = ScanSessionController(provider)

        assert controller.start().result(timeout=1) is None
        assert capture.released is True

    def test_front_camera_index(self, scanner):
        opened = []

        def factory(index):
            opened.append(index)
            return FakeCapture(None, opened=False)

        provider = OpenCVCameraProvider(scanner, back_index=2, front_index=5, capture_factory=factory)
        ScanSessionController(provider).start(ScanConfiguration.from_arguments({"cameraFacing": "FRONT"}))

        assert opened == [5]

    def test_available_cameras(self, scanner):
        provider = OpenCVCameraProvider(
            scanner,
            capture_factory=lambda index: FakeCapture(None, opened=index == 0),
        )
        assert provider.available_cameras(max_probe=3) == ["0"]
