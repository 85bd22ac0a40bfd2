"""
==============================================================================
Method Channel Tests
==============================================================================

Dispatch, argument validation and error codes of the method channel.

==============================================================================
"""

import threading

from conftest import decoded


def _invoke_in_background(channel, method, arguments):
    """Run a blocking channel call on a thread; returns (thread, outcome box)."""
    box = {}

    def target():
        box["outcome"] = channel.invoke(method, arguments)

    thread = threading.Thread(target=target, daemon=True)
    thread.start()
    return thread, box


class TestDispatch:
    """Tests for method lookup and argument bags."""

    def test_unknown_method(self, channel):
        outcome = channel.invoke("teleport", {})
        assert outcome.success is False
        assert outcome.code == "NOT_IMPLEMENTED"

    def test_arguments_must_be_map(self, channel):
        outcome = channel.invoke("scanFromBytes", ["not", "a", "map"])
        assert outcome.success is False
        assert outcome.code == "INVALID_ARGUMENT"

    def test_methods_listed(self, channel):
        assert "scanWithCamera" in channel.methods
        assert "generateQrCode" in channel.methods

    def test_platform_version(self, channel):
        outcome = channel.invoke("getPlatformVersion")
        assert outcome.success is True
        assert isinstance(outcome.value, str)

    def test_supported_formats(self, channel):
        outcome = channel.invoke("getSupportedFormats")
        assert "QR_CODE" in outcome.value


class TestStaticMethods:
    """Tests for scanFromImage / scanFromBytes."""

    def test_scan_from_bytes(self, channel, decoder):
        image = decoder.add(b"img", decoded("https://example.com"))
        outcome = channel.invoke("scanFromBytes", {"imageBytes": image})

        assert outcome.success is True
        assert len(outcome.value) == 1
        result = outcome.value[0]
        assert result["data"] == "https://example.com"
        assert result["format"] == "QR_CODE"
        assert len(result["cornerPoints"]) == 4
        assert result["metadata"]["url"]["url"] == "https://example.com"

    def test_scan_from_bytes_missing(self, channel):
        outcome = channel.invoke("scanFromBytes", {})
        assert outcome.code == "INVALID_ARGUMENT"

    def test_scan_from_bytes_empty(self, channel):
        outcome = channel.invoke("scanFromBytes", {"imageBytes": b""})
        assert outcome.code == "INVALID_ARGUMENT"

    def test_scan_from_bytes_undecodable(self, channel):
        outcome = channel.invoke("scanFromBytes", {"imageBytes": b"corrupt"})
        assert outcome.success is True
        assert outcome.value == []

    def test_scan_from_image(self, channel, decoder, tmp_path):
        path = tmp_path / "code.png"
        path.write_bytes(decoder.add(b"png", decoded("A"), decoded("B", symbol="CODE128")))

        outcome = channel.invoke("scanFromImage", {"imagePath": str(path), "formats": ["CODE_128"]})
        assert [r["data"] for r in outcome.value] == ["B"]

    def test_scan_from_image_missing_path_argument(self, channel):
        outcome = channel.invoke("scanFromImage", {"imagePath": 42})
        assert outcome.code == "INVALID_ARGUMENT"


class TestGenerateQrCode:
    """Tests for generateQrCode."""

    def test_generate(self, channel):
        outcome = channel.invoke("generateQrCode", {"data": "hello", "size": 128})
        assert outcome.success is True
        assert outcome.value.startswith(b"\x89PNG")

    def test_generate_without_data(self, channel):
        outcome = channel.invoke("generateQrCode", {"size": 128})
        assert outcome.code == "INVALID_ARGUMENT"

    def test_generate_overflow(self, channel):
        """Data too large for any QR version fails with GENERATION_FAILED."""
        outcome = channel.invoke("generateQrCode", {"data": "x" * 8000})
        assert outcome.success is False
        assert outcome.code == "GENERATION_FAILED"


class TestCameraMethods:
    """Tests for scanWithCamera and session controls."""

    def test_scan_with_camera(self, channel, camera):
        thread, box = _invoke_in_background(channel, "scanWithCamera", {"formats": ["QR_CODE"]})
        assert camera.wait_acquired()

        camera.emit(decoded("camera-code"))
        thread.join(timeout=2)

        outcome = box["outcome"]
        assert outcome.success is True
        assert outcome.value["data"] == "camera-code"
        # The channel releases the camera once the call returns
        assert len(camera.released) == 1

    def test_scan_with_camera_unavailable(self, channel, camera):
        camera.fail = True
        outcome = channel.invoke("scanWithCamera", {})
        assert outcome.success is True
        assert outcome.value is None

    def test_scan_with_camera_stopped(self, channel, camera):
        thread, box = _invoke_in_background(channel, "scanWithCamera", {})
        assert camera.wait_acquired()

        assert channel.invoke("stopScanner").success is True
        thread.join(timeout=2)

        assert box["outcome"].value is None

    def test_pause_and_resume(self, channel, camera):
        thread, box = _invoke_in_background(channel, "scanWithCamera", {})
        assert camera.wait_acquired()

        channel.invoke("pauseScanner")
        camera.emit(decoded("ignored"))
        assert channel.controller.state.is_paused is True

        channel.invoke("resumeScanner")
        camera.emit(decoded("seen"))
        thread.join(timeout=2)

        assert box["outcome"].value["data"] == "seen"

    def test_stop_is_idempotent(self, channel):
        assert channel.invoke("stopScanner").success is True
        assert channel.invoke("stopScanner").success is True

    def test_flash(self, channel, camera):
        assert channel.invoke("hasFlash").value is True

        # No session: accepted but nothing to switch
        assert channel.invoke("toggleFlash", {"enable": True}).success is True
        assert camera.torch_calls == []

    def test_available_cameras(self, channel):
        assert channel.invoke("getAvailableCameras").value == ["0", "1"]
