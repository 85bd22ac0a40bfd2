"""
==============================================================================
Method Channel Module
==============================================================================

Named-operation dispatcher: the host call boundary of the scanner.

Callers invoke a method name with a loosely-typed argument bag and get back
either a value or a (code, message) error pair. Nothing raised by a handler
escapes invoke().

Methods:
--------
- getPlatformVersion
- scanWithCamera        (blocks until the session ends; result map or None)
- scanFromImage         imagePath
- scanFromBytes         imageBytes
- generateQrCode        data + generation options -> PNG bytes
- getAvailableCameras, hasFlash, toggleFlash (enable)
- getSupportedFormats
- pauseScanner, resumeScanner, stopScanner

==============================================================================
"""

from __future__ import annotations

import logging
import platform
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Dict, List, Mapping, Optional

from scanmaster.config import Settings, get_settings
from scanmaster.scanner import (
    CameraProvider,
    ScanConfiguration,
    ScanSessionController,
    StaticScanner,
    supported_formats,
)

from .generator_service import GenerationOptions, QrCodeGenerator


# Module logger
logger = logging.getLogger(__name__)


@dataclass
class MethodResult:
    """Outcome of one channel call: a value or an error pair."""

    success: bool
    value: Any = None
    code: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def ok(cls, value: Any = None) -> "MethodResult":
        return cls(success=True, value=value)

    @classmethod
    def error(cls, code: str, message: str) -> "MethodResult":
        return cls(success=False, code=code, message=message)


class ChannelError(Exception):
    """Raised by handlers to return a specific error pair."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)


# Error code reported when a handler fails unexpectedly
_FAILURE_CODES = {
    "scanWithCamera": "CAMERA_ERROR",
    "getAvailableCameras": "CAMERA_ERROR",
    "scanFromImage": "SCAN_ERROR",
    "scanFromBytes": "SCAN_ERROR",
    "generateQrCode": "GENERATION_FAILED",
    "toggleFlash": "FLASH_ERROR",
    "pauseScanner": "SCANNER_ERROR",
    "resumeScanner": "SCANNER_ERROR",
    "stopScanner": "SCANNER_ERROR",
}


class MethodChannel:
    """
    Dispatcher mapping method names to scanner operations.

    Attributes:
        _controller: Camera session controller
        _static: Still-image scanner
        _generator: QR renderer
        _camera: Camera provider (device listing, flash capability)
        _camera_timeout: Longest scanWithCamera waits, None = forever

    Example:
        >>> result = channel.invoke("scanFromImage", {"imagePath": "label.png"})
        >>> result.success, result.value
        (True, [{'data': '...', 'format': 'QR_CODE', ...}])
    """

    def __init__(
        self,
        controller: ScanSessionController,
        static_scanner: StaticScanner,
        camera: CameraProvider,
        generator: Optional[QrCodeGenerator] = None,
        camera_timeout: Optional[float] = None,
    ) -> None:
        self._controller = controller
        self._static = static_scanner
        self._camera = camera
        self._generator = generator or QrCodeGenerator()
        self._camera_timeout = camera_timeout or None

        self._handlers: Dict[str, Callable[[Mapping[str, Any]], Any]] = {
            "getPlatformVersion": self._platform_version,
            "scanWithCamera": self._scan_with_camera,
            "scanFromImage": self._scan_from_image,
            "scanFromBytes": self._scan_from_bytes,
            "generateQrCode": self._generate_qr_code,
            "getAvailableCameras": self._available_cameras,
            "hasFlash": self._has_flash,
            "toggleFlash": self._toggle_flash,
            "getSupportedFormats": self._supported_formats,
            "pauseScanner": self._pause,
            "resumeScanner": self._resume,
            "stopScanner": self._stop,
        }

    @property
    def methods(self) -> List[str]:
        return sorted(self._handlers)

    @property
    def controller(self) -> ScanSessionController:
        return self._controller

    @property
    def static_scanner(self) -> StaticScanner:
        return self._static

    def invoke(self, method: str, arguments: Optional[Mapping[str, Any]] = None) -> MethodResult:
        """
        Dispatch one call.

        Args:
            method: Operation name
            arguments: Argument bag (None is treated as empty)

        Returns:
            MethodResult with the value, or an error pair
        """
        handler = self._handlers.get(method)
        if handler is None:
            return MethodResult.error("NOT_IMPLEMENTED", f"Method '{method}' is not implemented")

        if arguments is not None and not isinstance(arguments, Mapping):
            return MethodResult.error("INVALID_ARGUMENT", "Arguments must be a map")

        try:
            return MethodResult.ok(handler(arguments or {}))
        except ChannelError as e:
            return MethodResult.error(e.code, e.message)
        except Exception as e:
            logger.exception(f"Channel method {method} failed")
            return MethodResult.error(_FAILURE_CODES.get(method, "INTERNAL_ERROR"), f"{method} failed: {e}")

    # =========================================================================
    # ARGUMENT HELPERS
    # =========================================================================

    @staticmethod
    def _required(arguments: Mapping[str, Any], name: str, kinds: tuple) -> Any:
        value = arguments.get(name)
        if not isinstance(value, kinds) or (hasattr(value, "__len__") and not len(value)):
            raise ChannelError("INVALID_ARGUMENT", f"'{name}' is required")
        return value

    # =========================================================================
    # HANDLERS
    # =========================================================================

    def _platform_version(self, arguments: Mapping[str, Any]) -> str:
        return f"{platform.system()} {platform.release()}"

    def _scan_with_camera(self, arguments: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        config = ScanConfiguration.from_arguments(arguments)
        session = self._controller.start(config)

        try:
            result = session.result(timeout=self._camera_timeout)
        except FutureTimeoutError:
            logger.info("Camera scan wait expired")
            result = None
        finally:
            self._controller.stop(session)

        return result.to_map() if result is not None else None

    def _scan_from_image(self, arguments: Mapping[str, Any]) -> List[Dict[str, Any]]:
        image_path = self._required(arguments, "imagePath", (str,))
        config = ScanConfiguration.from_arguments(arguments)
        return [r.to_map() for r in self._static.scan_from_image_path(image_path, config)]

    def _scan_from_bytes(self, arguments: Mapping[str, Any]) -> List[Dict[str, Any]]:
        image_bytes = self._required(arguments, "imageBytes", (bytes, bytearray, memoryview))
        config = ScanConfiguration.from_arguments(arguments)
        return [r.to_map() for r in self._static.scan_from_bytes(bytes(image_bytes), config)]

    def _generate_qr_code(self, arguments: Mapping[str, Any]) -> bytes:
        data = self._required(arguments, "data", (str,))
        return self._generator.generate(data, GenerationOptions.from_arguments(arguments))

    def _available_cameras(self, arguments: Mapping[str, Any]) -> List[str]:
        return self._camera.available_cameras()

    def _has_flash(self, arguments: Mapping[str, Any]) -> bool:
        return self._camera.has_flash()

    def _toggle_flash(self, arguments: Mapping[str, Any]) -> None:
        enable = arguments.get("enable")
        self._controller.toggle_flash(enable if isinstance(enable, bool) else False)

    def _supported_formats(self, arguments: Mapping[str, Any]) -> List[str]:
        return supported_formats()

    def _pause(self, arguments: Mapping[str, Any]) -> None:
        self._controller.pause()

    def _resume(self, arguments: Mapping[str, Any]) -> None:
        self._controller.resume()

    def _stop(self, arguments: Mapping[str, Any]) -> None:
        self._controller.stop()


# =============================================================================
# SINGLETON INSTANCE MANAGEMENT
# =============================================================================

def build_method_channel(settings: Settings) -> MethodChannel:
    """Wire a channel to the local OpenCV camera and pyzbar decoder."""
    from scanmaster.scanner.camera import OpenCVCameraProvider
    from scanmaster.scanner.core import BarcodeScanner
    from scanmaster.scanner.feedback import ConsoleFeedbackProvider

    decoder = BarcodeScanner()
    camera = OpenCVCameraProvider(
        decoder,
        back_index=settings.back_camera_index,
        front_index=settings.front_camera_index,
        frame_interval=settings.frame_interval,
    )
    controller = ScanSessionController(
        camera,
        feedback=ConsoleFeedbackProvider(bell_enabled=settings.beep_enabled),
    )

    return MethodChannel(
        controller=controller,
        static_scanner=StaticScanner(decoder),
        camera=camera,
        camera_timeout=settings.camera_scan_timeout_seconds,
    )


@lru_cache(maxsize=1)
def get_method_channel() -> MethodChannel:
    """Get the global MethodChannel instance."""
    return build_method_channel(get_settings())
