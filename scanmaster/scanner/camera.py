"""
==============================================================================
Camera Provider Module
==============================================================================

Local camera provider: cv2.VideoCapture with one daemon worker thread per
acquired camera. Each captured frame is decoded with pyzbar and the raw
records are delivered to the session serially from that thread.

Frames pushed by a remote client go through scanner.pushed instead.

==============================================================================
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import cv2

from .core import BarcodeScanner
from .exceptions import CameraUnavailableError, DecodeError
from .models import CameraFacing, CameraResolution
from .providers import CameraProvider, ClosedCallback, FrameCallback


# Module logger
logger = logging.getLogger(__name__)


@dataclass
class CameraHandle:
    """One acquired local camera."""

    device_index: int
    capture: "cv2.VideoCapture"
    on_frame: FrameCallback
    on_closed: Optional[ClosedCallback] = None
    stop_event: threading.Event = field(default_factory=threading.Event)
    thread: Optional[threading.Thread] = None
    torch: bool = False


class OpenCVCameraProvider(CameraProvider):
    """
    Local camera provider backed by OpenCV.

    Attributes:
        _scanner: Decoder run on every captured frame
        _back_index: Device index used for BACK facing
        _front_index: Device index used for FRONT facing
        _frame_interval: Pause between frames in seconds (0 = as fast as possible)

    Example:
        >>> provider = OpenCVCameraProvider(BarcodeScanner())
        >>> handle = provider.acquire(CameraFacing.BACK, CameraResolution.MEDIUM, print)
        >>> provider.release(handle)
    """

    def __init__(
        self,
        scanner: BarcodeScanner,
        back_index: int = 0,
        front_index: int = 1,
        frame_interval: float = 0.0,
        join_timeout: float = 5.0,
        capture_factory: Callable[[int], "cv2.VideoCapture"] = cv2.VideoCapture,
    ) -> None:
        self._scanner = scanner
        self._back_index = back_index
        self._front_index = front_index
        self._frame_interval = frame_interval
        self._join_timeout = join_timeout
        self._capture_factory = capture_factory

    def _device_index(self, facing: CameraFacing) -> int:
        return self._front_index if facing == CameraFacing.FRONT else self._back_index

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def acquire(
        self,
        facing: CameraFacing,
        resolution: CameraResolution,
        on_frame: FrameCallback,
        on_closed: Optional[ClosedCallback] = None,
    ) -> CameraHandle:
        index = self._device_index(facing)

        try:
            capture = self._capture_factory(index)
        except Exception as e:
            raise CameraUnavailableError(f"Cannot open camera {index}: {e}") from e

        if not capture.isOpened():
            capture.release()
            raise CameraUnavailableError(f"Cannot open camera {index}")

        width, height = resolution.size
        capture.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, height)

        handle = CameraHandle(
            device_index=index,
            capture=capture,
            on_frame=on_frame,
            on_closed=on_closed,
        )
        handle.thread = threading.Thread(
            target=self._run,
            args=(handle,),
            name=f"camera-{index}",
            daemon=True,
        )
        handle.thread.start()

        logger.info(f"📷 Camera {index} acquired ({facing.value}, {width}x{height})")
        return handle

    def release(self, handle: CameraHandle) -> None:
        handle.stop_event.set()

        # Called from a frame callback: the loop exits after it returns
        if handle.thread is threading.current_thread():
            return

        if handle.thread is not None:
            handle.thread.join(self._join_timeout)
            if handle.thread.is_alive():
                logger.warning(f"Camera {handle.device_index} worker did not stop in time")
                return

        logger.info(f"📷 Camera {handle.device_index} released")

    def _run(self, handle: CameraHandle) -> None:
        """Capture loop: read, decode, deliver, until stopped."""
        capture = handle.capture
        try:
            while not handle.stop_event.is_set():
                ok, frame = capture.read()
                if not ok:
                    logger.warning(f"Failed to read frame from camera {handle.device_index}")
                    break

                try:
                    records = self._scanner.decode_frame(frame)
                except DecodeError as e:
                    logger.debug(f"Dropped frame: {e}")
                    continue

                try:
                    handle.on_frame(records)
                except Exception:
                    logger.exception("Frame callback failed")

                if self._frame_interval > 0:
                    handle.stop_event.wait(self._frame_interval)
        except Exception:
            logger.exception(f"Camera {handle.device_index} worker failed")
        finally:
            capture.release()

        # Ended without release(): the session has lost its frame source
        if not handle.stop_event.is_set() and handle.on_closed is not None:
            logger.warning(f"📷 Camera {handle.device_index} closed unexpectedly")
            try:
                handle.on_closed()
            except Exception:
                logger.exception("Camera closed callback failed")

    # =========================================================================
    # DEVICE CONTROLS
    # =========================================================================

    def set_torch(self, handle: CameraHandle, enabled: bool) -> bool:
        logger.info(f"Torch {'on' if enabled else 'off'} requested; OpenCV exposes no torch control")
        handle.torch = enabled
        return False

    def available_cameras(self, max_probe: int = 4) -> List[str]:
        """Probe device indices and list the ones that open."""
        found = []
        for index in range(max_probe):
            try:
                capture = self._capture_factory(index)
            except Exception:
                continue
            try:
                if capture.isOpened():
                    found.append(str(index))
            finally:
                capture.release()
        return found

