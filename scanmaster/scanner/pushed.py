"""
==============================================================================
Pushed Frame Provider Module
==============================================================================

Camera provider whose frames come from a remote client (the WebSocket
scanner). The owner pushes each frame; it is decoded and delivered
synchronously on the pushing thread.

==============================================================================
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Optional

from .exceptions import CameraUnavailableError, DecodeError
from .models import CameraFacing, CameraResolution
from .providers import CameraProvider, ClosedCallback, FrameCallback


# Module logger
logger = logging.getLogger(__name__)


class _PushedHandle:
    def __init__(self, on_frame: FrameCallback, facing: CameraFacing) -> None:
        self.on_frame = on_frame
        self.facing = facing


class PushedFrameProvider(CameraProvider):
    """
    Camera provider fed by push_frame() / push_image_bytes().

    Only one session can be bound at a time.

    Attributes:
        _scanner: Frame decoder (BarcodeScanner or anything with
            decode_frame() and load_image())
    """

    def __init__(self, scanner: Any) -> None:
        self._scanner = scanner
        self._handle: Optional[_PushedHandle] = None
        self._lock = threading.Lock()
        # Reentrant: a session may be stopped from inside its own frame callback
        self._delivery_lock = threading.RLock()

    def acquire(
        self,
        facing: CameraFacing,
        resolution: CameraResolution,
        on_frame: FrameCallback,
        on_closed: Optional[ClosedCallback] = None,
    ) -> _PushedHandle:
        # Pushed sources never close on their own; the owner stops the session
        with self._lock:
            if self._handle is not None:
                raise CameraUnavailableError("Frame source already bound to a session")
            self._handle = _PushedHandle(on_frame, facing)
            return self._handle

    def release(self, handle: _PushedHandle) -> None:
        # Waits for an in-flight delivery so no frame lands after release
        with self._delivery_lock:
            with self._lock:
                if self._handle is handle:
                    self._handle = None

    @property
    def is_bound(self) -> bool:
        with self._lock:
            return self._handle is not None

    def push_frame(self, frame: Any) -> int:
        """
        Decode a frame and deliver its records to the bound session.

        Returns:
            Number of raw records delivered (0 when unbound or undecodable)
        """
        with self._delivery_lock:
            with self._lock:
                handle = self._handle
            if handle is None:
                return 0

            try:
                records = self._scanner.decode_frame(frame)
            except DecodeError as e:
                logger.debug(f"Dropped pushed frame: {e}")
                return 0

            handle.on_frame(records)
            return len(records)

    def push_image_bytes(self, image_bytes: bytes) -> int:
        """Decode encoded image bytes and push the frame."""
        try:
            frame = self._scanner.load_image(image_bytes)
        except DecodeError as e:
            logger.debug(f"Dropped pushed frame: {e}")
            return 0
        return self.push_frame(frame)
