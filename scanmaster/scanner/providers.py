"""
==============================================================================
Scanner Collaborator Interfaces
==============================================================================

Narrow capability interfaces the session controller and static scanner
depend on. Concrete implementations live in ``camera``, ``pushed``,
``core`` and ``feedback``.

Interfaces:
-----------
- CameraProvider: acquire/release a camera that delivers raw detections
- StaticDecoder: one-shot decode of encoded image bytes
- FeedbackProvider: beep / vibrate side effects

==============================================================================
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional

from .models import CameraFacing, CameraResolution


# Receives the raw decoder records found in one processed frame
FrameCallback = Callable[[List[Any]], None]

# Called when a camera ends without being released
ClosedCallback = Callable[[], None]


class CameraProvider(ABC):
    """Source of per-frame raw detections."""

    @abstractmethod
    def acquire(
        self,
        facing: CameraFacing,
        resolution: CameraResolution,
        on_frame: FrameCallback,
        on_closed: Optional[ClosedCallback] = None,
    ) -> Any:
        """
        Open a camera and start delivering frames.

        Frames are delivered serially on one worker context. on_closed is
        called once if the camera stops delivering frames on its own
        (device lost, read failure); it is not called after release().

        Returns:
            Opaque handle passed back to release() / set_torch()

        Raises:
            CameraUnavailableError: Device missing, busy or not bindable
        """

    @abstractmethod
    def release(self, handle: Any) -> None:
        """Stop delivery and free the device before returning."""

    def set_torch(self, handle: Any, enabled: bool) -> bool:
        """Switch the torch; returns False when the camera has none."""
        return False

    def has_flash(self) -> bool:
        return False

    def available_cameras(self) -> List[str]:
        return []


class StaticDecoder(ABC):
    """One-shot decoder for still images."""

    @abstractmethod
    def decode(self, image_bytes: bytes, symbols: Any = None) -> List[Any]:
        """
        Decode every code in an encoded image.

        Raises:
            DecodeError: Bytes are not an image or the decoder failed
        """


class FeedbackProvider(ABC):
    """Fire-and-forget user feedback."""

    @abstractmethod
    def beep(self) -> None:
        ...

    @abstractmethod
    def vibrate(self) -> None:
        ...
