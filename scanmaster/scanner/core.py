"""
==============================================================================
Barcode Scanner Core Module
==============================================================================

Barcode decoding with OpenCV and pyzbar.

Features:
---------
- Frame decoding (numpy / OpenCV images)
- Encoded image decoding (PNG, JPEG, ... bytes)
- Symbology restriction pushed down into ZBar

The scanner returns raw pyzbar ``Decoded`` records; translation into scan
results is the ResultNormalizer's job.

==============================================================================
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import cv2
import numpy as np
from pyzbar.pyzbar import Decoded, ZBarSymbol, decode

from .exceptions import DecodeError
from .providers import StaticDecoder


# Module logger
logger = logging.getLogger(__name__)


class BarcodeScanner(StaticDecoder):
    """
    pyzbar-backed barcode decoder.

    ``symbols`` arguments take ZBar symbol names (see
    ``formats.zbar_symbols_for``): None decodes every symbology, an
    empty list decodes none.

    Example:
        >>> scanner = BarcodeScanner()
        >>> records = scanner.decode_frame(frame)
        >>> records = scanner.decode(open("label.png", "rb").read())
    """

    @staticmethod
    def _zbar_symbols(symbols: Optional[Sequence[str]]) -> Optional[List[ZBarSymbol]]:
        if symbols is None:
            return None
        resolved = []
        for name in symbols:
            try:
                resolved.append(ZBarSymbol[name])
            except KeyError:
                logger.debug(f"ZBar has no symbology {name!r}")
        return resolved

    # =========================================================================
    # FRAME DECODING
    # =========================================================================

    def decode_frame(
        self,
        frame: np.ndarray,
        symbols: Optional[Sequence[str]] = None,
    ) -> List[Decoded]:
        """
        Decode every barcode in a frame.

        Args:
            frame: OpenCV image (BGR, BGRA or grayscale)
            symbols: ZBar symbol names to enable (None = all)

        Returns:
            Raw pyzbar records in decoder order

        Raises:
            DecodeError: Frame is empty or ZBar failed
        """
        if frame is None or frame.size == 0:
            raise DecodeError("Empty frame")

        zbar_symbols = self._zbar_symbols(symbols)
        if zbar_symbols is not None and not zbar_symbols:
            return []

        if frame.ndim == 3:
            code = cv2.COLOR_BGRA2GRAY if frame.shape[2] == 4 else cv2.COLOR_BGR2GRAY
            gray = cv2.cvtColor(frame, code)
        else:
            gray = frame

        try:
            return decode(gray, symbols=zbar_symbols)
        except Exception as e:
            raise DecodeError(f"Decode error: {e}") from e

    # =========================================================================
    # STILL IMAGES
    # =========================================================================

    @staticmethod
    def load_image(image_bytes: bytes) -> np.ndarray:
        """
        Decode encoded image bytes into an OpenCV frame.

        Raises:
            DecodeError: Bytes are empty or not a supported image
        """
        if not image_bytes:
            raise DecodeError("Empty image data")

        nparr = np.frombuffer(image_bytes, np.uint8)
        frame = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
        if frame is None:
            raise DecodeError("Could not decode image data")
        return frame

    def decode(self, image_bytes: bytes, symbols: Optional[Sequence[str]] = None) -> List[Decoded]:
        """Decode every barcode in encoded image bytes."""
        return self.decode_frame(self.load_image(image_bytes), symbols)
