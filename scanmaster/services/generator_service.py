"""
==============================================================================
QR Generation Service
==============================================================================

Renders QR codes to PNG with the ``qrcode`` library and Pillow.

Options (argument bag names):
-----------------------------
- size: output edge length in pixels (default 512)
- errorCorrectionLevel: LOW / MEDIUM / QUARTILE / HIGH (default MEDIUM)
- margin: quiet zone in modules (default 4)
- foregroundColor / backgroundColor: ARGB integers

==============================================================================
"""

from __future__ import annotations

import io
import logging
from typing import Any, Mapping, Optional, Tuple

import numpy as np
import qrcode
from PIL import Image
from pydantic import BaseModel, ConfigDict


# Module logger
logger = logging.getLogger(__name__)


_ERROR_CORRECTION = {
    "LOW": qrcode.constants.ERROR_CORRECT_L,
    "MEDIUM": qrcode.constants.ERROR_CORRECT_M,
    "QUARTILE": qrcode.constants.ERROR_CORRECT_Q,
    "HIGH": qrcode.constants.ERROR_CORRECT_H,
}

BLACK = 0xFF000000
WHITE = 0xFFFFFFFF


def argb_to_rgba(color: int) -> Tuple[int, int, int, int]:
    """Convert a (possibly signed) 32-bit ARGB integer to an RGBA tuple."""
    value = color & 0xFFFFFFFF
    return (
        (value >> 16) & 0xFF,
        (value >> 8) & 0xFF,
        value & 0xFF,
        (value >> 24) & 0xFF,
    )


def _number(value: Any, default: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return int(value)


class GenerationOptions(BaseModel):
    """QR rendering options."""

    model_config = ConfigDict(frozen=True)

    size: int = 512
    error_correction_level: str = "MEDIUM"
    margin: int = 4
    foreground_color: int = BLACK
    background_color: int = WHITE

    @classmethod
    def from_arguments(cls, arguments: Optional[Mapping[str, Any]] = None) -> "GenerationOptions":
        """Build options from an argument bag; bad values fall back to defaults."""
        args = arguments or {}
        level = args.get("errorCorrectionLevel")
        return cls(
            size=max(_number(args.get("size"), 512), 1),
            error_correction_level=(
                level.upper() if isinstance(level, str) and level.upper() in _ERROR_CORRECTION
                else "MEDIUM"
            ),
            margin=max(_number(args.get("margin"), 4), 0),
            foreground_color=_number(args.get("foregroundColor"), BLACK),
            background_color=_number(args.get("backgroundColor"), WHITE),
        )


class QrCodeGenerator:
    """
    QR code renderer.

    Example:
        >>> generator = QrCodeGenerator()
        >>> png = generator.generate("https://example.com")
    """

    def render(self, data: str, options: Optional[GenerationOptions] = None) -> Image.Image:
        """
        Render a QR code as an RGBA Pillow image.

        Raises:
            ValueError: Empty data
            qrcode.exceptions.DataOverflowError: Data does not fit a QR code
        """
        if not data:
            raise ValueError("QR data must not be empty")

        options = options or GenerationOptions()
        qr = qrcode.QRCode(
            error_correction=_ERROR_CORRECTION[options.error_correction_level],
            border=options.margin,
        )
        qr.add_data(data)
        qr.make(fit=True)

        modules = np.array(qr.get_matrix(), dtype=bool)
        pixels = np.where(
            modules[..., None],
            np.array(argb_to_rgba(options.foreground_color), dtype=np.uint8),
            np.array(argb_to_rgba(options.background_color), dtype=np.uint8),
        ).astype(np.uint8)

        image = Image.fromarray(pixels)
        return image.resize((options.size, options.size), Image.Resampling.NEAREST)

    def generate(self, data: str, options: Optional[GenerationOptions] = None) -> bytes:
        """Render a QR code and encode it as PNG bytes."""
        image = self.render(data, options)

        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        logger.debug(f"Generated {image.width}x{image.height} QR code ({len(data)} chars)")
        return buffer.getvalue()
