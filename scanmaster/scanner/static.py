"""
==============================================================================
Static Image Scanning
==============================================================================

One-shot, stateless scanning of still images. Independent of any camera
session: every non-empty detection passing the format filter is returned,
with no deduplication and no termination policy.

==============================================================================
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Union

from .exceptions import DecodeError
from .formats import zbar_symbols_for
from .models import ScanConfiguration, ScanResult
from .normalizer import ResultNormalizer
from .providers import StaticDecoder


# Module logger
logger = logging.getLogger(__name__)


class StaticScanner:
    """
    Still-image scanner.

    Failures (missing file, bad bytes, decoder errors) yield an empty list.

    Example:
        >>> scanner = StaticScanner(BarcodeScanner())
        >>> results = scanner.scan_from_image_path("label.png")
    """

    def __init__(
        self,
        decoder: StaticDecoder,
        normalizer: Optional[ResultNormalizer] = None,
    ) -> None:
        self._decoder = decoder
        self._normalizer = normalizer or ResultNormalizer()

    @property
    def decoder(self) -> StaticDecoder:
        return self._decoder

    def scan_from_bytes(
        self,
        image_bytes: bytes,
        config: Optional[ScanConfiguration] = None,
    ) -> List[ScanResult]:
        """
        Decode every code in encoded image bytes.

        Args:
            image_bytes: PNG / JPEG / ... file contents
            config: Only allowed_formats is consulted

        Returns:
            Accepted results in decoder order (empty on failure)
        """
        config = config or ScanConfiguration()

        try:
            records = self._decoder.decode(
                image_bytes, symbols=zbar_symbols_for(config.allowed_formats)
            )
        except DecodeError as e:
            logger.warning(f"Static decode failed: {e}")
            return []
        except Exception as e:
            logger.error(f"Decoder error: {e}")
            return []

        results = []
        for detection in self._normalizer.normalize_all(records):
            if not detection.payload:
                continue
            if not config.accepts_format(detection.format_tag):
                continue
            results.append(self._normalizer.to_result(detection))

        logger.info(f"📊 Static scan found {len(results)} code(s)")
        return results

    def scan_from_image_path(
        self,
        image_path: Union[str, Path],
        config: Optional[ScanConfiguration] = None,
    ) -> List[ScanResult]:
        """Decode every code in an image file (empty if it does not exist)."""
        path = Path(image_path)
        if not path.is_file():
            logger.error(f"Image not found: {path}")
            return []

        try:
            image_bytes = path.read_bytes()
        except OSError as e:
            logger.error(f"Could not read image {path}: {e}")
            return []

        return self.scan_from_bytes(image_bytes, config)
