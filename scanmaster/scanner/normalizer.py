"""
==============================================================================
Result Normalizer Module
==============================================================================

Translates raw decoder output (pyzbar ``Decoded`` records, or anything with
the same shape) into platform-neutral ScanDetection / ScanResult objects.

Translations:
-------------
- Format tag: ZBar symbol type -> canonical BarcodeFormat tag
- Geometry: ZBar polygon -> four corners ordered TL, TR, BR, BL
- Metadata: bounding box + semantic fields from the payload classifier

The normalizer holds no state and never raises for missing fields.

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

import cv2
import numpy as np

from .formats import format_from_zbar
from .models import ScanDetection, ScanPoint, ScanResult
from .payloads import extract_semantic_metadata


# Module logger
logger = logging.getLogger(__name__)


def order_corners(points: np.ndarray) -> np.ndarray:
    """
    Order four points as top-left, top-right, bottom-right, bottom-left.

    Args:
        points: Array of shape (4, 2)

    Returns:
        Array of shape (4, 2) in TL, TR, BR, BL order
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    sums = pts.sum(axis=1)
    diffs = pts[:, 1] - pts[:, 0]

    return np.array([
        pts[np.argmin(sums)],
        pts[np.argmin(diffs)],
        pts[np.argmax(sums)],
        pts[np.argmax(diffs)],
    ])


def _rect_corners(rect: Sequence[int]) -> np.ndarray:
    left, top, width, height = rect
    return np.array([
        (left, top),
        (left + width, top),
        (left + width, top + height),
        (left, top + height),
    ], dtype=np.float64)


class ResultNormalizer:
    """
    Stateless translator from decoder records to scan detections.

    Example:
        >>> normalizer = ResultNormalizer()
        >>> detection = normalizer.normalize(decoded)
        >>> result = normalizer.to_result(detection)
    """

    @staticmethod
    def decode_payload(data: Any) -> str:
        """Decode raw payload bytes as UTF-8 (invalid bytes replaced)."""
        if data is None:
            return ""
        if isinstance(data, str):
            return data
        return bytes(data).decode("utf-8", errors="replace")

    @staticmethod
    def corner_points(raw: Any) -> List[ScanPoint]:
        """
        Extract ordered corner points from a decoder record.

        Polygons of four points are ordered directly; longer polygons
        (linear barcodes report every scanline hit) are reduced to their
        minimum-area rectangle. Without a usable polygon the bounding
        rectangle is used; without either the result is empty.
        """
        polygon = getattr(raw, "polygon", None) or []
        rect = getattr(raw, "rect", None)

        try:
            if len(polygon) == 4:
                corners = order_corners(np.array([tuple(p) for p in polygon]))
            elif len(polygon) >= 3:
                box = cv2.boxPoints(cv2.minAreaRect(
                    np.array([tuple(p) for p in polygon], dtype=np.float32)
                ))
                corners = order_corners(box)
            elif rect is not None:
                corners = _rect_corners(tuple(rect))
            else:
                return []
        except (TypeError, ValueError, cv2.error) as e:
            logger.debug(f"Unusable geometry: {e}")
            return []

        return [ScanPoint(x=float(x), y=float(y)) for x, y in corners]

    @staticmethod
    def metadata(raw: Any, payload: str) -> Dict[str, Any]:
        """Bounding box plus at most one semantic entry."""
        metadata: Dict[str, Any] = {}

        rect = getattr(raw, "rect", None)
        if rect is not None:
            try:
                left, top, width, height = tuple(rect)
                metadata["boundingBox"] = {
                    "left": int(left),
                    "top": int(top),
                    "right": int(left + width),
                    "bottom": int(top + height),
                }
            except (TypeError, ValueError):
                pass

        metadata.update(extract_semantic_metadata(payload))
        return metadata

    def normalize(self, raw: Any) -> ScanDetection:
        """
        Translate one decoder record.

        Args:
            raw: Object with ``data``, ``type`` and optional ``rect`` /
                ``polygon`` attributes (pyzbar ``Decoded`` shape)

        Returns:
            ScanDetection (payload may be empty; callers discard those)
        """
        payload = self.decode_payload(getattr(raw, "data", None))
        format_tag = format_from_zbar(getattr(raw, "type", None))

        return ScanDetection(
            payload=payload,
            format_tag=format_tag.value,
            corner_points=self.corner_points(raw),
            metadata=self.metadata(raw, payload) if payload else {},
        )

    def normalize_all(self, raws: Iterable[Any]) -> List[ScanDetection]:
        """Translate every record of one decode pass, in order."""
        return [self.normalize(raw) for raw in raws]

    @staticmethod
    def to_result(detection: ScanDetection, timestamp: Optional[int] = None) -> ScanResult:
        """Snapshot a detection as a ScanResult."""
        return ScanResult.from_detection(detection, timestamp)
