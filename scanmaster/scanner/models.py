"""
==============================================================================
Scanner Models Module
==============================================================================

Pydantic models for scan configuration, detections and results.

Models:
-------
- ScanConfiguration: immutable per-session options built from an argument bag
- ScanDetection: one decoded code, normalized, before acceptance
- ScanResult: serializable snapshot returned to callers
- ScanPoint: one corner in image coordinates

==============================================================================
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from .formats import BarcodeFormat, normalize_format_name


class CameraFacing(str, Enum):
    """Which camera the session asks for."""

    BACK = "BACK"
    FRONT = "FRONT"


class CameraResolution(str, Enum):
    """Capture resolution presets."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    VERY_HIGH = "VERY_HIGH"

    @property
    def size(self) -> tuple:
        """(width, height) in pixels."""
        return _RESOLUTION_SIZES[self]


_RESOLUTION_SIZES = {
    CameraResolution.LOW: (640, 480),
    CameraResolution.MEDIUM: (1280, 720),
    CameraResolution.HIGH: (1920, 1080),
    CameraResolution.VERY_HIGH: (3840, 2160),
}


# =============================================================================
# ARGUMENT BAG COERCION
# =============================================================================

def _as_bool(value: Any, default: bool) -> bool:
    return value if isinstance(value, bool) else default


def _as_int(value: Any, default: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return int(value)


def _as_enum(enum_cls, value: Any, default):
    if not isinstance(value, str):
        return default
    try:
        return enum_cls(value.strip().upper())
    except ValueError:
        return default


def _as_format_set(value: Any) -> FrozenSet[str]:
    if not isinstance(value, (list, tuple, set, frozenset)):
        return frozenset()
    return frozenset(
        normalize_format_name(item)
        for item in value
        if isinstance(item, str) and item.strip()
    )


# =============================================================================
# CONFIGURATION
# =============================================================================

class FeedbackOptions(BaseModel):
    """Side effects fired on every accepted detection."""

    model_config = ConfigDict(frozen=True)

    beep: bool = True
    vibrate: bool = True


class ScanConfiguration(BaseModel):
    """
    Options snapshot for one scanning session.

    Every field has a default, so an empty argument bag yields a
    single-scan, all-formats session with feedback on.

    Attributes:
        allowed_formats: Accepted format tags (empty = accept all)
        multi_scan: Keep scanning after the first accepted code
        max_scans: Accepted codes that end a multi-scan session (<= 0 = unbounded)
        feedback: Beep / vibrate switches
        camera_facing: Passed through to the camera provider
        camera_resolution: Passed through to the camera provider
        enable_flash: Turn the torch on once the camera is acquired
        timeout_seconds: End the session with no result after this long (<= 0 = never)
    """

    model_config = ConfigDict(frozen=True)

    allowed_formats: FrozenSet[str] = Field(default_factory=frozenset)
    multi_scan: bool = False
    max_scans: int = 1
    feedback: FeedbackOptions = Field(default_factory=FeedbackOptions)
    camera_facing: CameraFacing = CameraFacing.BACK
    camera_resolution: CameraResolution = CameraResolution.MEDIUM
    enable_flash: bool = False
    timeout_seconds: int = 0

    @classmethod
    def from_arguments(cls, arguments: Optional[Mapping[str, Any]] = None) -> "ScanConfiguration":
        """
        Build a configuration from a loosely-typed argument bag.

        Values of the wrong type fall back to the field default instead of
        raising; numbers are never range-checked.

        Args:
            arguments: Mapping using the wire names (formats, multiScan, ...)

        Returns:
            Frozen ScanConfiguration
        """
        args = arguments or {}
        return cls(
            allowed_formats=_as_format_set(args.get("formats")),
            multi_scan=_as_bool(args.get("multiScan"), False),
            max_scans=_as_int(args.get("maxScans"), 1),
            feedback=FeedbackOptions(
                beep=_as_bool(args.get("beepOnScan"), True),
                vibrate=_as_bool(args.get("vibrateOnScan"), True),
            ),
            camera_facing=_as_enum(CameraFacing, args.get("cameraFacing"), CameraFacing.BACK),
            camera_resolution=_as_enum(
                CameraResolution, args.get("cameraResolution"), CameraResolution.MEDIUM
            ),
            enable_flash=_as_bool(args.get("enableFlash"), False),
            timeout_seconds=_as_int(args.get("timeoutSeconds"), 0),
        )

    def accepts_format(self, format_tag: str) -> bool:
        """Check a format tag against the filter (empty filter admits all)."""
        return not self.allowed_formats or format_tag in self.allowed_formats

    @property
    def is_capped(self) -> bool:
        """True when a multi-scan session ends after max_scans codes."""
        return self.multi_scan and self.max_scans > 0


# =============================================================================
# DETECTIONS AND RESULTS
# =============================================================================

class ScanPoint(BaseModel):
    """Corner point in image coordinates."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float


class ScanDetection(BaseModel):
    """
    One decoded code, already translated out of the decoder's types.

    Corner points are ordered top-left, top-right, bottom-right,
    bottom-left, or empty when the decoder reported no geometry.
    """

    model_config = ConfigDict(frozen=True)

    payload: str
    format_tag: str = BarcodeFormat.UNKNOWN.value
    corner_points: List[ScanPoint] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)


def current_millis() -> int:
    """Wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class ScanResult(BaseModel):
    """
    Serializable scan result delivered to callers.

    Wire form (see to_map):
        {"data", "format", "timestamp", "cornerPoints": [{"x", "y"}], "metadata"}
    """

    model_config = ConfigDict(populate_by_name=True)

    data: str
    format: str
    timestamp: int = Field(default_factory=current_millis)
    corner_points: List[ScanPoint] = Field(default_factory=list, alias="cornerPoints")
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_detection(cls, detection: ScanDetection, timestamp: Optional[int] = None) -> "ScanResult":
        """Snapshot a detection with a capture timestamp."""
        return cls(
            data=detection.payload,
            format=detection.format_tag,
            timestamp=timestamp if timestamp is not None else current_millis(),
            corner_points=list(detection.corner_points),
            metadata=dict(detection.metadata),
        )

    @classmethod
    def from_map(cls, data: Mapping[str, Any]) -> "ScanResult":
        """Rebuild a result from its wire form."""
        return cls.model_validate(dict(data))

    def to_map(self) -> Dict[str, Any]:
        """Wire form with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)
