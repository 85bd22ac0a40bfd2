"""
==============================================================================
Scanner Package - Barcode Detection
==============================================================================

Scan session control and result normalization, decoupled from the
decoder and camera backends.

Classes:
--------
- ScanSessionController: camera session lifecycle, filtering, dedup
- ResultNormalizer: decoder records -> ScanDetection / ScanResult
- StaticScanner: one-shot still image scanning
- PushedFrameProvider: frames pushed by a remote client
- ScanConfiguration, ScanDetection, ScanResult: data model

Backends (import explicitly; they load OpenCV capture and libzbar):
-------------------------------------------------------------------
- scanmaster.scanner.core.BarcodeScanner
- scanmaster.scanner.camera.OpenCVCameraProvider

==============================================================================
"""

from .exceptions import CameraUnavailableError, DecodeError, ScannerError
from .formats import BarcodeFormat, supported_formats
from .models import (
    CameraFacing,
    CameraResolution,
    FeedbackOptions,
    ScanConfiguration,
    ScanDetection,
    ScanPoint,
    ScanResult,
)
from .normalizer import ResultNormalizer
from .providers import CameraProvider, FeedbackProvider, StaticDecoder
from .pushed import PushedFrameProvider
from .session import ScanSessionController, SessionState
from .static import StaticScanner

__all__ = [
    "BarcodeFormat",
    "CameraFacing",
    "CameraProvider",
    "CameraResolution",
    "CameraUnavailableError",
    "DecodeError",
    "FeedbackOptions",
    "FeedbackProvider",
    "PushedFrameProvider",
    "ResultNormalizer",
    "ScanConfiguration",
    "ScanDetection",
    "ScanPoint",
    "ScanResult",
    "ScanSessionController",
    "ScannerError",
    "SessionState",
    "StaticDecoder",
    "StaticScanner",
    "supported_formats",
]
