"""
==============================================================================
Scan Endpoints
==============================================================================

Static image scanning and camera session control.

==============================================================================
"""

import base64
import binascii
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from scanmaster.config import get_settings
from scanmaster.core import exceptions
from scanmaster.schemas import (
    FormatsResponse,
    ScanBytesRequest,
    ScanResponse,
    SessionStateResponse,
)
from scanmaster.services import MethodChannel, get_method_channel


router = APIRouter(prefix="/scan", tags=["Scan"])


class ScanController:
    """Controller for scan operations."""

    def __init__(self, channel: MethodChannel):
        self._channel = channel
        self._settings = get_settings()

    def _call(self, method: str, arguments: Optional[dict] = None):
        outcome = self._channel.invoke(method, arguments)
        if not outcome.success:
            raise exceptions.from_channel_error(outcome.code, outcome.message)
        return outcome.value

    def check_size(self, image_bytes: bytes) -> None:
        """Reject uploads over the configured limit."""
        if len(image_bytes) > self._settings.max_upload_bytes:
            raise exceptions.payload_too_large(self._settings.max_upload_bytes)

    def read_upload(self, file: UploadFile) -> bytes:
        """Read an upload, stopping one byte past the configured limit."""
        image_bytes = file.file.read(self._settings.max_upload_bytes + 1)
        self.check_size(image_bytes)
        return image_bytes

    def scan_bytes(self, image_bytes: bytes, formats: List[str]) -> dict:
        """Scan one encoded image."""
        if not image_bytes:
            raise exceptions.invalid_argument("Image is empty", "image")
        self.check_size(image_bytes)

        results = self._call("scanFromBytes", {"imageBytes": image_bytes, "formats": formats})
        return {"success": True, "total": len(results), "results": results}

    def formats(self) -> dict:
        """Supported format tags."""
        return {"success": True, "formats": self._call("getSupportedFormats")}

    def session(self) -> dict:
        """Current camera session state."""
        state = self._channel.controller.state
        return {
            "success": True,
            "active": state.is_active,
            "paused": state.is_paused,
            "accepted_count": state.accepted_count,
        }

    def control(self, method: str, require_active: bool = True) -> dict:
        """Pause / resume / stop the camera session."""
        if require_active and not self._channel.controller.is_active:
            raise exceptions.session_not_active()
        self._call(method)
        return self.session()


def _split_formats(formats: Optional[str]) -> List[str]:
    if not formats:
        return []
    return [f.strip() for f in formats.split(",") if f.strip()]


@router.get("/formats", response_model=FormatsResponse)
async def get_formats(channel: MethodChannel = Depends(get_method_channel)):
    """List the format tags this service can decode."""
    return ScanController(channel).formats()


@router.post("/image", response_model=ScanResponse)
def scan_image(
    file: UploadFile = File(...),
    formats: Optional[str] = Form(None),
    channel: MethodChannel = Depends(get_method_channel),
):
    """
    Scan an uploaded image.

    Args:
        file: Image file (PNG, JPEG, ...)
        formats: Comma-separated format filter
    """
    controller = ScanController(channel)
    image_bytes = controller.read_upload(file)
    return controller.scan_bytes(image_bytes, _split_formats(formats))


@router.post("/bytes", response_model=ScanResponse)
def scan_bytes(
    request: ScanBytesRequest,
    channel: MethodChannel = Depends(get_method_channel),
):
    """Scan a base64-encoded image."""
    try:
        image_bytes = base64.b64decode(request.image, validate=True)
    except (binascii.Error, ValueError):
        raise exceptions.invalid_argument("Image is not valid base64", "image")

    return ScanController(channel).scan_bytes(image_bytes, request.formats)


@router.get("/session", response_model=SessionStateResponse)
async def get_session(channel: MethodChannel = Depends(get_method_channel)):
    """Camera session state."""
    return ScanController(channel).session()


@router.post("/session/pause", response_model=SessionStateResponse)
def pause_session(channel: MethodChannel = Depends(get_method_channel)):
    """Pause the camera session."""
    return ScanController(channel).control("pauseScanner")


@router.post("/session/resume", response_model=SessionStateResponse)
def resume_session(channel: MethodChannel = Depends(get_method_channel)):
    """Resume the camera session."""
    return ScanController(channel).control("resumeScanner")


@router.post("/session/stop", response_model=SessionStateResponse)
def stop_session(channel: MethodChannel = Depends(get_method_channel)):
    """Stop the camera session and release the camera."""
    return ScanController(channel).control("stopScanner", require_active=False)
