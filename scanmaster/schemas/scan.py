"""
==============================================================================
Scan Schemas Module
==============================================================================

Request / response schemas for scanning, generation and channel calls.

==============================================================================
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class ScanBytesRequest(BaseModel):
    """Base64-encoded image to scan."""

    image: str = Field(..., min_length=1, description="Base64 encoded image (PNG, JPEG, ...)")
    formats: List[str] = Field(default_factory=list, description="Format filter (empty = all)")

    @field_validator("image")
    @classmethod
    def strip_data_url(cls, value: str) -> str:
        """Accept data URLs (data:image/png;base64,...) as well as bare base64."""
        if value.startswith("data:") and "," in value:
            return value.split(",", 1)[1]
        return value


class ScanResponse(BaseModel):
    """Results of a static scan."""

    success: bool = Field(default=True)
    total: int = Field(ge=0)
    results: List[Dict[str, Any]]


class GenerateQrRequest(BaseModel):
    """QR generation request."""

    data: str = Field(..., min_length=1, max_length=4296)
    size: int = Field(default=512, ge=32, le=4096)
    error_correction_level: str = Field(default="MEDIUM", pattern="^(LOW|MEDIUM|QUARTILE|HIGH)$")
    margin: int = Field(default=4, ge=0, le=40)
    foreground_color: int = Field(default=0xFF000000)
    background_color: int = Field(default=0xFFFFFFFF)

    def to_arguments(self) -> Dict[str, Any]:
        """Argument bag for the generateQrCode channel method."""
        return {
            "data": self.data,
            "size": self.size,
            "errorCorrectionLevel": self.error_correction_level,
            "margin": self.margin,
            "foregroundColor": self.foreground_color,
            "backgroundColor": self.background_color,
        }


class ChannelResponse(BaseModel):
    """Outcome of a channel call."""

    success: bool
    value: Optional[Any] = None
    error: Optional[Dict[str, str]] = None
