"""
==============================================================================
Schemas Package
==============================================================================

Pydantic request / response schemas for the REST API.

==============================================================================
"""

from .common import FormatsResponse, SessionStateResponse
from .scan import ChannelResponse, GenerateQrRequest, ScanBytesRequest, ScanResponse

__all__ = [
    "ChannelResponse",
    "FormatsResponse",
    "GenerateQrRequest",
    "ScanBytesRequest",
    "ScanResponse",
    "SessionStateResponse",
]
