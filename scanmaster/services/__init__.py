"""
==============================================================================
Services Package
==============================================================================

Service classes sitting between the transport layer (REST / WebSocket)
and the scanner package.

This package provides:
- MethodChannel: named-operation dispatcher (host call boundary)
- QrCodeGenerator: QR rendering to PNG

==============================================================================
"""

from .channel import (
    ChannelError,
    MethodChannel,
    MethodResult,
    build_method_channel,
    get_method_channel,
)
from .generator_service import GenerationOptions, QrCodeGenerator

__all__ = [
    "ChannelError",
    "GenerationOptions",
    "MethodChannel",
    "MethodResult",
    "QrCodeGenerator",
    "build_method_channel",
    "get_method_channel",
]
