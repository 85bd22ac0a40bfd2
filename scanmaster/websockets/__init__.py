"""
==============================================================================
WebSocket Package
==============================================================================

Real-time WebSocket handlers for barcode scanning.

Handlers:
---------
- scanner: Remote camera scanning (client pushes frames)

==============================================================================
"""

from .scanner import router as scanner_router

__all__ = ["scanner_router"]
