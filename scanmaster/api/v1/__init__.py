"""
==============================================================================
API v1 Endpoints
==============================================================================

Version 1 of the REST API.

Routers:
--------
- health: Health check endpoints
- scan: Static scanning and camera session control
- generate: QR code generation
- channel: Method channel transport

==============================================================================
"""

from . import health, scan, generate, channel

__all__ = ["health", "scan", "generate", "channel"]
