"""
==============================================================================
ScanMaster
==============================================================================

Barcode / QR scanning service.

Packages:
---------
- scanner: session controller, result normalizer, decoders, camera providers
- services: method channel dispatcher and QR generation
- api: REST endpoints
- websockets: real-time camera sessions over WebSocket

==============================================================================
"""

__version__ = "1.0.0"
