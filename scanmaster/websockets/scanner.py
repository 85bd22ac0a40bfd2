"""
==============================================================================
Scanner WebSocket Module
==============================================================================

Real-time camera scanning from a remote device via WebSocket connection.
The client owns the camera; the server runs the scan session.

Protocol:
---------
1. Client sends init message with scan options
   {"type": "init", "formats": [...], "multiScan": true, "maxScans": 3, ...}
2. Client sends frames as base64
   {"type": "frame", "frame": "<base64 jpeg/png>"}
3. Server replies with
   - {"type": "feedback", "events": ["beep", "vibrate"]}
   - {"type": "accepted", "result": {...}}    every accepted code
   - {"type": "result", "result": {...}|null} once, then closes
4. Client may send {"type": "pause"}, {"type": "resume"}, {"type": "stop"}

==============================================================================
"""

import base64
import binascii
import logging
import threading
from collections import deque
from typing import Any, Deque, Dict, Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from scanmaster.scanner import (
    PushedFrameProvider,
    ScanConfiguration,
    ScanResult,
    ScanSessionController,
)
from scanmaster.scanner.feedback import QueueFeedbackProvider


# Module logger
logger = logging.getLogger(__name__)

router = APIRouter()


def get_frame_decoder():
    """Decoder used for client-pushed frames."""
    from scanmaster.scanner.core import BarcodeScanner

    return BarcodeScanner()


class ScannerWebSocketHandler:
    """
    Handler for remote camera scanning WebSocket connections.

    Manages the lifecycle of one scanning session:
    - Session initialization from client options
    - Frame processing
    - Feedback, accepted and terminal result reporting
    """

    def __init__(self, websocket: WebSocket, decoder: Any):
        self._websocket = websocket
        self._provider = PushedFrameProvider(decoder)
        self._feedback = QueueFeedbackProvider()
        self._controller = ScanSessionController(self._provider, self._feedback)
        # Filled from session callbacks (frame thread or timeout timer)
        self._outbox: Deque[Dict[str, Any]] = deque()
        self._outbox_lock = threading.Lock()
        self._finished = False

    @property
    def controller(self) -> ScanSessionController:
        return self._controller

    # =========================================================================
    # SESSION CALLBACKS
    # =========================================================================

    def _queue(self, message: Dict[str, Any]) -> None:
        with self._outbox_lock:
            self._outbox.append(message)

    def _on_accept(self, result: ScanResult) -> None:
        self._queue({"type": "accepted", "result": result.to_map()})

    def _on_result(self, result: Optional[ScanResult]) -> None:
        self._queue({"type": "result", "result": result.to_map() if result else None})

    async def flush(self) -> None:
        """Send pending feedback and session events."""
        events = self._feedback.drain()
        if events:
            await self._websocket.send_json({"type": "feedback", "events": events})

        with self._outbox_lock:
            pending = list(self._outbox)
            self._outbox.clear()

        for message in pending:
            await self._websocket.send_json(message)
            if message["type"] == "result":
                self._finished = True

    # =========================================================================
    # MESSAGES
    # =========================================================================

    async def send_error(self, message: str, code: str = "ERROR") -> None:
        """Send error message to client."""
        await self._websocket.send_json({
            "type": "error",
            "code": code,
            "message": message
        })

    async def handle_init(self, data: dict) -> bool:
        """Handle init message from client."""
        if data.get("type") != "init":
            await self.send_error("First message must be init", "INIT_REQUIRED")
            return False

        config = ScanConfiguration.from_arguments(data)
        logger.info(
            f"Init: formats={sorted(config.allowed_formats) or 'ALL'}, "
            f"multi_scan={config.multi_scan}, max_scans={config.max_scans}"
        )

        self._controller.start(config, on_result=self._on_result, on_accept=self._on_accept)

        if not self._controller.is_active:
            await self.send_error("Could not start scan session", "CAMERA_ERROR")
            return False

        await self._websocket.send_json({
            "type": "init",
            "config": {
                "formats": sorted(config.allowed_formats),
                "multiScan": config.multi_scan,
                "maxScans": config.max_scans,
                "timeoutSeconds": config.timeout_seconds,
            }
        })
        return True

    async def handle_frame(self, data: dict) -> None:
        """Handle frame message from client."""
        frame = data.get("frame")
        if not isinstance(frame, str) or not frame:
            await self.send_error("Frame data missing", "INVALID_FRAME")
            return

        if frame.startswith("data:") and "," in frame:
            frame = frame.split(",", 1)[1]

        try:
            image_bytes = base64.b64decode(frame, validate=True)
        except (binascii.Error, ValueError):
            await self.send_error("Frame is not valid base64", "INVALID_FRAME")
            return

        self._provider.push_image_bytes(image_bytes)

    async def handle_message(self, data: dict) -> None:
        """Dispatch one client message."""
        kind = data.get("type")

        if kind == "frame":
            await self.handle_frame(data)
        elif kind == "pause":
            self._controller.pause()
        elif kind == "resume":
            self._controller.resume()
        elif kind == "stop":
            logger.info("🛑 Client requested stop")
            self._controller.stop()
        else:
            await self.send_error(f"Unknown message type: {kind}", "UNKNOWN_MESSAGE")

    async def run(self) -> None:
        """Main handler loop."""
        await self._websocket.accept()
        logger.info("📱 Scanner WebSocket connected")

        disconnected = False
        try:
            # Wait for init message
            init_data = await self._websocket.receive_json()
            if not await self.handle_init(init_data):
                return

            while not self._finished:
                data = await self._websocket.receive_json()
                await self.handle_message(data)
                await self.flush()

        except WebSocketDisconnect:
            disconnected = True
            logger.info("📱 Client disconnected")
        except Exception as e:
            logger.error(f"WebSocket error: {e}")
            try:
                await self.send_error(str(e))
            except Exception:
                disconnected = True
        finally:
            self._controller.stop()
            if not disconnected:
                try:
                    await self._websocket.close()
                except Exception:
                    logger.debug("WebSocket already closed")
            logger.info("✅ Scanner WebSocket closed")


@router.websocket("/ws/scan")
async def websocket_scan(
    websocket: WebSocket,
    decoder: Any = Depends(get_frame_decoder),
):
    """Real-time barcode scanning via WebSocket."""
    handler = ScannerWebSocketHandler(websocket, decoder)
    await handler.run()
