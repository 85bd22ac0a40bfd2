"""
==============================================================================
Health Check Endpoints
==============================================================================

System health status endpoints for monitoring and orchestration.

==============================================================================
"""

import cv2
import numpy as np
from fastapi import APIRouter, Depends

from scanmaster.services import MethodChannel, get_method_channel


router = APIRouter(prefix="/health", tags=["Health"])


class HealthController:
    """Controller for health check operations."""

    def __init__(self, channel: MethodChannel):
        self._channel = channel

    def check_decoder(self) -> str:
        """Run the decoder on a blank image."""
        try:
            ok, png = cv2.imencode(".png", np.full((16, 16), 255, dtype=np.uint8))
            if not ok:
                return "unhealthy"
            self._channel.static_scanner.decoder.decode(png.tobytes())
            return "healthy"
        except Exception:
            return "unhealthy"

    def check_session(self) -> dict:
        """Camera session status."""
        state = self._channel.controller.state
        return {
            "status": "scanning" if state.is_active else "idle",
            "paused": state.is_paused,
        }

    def get_health(self) -> dict:
        """Get full health status."""
        decoder_status = self.check_decoder()
        session = self.check_session()

        overall = "healthy" if decoder_status == "healthy" else "degraded"

        return {
            "status": overall,
            "components": {
                "api": "healthy",
                "decoder": decoder_status,
                "camera_session": session["status"]
            },
            "details": {
                "session_paused": session["paused"]
            }
        }


@router.get("")
async def health_check(channel: MethodChannel = Depends(get_method_channel)):
    """
    Health check endpoint.

    Returns system status including API, decoder and camera session.
    """
    controller = HealthController(channel)
    return controller.get_health()


@router.get("/ready")
async def readiness_check():
    """Readiness probe for container orchestration."""
    return {"ready": True}


@router.get("/live")
async def liveness_check():
    """Liveness probe for container orchestration."""
    return {"alive": True}
