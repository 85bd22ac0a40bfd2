"""
==============================================================================
QR Generation Endpoints
==============================================================================

Render QR codes as PNG images.

==============================================================================
"""

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from scanmaster.core import exceptions
from scanmaster.schemas import GenerateQrRequest
from scanmaster.services import MethodChannel, get_method_channel


router = APIRouter(prefix="/generate", tags=["Generate"])


@router.post("/qr", response_class=Response)
def generate_qr(
    request: GenerateQrRequest,
    channel: MethodChannel = Depends(get_method_channel),
):
    """
    Generate a QR code.

    Returns the PNG image directly (``image/png``).
    """
    outcome = channel.invoke("generateQrCode", request.to_arguments())
    if not outcome.success:
        raise exceptions.from_channel_error(outcome.code, outcome.message)

    return Response(content=outcome.value, media_type="image/png")
