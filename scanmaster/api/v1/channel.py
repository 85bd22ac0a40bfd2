"""
==============================================================================
Channel Endpoint
==============================================================================

JSON transport for the method channel: POST a method name and an argument
bag, get back the value or an error pair.

Binary values travel as base64 strings in both directions
(``imageBytes`` in, generated PNG out).

==============================================================================
"""

import base64
import binascii
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends

from scanmaster.core import exceptions
from scanmaster.schemas import ChannelResponse
from scanmaster.services import MethodChannel, get_method_channel


router = APIRouter(prefix="/channel", tags=["Channel"])

# Arguments carried as base64 over JSON
_BINARY_ARGUMENTS = ("imageBytes",)


def decode_arguments(arguments: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Turn base64 binary arguments back into bytes."""
    decoded = dict(arguments or {})
    for name in _BINARY_ARGUMENTS:
        value = decoded.get(name)
        if isinstance(value, str):
            try:
                decoded[name] = base64.b64decode(value, validate=True)
            except (binascii.Error, ValueError):
                raise exceptions.invalid_argument(f"'{name}' is not valid base64", name)
    return decoded


def encode_value(value: Any) -> Any:
    """Make a channel value JSON-safe (bytes -> base64)."""
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    return value


@router.get("")
async def list_methods(channel: MethodChannel = Depends(get_method_channel)):
    """List available channel methods."""
    return {"success": True, "methods": channel.methods}


@router.post("/{method}", response_model=ChannelResponse)
def invoke_method(
    method: str,
    arguments: Optional[Dict[str, Any]] = Body(default=None),
    channel: MethodChannel = Depends(get_method_channel),
):
    """
    Invoke a channel method.

    Errors are returned in the body (``success: false``) with HTTP 200, the
    same way the channel reports them to in-process callers.
    """
    outcome = channel.invoke(method, decode_arguments(arguments))

    if outcome.success:
        return ChannelResponse(success=True, value=encode_value(outcome.value))

    return ChannelResponse(
        success=False,
        error={"code": outcome.code, "message": outcome.message},
    )
