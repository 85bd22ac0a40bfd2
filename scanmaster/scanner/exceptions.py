"""
Scanner Exceptions

Raised by decoders and camera providers. None of these cross the session
controller or static scan boundary; they degrade to "no result" there.
"""


class ScannerError(Exception):
    """Base class for scanner failures."""


class CameraUnavailableError(ScannerError):
    """Camera could not be opened or bound (missing device, busy, denied)."""


class DecodeError(ScannerError):
    """Image bytes could not be decoded or the decoder itself failed."""
