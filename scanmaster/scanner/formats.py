"""
==============================================================================
Barcode Format Tags
==============================================================================

Canonical symbology tags and the translation table between them and the
symbol types reported by ZBar (pyzbar).

==============================================================================
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional


class BarcodeFormat(str, Enum):
    """Canonical format tags shared by every scan result."""

    QR_CODE = "QR_CODE"
    EAN_8 = "EAN_8"
    EAN_13 = "EAN_13"
    CODE_39 = "CODE_39"
    CODE_93 = "CODE_93"
    CODE_128 = "CODE_128"
    CODABAR = "CODABAR"
    ITF = "ITF"
    UPC_A = "UPC_A"
    UPC_E = "UPC_E"
    DATA_MATRIX = "DATA_MATRIX"
    AZTEC = "AZTEC"
    PDF_417 = "PDF_417"
    UNKNOWN = "UNKNOWN"


# ZBar symbol type name -> canonical tag
ZBAR_TO_FORMAT: Dict[str, BarcodeFormat] = {
    "QRCODE": BarcodeFormat.QR_CODE,
    "EAN8": BarcodeFormat.EAN_8,
    "EAN13": BarcodeFormat.EAN_13,
    "CODE39": BarcodeFormat.CODE_39,
    "CODE93": BarcodeFormat.CODE_93,
    "CODE128": BarcodeFormat.CODE_128,
    "CODABAR": BarcodeFormat.CODABAR,
    "I25": BarcodeFormat.ITF,
    "UPCA": BarcodeFormat.UPC_A,
    "UPCE": BarcodeFormat.UPC_E,
    "PDF417": BarcodeFormat.PDF_417,
}

# DATA_MATRIX and AZTEC have no entry: ZBar cannot decode them
FORMAT_TO_ZBAR: Dict[BarcodeFormat, str] = {
    tag: zbar_name for zbar_name, tag in ZBAR_TO_FORMAT.items()
}

# Spellings used by other decoders and older clients
_ALIASES: Dict[str, BarcodeFormat] = {
    "QR": BarcodeFormat.QR_CODE,
    "QRCODE": BarcodeFormat.QR_CODE,
    "EAN8": BarcodeFormat.EAN_8,
    "EAN13": BarcodeFormat.EAN_13,
    "CODE39": BarcodeFormat.CODE_39,
    "CODE93": BarcodeFormat.CODE_93,
    "CODE128": BarcodeFormat.CODE_128,
    "I25": BarcodeFormat.ITF,
    "ITF14": BarcodeFormat.ITF,
    "UPCA": BarcodeFormat.UPC_A,
    "UPCE": BarcodeFormat.UPC_E,
    "DATAMATRIX": BarcodeFormat.DATA_MATRIX,
    "PDF417": BarcodeFormat.PDF_417,
}


def format_from_zbar(zbar_type: Optional[str]) -> BarcodeFormat:
    """Map a ZBar symbol type to its canonical tag (UNKNOWN if unmapped)."""
    if not zbar_type:
        return BarcodeFormat.UNKNOWN
    return ZBAR_TO_FORMAT.get(zbar_type.upper(), BarcodeFormat.UNKNOWN)


def normalize_format_name(name: str) -> str:
    """
    Normalize a client-supplied format name.

    Known spellings collapse onto the canonical tag. Unknown names are
    returned upper-cased so they never match a detection.
    """
    cleaned = name.strip().upper().replace("-", "_")
    try:
        return BarcodeFormat(cleaned).value
    except ValueError:
        pass
    alias = _ALIASES.get(cleaned.replace("_", ""))
    return alias.value if alias else cleaned


def zbar_symbols_for(formats: Iterable[str]) -> Optional[List[str]]:
    """
    ZBar symbol names to enable for a format filter.

    Returns None (decode everything) when the filter is empty or admits
    UNKNOWN, since unmapped symbologies can only be reached by scanning
    for all of them.
    """
    tags: FrozenSet[str] = frozenset(formats)
    if not tags or BarcodeFormat.UNKNOWN.value in tags:
        return None

    names = []
    for tag in sorted(tags):
        try:
            zbar_name = FORMAT_TO_ZBAR.get(BarcodeFormat(tag))
        except ValueError:
            continue
        if zbar_name:
            names.append(zbar_name)
    return names


def supported_formats() -> List[str]:
    """Canonical tags this service can actually decode."""
    return [tag.value for tag in FORMAT_TO_ZBAR]
