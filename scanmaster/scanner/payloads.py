"""
==============================================================================
Payload Classification Module
==============================================================================

Classifies decoded payload strings into semantic value types and extracts
a structured field map for each.

Supported Value Types:
---------------------
- URL            http(s)://, URLTO:, MEBKM:
- EMAIL          mailto:, MATMSG:
- PHONE          tel:
- SMS            sms:, smsto:
- WIFI           WIFI:
- GEO            geo:
- CONTACT_INFO   BEGIN:VCARD, MECARD:
- CALENDAR_EVENT BEGIN:VEVENT
- DRIVER_LICENSE AAMVA PDF417 payloads (@ ... ANSI)

Optional fields default to "" so consumers can rely on key presence.

==============================================================================
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import parse_qs, unquote


# Module logger
logger = logging.getLogger(__name__)


class ValueType(str, Enum):
    """Semantic type of a decoded payload."""

    TEXT = "TEXT"
    URL = "URL"
    EMAIL = "EMAIL"
    PHONE = "PHONE"
    SMS = "SMS"
    WIFI = "WIFI"
    GEO = "GEO"
    CONTACT_INFO = "CONTACT_INFO"
    CALENDAR_EVENT = "CALENDAR_EVENT"
    DRIVER_LICENSE = "DRIVER_LICENSE"


# Metadata key under which each value type's fields are stored
METADATA_KEYS: Dict[ValueType, str] = {
    ValueType.URL: "url",
    ValueType.EMAIL: "email",
    ValueType.PHONE: "phone",
    ValueType.SMS: "sms",
    ValueType.WIFI: "wifi",
    ValueType.GEO: "geoPoint",
    ValueType.CONTACT_INFO: "contactInfo",
    ValueType.CALENDAR_EVENT: "calendarEvent",
    ValueType.DRIVER_LICENSE: "driverLicense",
}


# =============================================================================
# ESCAPED FIELD HELPERS (MECARD / WIFI / vCard)
# =============================================================================

def _split_escaped(text: str, separator: str = ";") -> List[str]:
    """Split on unescaped separators, resolving backslash escapes."""
    parts: List[str] = []
    current: List[str] = []
    escaped = False

    for char in text:
        if escaped:
            current.append("\n" if char in "nN" else char)
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == separator:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)

    parts.append("".join(current))
    return parts


def _unescape(text: str) -> str:
    return ";".join(_split_escaped(text))


def _keyed_fields(body: str) -> Dict[str, List[str]]:
    """Parse 'K:v;K:v;;' bodies into key -> values."""
    fields: Dict[str, List[str]] = {}
    for part in _split_escaped(body):
        key, sep, value = part.partition(":")
        if sep:
            fields.setdefault(key.strip().upper(), []).append(value)
    return fields


def _first(fields: Dict[str, List[str]], key: str) -> str:
    values = fields.get(key)
    return values[0] if values else ""


def _strip_prefix(payload: str, *prefixes: str) -> Optional[str]:
    lowered = payload.lower()
    for prefix in prefixes:
        if lowered.startswith(prefix.lower()):
            return payload[len(prefix):]
    return None


# =============================================================================
# SIMPLE URI SCHEMES
# =============================================================================

def _parse_url(payload: str) -> Optional[Dict[str, Any]]:
    if payload.lower().startswith(("http://", "https://")):
        return {"title": "", "url": payload}

    rest = _strip_prefix(payload, "URLTO:")
    if rest is not None:
        title, sep, url = rest.partition(":")
        if not sep:
            return {"title": "", "url": title}
        return {"title": title, "url": url}

    rest = _strip_prefix(payload, "MEBKM:")
    if rest is not None:
        fields = _keyed_fields(rest)
        return {"title": _first(fields, "TITLE"), "url": _first(fields, "URL")}

    return None


def _parse_email(payload: str) -> Optional[Dict[str, Any]]:
    rest = _strip_prefix(payload, "mailto:")
    if rest is not None:
        address, _, query = rest.partition("?")
        params = parse_qs(query)
        return {
            "address": unquote(address),
            "subject": params.get("subject", [""])[0],
            "body": params.get("body", [""])[0],
        }

    rest = _strip_prefix(payload, "MATMSG:")
    if rest is not None:
        fields = _keyed_fields(rest)
        return {
            "address": _first(fields, "TO"),
            "subject": _first(fields, "SUB"),
            "body": _first(fields, "BODY"),
        }

    return None


def _parse_phone(payload: str) -> Optional[Dict[str, Any]]:
    rest = _strip_prefix(payload, "tel:")
    if rest is None:
        return None
    return {"number": rest.strip(), "type": "UNKNOWN"}


def _parse_sms(payload: str) -> Optional[Dict[str, Any]]:
    rest = _strip_prefix(payload, "smsto:", "sms:")
    if rest is None:
        return None

    if "?" in rest:
        number, _, query = rest.partition("?")
        message = parse_qs(query).get("body", [""])[0]
    else:
        number, _, message = rest.partition(":")

    return {"phoneNumber": number.strip(), "message": message}


def _parse_wifi(payload: str) -> Optional[Dict[str, Any]]:
    rest = _strip_prefix(payload, "WIFI:")
    if rest is None:
        return None

    fields = _keyed_fields(rest)
    auth = _first(fields, "T").strip().upper()
    if auth in ("WPA", "WPA2", "WPA3", "SAE", "WPA2-EAP"):
        encryption = "WPA"
    elif auth == "WEP":
        encryption = "WEP"
    else:
        encryption = "OPEN"

    return {
        "ssid": _first(fields, "S"),
        "password": _first(fields, "P"),
        "encryptionType": encryption,
    }


def _parse_geo(payload: str) -> Optional[Dict[str, Any]]:
    rest = _strip_prefix(payload, "geo:")
    if rest is None:
        return None

    coordinates = rest.split("?", 1)[0].split(";", 1)[0].split(",")
    if len(coordinates) < 2:
        return None
    try:
        return {"latitude": float(coordinates[0]), "longitude": float(coordinates[1])}
    except ValueError:
        return None


# =============================================================================
# vCARD / MECARD / vEVENT
# =============================================================================

def _content_lines(payload: str) -> List[Tuple[str, List[str], str]]:
    """Unfold RFC 5545/6350 content lines into (name, params, value)."""
    lines: List[str] = []
    for raw in payload.replace("\r\n", "\n").replace("\r", "\n").split("\n"):
        if raw[:1] in (" ", "\t") and lines:
            lines[-1] += raw[1:]
        elif raw.strip():
            lines.append(raw.strip())

    entries = []
    for line in lines:
        head, sep, value = line.partition(":")
        if not sep:
            continue
        name, *params = head.split(";")
        entries.append((name.strip().upper(), [p.strip().upper() for p in params], value))
    return entries


def _contact_type(params: List[str]) -> str:
    joined = ",".join(params)
    if "CELL" in joined or "MOBILE" in joined:
        return "MOBILE"
    if "FAX" in joined:
        return "FAX"
    if "HOME" in joined:
        return "HOME"
    if "WORK" in joined:
        return "WORK"
    return "UNKNOWN"


def _empty_name() -> Dict[str, str]:
    return {
        "first": "",
        "last": "",
        "middle": "",
        "prefix": "",
        "suffix": "",
        "formattedName": "",
    }


def _format_name(name: Dict[str, str]) -> str:
    parts = [name["prefix"], name["first"], name["middle"], name["last"], name["suffix"]]
    return " ".join(part for part in parts if part)


def _parse_vcard(payload: str) -> Dict[str, Any]:
    name = _empty_name()
    contact: Dict[str, Any] = {
        "name": name,
        "organization": "",
        "title": "",
        "phones": [],
        "emails": [],
        "urls": [],
        "addresses": [],
    }

    for key, params, value in _content_lines(payload):
        if key == "N":
            components = _split_escaped(value) + [""] * 5
            name["last"], name["first"], name["middle"], name["prefix"], name["suffix"] = (
                components[:5]
            )
        elif key == "FN":
            name["formattedName"] = _unescape(value)
        elif key == "ORG":
            contact["organization"] = " ".join(p for p in _split_escaped(value) if p)
        elif key == "TITLE":
            contact["title"] = _unescape(value)
        elif key == "TEL":
            contact["phones"].append({"number": value, "type": _contact_type(params)})
        elif key == "EMAIL":
            contact["emails"].append({"address": value, "type": _contact_type(params)})
        elif key == "URL":
            contact["urls"].append(value)
        elif key == "ADR":
            contact["addresses"].append({
                "addressLines": [p for p in _split_escaped(value) if p.strip()],
                "type": _contact_type(params),
            })

    if not name["formattedName"]:
        name["formattedName"] = _format_name(name)
    return contact


def _parse_mecard(body: str) -> Dict[str, Any]:
    fields = _keyed_fields(body)
    name = _empty_name()

    raw_name = _first(fields, "N")
    if "," in raw_name:
        name["last"], _, name["first"] = raw_name.partition(",")
    else:
        name["first"] = raw_name
    name["formattedName"] = _format_name(name)

    return {
        "name": name,
        "organization": _first(fields, "ORG"),
        "title": _first(fields, "TITLE"),
        "phones": [{"number": n, "type": "UNKNOWN"} for n in fields.get("TEL", [])],
        "emails": [{"address": a, "type": "UNKNOWN"} for a in fields.get("EMAIL", [])],
        "urls": list(fields.get("URL", [])),
        "addresses": [
            {"addressLines": [a], "type": "UNKNOWN"} for a in fields.get("ADR", []) if a
        ],
    }


def _parse_contact(payload: str) -> Optional[Dict[str, Any]]:
    if payload.lstrip().upper().startswith("BEGIN:VCARD"):
        return _parse_vcard(payload)

    rest = _strip_prefix(payload, "MECARD:")
    if rest is not None:
        return _parse_mecard(rest)

    return None


def _parse_calendar(payload: str) -> Optional[Dict[str, Any]]:
    if "BEGIN:VEVENT" not in payload.upper():
        return None

    event = {
        "summary": "",
        "description": "",
        "location": "",
        "organizer": "",
        "status": "",
        "start": "",
        "end": "",
    }
    targets = {
        "SUMMARY": "summary",
        "DESCRIPTION": "description",
        "LOCATION": "location",
        "ORGANIZER": "organizer",
        "STATUS": "status",
        "DTSTART": "start",
        "DTEND": "end",
    }

    in_event = False
    for key, _, value in _content_lines(payload):
        if key == "BEGIN" and value.upper() == "VEVENT":
            in_event = True
        elif key == "END" and value.upper() == "VEVENT":
            break
        elif in_event and key in targets and not event[targets[key]]:
            if key == "ORGANIZER":
                value = _strip_prefix(value, "mailto:") or value
            event[targets[key]] = _unescape(value)

    return event


# =============================================================================
# AAMVA DRIVER LICENSE
# =============================================================================

_AAMVA_ELEMENTS = {
    "DAQ": "licenseNumber",
    "DCS": "lastName",
    "DAB": "lastName",
    "DAC": "firstName",
    "DCT": "firstName",
    "DAD": "middleName",
    "DBC": "gender",
    "DAG": "addressStreet",
    "DAI": "addressCity",
    "DAJ": "addressState",
    "DAK": "addressZip",
    "DBD": "issueDate",
    "DBA": "expiryDate",
    "DBB": "birthDate",
    "DCG": "issuingCountry",
}

_SUBFILE_DESIGNATOR = re.compile(r"(DL|ID)\d{8}")


def _parse_driver_license(payload: str) -> Optional[Dict[str, Any]]:
    if not payload.startswith("@") or ("ANSI " not in payload and "AAMVA" not in payload):
        return None

    license_fields = {"documentType": ""}
    license_fields.update({key: "" for key in _AAMVA_ELEMENTS.values()})

    designator = _SUBFILE_DESIGNATOR.search(payload)
    if designator:
        license_fields["documentType"] = designator.group(1)

    for line in payload.splitlines():
        line = line.strip()
        # First element of a subfile carries the subfile type as a prefix
        if line[:2] in ("DL", "ID") and line[2:3] == "D" and line[2:5] in _AAMVA_ELEMENTS:
            license_fields["documentType"] = license_fields["documentType"] or line[:2]
            line = line[2:]

        key = _AAMVA_ELEMENTS.get(line[:3])
        if key and not license_fields[key]:
            license_fields[key] = line[3:].strip()

    return license_fields


# =============================================================================
# PUBLIC API
# =============================================================================

# Checked in order; the first parser that recognizes the payload wins
_PARSERS: List[Tuple[ValueType, Callable[[str], Optional[Dict[str, Any]]]]] = [
    (ValueType.DRIVER_LICENSE, _parse_driver_license),
    (ValueType.CONTACT_INFO, _parse_contact),
    (ValueType.CALENDAR_EVENT, _parse_calendar),
    (ValueType.WIFI, _parse_wifi),
    (ValueType.EMAIL, _parse_email),
    (ValueType.SMS, _parse_sms),
    (ValueType.PHONE, _parse_phone),
    (ValueType.GEO, _parse_geo),
    (ValueType.URL, _parse_url),
]


def classify_payload(payload: str) -> Tuple[ValueType, Optional[Dict[str, Any]]]:
    """
    Determine the value type of a payload and extract its fields.

    Args:
        payload: Decoded payload string

    Returns:
        (value_type, fields); fields is None for plain TEXT
    """
    if not payload:
        return ValueType.TEXT, None

    for value_type, parser in _PARSERS:
        try:
            fields = parser(payload)
        except Exception as e:
            # A parser bug must never fail the scan
            logger.warning(f"{value_type.value} parser failed: {e}")
            continue
        if fields is not None:
            return value_type, fields

    return ValueType.TEXT, None


def extract_semantic_metadata(payload: str) -> Dict[str, Any]:
    """
    Metadata entry for a payload, keyed by value type name.

    Returns an empty dict for plain text.
    """
    value_type, fields = classify_payload(payload)
    if fields is None:
        return {}
    return {METADATA_KEYS[value_type]: fields}
