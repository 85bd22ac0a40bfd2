"""
==============================================================================
Payload Classification Tests
==============================================================================

Semantic value types and their field maps.

==============================================================================
"""

import pytest

from scanmaster.scanner.payloads import (
    ValueType,
    classify_payload,
    extract_semantic_metadata,
)


class TestSimpleSchemes:
    """Tests for URL / email / phone / SMS / geo payloads."""

    def test_http_url(self):
        value_type, fields = classify_payload("https://example.com/path?q=1")
        assert value_type is ValueType.URL
        assert fields == {"title": "", "url": "https://example.com/path?q=1"}

    def test_urlto(self):
        _, fields = classify_payload("URLTO:Example:https://example.com")
        assert fields == {"title": "Example", "url": "https://example.com"}

    def test_mebkm(self):
        _, fields = classify_payload("MEBKM:TITLE:Docs;URL:https\\://docs.example.com;;")
        assert fields == {"title": "Docs", "url": "https://docs.example.com"}

    def test_mailto(self):
        value_type, fields = classify_payload("mailto:info@example.com?subject=Hello%20there&body=Hi")
        assert value_type is ValueType.EMAIL
        assert fields == {"address": "info@example.com", "subject": "Hello there", "body": "Hi"}

    def test_matmsg(self):
        _, fields = classify_payload("MATMSG:TO:ops@example.com;SUB:Alert;BODY:Disk full;;")
        assert fields == {"address": "ops@example.com", "subject": "Alert", "body": "Disk full"}

    def test_tel(self):
        value_type, fields = classify_payload("tel:+15550100")
        assert value_type is ValueType.PHONE
        assert fields == {"number": "+15550100", "type": "UNKNOWN"}

    def test_smsto(self):
        value_type, fields = classify_payload("SMSTO:+15550100:On my way")
        assert value_type is ValueType.SMS
        assert fields == {"phoneNumber": "+15550100", "message": "On my way"}

    def test_sms_body_query(self):
        _, fields = classify_payload("sms:+15550100?body=Running%20late")
        assert fields == {"phoneNumber": "+15550100", "message": "Running late"}

    def test_geo(self):
        value_type, fields = classify_payload("geo:37.7749,-122.4194?z=12")
        assert value_type is ValueType.GEO
        assert fields == {"latitude": pytest.approx(37.7749), "longitude": pytest.approx(-122.4194)}

    def test_bad_geo_is_text(self):
        assert classify_payload("geo:north,east") == (ValueType.TEXT, None)


class TestWifi:
    """Tests for WIFI: payloads."""

    def test_wpa_with_escaped_password(self):
        value_type, fields = classify_payload("WIFI:S:Home Net;T:WPA;P:pa\\;ss;;")
        assert value_type is ValueType.WIFI
        assert fields == {"ssid": "Home Net", "password": "pa;ss", "encryptionType": "WPA"}

    def test_wep(self):
        _, fields = classify_payload("WIFI:T:WEP;S:Legacy;P:abcde;;")
        assert fields["encryptionType"] == "WEP"

    def test_open_network(self):
        _, fields = classify_payload("WIFI:T:nopass;S:Cafe;;")
        assert fields == {"ssid": "Cafe", "password": "", "encryptionType": "OPEN"}


class TestContacts:
    """Tests for vCard and MECARD payloads."""

    VCARD = (
        "BEGIN:VCARD\r\n"
        "VERSION:3.0\r\n"
        "N:Doe;John;Q;Dr.;\r\n"
        "FN:John Doe\r\n"
        "ORG:Acme Corp\r\n"
        "TITLE:Engineer\r\n"
        "TEL;TYPE=CELL:+15550100\r\n"
        "TEL;TYPE=WORK,VOICE:+15550199\r\n"
        "EMAIL;TYPE=WORK:john@acme.example\r\n"
        "URL:https://acme.example\r\n"
        "ADR;TYPE=HOME:;;1 Main St;Springfield;IL;62701;USA\r\n"
        "END:VCARD"
    )

    def test_vcard(self):
        value_type, fields = classify_payload(self.VCARD)
        assert value_type is ValueType.CONTACT_INFO

        assert fields["name"] == {
            "first": "John",
            "last": "Doe",
            "middle": "Q",
            "prefix": "Dr.",
            "suffix": "",
            "formattedName": "John Doe",
        }
        assert fields["organization"] == "Acme Corp"
        assert fields["title"] == "Engineer"
        assert fields["phones"] == [
            {"number": "+15550100", "type": "MOBILE"},
            {"number": "+15550199", "type": "WORK"},
        ]
        assert fields["emails"] == [{"address": "john@acme.example", "type": "WORK"}]
        assert fields["urls"] == ["https://acme.example"]
        assert fields["addresses"] == [{
            "addressLines": ["1 Main St", "Springfield", "IL", "62701", "USA"],
            "type": "HOME",
        }]

    def test_vcard_folded_line(self):
        """Continuation lines are unfolded."""
        payload = "BEGIN:VCARD\nFN:Jane\n  Smith\nEND:VCARD"
        _, fields = classify_payload(payload)
        assert fields["name"]["formattedName"] == "Jane Smith"

    def test_vcard_formatted_name_fallback(self):
        """Without FN the formatted name is built from N."""
        _, fields = classify_payload("BEGIN:VCARD\nN:Lovelace;Ada;;;\nEND:VCARD")
        assert fields["name"]["formattedName"] == "Ada Lovelace"

    def test_mecard(self):
        payload = "MECARD:N:Doe,John;TEL:+15550100;EMAIL:john@example.com;ORG:Acme;;"
        value_type, fields = classify_payload(payload)

        assert value_type is ValueType.CONTACT_INFO
        assert fields["name"]["first"] == "John"
        assert fields["name"]["last"] == "Doe"
        assert fields["name"]["formattedName"] == "John Doe"
        assert fields["phones"] == [{"number": "+15550100", "type": "UNKNOWN"}]
        assert fields["organization"] == "Acme"


class TestCalendarEvent:
    """Tests for vEVENT payloads."""

    def test_vevent(self):
        payload = (
            "BEGIN:VCALENDAR\n"
            "BEGIN:VEVENT\n"
            "SUMMARY:Team sync\n"
            "LOCATION:Room 4\n"
            "ORGANIZER:mailto:lead@acme.example\n"
            "DTSTART:20250101T090000Z\n"
            "DTEND:20250101T100000Z\n"
            "END:VEVENT\n"
            "END:VCALENDAR"
        )
        value_type, fields = classify_payload(payload)

        assert value_type is ValueType.CALENDAR_EVENT
        assert fields == {
            "summary": "Team sync",
            "description": "",
            "location": "Room 4",
            "organizer": "lead@acme.example",
            "status": "",
            "start": "20250101T090000Z",
            "end": "20250101T100000Z",
        }


class TestDriverLicense:
    """Tests for AAMVA PDF417 payloads."""

    def test_aamva(self):
        payload = (
            "@\n\x1e\r"
            "ANSI 636014040002DL00410278ZC03190024\n"
            "DLDAQD1234562\n"
            "DCSSMITH\n"
            "DACJOHN\n"
            "DBB19800115\n"
            "DBA20300115\n"
            "DBC1\n"
            "DAJCA\n"
        )
        value_type, fields = classify_payload(payload)

        assert value_type is ValueType.DRIVER_LICENSE
        assert fields["documentType"] == "DL"
        assert fields["licenseNumber"] == "D1234562"
        assert fields["lastName"] == "SMITH"
        assert fields["firstName"] == "JOHN"
        assert fields["birthDate"] == "19800115"
        assert fields["expiryDate"] == "20300115"
        assert fields["gender"] == "1"
        assert fields["addressState"] == "CA"
        assert fields["addressCity"] == ""


class TestMetadata:
    """Tests for metadata extraction."""

    def test_plain_text(self):
        assert classify_payload("just some text") == (ValueType.TEXT, None)
        assert extract_semantic_metadata("just some text") == {}

    def test_empty(self):
        assert extract_semantic_metadata("") == {}

    @pytest.mark.parametrize("payload,key", [
        ("https://example.com", "url"),
        ("mailto:a@b.c", "email"),
        ("tel:123", "phone"),
        ("smsto:123:hi", "sms"),
        ("WIFI:S:x;;", "wifi"),
        ("geo:1,2", "geoPoint"),
        ("MECARD:N:X;;", "contactInfo"),
        ("BEGIN:VEVENT\nSUMMARY:x\nEND:VEVENT", "calendarEvent"),
    ])
    def test_metadata_key(self, payload, key):
        """Exactly one semantic entry, under the value type's key."""
        assert list(extract_semantic_metadata(payload)) == [key]
