"""
==============================================================================
QR Generation Tests
==============================================================================

==============================================================================
"""

import io

import pytest
from PIL import Image

from scanmaster.services import GenerationOptions, QrCodeGenerator
from scanmaster.services.generator_service import argb_to_rgba


@pytest.fixture
def generator() -> QrCodeGenerator:
    return QrCodeGenerator()


class TestGenerationOptions:
    """Tests for option coercion."""

    def test_defaults(self):
        options = GenerationOptions.from_arguments({})
        assert options.size == 512
        assert options.error_correction_level == "MEDIUM"
        assert options.margin == 4

    def test_bad_values_fall_back(self):
        options = GenerationOptions.from_arguments({
            "size": "big",
            "errorCorrectionLevel": "EXTREME",
            "margin": -3,
        })
        assert options.size == 512
        assert options.error_correction_level == "MEDIUM"
        assert options.margin == 0

    def test_level_case_insensitive(self):
        assert GenerationOptions.from_arguments({"errorCorrectionLevel": "high"}).error_correction_level == "HIGH"

    def test_argb_conversion(self):
        assert argb_to_rgba(0xFF112233) == (0x11, 0x22, 0x33, 0xFF)
        # Signed 32-bit form of opaque black
        assert argb_to_rgba(-16777216) == (0, 0, 0, 255)


class TestQrCodeGenerator:
    """Tests for QR rendering."""

    def test_png_output(self, generator):
        png = generator.generate("https://example.com")
        assert png.startswith(b"\x89PNG")

        image = Image.open(io.BytesIO(png))
        assert image.size == (512, 512)

    def test_custom_size_and_colors(self, generator):
        options = GenerationOptions(size=200, foreground_color=0xFFFF0000, background_color=0xFF00FF00)
        image = generator.render("hello", options)

        assert image.size == (200, 200)
        # Corner pixel lies in the quiet zone
        assert image.getpixel((0, 0)) == (0, 255, 0, 255)
        colors = {color for _, color in image.getcolors(maxcolors=16)}
        assert colors == {(255, 0, 0, 255), (0, 255, 0, 255)}

    def test_zero_margin_starts_with_finder(self, generator):
        image = generator.render("hello", GenerationOptions(size=210, margin=0))
        assert image.getpixel((0, 0)) == (0, 0, 0, 255)

    def test_empty_data_rejected(self, generator):
        with pytest.raises(ValueError):
            generator.generate("")
