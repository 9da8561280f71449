"""Tests for bulb type -> product page resolution."""
import pytest

from bulbfit.data.bulb_links import BULB_TYPE_TO_URL, normalize_bulb_key, resolve_bulb_url


class TestNormalize:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            (" h7 ", "H7"),
            ("HB3 / 9005", "HB3/9005"),
            ("d2s", "D2S"),
            ("", ""),
        ],
    )
    def test_normalize(self, raw, expected):
        assert normalize_bulb_key(raw) == expected


class TestResolve:
    def test_direct_match(self):
        assert resolve_bulb_url("H7") == BULB_TYPE_TO_URL["H7"]

    def test_case_and_whitespace_insensitive(self):
        assert resolve_bulb_url(" hb4 / 9006 ") == BULB_TYPE_TO_URL["HB4/9006"]

    def test_combined_code_falls_back_to_left_half(self):
        assert resolve_bulb_url("H11/H8") == BULB_TYPE_TO_URL["H11"]

    def test_combined_code_falls_back_to_right_half(self):
        assert resolve_bulb_url("H15/H7") == BULB_TYPE_TO_URL["H7"]

    def test_unknown_bulb(self):
        assert resolve_bulb_url("H15") is None
        assert resolve_bulb_url("W5W/T10") is None

    def test_empty(self):
        assert resolve_bulb_url("") is None
        assert resolve_bulb_url("   ") is None

    def test_numeric_aliases_share_a_page(self):
        assert resolve_bulb_url("9005") == resolve_bulb_url("HB3")
