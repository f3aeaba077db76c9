"""Tests for keytrainer.ui.colors – palette and color blending."""

from __future__ import annotations

import pytest

from keytrainer.ui.colors import TrainerColors, blend_hex


def _rgb(color: str) -> tuple:
    return int(color[1:3], 16), int(color[3:5], 16), int(color[5:7], 16)


# ===========================================================================
# TrainerColors
# ===========================================================================

class TestTrainerColors:
    @pytest.mark.parametrize(
        "name",
        [n for n in vars(TrainerColors) if n.isupper()],
    )
    def test_every_color_is_rrggbb(self, name: str):
        value = getattr(TrainerColors, name)
        assert value.startswith("#")
        assert len(value) == 7
        _rgb(value)

    def test_background_is_dark(self):
        assert max(_rgb(TrainerColors.BACKGROUND)) < 0x40

    def test_perfect_differs_from_retry(self):
        assert TrainerColors.INPUT_PERFECT != TrainerColors.INPUT_RETRY


# ===========================================================================
# blend_hex
# ===========================================================================

class TestBlendHex:
    def test_endpoints(self):
        assert blend_hex("#FF0000", "#0000FF", 0.0) == "#FF0000"
        assert blend_hex("#FF0000", "#0000FF", 1.0) == "#0000FF"

    def test_midpoint(self):
        r, g, b = _rgb(blend_hex("#000000", "#FFFFFF", 0.5))
        assert 126 <= r <= 128
        assert r == g == b

    def test_upcoming_box_toward_background(self):
        result = blend_hex(TrainerColors.BOX_UPCOMING, TrainerColors.BACKGROUND, 0.5)
        assert len(result) == 7
        assert _rgb(result) != _rgb(TrainerColors.BOX_UPCOMING)

    def test_t_is_clamped(self):
        assert blend_hex("#FF0000", "#0000FF", -1.0) == "#FF0000"
        assert blend_hex("#FF0000", "#0000FF", 2.0) == "#0000FF"

    def test_whitespace_stripped(self):
        assert blend_hex("  #FF0000  ", " #0000FF ", 0.0) == "#FF0000"

    @pytest.mark.parametrize(
        "a, b",
        [("FF0000", "#0000FF"), ("#FFF", "#000000"), ("#GGHHII", "#000000"), ("", "")],
    )
    def test_invalid_returns_first(self, a: str, b: str):
        assert blend_hex(a, b, 0.5) == a.strip()
