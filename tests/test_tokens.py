"""Tests for keytrainer.core.tokens – tokenizer and token factories."""

from __future__ import annotations

import pytest

from keytrainer.core.tokens import (
    UNKNOWN,
    Token,
    TokenKind,
    char_token,
    click_token,
    format_for_display,
    function_key_token,
    join_tokens,
    token_at,
    tokenize,
)


def _texts(text: str) -> list[str]:
    return [t.text for t in tokenize(text)]


# ---------------------------------------------------------------------------
# tokenize
# ---------------------------------------------------------------------------

class TestTokenize:
    def test_plain_characters(self):
        assert _texts("1a2a") == ["1", "a", "2", "a"]
        assert all(t.kind is TokenKind.CHAR for t in tokenize("1a2a"))

    def test_empty_string(self):
        assert tokenize("") == ()

    def test_shift_left_click_is_one_token(self):
        assert tokenize("SLC") == (Token(TokenKind.CLICK, "SLC"),)

    def test_shift_right_click_is_one_token(self):
        assert tokenize("SRC") == (Token(TokenKind.CLICK, "SRC"),)

    def test_clicks_mixed_with_characters(self):
        assert _texts("1aLC") == ["1", "a", "LC"]
        assert tokenize("1aLC")[2].kind is TokenKind.CLICK

    def test_two_digit_function_key_wins(self):
        assert _texts("F10a") == ["F10", "a"]
        assert tokenize("F10a")[0].kind is TokenKind.FUNCTION_KEY

    def test_function_key_cycle(self):
        assert _texts("F1aF2aF3a") == ["F1", "a", "F2", "a", "F3", "a"]

    def test_unknown_function_key_splits(self):
        # F13 does not exist: F1 followed by the character 3.
        assert _texts("F13") == ["F1", "3"]

    def test_stray_letters_before_click(self):
        assert _texts("SLLC") == ["S", "L", "LC"]

    def test_click_followed_by_letter(self):
        assert _texts("SRCS") == ["SRC", "S"]

    def test_middle_click(self):
        assert _texts("MCxMC") == ["MC", "x", "MC"]

    def test_lowercase_is_not_a_click(self):
        assert _texts("lc") == ["l", "c"]

    @pytest.mark.parametrize(
        "text",
        ["1a2a3a4a5a", "F1aF2aF3a", "LCaRCa", "SLCSRCMC", "F12F1F10", "a b|c", "SLLCF", "ÄöF9"],
    )
    def test_round_trip(self, text: str):
        assert join_tokens(tokenize(text)) == text


# ---------------------------------------------------------------------------
# token_at
# ---------------------------------------------------------------------------

class TestTokenAt:
    def test_start_of_token(self):
        assert token_at("1aLC", 2) == Token(TokenKind.CLICK, "LC")

    def test_inside_multi_char_token(self):
        assert token_at("1aLC", 3) == Token(TokenKind.CLICK, "LC")
        assert token_at("F10", 2) == Token(TokenKind.FUNCTION_KEY, "F10")

    def test_single_character(self):
        assert token_at("1aLC", 1) == char_token("a")

    def test_past_end_is_unknown(self):
        assert token_at("1aLC", 4) is UNKNOWN

    def test_negative_is_unknown(self):
        assert token_at("1aLC", -1) is UNKNOWN

    def test_empty_pattern_is_unknown(self):
        assert token_at("", 0) is UNKNOWN

    def test_unknown_displays_question_mark(self):
        assert str(UNKNOWN) == "?"


# ---------------------------------------------------------------------------
# Token identity and factories
# ---------------------------------------------------------------------------

class TestTokens:
    def test_character_is_not_click(self):
        assert char_token("L") != Token(TokenKind.CLICK, "LC")

    def test_case_sensitive(self):
        assert char_token("a") != char_token("A")

    def test_char_token_requires_single_character(self):
        with pytest.raises(ValueError):
            char_token("ab")

    def test_function_key_range(self):
        assert function_key_token(12).text == "F12"
        with pytest.raises(ValueError):
            function_key_token(13)
        with pytest.raises(ValueError):
            function_key_token(0)

    def test_click_variants(self):
        assert click_token("left").text == "LC"
        assert click_token("left", shift=True).text == "SLC"
        assert click_token("right").text == "RC"
        assert click_token("right", shift=True).text == "SRC"
        assert click_token("middle").text == "MC"

    def test_middle_click_has_no_shift_variant(self):
        assert click_token("middle", shift=True) == click_token("middle")

    def test_click_matches_tokenized_pattern(self):
        assert click_token("left", shift=True) == tokenize("SLC")[0]

    def test_unknown_button(self):
        with pytest.raises(ValueError):
            click_token("side")

    def test_tokens_are_hashable(self):
        assert len({char_token("a"), char_token("a"), click_token("left")}) == 2


# ---------------------------------------------------------------------------
# format_for_display
# ---------------------------------------------------------------------------

class TestFormatForDisplay:
    def test_icons(self):
        assert format_for_display("LCaF1") == "◐a[F1]"

    def test_shift_clicks(self):
        assert format_for_display("SLCSRC") == "⇧◐⇧◑"

    def test_accepts_tokens(self):
        assert format_for_display(tokenize("MCF10")) == "◉[F10]"

    def test_plain_text_unchanged(self):
        assert format_for_display("1a2a") == "1a2a"
