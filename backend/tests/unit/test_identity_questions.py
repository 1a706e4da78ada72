"""
Unit tests for identity question detection.

Persian input arrives in many keyboard variants; all of them must still be
recognized so that the assistant answers with its configured name.
"""

import pytest

from chatdesk.domain.identity_questions import is_identity_question, normalize_text


class TestNormalizeText:
    """Canonical form used before matching."""

    def test_arabic_letters_unified(self):
        """Arabic yeh and kaf become their Persian forms."""
        assert normalize_text("اسمت چيه") == normalize_text("اسمت چیه")
        assert normalize_text("كی هستی") == normalize_text("کی هستی")

    def test_zero_width_and_bidi_marks_dropped(self):
        assert normalize_text("\u200fاسمت\u200c چیه\u200e") == "اسمت چیه"

    def test_punctuation_becomes_space_and_collapses(self):
        assert normalize_text("who   are,you?!") == "who are you"

    def test_apostrophes_removed(self):
        assert normalize_text("What's your name") == "whats your name"

    def test_diacritics_removed(self):
        assert normalize_text("ا\u0650سمت چیه") == "اسمت چیه"


class TestIsIdentityQuestion:
    """Name questions in Persian and English."""

    @pytest.mark.parametrize("text", [
        "اسمت چیه؟",
        "اسمت چيه",
        "سلام، اسمت چیه؟",
        "ببخشید شما کی هستید",
        "خودتو معرفی کن 🙂",
        "What is your name?",
        "what's your name",
        "Who R U",
        "hi, who are you?",
        "Introduce yourself please",
    ])
    def test_recognized(self, text):
        assert is_identity_question(text) is True

    @pytest.mark.parametrize("text", [
        "",
        "   ",
        "قیمت این محصول چنده؟",
        "ارسال به شیراز دارید؟",
        "what is the price",
        "your order has shipped",
    ])
    def test_not_recognized(self, text):
        assert is_identity_question(text) is False

    def test_long_message_containing_phrase_is_not_identity(self):
        """A phrase buried in a longer request goes to the model instead."""
        text = "I want to know who are you shipping with and when my order arrives"
        assert is_identity_question(text) is False
