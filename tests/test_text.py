"""Tests for the lexical text classifiers and subtree text accumulation."""

import pytest

from clearpage.services.dom import HostDocument
from clearpage.services.lexicon import DEFAULT_LEXICON
from clearpage.services.text import (
    MAX_DEPTH,
    extract_text,
    is_content_text,
    is_noise_text,
    is_promotional_text,
    truncate_text,
)

URL = "https://example.com/page"


def _first(html: str):
    return HostDocument.from_html(f"<body>{html}</body>", URL).body.find()


class TestIsNoiseText:
    @pytest.mark.parametrize(
        "text",
        [
            "",
            "   ",
            "ea",
            "$9.99",
            "42",
            "99p",
            "500g",
            "1.5kg",
            "250 ml",
            "2 x 500ml",
            "Limit 2 per customer",
            "4.5 out of 5 stars",
            "(123 reviews)",
            "1/5",
            "£1.20 per kg",
            "Add to cart",
            "SEE ALL",
            "  learn more ",
        ],
    )
    def test_noise(self, text):
        assert is_noise_text(text)

    @pytest.mark.parametrize(
        "text",
        [
            "The quick brown fox jumps over the lazy dog.",
            "3 out of 5 doctors recommend walking every day",
            "Add to cart buttons are disabled during maintenance",
            "Chapter 4",
        ],
    )
    def test_not_noise(self, text):
        assert not is_noise_text(text)


class TestIsPromotionalText:
    def test_imperative_verb_opening(self):
        assert is_promotional_text("Shop the summer range")

    def test_verb_rule_limited_to_short_text(self):
        text = "Order of operations matters when you evaluate long arithmetic expressions by hand"
        assert not is_promotional_text(text)

    def test_single_capitalised_word(self):
        assert is_promotional_text("Beverages")

    def test_single_lowercase_word_is_not_category(self):
        assert not is_promotional_text("beverages")

    def test_keyword_density(self):
        assert is_promotional_text("Free delivery and best prices on everything you need")

    def test_single_keyword_is_not_enough(self):
        assert not is_promotional_text("The museum provides free delivery of printed catalogues to schools")

    def test_call_to_action_adverb(self):
        assert is_promotional_text("Our biggest summer event starts today!")

    def test_plain_prose(self):
        assert not is_promotional_text(
            "The committee published its annual report on regional water quality."
        )

    def test_empty(self):
        assert not is_promotional_text("")


class TestIsContentText:
    def test_requires_both_gates(self):
        assert is_content_text("Rainfall in the region rose sharply during the spring.")
        assert not is_content_text("Buy now")
        assert not is_content_text("Discover our range")

    def test_custom_lexicon(self):
        lexicon = DEFAULT_LEXICON.model_copy(update={"chrome_phrases": frozenset({"weiterlesen"})})
        assert is_noise_text("Weiterlesen", lexicon)
        assert not is_noise_text("Add to cart", lexicon)


class TestExtractText:
    def test_line_break_separates_words(self):
        assert extract_text(_first("<p>Hello<br>world</p>")) == "Hello world"

    def test_block_boundaries_separate_words(self):
        assert extract_text(_first("<div><p>One</p><p>Two</p></div>")) == "One Two"

    def test_inline_elements_join(self):
        assert extract_text(_first("<p>Un<b>believ</b>able</p>")) == "Unbelievable"

    def test_collapses_whitespace(self):
        assert extract_text(_first("<p>  lots \n\n of\t space  </p>")) == "lots of space"

    def test_skips_hidden_descendants(self):
        html = '<div>Keep<span style="display:none"> Secret</span> this</div>'
        assert extract_text(_first(html)) == "Keep this"

    def test_skips_script_and_style(self):
        html = "<div>Visible<script>var x = 1;</script><style>p{}</style></div>"
        assert extract_text(_first(html)) == "Visible"

    def test_reads_shadow_root(self):
        html = (
            '<div><template shadowrootmode="open"><p>Shadow</p></template>'
            "<span>Light</span></div>"
        )
        assert extract_text(_first(html)) == "Shadow Light"

    def test_empty_element(self):
        assert extract_text(_first("<div></div>")) == ""

    def test_deep_nesting_truncated(self):
        html = "<p>Surface words" + "<span>" * (MAX_DEPTH + 10) + "Buried" + "</span>" * (MAX_DEPTH + 10) + "</p>"
        assert extract_text(_first(html)) == "Surface words"

    def test_pathological_nesting_does_not_raise(self):
        html = "<p>Surface words" + "<span>" * 1200 + "Buried" + "</span>" * 1200 + "</p>"
        assert extract_text(_first(html)) == "Surface words"


class TestTruncateText:
    def test_short_text_unchanged(self):
        assert truncate_text("Short", 120) == "Short"

    def test_cuts_at_sentence_end(self):
        assert truncate_text("First sentence. Second sentence that is long", 20) == "First sentence."

    def test_hard_truncates_with_ellipsis(self):
        result = truncate_text("a" * 130, 120)
        assert result == "a" * 120 + "…"
