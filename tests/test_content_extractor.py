"""Tests for article text extraction and the AI fallback."""

from unittest.mock import patch

import pytest

from newsbrief.clients.interfaces import TextGenerator
from newsbrief.core.content_extractor import (
    NO_CONTENT_SENTINEL,
    ContentExtractor,
    finalize_content,
)

BOILERPLATE_HTML = (
    "<html><head><title>Site</title></head><body>"
    "<nav><a href='/'>Home</a> | <a href='/about'>About</a></nav>"
    "<footer>Copyright 2024 Example Media. All rights reserved.</footer>"
    "</body></html>"
)

SENTENCE = (
    "The city council approved the new transit plan on Tuesday, "
    "after months of debate over routes, funding and construction timelines. "
)


def article_html(paragraphs: int = 40) -> str:
    body = "".join(f"<p>{SENTENCE * 2}</p>" for _ in range(paragraphs))
    return (
        "<html><head><title>Transit plan approved</title></head><body>"
        "<nav><a href='/'>Home</a></nav>"
        f"<article><h1>Transit plan approved</h1>{body}</article>"
        "<footer>Copyright</footer></body></html>"
    )


class FakeGenerator(TextGenerator):
    """Records prompts and replies with a canned answer."""

    def __init__(self, reply="", error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    async def generate_text(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.reply


class TestFinalizeContent:
    def test_short_text_is_rejected(self):
        assert finalize_content("x" * 99) == ""

    def test_minimum_length_is_kept(self):
        assert finalize_content("x" * 100) == "x" * 100

    def test_maximum_length_is_not_truncated(self):
        assert finalize_content("x" * 3000) == "x" * 3000

    def test_long_text_is_truncated_with_marker(self):
        result = finalize_content("x" * 3001)
        assert len(result) == 3001
        assert result == "x" * 3000 + "…"

    def test_surrounding_whitespace_is_ignored(self):
        assert finalize_content("   " + "y" * 50 + "   ") == ""

    def test_none_is_empty(self):
        assert finalize_content(None) == ""


class TestReadability:
    def test_extracts_article_paragraphs(self):
        extractor = ContentExtractor()
        text = extractor.extract_with_readability(
            article_html(3), "https://example.com/transit"
        )
        assert "city council approved" in text
        assert "  " not in text

    @pytest.mark.parametrize("html", ["", "   ", None])
    def test_empty_input(self, html):
        assert ContentExtractor().extract_with_readability(html, "https://x.example") == ""

    def test_parser_errors_yield_empty_text(self):
        extractor = ContentExtractor()
        with patch(
            "newsbrief.core.content_extractor.Document",
            side_effect=ValueError("unparseable"),
        ):
            assert extractor.extract_with_readability("<p>x</p>", "https://x.example") == ""


class TestExtract:
    @pytest.mark.asyncio
    async def test_boilerplate_without_generator_yields_empty(self):
        extractor = ContentExtractor(text_generator=None)

        content = await extractor.extract(BOILERPLATE_HTML, "https://example.com/a")

        assert content == ""

    @pytest.mark.asyncio
    async def test_long_article_is_truncated_to_marker(self, settings):
        extractor = ContentExtractor(settings=settings)
        long_text = ("word " * 1000).strip()
        assert len(long_text) > 3000

        with patch.object(extractor, "extract_with_readability", return_value=long_text):
            content = await extractor.extract("<html></html>", "https://example.com/a")

        assert len(content) == 3001
        assert content.endswith("…")
        assert content[:3000] == long_text[:3000]

    @pytest.mark.asyncio
    async def test_real_long_article_is_bounded(self):
        content = await ContentExtractor().extract(
            article_html(40), "https://example.com/transit"
        )
        assert len(content) == 3001
        assert content.endswith("…")

    @pytest.mark.asyncio
    async def test_readability_success_skips_generator(self):
        generator = FakeGenerator(reply="unused")
        extractor = ContentExtractor(text_generator=generator)

        content = await extractor.extract(article_html(3), "https://example.com/a")

        assert "city council" in content
        assert generator.prompts == []

    @pytest.mark.asyncio
    async def test_never_raises(self):
        extractor = ContentExtractor()
        with patch.object(
            extractor, "extract_with_readability", side_effect=RuntimeError("boom")
        ):
            assert await extractor.extract("<html></html>", "https://x.example") == ""


class TestAiFallback:
    @pytest.mark.asyncio
    async def test_generator_output_used_when_readability_fails(self, settings):
        reply = "Recovered article body. " * 10
        generator = FakeGenerator(reply=reply)
        extractor = ContentExtractor(text_generator=generator, settings=settings)
        html = BOILERPLATE_HTML + " " * 600

        content = await extractor.extract(html, "https://example.com/a")

        assert content == reply.strip()
        assert len(generator.prompts) == 1
        assert NO_CONTENT_SENTINEL in generator.prompts[0]

    @pytest.mark.asyncio
    async def test_skipped_for_short_html(self):
        generator = FakeGenerator(reply="x" * 500)
        extractor = ContentExtractor(text_generator=generator)

        assert await extractor.extract_with_ai("<p>" + "a" * 400 + "</p>") is None
        assert generator.prompts == []

    @pytest.mark.asyncio
    async def test_sentinel_reply_means_no_content(self):
        extractor = ContentExtractor(FakeGenerator(reply=f"  {NO_CONTENT_SENTINEL}\n"))
        assert await extractor.extract_with_ai("<div>" * 200) is None

    @pytest.mark.asyncio
    async def test_short_reply_is_rejected(self):
        extractor = ContentExtractor(FakeGenerator(reply="Too short."))
        assert await extractor.extract_with_ai("<div>" * 200) is None

    @pytest.mark.asyncio
    async def test_generator_error_is_contained(self):
        generator = FakeGenerator(error=ValueError("empty response"))
        extractor = ContentExtractor(generator)
        html = BOILERPLATE_HTML + " " * 600

        assert await extractor.extract_with_ai(html) is None
        assert await extractor.extract(html, "https://example.com/a") == ""

    @pytest.mark.asyncio
    async def test_prompt_carries_only_leading_html(self, settings):
        generator = FakeGenerator(reply="z" * 200)
        extractor = ContentExtractor(generator, settings=settings)
        html = "A" * 15000 + "B" * 5000

        await extractor.extract_with_ai(html)

        prompt = generator.prompts[0]
        assert "A" * 15000 in prompt
        assert "B" not in prompt.split("HTML:", 1)[1]
