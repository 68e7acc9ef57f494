"""
Tests for the source importers and text cleanup.
"""

import unittest

import httpx
import pytest

from tomekeeper.errors import ConnectivityError, TomekeeperError
from tomekeeper.importers import (
    FileImporter,
    TextImporter,
    UrlImporter,
    clean_source_text,
    html_to_text,
)


PAGE = """
<html>
  <head><title>Tabaxi</title><style>p { color: red; }</style></head>
  <body>
    <header>Site Banner</header>
    <nav><a href="/">Home</a> <a href="/races">Races</a></nav>
    <h1>Tabaxi</h1>
    <p>Feline humanoids driven by curiosity.</p>

    <p><strong>Darkvision.</strong> You can see in dim light within 60 feet.</p>
    <script>trackVisitor();</script>
    <footer>Copyright notice</footer>
  </body>
</html>
"""


def page_client(html=PAGE, status_code=200, seen=None):
    def handler(request):
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, text=html, headers={"Content-Type": "text/html"})

    return httpx.Client(transport=httpx.MockTransport(handler))


class TestCleaning(unittest.TestCase):
    """Test citation and whitespace cleanup."""

    def test_citation_tags_removed(self):
        self.assertEqual(clean_source_text("Hex Warrior [XGE p.55]"), "Hex Warrior ")

    def test_newline_runs_collapsed(self):
        self.assertEqual(clean_source_text("A\r\n\r\n\r\nB\n\n\n\n\nC\n\nD"), "A\n\nB\n\nC\n\nD")

    def test_none_is_empty(self):
        self.assertEqual(clean_source_text(None), "")


class TestHtmlToText(unittest.TestCase):
    """Test page chrome is stripped from fetched pages."""

    def test_chrome_removed(self):
        text = html_to_text(PAGE)

        self.assertIn("Feline humanoids driven by curiosity.", text)
        self.assertIn("Darkvision.", text)
        for chrome in ("Site Banner", "Home", "trackVisitor", "Copyright", "color: red"):
            self.assertNotIn(chrome, text)

    def test_no_blank_lines(self):
        self.assertNotIn("\n\n", html_to_text(PAGE))
        self.assertEqual(html_to_text("<p>  One  </p>\n\n\n<p>Two</p>"), "One\nTwo")


class TestTextImporters(unittest.TestCase):
    """Test pasted text and file sources."""

    def test_text_is_returned_unchanged(self):
        self.assertEqual(TextImporter("Fireball [PHB]").get_source_text(), "Fireball [PHB]")

    def test_empty_text(self):
        with self.assertRaises(TomekeeperError) as context:
            TextImporter("   \n").get_source_text()

        self.assertEqual(context.exception.user_message, "Paste some text to import first.")

    def test_missing_file(self):
        with self.assertRaises(TomekeeperError):
            FileImporter("/nonexistent/tabaxi.txt").get_source_text()


def test_file_importer_reads_text(tmp_path):
    source = tmp_path / "kenku.txt"
    source.write_text("Kenku. Choose two skills.", encoding="utf-8")

    assert FileImporter(source).get_source_text() == "Kenku. Choose two skills."


def test_empty_file_is_rejected(tmp_path):
    source = tmp_path / "empty.txt"
    source.write_text("", encoding="utf-8")

    with pytest.raises(TomekeeperError):
        FileImporter(str(source)).get_source_text()


class TestUrlImporter(unittest.TestCase):
    """Test fetching with a mocked transport."""

    def test_fetch_and_extract(self):
        seen = []
        importer = UrlImporter("https://example.test/tabaxi", user_agent="TestAgent/1.0",
                               client=page_client(seen=seen))

        text = importer.get_source_text()

        self.assertTrue(text.startswith("Tabaxi"))
        self.assertNotIn("Home", text)
        self.assertEqual(seen[0].headers["User-Agent"], "TestAgent/1.0")

    def test_http_error_status(self):
        importer = UrlImporter("https://example.test/missing", client=page_client(status_code=404))

        with self.assertRaises(ConnectivityError) as context:
            importer.get_source_text()

        self.assertIn("404", context.exception.user_message)

    def test_unreachable_host(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out")

        importer = UrlImporter("https://example.test/slow",
                               client=httpx.Client(transport=httpx.MockTransport(handler)))

        with self.assertRaises(ConnectivityError):
            importer.fetch_html()

    def test_page_without_text(self):
        importer = UrlImporter("https://example.test/blank",
                               client=page_client("<html><script>x()</script></html>"))

        with self.assertRaises(TomekeeperError):
            importer.get_source_text()


if __name__ == "__main__":
    unittest.main()
