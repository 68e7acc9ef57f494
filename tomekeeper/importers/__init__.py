"""Source importers: pasted text, local files and web pages."""

from .base import BaseImporter
from .cleaning import clean_source_text
from .text import FileImporter, TextImporter
from .url import UrlImporter, html_to_text

__all__ = ["BaseImporter", "TextImporter", "FileImporter", "UrlImporter", "html_to_text", "clean_source_text"]
