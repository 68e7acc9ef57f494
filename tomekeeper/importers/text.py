"""
Importers for pasted text and local files.
"""

import logging
from pathlib import Path
from typing import Union

from ..errors import TomekeeperError
from .base import BaseImporter


class TextImporter(BaseImporter):
    """Wraps text the user pasted."""

    def __init__(self, text: str):
        self.text = text

    def get_source_text(self) -> str:
        if not self.text or not self.text.strip():
            raise TomekeeperError("Source text is empty", "Paste some text to import first.")
        return self.text


class FileImporter(BaseImporter):
    """
    Reads import text from a local file.
    """

    def __init__(self, path: Union[str, Path], encoding: str = "utf-8"):
        self.path = Path(path)
        self.encoding = encoding

    def get_source_text(self) -> str:
        """
        Read the whole file.

        Raises:
            TomekeeperError: If the file is missing, unreadable or empty
        """
        try:
            text = self.path.read_text(encoding=self.encoding)
        except OSError as e:
            raise TomekeeperError(f"Could not read {self.path}: {e}") from e

        logging.info(f"Read {len(text)} characters from {self.path}")
        return TextImporter(text).get_source_text()
