"""
Base importer interface for Tomekeeper.

This module defines the abstract interface every source of import text implements.
"""

from abc import ABC, abstractmethod


class BaseImporter(ABC):
    """
    Abstract base class for all source importers.

    Each importer turns one source (pasted text, a file, a web page) into
    the plain text handed to a domain converter.
    """

    @abstractmethod
    def get_source_text(self) -> str:
        """
        Retrieve the text describing one game entity.

        Returns:
            Plain text ready for prompt building
        """
        pass
