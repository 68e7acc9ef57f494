"""
Fetch a web page and reduce it to readable text.

The page is downloaded with httpx and parsed with BeautifulSoup; page chrome
(scripts, styles, navigation, headers and footers) is dropped before the
text is extracted.
"""

import logging
from typing import Optional

import httpx
from bs4 import BeautifulSoup

from ..errors import ConnectivityError, TomekeeperError
from .base import BaseImporter


DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; Tomekeeper importer)"
STRIPPED_TAGS = ["script", "style", "nav", "footer", "header"]


def html_to_text(html: str) -> str:
    """
    Extract visible text from an HTML document, one block per line.

    Args:
        html: Raw page markup

    Returns:
        Text with page chrome removed and blank lines collapsed
    """
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(STRIPPED_TAGS):
        tag.decompose()

    lines = (line.strip() for line in soup.get_text(separator="\n").splitlines())
    return "\n".join(line for line in lines if line)


class UrlImporter(BaseImporter):
    """
    Importer that fetches its source text from a URL.
    """

    def __init__(self, url: str, timeout: float = 15.0,
                 user_agent: str = DEFAULT_USER_AGENT,
                 client: Optional[httpx.Client] = None):
        """
        Initialize the URL importer.

        Args:
            url: Page to fetch
            timeout: Request timeout in seconds
            user_agent: User-Agent header sent with the request
            client: Optional preconfigured client, mainly for tests
        """
        self.url = url
        self.timeout = timeout
        self.user_agent = user_agent
        self._client = client

    def fetch_html(self) -> str:
        """
        Download the page.

        Raises:
            ConnectivityError: If the page cannot be reached or returns an error status
        """
        headers = {"User-Agent": self.user_agent}
        logging.info(f"Fetching {self.url}")

        try:
            if self._client is not None:
                response = self._client.get(self.url, headers=headers, timeout=self.timeout)
            else:
                with httpx.Client(timeout=self.timeout, follow_redirects=True) as client:
                    response = client.get(self.url, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ConnectivityError(
                f"{self.url} returned HTTP {e.response.status_code}",
                f"Could not fetch the page (HTTP {e.response.status_code})."
            ) from e
        except httpx.RequestError as e:
            raise ConnectivityError(
                f"Failed to fetch {self.url}: {e}",
                "Could not reach the page. Check the URL and your connection."
            ) from e

        return response.text

    def get_source_text(self) -> str:
        text = html_to_text(self.fetch_html())
        if not text:
            raise TomekeeperError(f"No readable text found at {self.url}")
        logging.info(f"Extracted {len(text)} characters from {self.url}")
        return text
