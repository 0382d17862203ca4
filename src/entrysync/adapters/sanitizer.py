"""HTML to plain text."""

from __future__ import annotations

from typing import Final

from bs4 import BeautifulSoup

# elements whose text is never shown to a reader
REMOVE_CONTENTS: Final[tuple[str, ...]] = ("script", "style", "template", "noscript")


class BeautifulSoupSanitizer:
    def __init__(self, parser: str = "html.parser") -> None:
        self.parser = parser

    def strip(self, html: str) -> str:
        if not html:
            return ""
        soup = BeautifulSoup(html, self.parser)
        for element in soup.find_all(list(REMOVE_CONTENTS)):
            element.decompose()
        return soup.get_text()
