"""
Assembly of per-page HTML into one document.

Each page is validated first; a page that fails validation is replaced by an
error placeholder that embeds the offending HTML and its issue list, so the
merged document never silently drops a page.
"""
import json
import logging
import re
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from jinja2 import Environment, FileSystemLoader, select_autoescape

from src.core.exceptions import AssemblyError
from src.models import PageTranslation
from .validator import validate_html

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"

_FULL_DOCUMENT_MARKER = re.compile(r"</html>", re.IGNORECASE)
_BODY_PATTERN = re.compile(r"<body[^>]*>([\s\S]*?)</body>", re.IGNORECASE)
_STYLE_PATTERN = re.compile(r"<style[^>]*>([\s\S]*?)</style>", re.IGNORECASE)

Extraction = Tuple[Optional[str], Optional[str]]


def extract_full_document(html: str) -> Extraction:
    """Body inner content and concatenated <style> contents of a full document"""
    body_match = _BODY_PATTERN.search(html)
    body = body_match.group(1).strip() if body_match else None
    style = "\n".join(match.group(1).strip() for match in _STYLE_PATTERN.finditer(html))
    return body, style or None


def extract_fragment(html: str) -> Extraction:
    """A fragment is all body, with no style of its own"""
    return html, None


def select_strategy(html: str) -> Callable[[str], Extraction]:
    if _FULL_DOCUMENT_MARKER.search(html):
        return extract_full_document
    return extract_fragment


class HtmlAssembler:
    """Merges validated page fragments into a single document"""

    def __init__(self, title: str = "Translated document", lang: str = "es"):
        self.title = title
        self.lang = lang
        self._env = Environment(
            loader=FileSystemLoader(str(TEMPLATES_DIR)),
            autoescape=select_autoescape(["html"]),
            keep_trailing_newline=True,
        )

    def join(self, pages: List[PageTranslation]) -> str:
        """
        Merge page HTML in page order.

        Args:
            pages: Page translations, already ordered by page number

        Returns:
            The merged HTML document

        Raises:
            AssemblyError: If no page yielded extractable body content
        """
        bodies: List[str] = []
        styles: List[str] = []
        for page in pages:
            html = self.validate_page(page)
            strategy = select_strategy(html)
            body, style = strategy(html)
            if body:
                bodies.append(body)
            if style:
                styles.append(style)
        return self._inject(bodies, styles)

    def validate_page(self, page: PageTranslation) -> str:
        """Return the page HTML, or an error placeholder when it is structurally invalid"""
        result = validate_html(page.html)
        if result.is_valid:
            return page.html

        page_number = page.page_info.get('pageNumber')
        logger.warning(f"Page {page_number} failed validation with {len(result.errors)} error(s), "
                       f"using error placeholder")
        dimensions: Dict[str, int] = page.page_info.get('dimensions', {})
        template = self._env.get_template("page_error.html")
        return template.render(
            page_number=page_number,
            width=dimensions.get('width'),
            height=dimensions.get('height'),
            issues_json=json.dumps(result.to_dict(), indent=2, ensure_ascii=False),
            raw_html=page.html,
        )

    def _inject(self, bodies: List[str], styles: List[str]) -> str:
        if not bodies:
            raise AssemblyError("Could not merge HTML pages: no body content could be extracted")
        template = self._env.get_template("document.html")
        return template.render(
            title=self.title,
            lang=self.lang,
            body="\n".join(bodies),
            style="\n".join(styles),
        )
