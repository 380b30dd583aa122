"""
Structural validation of a single page's HTML.

The check runs on the raw token stream rather than on a parsed tree: tree
builders repair documents (implied <html>/<body>, auto-closed tags), which
would hide exactly the defects this validator is meant to report.
"""
from dataclasses import dataclass, field, asdict
from html.parser import HTMLParser
from typing import Dict, List, Optional

ERROR = "error"
WARNING = "warning"

# Elements that must appear exactly once
UNIQUE_ELEMENTS = ("html", "head", "body", "title")

# Elements whose open/close tags must balance
TAGS_REQUIRING_CLOSURE = (
    "div", "span", "p", "a", "button", "form",
    "h1", "h2", "h3", "h4", "h5", "h6",
    "article", "section", "nav", "aside", "header", "footer", "main", "figure",
    "table", "tr", "td", "th", "ul", "ol", "li",
)

# Void elements never take a closing tag
SELF_CLOSING_TAGS = frozenset({
    "img", "br", "hr", "input", "meta", "link", "area", "base",
    "col", "embed", "param", "source", "track", "wbr",
})

# Elements reported (as warnings) when they hold neither text nor children
EMPTY_CHECK_TAGS = frozenset({"p", "div", "span", "h1", "h2", "h3", "h4", "h5", "h6"})


@dataclass(frozen=True)
class ValidationIssue:
    severity: str
    rule: str
    message: str
    line: Optional[int] = None


@dataclass
class ValidationResult:
    is_valid: bool
    issues: List[ValidationIssue] = field(default_factory=list)

    @property
    def errors(self) -> List[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == ERROR]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == WARNING]

    def to_dict(self) -> dict:
        return {
            'isValid': self.is_valid,
            'summary': {
                'errorCount': len(self.errors),
                'warningCount': len(self.warnings),
            },
            'issues': [asdict(issue) for issue in self.issues],
        }


class _StructureScanner(HTMLParser):
    """Collects tag counts, ids and emptiness information in one pass"""

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.start_counts: Dict[str, int] = {}
        self.end_counts: Dict[str, int] = {}
        self.first_lines: Dict[str, int] = {}
        self.has_charset = False
        self.html_has_lang = False
        self.issues: List[ValidationIssue] = []
        self._ids: Dict[str, int] = {}
        # [tag, line, has_content]
        self._stack: List[list] = []

    def _open(self, tag: str, attrs, closes_itself: bool):
        line = self.getpos()[0]
        self.start_counts[tag] = self.start_counts.get(tag, 0) + 1
        self.first_lines.setdefault(tag, line)
        attributes = {name.lower(): (value or "") for name, value in attrs}

        if tag == "html" and attributes.get("lang", "").strip():
            self.html_has_lang = True
        if tag == "meta":
            http_equiv = attributes.get("http-equiv", "").lower()
            if "charset" in attributes or (
                    http_equiv == "content-type" and "charset=" in attributes.get("content", "").lower()):
                self.has_charset = True

        element_id = attributes.get("id")
        if element_id:
            if element_id in self._ids:
                self.issues.append(ValidationIssue(
                    ERROR, "id-unique",
                    f"Duplicate id '{element_id}' (first defined on line {self._ids[element_id]})", line))
            else:
                self._ids[element_id] = line

        if self._stack:
            self._stack[-1][2] = True
        if closes_itself:
            self.end_counts[tag] = self.end_counts.get(tag, 0) + 1
        elif tag not in SELF_CLOSING_TAGS:
            self._stack.append([tag, line, False])

    def handle_starttag(self, tag, attrs):
        self._open(tag, attrs, closes_itself=False)

    def handle_startendtag(self, tag, attrs):
        self._open(tag, attrs, closes_itself=tag not in SELF_CLOSING_TAGS)

    def handle_endtag(self, tag):
        self.end_counts[tag] = self.end_counts.get(tag, 0) + 1
        for index in range(len(self._stack) - 1, -1, -1):
            if self._stack[index][0] == tag:
                _, line, has_content = self._stack[index]
                del self._stack[index:]
                if tag in EMPTY_CHECK_TAGS and not has_content:
                    self.issues.append(ValidationIssue(
                        WARNING, "empty-element", f"Element <{tag}> has no content", line))
                return

    def handle_data(self, data):
        if self._stack and data.strip():
            self._stack[-1][2] = True


def validate_html(html: str) -> ValidationResult:
    """
    Check the structural soundness of one HTML document.

    Errors: missing or repeated <html>/<head>/<body>/<title>, missing charset
    declaration, duplicate ids, unbalanced block-level tags.
    Warnings: missing lang attribute on <html>, empty content elements.

    Pure function: identical input always yields an identical result.
    """
    scanner = _StructureScanner()
    scanner.feed(html or "")
    scanner.close()

    issues: List[ValidationIssue] = []
    for tag in UNIQUE_ELEMENTS:
        count = scanner.start_counts.get(tag, 0)
        if count == 0:
            issues.append(ValidationIssue(ERROR, f"{tag}-require", f"Missing <{tag}> element"))
        elif count > 1:
            issues.append(ValidationIssue(
                ERROR, f"no-multiple-{tag}",
                f"Found {count} <{tag}> elements, only one is allowed", scanner.first_lines.get(tag)))

    if not scanner.has_charset:
        issues.append(ValidationIssue(ERROR, "charset-require", "Missing charset declaration (<meta charset>)"))
    if scanner.start_counts.get("html") and not scanner.html_has_lang:
        issues.append(ValidationIssue(
            WARNING, "html-lang-require", "The <html> element should have a lang attribute",
            scanner.first_lines.get("html")))

    issues.extend(scanner.issues)

    for tag in TAGS_REQUIRING_CLOSURE:
        opened = scanner.start_counts.get(tag, 0)
        closed = scanner.end_counts.get(tag, 0)
        if opened != closed:
            issues.append(ValidationIssue(
                ERROR, "tag-pair",
                f"Unbalanced <{tag}> tags: {opened} opened, {closed} closed", scanner.first_lines.get(tag)))

    is_valid = not any(issue.severity == ERROR for issue in issues)
    return ValidationResult(is_valid=is_valid, issues=issues)
