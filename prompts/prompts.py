from typing import Dict, List, NamedTuple, Optional

from src.config import DEFAULT_PROMPT


class PageContext(NamedTuple):
    """Values substituted into the per-page system prompts."""
    page_number: int
    width: int
    height: int
    language: str
    user_prompt: str = DEFAULT_PROMPT
    glossary: Optional[List[Dict[str, str]]] = None
    style_guidance: Optional[List[str]] = None
    examples: Optional[List[Dict[str, str]]] = None


# ============================================================================
# SHARED PROMPT SECTIONS
# ============================================================================

def _get_page_container_section(page_number: int, width: int, height: int) -> str:
    """
    Layout contract shared by every page of a document.

    The assembler concatenates page bodies as they are returned, so each page
    must carry its own container sized to the scanned page.
    """
    return f"""# PAGE CONTAINER

Wrap the whole page in exactly one container:

<page id="page-{page_number}">
  ...page content...
</page>

- The container represents a page of {width}x{height} pixels; keep the content inside those bounds
- Use absolute or flex positioning only where the layout of the scan requires it
- Never emit a second <page> element and never nest pages
"""


def _get_html_rules_section() -> str:
    return """# HTML RULES

- Return a complete HTML document: <!DOCTYPE html>, <html lang="...">, <head> with <meta charset="UTF-8"> and a <title>, then <body>
- Put every style in a single <style> block inside <head>; do not link external stylesheets or scripts
- Close every block element you open (div, p, section, table, tr, td, li, ...)
- Element ids must be unique within the page
- Do not wrap the answer in markdown code fences
"""


def _get_glossary_section(glossary: Optional[List[Dict[str, str]]]) -> str:
    if not glossary:
        return ""
    lines = []
    for entry in glossary:
        source = (entry.get('source') or entry.get('term') or '').strip()
        target = (entry.get('target') or entry.get('translation') or '').strip()
        if source and target:
            lines.append(f"- {source} → {target}")
    if not lines:
        return ""
    return "# GLOSSARY (mandatory terminology)\n\n" + "\n".join(lines) + "\n"


def _get_style_guidance_section(style_guidance: Optional[List[str]]) -> str:
    items = [str(item).strip() for item in (style_guidance or []) if str(item).strip()]
    if not items:
        return ""
    return "# STYLE GUIDANCE\n\n" + "\n".join(f"- {item}" for item in items) + "\n"


def _get_examples_section(examples: Optional[List[Dict[str, str]]]) -> str:
    """Sample source/translation pairs showing the expected register"""
    pairs = []
    for entry in examples or []:
        source = (entry.get('source') or '').strip()
        translation = (entry.get('translation') or entry.get('target') or '').strip()
        if source and translation:
            pairs.append(f"Source: {source}\nTranslation: {translation}")
    if not pairs:
        return ""
    return "# REFERENCE TRANSLATIONS\n\n" + "\n\n".join(pairs) + "\n"


# ============================================================================
# TRANSLATION PROMPTS
# ============================================================================

def generate_translation_prompt(context: PageContext) -> str:
    """
    System prompt for the translate stage.

    The model receives the scanned page as an image and must answer with the
    translated page as HTML reproducing the original layout.

    Args:
        context: Page number, pixel size, target language and user instructions

    Returns:
        str: System prompt
    """
    sections = [
        f"""You are a professional legal translator and typesetter.

# TASK

You receive the scan of page {context.page_number} of a legal document.
Translate all of its text into {context.language} and reproduce the page as HTML,
keeping the visual layout of the original: headings, paragraphs, numbering,
tables, signatures, stamps and margins.

**Translation rules:**
- Translate faithfully; do not summarize, omit or add content
- Keep proper names, case numbers, dates and amounts exactly as written
- Keep legal terms consistent across the page
- Text that is illegible in the scan is marked [illegible]
""",
        _get_page_container_section(context.page_number, context.width, context.height),
        _get_html_rules_section(),
        _get_glossary_section(context.glossary),
        _get_style_guidance_section(context.style_guidance),
        _get_examples_section(context.examples),
        f"""# ADDITIONAL INSTRUCTIONS

{context.user_prompt}
""",
        """# OUTPUT FORMAT

Answer with a JSON object with a single field "html" holding the full HTML document.
""",
    ]
    return "\n".join(section for section in sections if section)


def generate_correction_request(cycle_index: int) -> str:
    """User turn asking the translate stage for a corrected version of its last answer"""
    return (f"Correction round {cycle_index}: apply the corrections described above to your last HTML "
            f"and return the complete corrected page. Keep everything that was already correct.")


# ============================================================================
# CRITIQUE PROMPTS
# ============================================================================

def generate_critique_prompt(context: PageContext) -> str:
    """
    System prompt for the critique stage.

    The model compares the rendering of its own HTML with the original scan
    (both present in the conversation) and decides whether another correction
    round is needed.

    Args:
        context: Page number, pixel size, target language and user instructions

    Returns:
        str: System prompt
    """
    sections = [
        f"""You are the quality reviewer of a legal translation.

# TASK

The conversation contains the scan of page {context.page_number} and the HTML translation
into {context.language} produced for it. The last image is a {context.width}x{context.height}
screenshot of that HTML rendered in a browser.

Compare the screenshot with the original scan and check:
- Every block of the original is present and translated (nothing missing, nothing invented)
- Reading order, numbering and table structure match the original
- Text does not overflow the page or overlap other text
- Terminology is consistent and follows the glossary when one is given
""",
        _get_glossary_section(context.glossary),
        """# OUTPUT FORMAT

Answer with a JSON object:
- "reasoning": short explanation of the problems found, written as instructions for the translator
- "need_correction": true only if the problems justify another translation round
""",
    ]
    return "\n".join(section for section in sections if section)
