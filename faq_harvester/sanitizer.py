"""
String-level post-processing of rendered answer fragments.

sanitize() runs the fixed pipeline every answer goes through:
  fix_href → fix_headers → fix_empty_paragraphs

cleanup_boundary_tags() is not part of the pipeline; adapters call it on
question text that came out of markup conversion wrapped in stray tags.
"""

import re
from urllib.parse import urljoin

from .logger import get_module_logger

logger = get_module_logger("sanitizer")

HREF_PATTERN = re.compile(r'href="([^"]+)"', re.IGNORECASE | re.DOTALL)

HEADING_OPEN_PATTERN = re.compile(r"<h\d(?:\s[^>]*)?>", re.IGNORECASE)
HEADING_CLOSE_PATTERN = re.compile(r"</h\d\s*>", re.IGNORECASE)

# <p> holding nothing but whitespace and line breaks
EMPTY_PARAGRAPH_PATTERN = re.compile(
    r"<p(?:\s[^>]*)?>\s*(?:<br\s*/?>\s*)*</p>", re.IGNORECASE | re.DOTALL
)
# </p> ... <p> separated only by whitespace and line breaks
PARAGRAPH_GAP_PATTERN = re.compile(
    r"</p>\s*(?:<br\s*/?>\s*)*(<p(?:\s[^>]*)?>)", re.IGNORECASE | re.DOTALL
)

BOUNDARY_TAGS_PATTERN = re.compile(
    r"^\s*(?:<[^>]+>\s*)*([^<]+?)\s*(?:<[^>]+>\s*)*$", re.DOTALL
)


def fix_href(base_url: str, html: str) -> str:
    """Resolve every href="..." value against base_url."""
    return HREF_PATTERN.sub(
        lambda m: f'href="{urljoin(base_url, m.group(1))}"', html
    )


def fix_headers(html: str) -> str:
    """Demote <hN> ... </hN> to <strong class="is-size-4"> ... </strong><br/>."""
    html = HEADING_OPEN_PATTERN.sub('<strong class="is-size-4">', html)
    return HEADING_CLOSE_PATTERN.sub("</strong><br/>", html)


def fix_empty_paragraphs(html: str) -> str:
    """
    Remove empty paragraphs and collapse the gaps they leave behind.

    Repeats until nothing changes: removing an inner empty <p> can empty
    its parent, and the result must not change when run again.
    """
    previous = None
    while html != previous:
        previous = html
        html = EMPTY_PARAGRAPH_PATTERN.sub("", html)
        html = PARAGRAPH_GAP_PATTERN.sub(r"</p>\1", html)
    return html


def cleanup_boundary_tags(html: str) -> str:
    """
    Unwrap text enclosed only in leading/trailing tags.

    "<p><strong> Question ? </strong></p>" → "Question ?". Strings with
    markup in the middle are returned unchanged.
    """
    m = BOUNDARY_TAGS_PATTERN.match(html)
    return m.group(1) if m else html


def sanitize(base_url: str, html: str) -> str:
    """Apply fix_href, fix_headers and fix_empty_paragraphs in that order."""
    result = fix_empty_paragraphs(fix_headers(fix_href(base_url, html)))
    logger.debug(f"Sanitized fragment: {len(html)} → {len(result)} chars")
    return result
