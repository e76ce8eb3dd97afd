"""
Answer formatter: render matched content into a sanitized HTML fragment.

Each adapter gets an AnswerFormat once, when it is configured; render()
then dispatches on that tag instead of re-matching URLs on every call.
answer_format_for_url() keeps the original URL table for adapters that
do not name a format: rules are tried in order and the first match wins,
so the order of URL_FORMAT_RULES must not change.

Every branch's output goes through sanitizer.sanitize().
"""

import copy
import re
from enum import Enum
from typing import Any, Iterable, Iterator, Optional

from bs4 import BeautifulSoup, Comment, Tag

from .logger import get_module_logger
from .sanitizer import sanitize

logger = get_module_logger("formatter")

LINE_BREAK = "<br/>"


class AnswerFormat(Enum):
    """How an adapter's raw answer content becomes markup (dispatch order)."""
    RAW_MARKUP = "raw_markup"              # markup passed through as-is
    TREE_MARKUP = "tree_markup"            # nodes converted to flat markup first
    LINK_ONLY = "link_only"                # canned paragraph linking to the answer
    FRAGMENT_LINES = "fragment_lines"      # node fragments joined by <br/>
    BASE_DOMAIN_LINK = "base_domain_link"  # one anchor, href prefixed by a base domain
    DEFAULT = "default"                    # flatten, then join by <br/>


URL_FORMAT_RULES = [
    (re.compile(r"^.*urssaf.*$"), AnswerFormat.RAW_MARKUP),
    (re.compile(r"^.*defense.*$"), AnswerFormat.TREE_MARKUP),
    (re.compile(r"^.*(economie|service-public).*$"), AnswerFormat.LINK_ONLY),
    (re.compile(r"^.*pole-emploi.*$"), AnswerFormat.FRAGMENT_LINES),
    (re.compile(r"^.*sfpt.*$"), AnswerFormat.BASE_DOMAIN_LINK),
]


def answer_format_for_url(url: str) -> AnswerFormat:
    """First rule of URL_FORMAT_RULES matching url, else DEFAULT."""
    for pattern, answer_format in URL_FORMAT_RULES:
        if pattern.match(url):
            return answer_format
    return AnswerFormat.DEFAULT


def flatten(content: Any) -> Iterator[Any]:
    """Yield the leaves of arbitrarily nested lists/tuples."""
    if isinstance(content, (list, tuple)):
        for item in content:
            yield from flatten(item)
    elif content is not None:
        yield content


def render_markup(node: Any) -> str:
    """Serialize a node (or pass a string through) unchanged."""
    return str(node)


def render_tree(node: Any) -> str:
    """Serialize a copy of node with HTML comments removed."""
    if not isinstance(node, Tag):
        return str(node)
    clone = copy.copy(node)
    for comment in clone.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()
    return str(clone)


def _build_anchor(href: str, text: str) -> Tag:
    soup = BeautifulSoup("", "html.parser")
    anchor = soup.new_tag("a", attrs={"target": "new", "href": href})
    anchor.string = text
    return anchor


class AnswerFormatter:
    """Renders one adapter's answers according to its AnswerFormat."""

    def __init__(
        self,
        answer_format: AnswerFormat = AnswerFormat.DEFAULT,
        link_intro: str = "La réponse sur ",
        link_text: Optional[str] = None,
        base_domain: Optional[str] = None,
    ):
        """
        Args:
            answer_format: Dispatch tag
            link_intro: Text before the anchor in LINK_ONLY paragraphs
            link_text: Anchor text for LINK_ONLY and BASE_DOMAIN_LINK
            base_domain: Prefix for host-relative hrefs (BASE_DOMAIN_LINK)
        """
        if answer_format is AnswerFormat.LINK_ONLY and not link_text:
            raise ValueError("LINK_ONLY answers need link_text")
        if answer_format is AnswerFormat.BASE_DOMAIN_LINK and not (link_text and base_domain):
            raise ValueError("BASE_DOMAIN_LINK answers need link_text and base_domain")

        self.answer_format = answer_format
        self.link_intro = link_intro
        self.link_text = link_text
        self.base_domain = base_domain

    def _link_paragraph(self, url: str) -> str:
        soup = BeautifulSoup("", "html.parser")
        paragraph = soup.new_tag("p")
        paragraph.append(self.link_intro)
        paragraph.append(_build_anchor(url, self.link_text))
        return str(paragraph)

    def _base_domain_link(self, content: Any) -> str:
        node = next(flatten(content), None)
        href = node.get("href", "") if isinstance(node, Tag) else ""
        return str(_build_anchor(f"{self.base_domain}{href}", self.link_text))

    def _to_html(self, content: Any) -> str:
        fmt = self.answer_format

        if fmt is AnswerFormat.RAW_MARKUP:
            return "".join(render_markup(n) for n in flatten(content))

        if fmt is AnswerFormat.TREE_MARKUP:
            return "".join(render_tree(n) for n in flatten(content))

        if fmt is AnswerFormat.LINK_ONLY:
            return self._link_paragraph(str(content))

        if fmt is AnswerFormat.FRAGMENT_LINES:
            nodes: Iterable[Any] = content if isinstance(content, (list, tuple)) else [content]
            return LINE_BREAK.join(render_tree(n) for n in nodes)

        if fmt is AnswerFormat.BASE_DOMAIN_LINK:
            return self._base_domain_link(content)

        return LINE_BREAK.join(render_tree(n) for n in flatten(content))

    def render(self, source_url: str, content: Any) -> str:
        """
        Render raw matched content into a sanitized HTML fragment.

        Args:
            source_url: Page the content came from (base for relative hrefs)
            content: Node, sequence of nodes, or URL string depending on format

        Returns:
            Sanitized HTML fragment
        """
        return sanitize(source_url, self._to_html(content))
