"""
Per-source adapters and the registry the harvester iterates.

An adapter describes one publishing body: the pages to load, how to select
the interesting nodes, how to tell question nodes from answer nodes, how
to pull the question text out of a node, and how to render answers.

  ProseAdapter      question/answer prose; goes through the partitioner
  LinkIndexAdapter  a list of links, each one a whole question/answer
  PayloadAdapter    an embedded JSON payload; no partitioning at all

ADAPTERS is ordered: harvest order is output order.
"""

import json
import re
from abc import ABC, abstractmethod
from typing import Any, Callable, Hashable, Optional, Pattern

from bs4 import BeautifulSoup, NavigableString, Tag

from .config import HarvesterConfig
from .exceptions import PayloadError
from .formatter import AnswerFormat, AnswerFormatter, answer_format_for_url, render_markup, render_tree
from .loader import DocumentLoader
from .logger import get_module_logger
from .partition import pair_each, partition_entities
from .sanitizer import cleanup_boundary_tags
from .schemas import FAQEntity, RunContext
from .selection import Predicate, class_, child, descendant, find_in_text, has_child, own_strings, query, tag

logger = get_module_logger("adapters")

# Text ending in a question mark; trailing whitespace and closing tags allowed
QUESTION_PATTERN = re.compile(r"^.*\?\s*(<[^>]+>\s*)*$", re.DOTALL)

# One optional leading tag, the text, one optional trailing tag
OUTER_TAG_PATTERN = re.compile(r"^\s*(<[^>]+>)?(.*?)(<[^>]+>)?\s*$", re.DOTALL)

# Fully wrapped question: at least one tag on both sides
WRAPPED_QUESTION_PATTERN = re.compile(r"^(<[^>]+>)+(.*\?\s*)(<[^>]+>)+$", re.DOTALL)

LEADING_NUMBERING_PATTERN = re.compile(r"^((\d\.?)+)? *")
HASHTAG_PREFIX_PATTERN = re.compile(r"^#[^\s]+\s*(.*)$", re.DOTALL)


# --- Question text extraction ---

def first_content(node: Tag) -> Any:
    return node.contents[0] if node.contents else None


def starts_with_text(node: Tag) -> bool:
    return isinstance(first_content(node), NavigableString)


def first_text(node: Tag) -> Optional[str]:
    """The node's first child when it is text, stripped."""
    content = first_content(node)
    if isinstance(content, NavigableString):
        return str(content).strip() or None
    return None


def strip_outer_tag(html: str) -> str:
    m = OUTER_TAG_PATTERN.match(html)
    return m.group(2).strip() if m else html.strip()


def unwrapped_markup(node: Tag) -> Optional[str]:
    """Node serialized to markup with its own open/close tags removed."""
    return strip_outer_tag(render_tree(node)) or None


def numbered_markup(node: Tag) -> Optional[str]:
    """unwrapped_markup() without leading "1.2. " style numbering."""
    text = unwrapped_markup(node)
    return LEADING_NUMBERING_PATTERN.sub("", text, count=1) if text else None


def last_child_markup(node: Tag) -> Optional[str]:
    if not node.contents:
        return None
    return render_markup(node.contents[-1]).strip() or None


def first_child_markup(node: Tag) -> Optional[str]:
    content = first_content(node)
    if content is None:
        return None
    return render_markup(content).strip() or None


def boundary_cleaned_markup(node: Tag) -> Optional[str]:
    return cleanup_boundary_tags(render_tree(node).strip()) or None


def hashtag_title(node: Tag) -> Optional[str]:
    """Link text with its leading "#tag" label removed."""
    text = first_text(node)
    if text is None:
        return None
    m = HASHTAG_PREFIX_PATTERN.match(text)
    return m.group(1).strip() if m else text


def nested_first_text(node: Tag) -> Optional[str]:
    """First text of the node's first child element."""
    inner = next((c for c in node.children if isinstance(c, Tag)), None)
    return first_text(inner) if inner is not None else None


def is_wrapped_question(node: Tag) -> bool:
    return WRAPPED_QUESTION_PATTERN.match(render_tree(node)) is not None


def starts_with_question(node: Tag) -> bool:
    text = first_text(node)
    return text is not None and QUESTION_PATTERN.match(text) is not None


def has_attributes(node: Tag) -> bool:
    return bool(node.attrs)


# --- Adapters ---

class BaseAdapter(ABC):
    """Source descriptor plus the per-page fault isolation wrapper."""

    def __init__(
        self,
        key: str,
        source: str,
        urls: list[str],
        answer_format: Optional[AnswerFormat] = None,
        local_file: Optional[str] = None,
        question_pattern: Pattern = QUESTION_PATTERN,
        **formatter_options,
    ):
        """
        Args:
            key: Short identifier used on the command line
            source: Display name written to every record
            urls: Pages to harvest, in order
            answer_format: Formatter tag; resolved from the first URL if omitted
            local_file: Pinned document (under local_docs_dir) read instead of fetching
            question_pattern: Gate every extracted question must match
            formatter_options: Extra AnswerFormatter arguments (link_text, base_domain...)
        """
        if not urls:
            raise ValueError(f"Adapter {key} needs at least one URL")
        if local_file is not None and len(urls) != 1:
            raise ValueError(f"Adapter {key}: a local file stands in for exactly one URL")

        self.key = key
        self.source = source
        self.urls = list(urls)
        self.local_file = local_file
        self.question_pattern = question_pattern
        self.formatter = AnswerFormatter(
            answer_format or answer_format_for_url(self.urls[0]), **formatter_options
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.key}>"

    def make_entity(self, question: Optional[str], answer_content: Any,
                    url: str, context: RunContext) -> Optional[FAQEntity]:
        """Build an entity, or None when the question fails the gate."""
        if not question or not self.question_pattern.match(question):
            return None
        return FAQEntity(
            question=question.strip(),
            answer=self.formatter.render(url, answer_content),
            source=self.source,
            source_url=url,
            captured_at=context.captured_at,
        )

    @abstractmethod
    def harvest_document(self, document: BeautifulSoup, url: str,
                         context: RunContext) -> list[FAQEntity]:
        """Extract the entities of one loaded page."""

    def harvest(self, loader: DocumentLoader, context: RunContext,
                config: Optional[HarvesterConfig] = None) -> list[FAQEntity]:
        """
        Load every page and extract its entities.

        A page that fails to load contributes nothing; the other pages
        and the other adapters carry on.
        """
        config = config or loader.config
        local_file = config.local_document(self.local_file)
        entities = []

        for url in self.urls:
            result = loader.load(url, local_file=local_file)
            if not result.ok:
                logger.warning(f"[{self.key}] skipping {url}: {result.error}")
                continue
            page_entities = self.harvest_document(result.document, url, context)
            logger.info(f"[{self.key}] {len(page_entities)} entities from {url}")
            entities.extend(page_entities)

        return entities


class ProseAdapter(BaseAdapter):
    """Question and answer nodes interleaved in page prose."""

    def __init__(
        self,
        key: str,
        source: str,
        urls: list[str],
        selector: Predicate,
        classify: Callable[[Tag], Hashable],
        question_text: Callable[[Tag], Optional[str]],
        start: Optional[Callable[[Tag], Any]] = None,
        **options,
    ):
        super().__init__(key, source, urls, **options)
        self.selector = selector
        self.classify = classify
        self.question_text = question_text
        self.start = start

    def build_entity(self, marker_run: list[Tag], content_run: list[Tag],
                     url: str, context: RunContext) -> Optional[FAQEntity]:
        texts = [self.question_text(node) for node in marker_run]
        question = " ".join(text for text in texts if text)
        return self.make_entity(question, content_run, url, context)

    def harvest_document(self, document, url, context):
        nodes = query(document, self.selector)
        return partition_entities(
            nodes,
            classify=self.classify,
            construct=lambda markers, contents: self.build_entity(markers, contents, url, context),
            start=self.start,
        )


class LinkIndexAdapter(BaseAdapter):
    """Pages listing links, where each link is one question with its answer."""

    def __init__(
        self,
        key: str,
        source: str,
        urls: list[str],
        selector: Predicate,
        question_text: Callable[[Tag], Optional[str]],
        answer_content: Callable[[Tag], Any] = lambda node: node,
        **options,
    ):
        super().__init__(key, source, urls, **options)
        self.selector = selector
        self.question_text = question_text
        self.answer_content = answer_content

    def harvest_document(self, document, url, context):
        entities = []
        for marker_run, content_run in pair_each(query(document, self.selector)):
            entity = self.make_entity(
                self.question_text(marker_run[0]),
                self.answer_content(content_run[0]),
                url,
                context,
            )
            if entity is not None:
                entities.append(entity)
        return entities


class PayloadAdapter(BaseAdapter):
    """
    Source exposing its FAQ as a JSON payload inside a script tag.

    Reads helpcenterData.containers, keeps published records and links each
    title to answer_prefix + id. Any missing piece raises PayloadError.
    """

    def __init__(
        self,
        key: str,
        source: str,
        urls: list[str],
        answer_prefix: str,
        payload_selector: Predicate = find_in_text(r"languages"),
        **options,
    ):
        options.setdefault("question_pattern", re.compile(r"^\s*\S"))
        super().__init__(key, source, urls, **options)
        self.answer_prefix = answer_prefix
        self.payload_selector = payload_selector

    def _payload(self, document: BeautifulSoup) -> dict:
        nodes = query(document, self.payload_selector)
        if not nodes:
            raise PayloadError("No node carries the payload", source=self.source)

        strings = own_strings(nodes[0])
        if not strings:
            raise PayloadError("Payload node has no text", source=self.source)

        try:
            return json.loads(strings[0])
        except json.JSONDecodeError as e:
            raise PayloadError(f"Payload is not valid JSON: {e}", source=self.source) from e

    def _containers(self, payload: dict) -> list:
        try:
            containers = payload["helpcenterData"]["containers"]
        except (KeyError, TypeError) as e:
            raise PayloadError("Payload lacks helpcenterData.containers",
                               source=self.source, details={"missing": str(e)}) from e
        if not isinstance(containers, list):
            raise PayloadError("helpcenterData.containers is not a list", source=self.source)
        return containers

    def harvest_document(self, document, url, context):
        entities = []
        for container in self._containers(self._payload(document)):
            try:
                status, title, ident = container["status"], container["title"], container["id"]
            except (KeyError, TypeError) as e:
                raise PayloadError("Container record is incomplete", source=self.source,
                                   details={"record": container}) from e
            if not isinstance(title, str):
                raise PayloadError("Container title is not text", source=self.source,
                                   details={"record": container})
            if status != "published":
                continue
            entity = self.make_entity(title, f"{self.answer_prefix}{ident}", url, context)
            if entity is not None:
                entities.append(entity)
        return entities


# --- Registry ---

STRONG_QUESTION = tag("strong") & find_in_text(QUESTION_PATTERN)
STRONG_QUESTION_OR_PARAGRAPH = STRONG_QUESTION | (tag("p") & ~has_child(STRONG_QUESTION))

TRAVAIL_EMPLOI_PREFIX = (
    "https://travail-emploi.gouv.fr/le-ministere-en-action/coronavirus-covid-19/"
    "questions-reponses-par-theme/article/"
)
TRAVAIL_EMPLOI_PAGES = [
    "mesures-de-prevention-dans-l-entreprise-contre-le-covid-19-masques",
    "mesures-de-prevention-sante-hors-covid-19",
    "garde-d-enfants-et-personnes-vulnerables",
    "indemnisation-chomage",
    "formation-professionnelle-stagiaires-et-organismes-de-formation",
    "apprentissage-apprentis-et-organismes-de-formation-cfa",
    "activite-partielle-chomage-partiel",
    "adaptation-de-l-activite-conges-mise-a-disposition-de-main-d-oeuvre",
    "primes-exceptionnelles-et-epargne-salariale",
    "dialogue-social",
    "embauche-demission-sanctions-licenciement",
    "services-de-sante-au-travail",
    "teletravail",
]

SOLIDARITES_SANTE_PREFIX = (
    "https://solidarites-sante.gouv.fr/soins-et-maladies/maladies/maladies-infectieuses/"
    "coronavirus/tout-savoir-sur-le-covid-19/article/"
)
SOLIDARITES_SANTE_PAGES = [
    "reponses-a-vos-questions-sur-le-covid-19-par-des-medecins",
    "comment-se-proteger-du-coronavirus-covid-19",
    "j-ai-des-symptomes-je-suis-malade-covid-19",
]

SFPT_BASE_DOMAIN = "https://www.sfpt-fr.org"
ECONOMIE_ANSWER_PREFIX = "https://info-entreprises-covid19.economie.gouv.fr/kb/guide/fr/"


def build_registry() -> list[BaseAdapter]:
    """All adapters, in output order."""
    return [
        ProseAdapter(
            "urssaf", "URSSAF",
            ["https://www.urssaf.fr/portail/home/actualites/foire-aux-questions.html"],
            selector=class_("faqQuestion") | class_("faqAnswer"),
            classify=class_("faqQuestion"),
            question_text=last_child_markup,
            answer_format=AnswerFormat.RAW_MARKUP,
        ),
        ProseAdapter(
            "pole-emploi", "Pôle emploi",
            [
                "https://www.pole-emploi.fr/actualites/information-covid-19.html",
                "https://www.pole-emploi.fr/actualites/covid-19-activite-partielle-et-a.html",
                "https://www.pole-emploi.fr/actualites/allongement-exceptionnel-de-lind.html",
            ],
            selector=class_("t4") | descendant(class_("block-article-link"), tag("p") | tag("ul")),
            classify=tag("h2"),
            question_text=first_text,
            answer_format=AnswerFormat.FRAGMENT_LINES,
        ),
        ProseAdapter(
            "gouvernement", "Gouvernement",
            ["https://www.gouvernement.fr/info-coronavirus"],
            selector=class_("item-question") | class_("item-reponse"),
            classify=class_("item-question"),
            question_text=first_text,
            answer_format=AnswerFormat.DEFAULT,
        ),
        ProseAdapter(
            "education", "Ministère de l'Éducation nationale",
            [
                "https://www.education.gouv.fr/coronavirus-covid-19-informations-et-recommandations"
                "-pour-les-etablissements-scolaires-et-les-274253",
                "https://www.education.gouv.fr/bac-brevet-2020-les-reponses-vos-questions-303348",
            ],
            selector=(tag("h3") & class_("title")) | tag("p"),
            classify=class_("title"),
            question_text=unwrapped_markup,
            start=has_attributes,
            answer_format=AnswerFormat.DEFAULT,
        ),
        ProseAdapter(
            "travail-emploi", "Ministère du Travail",
            [TRAVAIL_EMPLOI_PREFIX + page for page in TRAVAIL_EMPLOI_PAGES],
            selector=STRONG_QUESTION_OR_PARAGRAPH,
            classify=tag("strong"),
            question_text=numbered_markup,
            start=tag("strong"),
            answer_format=AnswerFormat.DEFAULT,
        ),
        ProseAdapter(
            "associations", "MENJ - Associations",
            ["https://www.associations.gouv.fr/associations-et-crise-du-covid-19-la-foire-aux-questions.html"],
            selector=STRONG_QUESTION_OR_PARAGRAPH,
            classify=tag("strong"),
            question_text=unwrapped_markup,
            start=starts_with_text,
            answer_format=AnswerFormat.DEFAULT,
        ),
        ProseAdapter(
            "handicap", "Secrétariat d'État au handicap",
            ["https://handicap.gouv.fr/grands-dossiers/coronavirus/article/foire-aux-questions"],
            selector=STRONG_QUESTION_OR_PARAGRAPH,
            classify=tag("strong"),
            question_text=unwrapped_markup,
            start=starts_with_text,
            answer_format=AnswerFormat.DEFAULT,
        ),
        ProseAdapter(
            "etudiant", "MESRI / Les Crous",
            ["https://www.etudiant.gouv.fr/pid33626-cid150278/covid-19-%7C-faq-crous-etudes-concours-services.html"],
            selector=(tag("h4") & find_in_text(QUESTION_PATTERN))
            | (tag("p") & ~find_in_text(QUESTION_PATTERN)),
            classify=is_wrapped_question,
            question_text=unwrapped_markup,
            start=starts_with_question,
            answer_format=AnswerFormat.DEFAULT,
        ),
        ProseAdapter(
            "solidarites-sante", "Ministère des Solidarités et de la Santé",
            [SOLIDARITES_SANTE_PREFIX + page for page in SOLIDARITES_SANTE_PAGES],
            selector=class_("ouvrir_fermer") | tag("p"),
            classify=tag("a"),
            question_text=first_child_markup,
            start=tag("a"),
            answer_format=AnswerFormat.DEFAULT,
        ),
        LinkIndexAdapter(
            "sfpt", "Société Française de Pharmacologie et de Thérapeutique",
            ["https://www.sfpt-fr.org/covid19-foire-aux-questions"],
            selector=child(tag("td") & class_("list-title"), tag("a")),
            question_text=hashtag_title,
            answer_format=AnswerFormat.BASE_DOMAIN_LINK,
            base_domain=SFPT_BASE_DOMAIN,
            link_text="Lire la réponse sur le site de la SFPT",
        ),
        ProseAdapter(
            "defense", "Ministère des armées",
            ["https://www.defense.gouv.fr/actualites/articles/ministere-des-armees-covid-19-foire-aux-questions"],
            local_file="defense-2020-05-04.html",
            selector=descendant(class_("panel-heading"), tag("strong")) | class_("panel-body"),
            classify=tag("strong"),
            question_text=boundary_cleaned_markup,
            answer_format=AnswerFormat.TREE_MARKUP,
        ),
        PayloadAdapter(
            "economie", "Ministère de l'Économie et des Finances",
            ["https://info-entreprises-covid19.economie.gouv.fr/kb/fr"],
            answer_prefix=ECONOMIE_ANSWER_PREFIX,
            answer_format=AnswerFormat.LINK_ONLY,
            link_text="le site du Ministère de l'Économie et des Finances.",
        ),
        LinkIndexAdapter(
            "service-public", "Direction de l'information légale et administrative",
            ["https://www.service-public.fr/particuliers/actualites/A13995"],
            selector=class_("link-arrow"),
            question_text=nested_first_text,
            answer_content=lambda node: node.get("href", ""),
            answer_format=AnswerFormat.LINK_ONLY,
            link_text="le site www.service-public.fr de la DILA",
        ),
    ]


ADAPTERS = build_registry()


def get_adapter(key: str) -> BaseAdapter:
    for adapter in ADAPTERS:
        if adapter.key == key:
            return adapter
    raise KeyError(f"Unknown adapter: {key}")
