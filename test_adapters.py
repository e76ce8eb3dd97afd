"""
Tests for the per-source adapters.

Each test feeds a small hand-written page shaped like the real source to
the adapter's harvest_document(); nothing touches the network.
"""

import pytest
from bs4 import BeautifulSoup

from faq_harvester.adapters import (
    ADAPTERS, QUESTION_PATTERN, LinkIndexAdapter, PayloadAdapter, ProseAdapter, get_adapter,
)
from faq_harvester.exceptions import PayloadError
from faq_harvester.formatter import AnswerFormat
from faq_harvester.schemas import RunContext

CONTEXT = RunContext(captured_at="2020-05-04T10:00:00")


def harvest(key, html, url=None):
    adapter = get_adapter(key)
    document = BeautifulSoup(html, "html5lib")
    return adapter.harvest_document(document, url or adapter.urls[0], CONTEXT)


# --- Registry ---

def test_registry_order_and_kinds():
    assert [a.key for a in ADAPTERS] == [
        "urssaf", "pole-emploi", "gouvernement", "education", "travail-emploi",
        "associations", "handicap", "etudiant", "solidarites-sante", "sfpt",
        "defense", "economie", "service-public",
    ]
    assert isinstance(get_adapter("economie"), PayloadAdapter)
    assert isinstance(get_adapter("sfpt"), LinkIndexAdapter)
    assert isinstance(get_adapter("service-public"), LinkIndexAdapter)
    assert all(isinstance(get_adapter(k), ProseAdapter) for k in ("urssaf", "defense", "etudiant"))


def test_registry_page_lists():
    assert len(get_adapter("travail-emploi").urls) == 13
    assert len(get_adapter("pole-emploi").urls) == 3
    assert len(get_adapter("solidarites-sante").urls) == 3
    assert get_adapter("defense").local_file == "defense-2020-05-04.html"
    assert [a.key for a in ADAPTERS if a.local_file] == ["defense"]


def test_registry_formats_match_url_table():
    for adapter in ADAPTERS:
        assert adapter.formatter.answer_format is not None
    assert get_adapter("urssaf").formatter.answer_format is AnswerFormat.RAW_MARKUP
    assert get_adapter("defense").formatter.answer_format is AnswerFormat.TREE_MARKUP
    assert get_adapter("service-public").formatter.answer_format is AnswerFormat.LINK_ONLY


def test_get_adapter_unknown_key():
    with pytest.raises(KeyError):
        get_adapter("nope")


def test_adapter_without_format_resolves_it_from_url():
    adapter = ProseAdapter(
        "test", "Test", ["https://www.pole-emploi.fr/x.html"],
        selector=None, classify=None, question_text=None,
    )
    assert adapter.formatter.answer_format is AnswerFormat.FRAGMENT_LINES


# --- Prose adapters ---

def test_urssaf():
    [entity] = harvest("urssaf", """
        <div class="faqQuestion"><span>1</span>Comment déclarer ?</div>
        <div class="faqAnswer"><p>En ligne.</p></div>
        <div class="faqQuestion">Orpheline ?</div>
    """)
    assert entity.question == "Comment déclarer ?"
    assert entity.answer == '<div class="faqAnswer"><p>En ligne.</p></div>'
    assert entity.source == "URSSAF"
    assert entity.source_url == get_adapter("urssaf").urls[0]
    assert entity.captured_at == "2020-05-04T10:00:00"


def test_pole_emploi():
    [entity] = harvest("pole-emploi", """
        <h2 class="t4">Mes droits sont-ils prolongés ?</h2>
        <div class="block-article-link"><p>Oui.</p><ul><li>Cas 1</li></ul></div>
    """)
    assert entity.question == "Mes droits sont-ils prolongés ?"
    assert entity.answer == "<p>Oui.</p><br/><ul><li>Cas 1</li></ul>"


def test_gouvernement_drops_non_questions():
    entities = harvest("gouvernement", """
        <div class="item-question">Sans question</div>
        <div class="item-reponse">Ignorée.</div>
        <div class="item-question">Vraie question ?</div>
        <div class="item-reponse"><p>Oui.</p></div>
    """)
    assert [e.question for e in entities] == ["Vraie question ?"]
    assert entities[0].answer == '<div class="item-reponse"><p>Oui.</p></div>'


def test_education_skips_until_first_node_with_attributes():
    [entity] = harvest("education", """
        <p>Intro</p>
        <h3 class="title">Les écoles sont-elles ouvertes ?</h3>
        <p>Oui, <a href="/pid/1">voir ici</a>.</p>
    """)
    assert entity.question == "Les écoles sont-elles ouvertes ?"
    assert entity.answer == '<p>Oui, <a href="https://www.education.gouv.fr/pid/1">voir ici</a>.</p>'


def test_travail_emploi_strips_numbering_and_merges_paragraphs():
    [entity] = harvest("travail-emploi", """
        <p><strong>1.2. Qui paie ?</strong></p>
        <p>L'employeur.</p>
        <p>Deuxième paragraphe.</p>
        <p><strong>Sans réponse ?</strong></p>
    """)
    assert entity.question == "Qui paie ?"
    assert entity.answer == "<p>L'employeur.</p><p>Deuxième paragraphe.</p>"


@pytest.mark.parametrize("key", ["associations", "handicap"])
def test_strong_question_sources_skip_leading_markup(key):
    [entity] = harvest(key, """
        <p><img src="logo.png"></p>
        <p><strong>Qui peut en bénéficier ?</strong></p>
        <p>Toutes les structures.</p>
    """)
    assert entity.question == "Qui peut en bénéficier ?"
    assert entity.answer == "<p>Toutes les structures.</p>"


def test_etudiant():
    [entity] = harvest("etudiant", """
        <p>Introduction.</p>
        <h4>Les BU sont-elles ouvertes ?</h4>
        <p>Non.</p>
        <p>Voir le site.</p>
    """)
    assert entity.question == "Les BU sont-elles ouvertes ?"
    assert entity.answer == "<p>Non.</p><p>Voir le site.</p>"


def test_solidarites_sante_keeps_question_markup():
    [entity] = harvest("solidarites-sante", """
        <p>Préambule.</p>
        <a class="ouvrir_fermer" href="#q1"><span>Le virus est-il dangereux ?</span></a>
        <p>Pour certains.</p>
    """)
    assert entity.question == "<span>Le virus est-il dangereux ?</span>"
    assert entity.answer == "<p>Pour certains.</p>"


def test_defense_merges_marker_run_and_converts_tree():
    [entity] = harvest("defense", """
        <div class="panel-heading"><strong>Masques</strong><strong>Qui les fournit ?</strong></div>
        <div class="panel-body"><p>L'unité.</p><!-- relu --></div>
    """)
    assert entity.question == "Masques Qui les fournit ?"
    assert entity.answer == '<div class="panel-body"><p>L\'unité.</p></div>'


def test_defense_unwraps_question_tags():
    [entity] = harvest("defense", """
        <div class="panel-heading"><strong><em>Les permissions sont-elles maintenues ?</em></strong></div>
        <div class="panel-body"><h4>Réponse</h4><p>Oui.</p></div>
    """)
    assert entity.question == "Les permissions sont-elles maintenues ?"
    assert entity.answer == (
        '<div class="panel-body"><strong class="is-size-4">Réponse</strong><br/><p>Oui.</p></div>'
    )


# --- Link index adapters ---

def test_sfpt():
    [entity] = harvest("sfpt", """
        <table><tr>
          <td class="list-title"><a href="/covid19/12">#COVID19 Puis-je prendre de l'ibuprofène ?</a></td>
          <td><a href="/autre">Autre ?</a></td>
        </tr></table>
    """)
    assert entity.question == "Puis-je prendre de l'ibuprofène ?"
    assert 'href="https://www.sfpt-fr.org/covid19/12"' in entity.answer
    assert "Lire la réponse sur le site de la SFPT" in entity.answer


def test_service_public():
    [entity] = harvest("service-public", """
        <a class="link-arrow" href="/particuliers/vosdroits/F123"><span>Comment déclarer ?</span></a>
        <a class="link-arrow" href="/particuliers/vosdroits/F124"><span>Actualité</span></a>
    """)
    assert entity.question == "Comment déclarer ?"
    assert 'href="https://www.service-public.fr/particuliers/vosdroits/F123"' in entity.answer
    assert entity.answer.startswith("<p>La réponse sur ")


# --- Structured payload adapter ---

PAYLOAD = """
<script type="application/json">{"languages": ["fr"], "helpcenterData": {"containers": [
  {"id": 42, "title": "Activité partielle", "status": "published"},
  {"id": 43, "title": "Brouillon", "status": "draft"}
]}}</script>
"""


def test_economie_keeps_published_containers():
    [entity] = harvest("economie", PAYLOAD)
    assert entity.question == "Activité partielle"
    assert 'href="https://info-entreprises-covid19.economie.gouv.fr/kb/guide/fr/42"' in entity.answer
    assert entity.source == "Ministère de l'Économie et des Finances"


@pytest.mark.parametrize("html", [
    "<p>Pas de données</p>",
    "<script>var languages = 1;</script>",
    '<script type="application/json">{"languages": ["fr"]}</script>',
    '<script type="application/json">{"languages": [], "helpcenterData": {"containers": {}}}</script>',
    '<script type="application/json">{"languages": [], "helpcenterData": '
    '{"containers": [{"id": 1, "title": "Sans statut"}]}}</script>',
])
def test_economie_malformed_payload_raises(html):
    with pytest.raises(PayloadError):
        harvest("economie", html)


# --- Question gate ---

def test_every_emitted_question_passes_the_gate():
    pages = {
        "gouvernement": """
            <div class="item-question">Titre</div><div class="item-reponse">a</div>
            <div class="item-question">Question ?</div><div class="item-reponse">b</div>
        """,
        "travail-emploi": """
            <p><strong>Quand ?</strong></p><p>Demain.</p>
            <p><strong>Où ?</strong></p><p>Ici.</p>
        """,
        "etudiant": "<h4>Ouvert ?</h4><p>Oui.</p><h4>Fermé ?</h4>",
    }
    entities = [e for key, html in pages.items() for e in harvest(key, html)]
    assert [e.question for e in entities] == ["Question ?", "Quand ?", "Où ?", "Ouvert ?"]
    assert all(QUESTION_PATTERN.match(e.question) for e in entities)
