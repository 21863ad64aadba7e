"""
Shared fixtures for the test suite.
"""

import re
from typing import Iterable, List, Optional

import pytest
import spacy
from spacy.language import Language
from spacy.tokens import Doc

from narrative_ontology.ontology import Ontology, OntologyEdge, OntologyNode
from narrative_ontology.segmentation import Segmentation, Segmenter


class FakeSegmenter(Segmenter):
    """Deterministic segmenter returning fixed candidate groups."""

    def __init__(
        self,
        noun_phrases: Iterable[str] = (),
        people: Iterable[str] = (),
        places: Iterable[str] = (),
        organizations: Iterable[str] = (),
        sentences: Optional[List[str]] = None
    ):
        self.noun_phrases = list(noun_phrases)
        self.people = list(people)
        self.places = list(places)
        self.organizations = list(organizations)
        self.fixed_sentences = sentences
        self.calls = 0

    def segment(self, text: str) -> Segmentation:
        self.calls += 1
        if self.fixed_sentences is not None:
            sentences = list(self.fixed_sentences)
        else:
            sentences = [s for s in re.split(r"(?<=[.!?])\s+", text.strip()) if s]
        return Segmentation(
            sentences=sentences,
            noun_phrases=list(self.noun_phrases),
            people=list(self.people),
            places=list(self.places),
            organizations=list(self.organizations),
        )


# (word, head index, dependency, part of speech) for scenario_text
SCENARIO_PARSE = [
    ("Sarah", 1, "compound", "PROPN"),
    ("Johnson", 2, "nsubj", "PROPN"),
    ("led", 2, "ROOT", "VERB"),
    ("the", 5, "det", "DET"),
    ("engineering", 5, "compound", "NOUN"),
    ("team", 2, "dobj", "NOUN"),
    ("to", 7, "aux", "PART"),
    ("improve", 2, "xcomp", "VERB"),
    ("customer", 9, "compound", "NOUN"),
    ("metrics", 7, "dobj", "NOUN"),
    ("in", 7, "prep", "ADP"),
    ("Q2", 12, "compound", "PROPN"),
    ("2024", 10, "pobj", "PROPN"),
    (".", 2, "punct", "PUNCT"),
]


@Language.component("scenario_parser")
def scenario_parser(doc):
    """Attach a fixed dependency parse when the tokens match SCENARIO_PARSE."""
    words = [token.text for token in doc]
    if words != [word for word, _, _, _ in SCENARIO_PARSE]:
        return doc
    return Doc(
        doc.vocab,
        words=words,
        spaces=[bool(token.whitespace_) for token in doc],
        heads=[head for _, head, _, _ in SCENARIO_PARSE],
        deps=[dep for _, _, dep, _ in SCENARIO_PARSE],
        pos=[pos for _, _, _, pos in SCENARIO_PARSE],
    )


@pytest.fixture
def fake_segmenter_factory():
    """Build FakeSegmenter instances with custom candidate groups."""
    return FakeSegmenter


@pytest.fixture
def scenario_text():
    return "Sarah Johnson led the engineering team to improve customer metrics in Q2 2024."


@pytest.fixture
def scenario_segmenter():
    """
    What SpacySegmenter yields for scenario_text with a full English model.

    The parser also returns "Sarah Johnson" as a noun chunk; the segmenter
    drops it because it coincides with the PERSON entity.
    """
    return FakeSegmenter(
        noun_phrases=["the engineering team", "customer metrics", "Q2 2024"],
        people=["Sarah Johnson"],
    )


@pytest.fixture(scope="session")
def blank_nlp():
    """Blank English spaCy pipeline with a sentencizer and an entity ruler."""
    nlp = spacy.blank("en")
    nlp.add_pipe("sentencizer")
    ruler = nlp.add_pipe("entity_ruler")
    ruler.add_patterns([
        {"label": "PERSON", "pattern": "Sarah Johnson"},
        {"label": "ORG", "pattern": "Acme Corp"},
        {"label": "GPE", "pattern": "Berlin"},
        {"label": "LOC", "pattern": "Europe"},
    ])
    return nlp


@pytest.fixture(scope="session")
def parsed_nlp():
    """Blank English pipeline that parses scenario_text and tags its PERSON."""
    nlp = spacy.blank("en")
    nlp.add_pipe("scenario_parser")
    ruler = nlp.add_pipe("entity_ruler")
    ruler.add_patterns([{"label": "PERSON", "pattern": "Sarah Johnson"}])
    return nlp


@pytest.fixture
def sample_ontology():
    """Small ontology with a parallel edge pair and an unclassified node."""
    ontology = Ontology(id="ontology-1", metadata={"sourceNarrativeId": "narrative-1"})
    ontology.add_node(OntologyNode("e1", "Sarah Johnson", "stakeholder", {
        "confidence": 0.9,
        "originalSpans": [{"start": 0, "end": 13, "text": "Sarah Johnson"}],
    }))
    ontology.add_node(OntologyNode("e2", "Q2 2024", "time-period", {
        "confidence": 0.14,
        "originalSpans": [{"start": 70, "end": 77, "text": "Q2 2024"}],
    }))
    ontology.add_node(OntologyNode("e3", "the engineering team", "Entity", {
        "confidence": None,
        "originalSpans": [{"start": 18, "end": 38, "text": "the engineering team"}],
    }))
    ontology.add_edge(OntologyEdge("r1", "e1", "e2", "occurs_during", {
        "confidence": 0.72, "context": "led the engineering team in",
    }))
    ontology.add_edge(OntologyEdge("r2", "e1", "e2", "related_to", {"confidence": 0.5}))
    ontology.add_edge(OntologyEdge("r3", "e3", "e2", "occurs_during", {"confidence": 0.8}))
    return ontology
