"""
Segmentation Module

Natural-language segmentation consumed by the extractors: sentence
splitting plus noun phrase, person, place and organization detection. The
extractors only depend on the ``Segmenter`` interface; ``SpacySegmenter``
is the default implementation.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

import spacy
from spacy.language import Language


# spaCy entity labels grouped by candidate kind
PERSON_LABELS = frozenset({"PERSON"})
PLACE_LABELS = frozenset({"GPE", "LOC", "FAC"})
ORGANIZATION_LABELS = frozenset({"ORG"})
NAMED_LABELS = PERSON_LABELS | PLACE_LABELS | ORGANIZATION_LABELS


@dataclass
class Segmentation:
    """
    Segmenter output for one text.

    Every string is expected to be a literal substring of the source text.
    """

    sentences: List[str] = field(default_factory=list)
    noun_phrases: List[str] = field(default_factory=list)
    people: List[str] = field(default_factory=list)
    places: List[str] = field(default_factory=list)
    organizations: List[str] = field(default_factory=list)


class Segmenter(ABC):
    """Interface for sentence and candidate-phrase segmentation."""

    @abstractmethod
    def segment(self, text: str) -> Segmentation:
        """Segment text into sentences and candidate phrase groups."""

    def sentences(self, text: str) -> List[str]:
        return self.segment(text).sentences


class SpacySegmenter(Segmenter):
    """
    Segmenter backed by a spaCy pipeline.

    Attributes:
        model_name: spaCy model name
        nlp: Loaded spaCy pipeline

    Examples:
        >>> segmenter = SpacySegmenter(model_name="en_core_web_sm")
        >>> result = segmenter.segment("Sarah Johnson joined Acme Corp in Berlin.")
        >>> "Sarah Johnson" in result.people
        True
    """

    def __init__(
        self,
        model_name: str = "en_core_web_sm",
        nlp: Optional[Language] = None
    ):
        """
        Initialize the segmenter.

        Args:
            model_name: spaCy model to load when ``nlp`` is not given
            nlp: Pre-loaded spaCy pipeline (optional)

        Raises:
            OSError: If the spaCy model is not installed
        """
        self.logger = logging.getLogger(__name__)

        if nlp is None:
            try:
                self.logger.info(f"Loading SpaCy model: {model_name}")
                nlp = spacy.load(model_name)
                self.logger.info(f"Successfully loaded {model_name}")
            except OSError:
                self.logger.error(
                    f"SpaCy model '{model_name}' not found. "
                    f"Install it with: python -m spacy download {model_name}"
                )
                raise
        else:
            model_name = nlp.meta.get("name", model_name)

        self.model_name = model_name
        self.nlp = nlp

        # One-entry cache; extractors segment the same text back to back
        self._last_text: Optional[str] = None
        self._last_result = Segmentation()

        self.logger.info(f"SpacySegmenter initialized with pipes {self.nlp.pipe_names}")

    def segment(self, text: str) -> Segmentation:
        """
        Segment text, reusing the previous result when the text repeats.

        Noun chunks covering exactly the same characters as a person, place
        or organization entity are left out, so the entity keeps its own
        candidate group.
        """
        if not text or not text.strip():
            self.logger.debug("Empty text provided for segmentation")
            return Segmentation()

        if text == self._last_text:
            return self._last_result

        doc = self.nlp(text)

        sentences = [sent.text for sent in doc.sents if sent.text.strip()]

        # noun_chunks needs a dependency parse
        if doc.has_annotation("DEP"):
            named_spans = {
                (ent.start_char, ent.end_char) for ent in doc.ents if ent.label_ in NAMED_LABELS
            }
            noun_phrases = [
                chunk.text for chunk in doc.noun_chunks
                if (chunk.start_char, chunk.end_char) not in named_spans
            ]
        else:
            noun_phrases = []

        result = Segmentation(
            sentences=sentences,
            noun_phrases=noun_phrases,
            people=[ent.text for ent in doc.ents if ent.label_ in PERSON_LABELS],
            places=[ent.text for ent in doc.ents if ent.label_ in PLACE_LABELS],
            organizations=[ent.text for ent in doc.ents if ent.label_ in ORGANIZATION_LABELS],
        )

        self.logger.debug(
            f"Segmented {len(text)} characters: {len(result.sentences)} sentences, "
            f"{len(result.noun_phrases)} noun phrases, {len(result.people)} people, "
            f"{len(result.places)} places, {len(result.organizations)} organizations"
        )

        self._last_text = text
        self._last_result = result
        return result


# Module-level logger
logger = logging.getLogger(__name__)
