"""
Entity Extraction Module

Turns raw narrative text into a deduplicated list of span-located,
taxonomy-classified entities. Candidate phrases come from a Segmenter
(noun phrases, people, places, organizations) plus optional custom regex
patterns.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .models import Entity, EntityClassification, TextSpan
from .segmentation import Segmenter, SpacySegmenter
from .taxonomy import Taxonomy
from .utils import time_function


STOPWORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by",
})

PRONOUNS = frozenset({
    "i", "you", "he", "she", "it", "we", "they", "me", "him", "her", "us", "them",
})

# Fixed classifications for named people and organizations
STAKEHOLDER_TYPE = "stakeholder"
PERSON_CONFIDENCE = 0.9
ORGANIZATION_CONFIDENCE = 0.8


@dataclass(frozen=True)
class ExtractionOptions:
    """
    Entity extraction settings.

    Attributes:
        min_entity_length: Minimum trimmed candidate length
        max_entity_length: Maximum trimmed candidate length
        include_pronouns: Keep pronouns such as "we" or "they"
        custom_patterns: Extra regex bodies scanned case-insensitively
    """

    min_entity_length: int = 2
    max_entity_length: int = 50
    include_pronouns: bool = False
    custom_patterns: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, config: Optional[Dict[str, Any]]) -> "ExtractionOptions":
        config = config or {}
        return cls(
            min_entity_length=config.get("min_entity_length", 2),
            max_entity_length=config.get("max_entity_length", 50),
            include_pronouns=config.get("include_pronouns", False),
            custom_patterns=tuple(config.get("custom_patterns") or ()),
        )


class EntityExtractor:
    """
    Extracts classified entities from narrative text.

    People and organizations receive a fixed ``stakeholder`` classification;
    noun phrases, places and custom-pattern matches are classified with the
    taxonomy. Duplicates are removed case-insensitively, keeping the first
    entity seen after sorting by surface length, longest first.

    Attributes:
        taxonomy: Taxonomy used for classification
        options: ExtractionOptions in effect
        segmenter: Segmenter providing candidate phrases

    Examples:
        >>> extractor = EntityExtractor()
        >>> entities = extractor.extract_entities("Sarah Johnson led the team in Q2 2024.")
        >>> any(e.classification and e.classification.type == "stakeholder" for e in entities)
        True
    """

    def __init__(
        self,
        taxonomy: Optional[Taxonomy] = None,
        options: Optional[ExtractionOptions] = None,
        segmenter: Optional[Segmenter] = None
    ):
        """
        Initialize the extractor.

        Args:
            taxonomy: Taxonomy for classification (default taxonomy if None)
            options: Extraction options (defaults if None)
            segmenter: Segmenter for candidate phrases (spaCy if None)

        Raises:
            re.error: If a custom pattern is not a valid regex
        """
        self.logger = logging.getLogger(__name__)
        self.taxonomy = taxonomy or Taxonomy()
        self.options = options or ExtractionOptions()
        self.segmenter = segmenter or SpacySegmenter()

        self._custom_regexes = [
            re.compile(pattern, re.IGNORECASE) for pattern in self.options.custom_patterns
        ]

        self.logger.info(
            f"EntityExtractor initialized "
            f"(length={self.options.min_entity_length}-{self.options.max_entity_length}, "
            f"pronouns={self.options.include_pronouns}, "
            f"custom_patterns={len(self._custom_regexes)})"
        )

    @time_function
    def extract_entities(self, text: str) -> List[Entity]:
        """
        Extract deduplicated entities from text.

        Args:
            text: Source text (may be empty)

        Returns:
            Entities ordered longest surface form first, extraction order
            within equal lengths
        """
        if not text:
            self.logger.warning("Empty text provided for entity extraction")
            return []

        segmentation = self.segmenter.segment(text)
        entities: List[Entity] = []

        entities.extend(self._from_candidates(text, segmentation.noun_phrases))
        entities.extend(self._from_candidates(
            text, segmentation.people,
            fixed=EntityClassification(STAKEHOLDER_TYPE, PERSON_CONFIDENCE, {"entityType": "person"})
        ))
        entities.extend(self._from_candidates(text, segmentation.places))
        entities.extend(self._from_candidates(
            text, segmentation.organizations,
            fixed=EntityClassification(
                STAKEHOLDER_TYPE, ORGANIZATION_CONFIDENCE, {"entityType": "organization"}
            )
        ))
        entities.extend(self._from_custom_patterns(text))

        deduplicated = self.deduplicate_entities(entities)

        self.logger.debug(
            f"Extracted {len(deduplicated)} entities ({len(entities)} candidates) "
            f"from text ({len(text)} characters)"
        )

        return deduplicated

    def is_valid_entity(self, candidate: str) -> bool:
        """Length, stopword and pronoun filter applied to every candidate."""
        trimmed = candidate.strip()

        if not trimmed:
            return False
        if len(trimmed) < self.options.min_entity_length:
            return False
        if len(trimmed) > self.options.max_entity_length:
            return False

        lowered = trimmed.lower()
        if lowered in STOPWORDS:
            return False
        if not self.options.include_pronouns and lowered in PRONOUNS:
            return False

        return True

    def find_text_spans(self, text: str, entity_text: str) -> List[TextSpan]:
        """
        Locate every case-insensitive literal occurrence of entity_text.

        Examples:
            >>> extractor.find_text_spans("Team and team", "team")
            [TextSpan(start=0, end=4, text='Team'), TextSpan(start=9, end=13, text='team')]
        """
        regex = re.compile(re.escape(entity_text), re.IGNORECASE)
        return [
            TextSpan(match.start(), match.end(), match.group(0))
            for match in regex.finditer(text)
            if match.end() > match.start()
        ]

    def classify_entity(self, entity: Entity) -> None:
        """Classify an entity with the taxonomy; unmatched entities stay unclassified."""
        match = self.taxonomy.classify_text(entity.text)
        if match is None:
            return

        entity.set_classification(EntityClassification(
            type=match.taxonomy_class.id,
            confidence=match.confidence,
            metadata={
                "taxonomyClass": match.taxonomy_class.name,
                "description": match.taxonomy_class.description,
            }
        ))

    def deduplicate_entities(self, entities: List[Entity]) -> List[Entity]:
        """
        Keep the first entity per case-insensitive surface form.

        Entities are stably sorted by surface length, longest first, so the
        most specific forms are preferred. Later duplicates are discarded
        together with their spans and classifications.
        """
        seen = set()
        deduplicated = []

        for entity in sorted(entities, key=lambda e: len(e.text), reverse=True):
            key = entity.text.lower()
            if key in seen:
                continue
            seen.add(key)
            deduplicated.append(entity)

        dropped = len(entities) - len(deduplicated)
        if dropped:
            self.logger.debug(f"Deduplicated {len(entities)} entities to {len(deduplicated)}")

        return deduplicated

    def _from_candidates(
        self,
        text: str,
        candidates: Iterable[str],
        fixed: Optional[EntityClassification] = None
    ) -> List[Entity]:
        entities = []

        for candidate in candidates:
            if not self.is_valid_entity(candidate):
                continue

            spans = self.find_text_spans(text, candidate)
            if not spans:
                self.logger.debug(f"Dropping candidate not found in text: {candidate!r}")
                continue

            entity = Entity(candidate, spans)
            if fixed is not None:
                entity.set_classification(EntityClassification(
                    fixed.type, fixed.confidence, dict(fixed.metadata)
                ))
            else:
                self.classify_entity(entity)
            entities.append(entity)

        return entities

    def _from_custom_patterns(self, text: str) -> List[Entity]:
        entities = []

        for regex in self._custom_regexes:
            for match in regex.finditer(text):
                entity_text = match.group(0)
                if not self.is_valid_entity(entity_text):
                    continue

                entity = Entity(entity_text, [TextSpan(match.start(), match.end(), entity_text)])
                self.classify_entity(entity)
                entities.append(entity)

        return entities


# Module-level logger
logger = logging.getLogger(__name__)
