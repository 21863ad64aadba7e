"""
Relation Extraction Module

Infers directed, labelled relations between entities that co-occur in a
sentence, by matching linguistic cue patterns in the text lying between
the two entity mentions.
"""

import logging
import re
from dataclasses import dataclass, field
from itertools import combinations
from typing import Any, Dict, List, Optional, Tuple, Union

from .models import Entity, Relation, TextSpan
from .segmentation import Segmenter, SpacySegmenter
from .utils import time_function


FORWARD = "forward"
BACKWARD = "backward"
BIDIRECTIONAL = "bidirectional"
DIRECTIONS = (FORWARD, BACKWARD, BIDIRECTIONAL)

# Cue phrases that raise confidence when present in the between-text
STRONG_CUES = ("because", "caused by", "resulted in", "led to", "due to")
STRONG_CUE_BOOST = 0.1

# Between-text longer than this (trimmed) is treated as diffuse context
LONG_CONTEXT_LENGTH = 50
LONG_CONTEXT_PENALTY = 0.9

EXTRACTION_METHOD = "linguistic_pattern"


@dataclass(frozen=True)
class RelationPattern:
    """
    A cue pattern that produces a relation when found between two entities.

    ``pattern`` may be given as a string; it is compiled case-insensitively.

    Attributes:
        pattern: Compiled regex searched in the between-text
        label: Relation label
        confidence: Base confidence in [0, 1]
        direction: forward, backward or bidirectional
    """

    pattern: Any
    label: str
    confidence: float
    direction: str = FORWARD

    def __post_init__(self):
        if isinstance(self.pattern, str):
            object.__setattr__(self, "pattern", re.compile(self.pattern, re.IGNORECASE))
        if self.direction not in DIRECTIONS:
            raise ValueError(
                f"Unknown relation direction {self.direction!r}; expected one of {DIRECTIONS}"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RelationPattern":
        return cls(
            pattern=data["pattern"],
            label=data["label"],
            confidence=float(data.get("confidence", 0.5)),
            direction=data.get("direction", FORWARD),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pattern": self.pattern.pattern,
            "label": self.label,
            "confidence": self.confidence,
            "direction": self.direction,
        }


DEFAULT_RELATION_PATTERNS: Tuple[RelationPattern, ...] = (
    # Temporal
    RelationPattern(r"\b(during|in|throughout)\b", "occurs_during", 0.8, FORWARD),
    RelationPattern(r"\b(after|following|subsequent to)\b", "follows", 0.7, FORWARD),
    RelationPattern(r"\b(before|prior to|preceding)\b", "precedes", 0.7, FORWARD),
    # Causal
    RelationPattern(r"\b(caused by|due to|because of|resulted from)\b", "caused_by", 0.8, BACKWARD),
    RelationPattern(r"\b(led to|resulted in|caused|enabled)\b", "causes", 0.8, FORWARD),
    RelationPattern(r"\b(improved|enhanced|increased)\b", "improves", 0.6, FORWARD),
    # Organizational
    RelationPattern(r"\b(part of|member of|within|belongs to)\b", "part_of", 0.7, FORWARD),
    RelationPattern(r"\b(includes|contains|comprises)\b", "contains", 0.7, FORWARD),
    RelationPattern(r"\b(managed by|led by|under)\b", "managed_by", 0.8, FORWARD),
    # Dependency
    RelationPattern(r"\b(depends on|relies on|requires)\b", "depends_on", 0.8, FORWARD),
    RelationPattern(r"\b(supports|enables|facilitates)\b", "supports", 0.7, FORWARD),
    # Measurement
    RelationPattern(r"\b(measured by|tracked by|indicated by)\b", "measured_by", 0.8, FORWARD),
    RelationPattern(r"\b(measures|tracks|indicates)\b", "measures", 0.8, BACKWARD),
    # Implementation
    RelationPattern(r"\b(implemented through|achieved via|using)\b", "implemented_through", 0.7, FORWARD),
    RelationPattern(r"\b(focuses on|targets|addresses)\b", "focuses_on", 0.6, FORWARD),
    # Association (weaker)
    RelationPattern(r"\b(with|and|along with|together with)\b", "associated_with", 0.4, BIDIRECTIONAL),
    RelationPattern(r"\b(related to|connected to|linked to)\b", "related_to", 0.5, BIDIRECTIONAL),
)


PatternLike = Union[RelationPattern, Dict[str, Any]]


def _to_pattern(value: PatternLike) -> RelationPattern:
    return value if isinstance(value, RelationPattern) else RelationPattern.from_dict(value)


@dataclass(frozen=True)
class RelationExtractionOptions:
    """
    Relation extraction settings.

    Attributes:
        max_distance: Maximum character distance between span starts
        min_confidence: Relations below this confidence are dropped
        custom_patterns: Patterns appended after the defaults
    """

    max_distance: int = 100
    min_confidence: float = 0.3
    custom_patterns: Tuple[RelationPattern, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(
            self, "custom_patterns", tuple(_to_pattern(p) for p in self.custom_patterns)
        )

    @classmethod
    def from_dict(cls, config: Optional[Dict[str, Any]]) -> "RelationExtractionOptions":
        config = config or {}
        return cls(
            max_distance=config.get("max_distance", 100),
            min_confidence=config.get("min_confidence", 0.3),
            custom_patterns=tuple(config.get("custom_patterns") or ()),
        )


class RelationExtractor:
    """
    Extracts relations between entities that share a sentence.

    For every pair of entities in a sentence and every pair of their spans
    within ``max_distance`` of each other, each cue pattern found in the
    between-text yields one relation. There is no deduplication: a pair may
    produce several relations.

    Attributes:
        options: RelationExtractionOptions in effect
        segmenter: Segmenter used to split sentences
        default_patterns: Built-in cue patterns, in evaluation order

    Examples:
        >>> extractor = RelationExtractor()
        >>> relations = extractor.extract_relations(text, entities)
        >>> all(r.confidence >= 0.3 for r in relations)
        True
    """

    def __init__(
        self,
        options: Optional[RelationExtractionOptions] = None,
        segmenter: Optional[Segmenter] = None
    ):
        self.logger = logging.getLogger(__name__)
        self.options = options or RelationExtractionOptions()
        self.segmenter = segmenter or SpacySegmenter()
        self.default_patterns: Tuple[RelationPattern, ...] = DEFAULT_RELATION_PATTERNS
        self._custom_patterns: List[RelationPattern] = list(self.options.custom_patterns)

        self.logger.info(
            f"RelationExtractor initialized "
            f"(max_distance={self.options.max_distance}, "
            f"min_confidence={self.options.min_confidence}, "
            f"custom_patterns={len(self._custom_patterns)})"
        )

    @time_function
    def extract_relations(self, text: str, entities: List[Entity]) -> List[Relation]:
        """
        Extract relations from text given its entities.

        Args:
            text: Source text
            entities: Entities extracted from the same text

        Returns:
            Relations with confidence >= min_confidence, in discovery order
        """
        if not text or len(entities) < 2:
            return []

        patterns = self.get_available_patterns()
        relations: List[Relation] = []

        for sentence in self.segmenter.sentences(text):
            # First occurrence only; repeated sentences all anchor here
            sentence_start = text.find(sentence)
            if sentence_start < 0:
                self.logger.warning(f"Sentence not found in source text: {sentence[:40]!r}")
                continue
            sentence_end = sentence_start + len(sentence)

            sentence_entities = [
                entity for entity in entities
                if any(span.start >= sentence_start and span.end <= sentence_end
                       for span in entity.spans)
            ]
            if len(sentence_entities) < 2:
                continue

            for entity1, entity2 in combinations(sentence_entities, 2):
                relations.extend(self._find_relations_between(
                    sentence, sentence_start, entity1, entity2, patterns
                ))

        filtered = [r for r in relations if r.confidence >= self.options.min_confidence]

        self.logger.debug(
            f"Extracted {len(filtered)} relations "
            f"({len(relations) - len(filtered)} below min_confidence)"
        )

        return filtered

    def add_custom_pattern(self, pattern: PatternLike) -> None:
        """Append a pattern; it applies to subsequent extract_relations calls."""
        self._custom_patterns.append(_to_pattern(pattern))

    def get_available_patterns(self) -> Tuple[RelationPattern, ...]:
        """Default patterns followed by custom patterns."""
        return self.default_patterns + tuple(self._custom_patterns)

    def _find_relations_between(
        self,
        sentence: str,
        sentence_start: int,
        entity1: Entity,
        entity2: Entity,
        patterns: Tuple[RelationPattern, ...]
    ) -> List[Relation]:
        relations = []

        for pos1 in entity1.spans:
            for pos2 in entity2.spans:
                if abs(pos1.start - pos2.start) > self.options.max_distance:
                    continue

                if pos1.start < pos2.start:
                    first, second, first_pos, second_pos = entity1, entity2, pos1, pos2
                else:
                    first, second, first_pos, second_pos = entity2, entity1, pos2, pos1

                between_text = self._between_text(sentence, sentence_start, first_pos, second_pos)

                for pattern in patterns:
                    match = pattern.pattern.search(between_text)
                    if match:
                        relations.append(
                            self._create_relation(first, second, pattern, match, between_text)
                        )

        return relations

    @staticmethod
    def _between_text(
        sentence: str,
        sentence_start: int,
        first_pos: TextSpan,
        second_pos: TextSpan
    ) -> str:
        """Sentence text strictly between two spans, clamped to the sentence."""
        start = min(max(first_pos.end - sentence_start, 0), len(sentence))
        end = min(max(second_pos.start - sentence_start, 0), len(sentence))
        if start >= end:
            return ""
        return sentence[start:end]

    def _create_relation(
        self,
        first: Entity,
        second: Entity,
        pattern: RelationPattern,
        match: "re.Match",
        context: str
    ) -> Relation:
        if pattern.direction == BACKWARD:
            source_id, target_id = second.id, first.id
        else:
            # bidirectional is materialized as the forward edge only
            source_id, target_id = first.id, second.id

        confidence = pattern.confidence

        lowered = context.lower()
        if any(cue in lowered for cue in STRONG_CUES):
            confidence = min(1.0, confidence + STRONG_CUE_BOOST)

        if len(context.strip()) > LONG_CONTEXT_LENGTH:
            confidence *= LONG_CONTEXT_PENALTY

        self.logger.debug(
            f"Pattern '{pattern.label}' matched {match.group(0)!r} "
            f"between {first.text!r} and {second.text!r}"
        )

        return Relation(
            source_id,
            target_id,
            pattern.label,
            confidence=confidence,
            metadata={
                "patternMatch": match.group(0),
                "context": context.strip(),
                "extractionMethod": EXTRACTION_METHOD,
            }
        )


# Module-level logger
logger = logging.getLogger(__name__)
