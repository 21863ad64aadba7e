"""
Domain Model Module

Plain data holders for the narrative pipeline: text spans, entities,
relations and the narrative that owns them. Each object has a JSON-shaped
projection via ``to_dict``.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .utils import clamp_confidence, format_timestamp, generate_id, get_timestamp


@dataclass(frozen=True)
class TextSpan:
    """
    Half-open character range [start, end) into a source text.

    Attributes:
        start: Offset of the first character
        end: Offset one past the last character
        text: Surface form covered by the range
    """

    start: int
    end: int
    text: str

    def __post_init__(self):
        if self.start < 0 or self.end <= self.start:
            raise ValueError(f"Invalid span [{self.start}, {self.end})")

    def __len__(self) -> int:
        return self.end - self.start

    def to_dict(self) -> Dict[str, Any]:
        return {"start": self.start, "end": self.end, "text": self.text}


@dataclass
class EntityClassification:
    """Taxonomy type assigned to an entity; confidence is clamped to [0, 1]."""

    type: str
    confidence: float
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.confidence = clamp_confidence(self.confidence)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "confidence": self.confidence,
            "metadata": dict(self.metadata),
        }


class Entity:
    """
    A classified mention of a noun phrase or name.

    An entity may occur several times in its source text, so it carries a
    list of spans rather than a single offset.

    Attributes:
        id: Process-unique identifier
        text: Surface form
        spans: Occurrences in the source text
        classification: Optional taxonomy classification
        attributes: Free-form attribute bag

    Examples:
        >>> entity = Entity("Q2", [TextSpan(0, 2, "Q2")])
        >>> entity.get_total_length()
        2
    """

    def __init__(
        self,
        text: str,
        spans: List[TextSpan],
        id: Optional[str] = None,
        classification: Optional[EntityClassification] = None,
        attributes: Optional[Dict[str, Any]] = None
    ):
        self.id = id or generate_id("entity")
        self.text = text
        self.spans = list(spans)
        self.classification = None
        self.attributes = attributes
        if classification is not None:
            self.set_classification(classification)

    def set_classification(
        self,
        classification: Union[EntityClassification, Dict[str, Any]]
    ) -> None:
        """Assign a classification; the confidence is clamped to [0, 1]."""
        if isinstance(classification, dict):
            classification = EntityClassification(
                type=classification["type"],
                confidence=classification.get("confidence", 0.0),
                metadata=dict(classification.get("metadata") or {})
            )
        else:
            classification.confidence = clamp_confidence(classification.confidence)
        self.classification = classification

    def get_attribute(self, key: str) -> Any:
        if not self.attributes:
            return None
        return self.attributes.get(key)

    def set_attribute(self, key: str, value: Any) -> None:
        if self.attributes is None:
            self.attributes = {}
        self.attributes[key] = value

    def get_first_span(self) -> Optional[TextSpan]:
        return self.spans[0] if self.spans else None

    def get_total_length(self) -> int:
        """Sum of the lengths of all spans."""
        return sum(span.end - span.start for span in self.spans)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "spans": [span.to_dict() for span in self.spans],
            "classification": self.classification.to_dict() if self.classification else None,
            "attributes": dict(self.attributes) if self.attributes is not None else None,
        }

    def __repr__(self) -> str:
        entity_type = self.classification.type if self.classification else None
        return f"Entity(id={self.id!r}, text={self.text!r}, type={entity_type!r})"


class Relation:
    """
    A directed, labelled, confidence-scored link between two entities.

    The confidence is clamped to [0, 1] on every write.

    Examples:
        >>> relation = Relation("entity-a", "entity-b", "causes", confidence=1.4)
        >>> relation.confidence
        1.0
    """

    def __init__(
        self,
        source_entity_id: str,
        target_entity_id: str,
        label: str,
        confidence: float = 1.0,
        id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None
    ):
        self.id = id or generate_id("relation")
        self.source_entity_id = source_entity_id
        self.target_entity_id = target_entity_id
        self.label = label
        self.confidence = clamp_confidence(confidence)
        self.metadata = metadata

    def set_confidence(self, confidence: float) -> None:
        self.confidence = clamp_confidence(confidence)

    def get_metadata(self, key: str) -> Any:
        if not self.metadata:
            return None
        return self.metadata.get(key)

    def set_metadata(self, key: str, value: Any) -> None:
        if self.metadata is None:
            self.metadata = {}
        self.metadata[key] = value

    def is_high_confidence(self, threshold: float = 0.8) -> bool:
        return self.confidence >= threshold

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "sourceEntityId": self.source_entity_id,
            "targetEntityId": self.target_entity_id,
            "label": self.label,
            "confidence": self.confidence,
            "metadata": dict(self.metadata) if self.metadata is not None else None,
        }

    def __repr__(self) -> str:
        return (
            f"Relation({self.source_entity_id!r} -[{self.label}]-> "
            f"{self.target_entity_id!r}, confidence={self.confidence:.2f})"
        )


class Narrative:
    """
    A source text together with the entities and relations extracted from it.

    Entities and relations keep insertion order. Every addition refreshes
    ``updated_at``.

    Attributes:
        id: Narrative identifier
        text: Full source text
        metadata: Optional free-form metadata
        entities: Ordered list of entities
        relations: Ordered list of relations
        created_at: Creation time
        updated_at: Time of the last addition
    """

    def __init__(
        self,
        text: str,
        id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None
    ):
        self.id = id or generate_id("narrative")
        self.text = text
        self.metadata = metadata
        self.entities: List[Entity] = []
        self.relations: List[Relation] = []
        self.created_at = get_timestamp()
        self.updated_at = self.created_at

    def add_entity(self, entity: Entity) -> None:
        self.entities.append(entity)
        self.updated_at = get_timestamp()

    def add_relation(self, relation: Relation) -> None:
        self.relations.append(relation)
        self.updated_at = get_timestamp()

    def get_entity(self, entity_id: str) -> Optional[Entity]:
        return next((e for e in self.entities if e.id == entity_id), None)

    def get_relation(self, relation_id: str) -> Optional[Relation]:
        return next((r for r in self.relations if r.id == relation_id), None)

    def get_entities_by_type(self, entity_type: str) -> List[Entity]:
        return [
            e for e in self.entities
            if e.classification is not None and e.classification.type == entity_type
        ]

    def get_relations_by_label(self, label: str) -> List[Relation]:
        return [r for r in self.relations if r.label == label]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "metadata": dict(self.metadata) if self.metadata is not None else None,
            "entities": [e.to_dict() for e in self.entities],
            "relations": [r.to_dict() for r in self.relations],
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
        }


# Module-level logger
logger = logging.getLogger(__name__)
