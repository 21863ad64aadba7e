"""
Narrative to Ontology

A deterministic pipeline for extracting entities, classifying them against
a fixed taxonomy, inferring relations from linguistic cue patterns and
projecting the result into a node/edge ontology.
"""

__version__ = "0.1.0"

from .models import Entity, EntityClassification, Narrative, Relation, TextSpan
from .ontology import Ontology, OntologyEdge, OntologyNode
from .taxonomy import DEFAULT_TAXONOMY_CLASSES, Taxonomy, TaxonomyClass
from .segmentation import Segmentation, Segmenter, SpacySegmenter
from .entity_extractor import EntityExtractor, ExtractionOptions
from .relation_extractor import (
    DEFAULT_RELATION_PATTERNS,
    RelationExtractionOptions,
    RelationExtractor,
    RelationPattern,
)
from .narrative_processor import (
    AggregateStats,
    NarrativeProcessor,
    ProcessingOptions,
    ProcessingResult,
    ProcessingStats,
)

__all__ = [
    "Entity",
    "EntityClassification",
    "Narrative",
    "Relation",
    "TextSpan",
    "Ontology",
    "OntologyEdge",
    "OntologyNode",
    "DEFAULT_TAXONOMY_CLASSES",
    "Taxonomy",
    "TaxonomyClass",
    "Segmentation",
    "Segmenter",
    "SpacySegmenter",
    "EntityExtractor",
    "ExtractionOptions",
    "DEFAULT_RELATION_PATTERNS",
    "RelationExtractionOptions",
    "RelationExtractor",
    "RelationPattern",
    "AggregateStats",
    "NarrativeProcessor",
    "ProcessingOptions",
    "ProcessingResult",
    "ProcessingStats",
]
