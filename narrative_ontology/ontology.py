"""
Ontology Module

Node/edge graph projection of a Narrative. Node ids are the entity ids and
edge endpoints are the relation's entity ids, so the ontology mirrors the
narrative's entity/relation graph one-to-one.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .models import Narrative
from .utils import format_timestamp, generate_id, get_timestamp


# Node type used for entities without a classification
UNCLASSIFIED_NODE_TYPE = "Entity"


@dataclass
class OntologyNode:
    id: str
    label: str
    type: str
    attributes: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "type": self.type,
            "attributes": dict(self.attributes),
        }


@dataclass
class OntologyEdge:
    id: str
    source: str
    target: str
    label: str
    attributes: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "label": self.label,
            "attributes": dict(self.attributes),
        }


class Ontology:
    """
    Directed labelled multigraph of ontology nodes and edges.

    Every edge's source and target must name an existing node id.
    ``from_narrative`` guarantees this; callers adding edges by hand are
    responsible for keeping it true.

    Examples:
        >>> ontology = Ontology()
        >>> ontology.add_node(OntologyNode("a", "Team", "stakeholder"))
        >>> ontology.get_node("a").label
        'Team'
    """

    def __init__(self, id: Optional[str] = None, metadata: Optional[Dict[str, Any]] = None):
        self.id = id or generate_id("ontology")
        self.nodes: List[OntologyNode] = []
        self.edges: List[OntologyEdge] = []
        self.metadata = metadata
        self.created_at = get_timestamp()

    @classmethod
    def from_narrative(cls, narrative: Narrative) -> "Ontology":
        """
        Project a narrative into an ontology.

        One node per entity and one edge per relation, in narrative order.
        Nothing is dropped or merged.

        Args:
            narrative: Narrative to project

        Returns:
            New Ontology whose metadata records the source narrative id and
            the entity/relation counts
        """
        ontology = cls()

        for entity in narrative.entities:
            classification = entity.classification
            attributes = dict(entity.attributes or {})
            attributes["originalSpans"] = [span.to_dict() for span in entity.spans]
            attributes["confidence"] = classification.confidence if classification else None

            ontology.add_node(OntologyNode(
                id=entity.id,
                label=entity.text,
                type=classification.type if classification else UNCLASSIFIED_NODE_TYPE,
                attributes=attributes
            ))

        for relation in narrative.relations:
            attributes = {"confidence": relation.confidence}
            attributes.update(relation.metadata or {})

            ontology.add_edge(OntologyEdge(
                id=relation.id,
                source=relation.source_entity_id,
                target=relation.target_entity_id,
                label=relation.label,
                attributes=attributes
            ))

        ontology.metadata = {
            "sourceNarrativeId": narrative.id,
            "extractedAt": format_timestamp(get_timestamp()),
            "entityCount": len(narrative.entities),
            "relationCount": len(narrative.relations),
        }

        logger.debug(
            f"Projected narrative {narrative.id} into ontology {ontology.id} "
            f"({len(ontology.nodes)} nodes, {len(ontology.edges)} edges)"
        )

        return ontology

    def add_node(self, node: OntologyNode) -> None:
        self.nodes.append(node)

    def add_edge(self, edge: OntologyEdge) -> None:
        self.edges.append(edge)

    def get_node(self, node_id: str) -> Optional[OntologyNode]:
        return next((n for n in self.nodes if n.id == node_id), None)

    def get_edge(self, edge_id: str) -> Optional[OntologyEdge]:
        return next((e for e in self.edges if e.id == edge_id), None)

    def get_nodes_by_type(self, node_type: str) -> List[OntologyNode]:
        return [n for n in self.nodes if n.type == node_type]

    def get_edges_by_label(self, label: str) -> List[OntologyEdge]:
        return [e for e in self.edges if e.label == label]

    def get_connected_nodes(self, node_id: str) -> List[OntologyNode]:
        """Nodes linked to ``node_id`` by an edge in either direction."""
        connected_ids = set()
        for edge in self.edges:
            if edge.source == node_id:
                connected_ids.add(edge.target)
            if edge.target == node_id:
                connected_ids.add(edge.source)

        return [n for n in self.nodes if n.id in connected_ids]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "metadata": dict(self.metadata) if self.metadata is not None else None,
            "createdAt": format_timestamp(self.created_at),
        }


# Module-level logger
logger = logging.getLogger(__name__)
