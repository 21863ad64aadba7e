"""
Ontology Export Module

JSON-LD, Cytoscape and CSV projections of an ontology. Graph file formats
(GraphML, GEXF) are handled by ``kg_constructor``.
"""

import copy
import csv
import io
import logging
from typing import Any, Dict, Iterable, List, Optional, Set

from .ontology import Ontology
from .taxonomy import Taxonomy


JSON_LD_CONTEXT = {
    "rdfs": "http://www.w3.org/2000/01/rdf-schema#",
    "dotwork": "https://dotwork.com/ontology#",
    "label": "rdfs:label",
    "type": "@type",
    "id": "@id",
}

DEFAULT_NODE_COLOR = "#CCCCCC"

CYTOSCAPE_LAYOUT = {
    "name": "cose",
    "idealEdgeLength": 100,
    "nodeOverlap": 20,
    "refresh": 20,
    "fit": True,
    "padding": 30,
    "randomize": False,
    "componentSpacing": 100,
}

CYTOSCAPE_STYLE = [
    {
        "selector": "node",
        "style": {
            "background-color": "data(color)",
            "label": "data(label)",
            "text-wrap": "wrap",
            "text-max-width": "100px",
            "font-size": "12px",
            "text-valign": "center",
            "text-halign": "center",
            "width": "60px",
            "height": "60px",
        },
    },
    {
        "selector": "edge",
        "style": {
            "width": 2,
            "line-color": "#ccc",
            "target-arrow-color": "#ccc",
            "target-arrow-shape": "triangle",
            "curve-style": "bezier",
            "label": "data(label)",
            "font-size": "10px",
            "text-rotation": "autorotate",
        },
    },
]


class OntologyExporter:
    """
    Converts ontologies into interchange formats.

    Attributes:
        taxonomy: Taxonomy supplying node colours for Cytoscape output
        prefix: Namespace prefix used in JSON-LD identifiers
    """

    def __init__(self, taxonomy: Optional[Taxonomy] = None, prefix: str = "dotwork"):
        self.taxonomy = taxonomy or Taxonomy()
        self.prefix = prefix
        self.logger = logging.getLogger(__name__)

    def to_json_ld(self, ontology: Ontology) -> Dict[str, Any]:
        """
        Render the ontology as a JSON-LD document.

        Each node becomes a graph entry; each edge is folded into its
        source node as a ``<prefix>:<label>`` list of ``@id`` references.
        Edges whose label collides with a node attribute are skipped.
        """
        graph: List[Dict[str, Any]] = []
        by_id: Dict[str, Dict[str, Any]] = {}
        relation_keys: Dict[str, Set[str]] = {}

        for node in ontology.nodes:
            entry = {
                "@id": f"{self.prefix}:{node.id}",
                "@type": f"{self.prefix}:{node.type}",
                "rdfs:label": node.label,
            }
            for key, value in node.attributes.items():
                entry[f"{self.prefix}:{key}"] = copy.deepcopy(value)
            graph.append(entry)
            by_id[node.id] = entry
            relation_keys[node.id] = set()

        for edge in ontology.edges:
            source = by_id.get(edge.source)
            if source is None:
                self.logger.warning(f"Edge {edge.id} references unknown node {edge.source}")
                continue

            key = f"{self.prefix}:{edge.label}"
            if key not in source:
                source[key] = []
                relation_keys[edge.source].add(key)
            elif key not in relation_keys[edge.source]:
                self.logger.warning(
                    f"Edge {edge.id} label {edge.label!r} collides with an attribute "
                    f"of node {edge.source}; skipping"
                )
                continue

            source[key].append({"@id": f"{self.prefix}:{edge.target}"})

        return {"@context": dict(JSON_LD_CONTEXT), "@graph": graph}

    def to_cytoscape(self, ontology: Ontology) -> Dict[str, Any]:
        """Render the ontology as Cytoscape.js elements with style and layout."""
        elements = []

        for node in ontology.nodes:
            taxonomy_class = self.taxonomy.get_class(node.type)
            color = taxonomy_class.color if taxonomy_class and taxonomy_class.color else DEFAULT_NODE_COLOR
            elements.append({"data": {
                "id": node.id,
                "label": node.label,
                "type": node.type,
                "color": color,
                **node.attributes,
            }})

        for edge in ontology.edges:
            elements.append({"data": {
                "id": edge.id,
                "source": edge.source,
                "target": edge.target,
                "label": edge.label,
                **edge.attributes,
            }})

        return {
            "elements": elements,
            "style": [dict(rule) for rule in CYTOSCAPE_STYLE],
            "layout": dict(CYTOSCAPE_LAYOUT),
        }

    def to_csv(self, ontology: Ontology) -> Dict[str, str]:
        """
        Render nodes and edges as two CSV documents.

        Returns:
            ``{"nodes": "id,label,type...", "edges": "source,target,label..."}``
            with bare headers and fully quoted data rows
        """
        nodes = self._write_csv(
            ["id", "label", "type"],
            ([node.id, node.label, node.type] for node in ontology.nodes)
        )
        edges = self._write_csv(
            ["source", "target", "label"],
            ([edge.source, edge.target, edge.label] for edge in ontology.edges)
        )
        return {"nodes": nodes, "edges": edges}

    @staticmethod
    def _write_csv(header: List[str], rows: Iterable[List[str]]) -> str:
        buffer = io.StringIO()
        csv.writer(buffer, lineterminator="\n").writerow(header)
        csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n").writerows(rows)
        return buffer.getvalue()


# Module logger
logger = logging.getLogger(__name__)
