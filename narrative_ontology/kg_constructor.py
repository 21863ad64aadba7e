"""
Knowledge Graph Construction Module

Builds NetworkX graphs from ontologies and exports them to graph file
formats (GraphML, GEXF, node-link JSON).
"""

import json
import logging
from collections import Counter
from pathlib import Path
from typing import Any, Dict

import networkx as nx
from networkx.readwrite import json_graph

from .ontology import Ontology


SUPPORTED_FORMATS = ("graphml", "gexf", "json")

_SCALAR_TYPES = (str, int, float, bool)


def _graph_safe(attributes: Dict[str, Any]) -> Dict[str, Any]:
    """
    Make attribute values acceptable to the GraphML/GEXF writers.

    None values are dropped; lists and dicts are stored as JSON strings.
    """
    safe = {}
    for key, value in attributes.items():
        if value is None:
            continue
        if isinstance(value, _SCALAR_TYPES):
            safe[key] = value
        else:
            safe[key] = json.dumps(value, default=str)
    return safe


class OntologyGraphBuilder:
    """
    Knowledge Graph constructor using NetworkX.

    The graph is a MultiDiGraph keyed by ontology edge id, so parallel
    relations between the same pair of entities are all kept.

    Attributes:
        graph: NetworkX MultiDiGraph instance

    Examples:
        >>> builder = OntologyGraphBuilder()
        >>> graph = builder.build_graph(result.ontology)
        >>> graph.number_of_nodes() == len(result.ontology.nodes)
        True
    """

    def __init__(self):
        self.graph = nx.MultiDiGraph()
        self.logger = logging.getLogger(__name__)
        self.logger.debug("Initialized NetworkX graph builder")

    def create_node(self, node_id: str, node_type: str, properties: Dict[str, Any]) -> None:
        self.graph.add_node(node_id, type=node_type, **_graph_safe(properties))
        self.logger.debug(f"Created node: {node_type}({node_id})")

    def create_relationship(
        self,
        edge_id: str,
        source_id: str,
        label: str,
        target_id: str,
        properties: Dict[str, Any]
    ) -> None:
        self.graph.add_edge(
            source_id,
            target_id,
            key=edge_id,
            label=label,
            **_graph_safe(properties)
        )
        self.logger.debug(f"Created edge: {source_id}-[{label}]->{target_id}")

    def build_graph(self, ontology: Ontology) -> nx.MultiDiGraph:
        """
        Build a NetworkX graph from an ontology.

        Args:
            ontology: Ontology to convert

        Returns:
            The populated MultiDiGraph
        """
        if not ontology.nodes:
            self.logger.warning(f"Ontology {ontology.id} has no nodes")

        self.graph.graph.update(_graph_safe({
            "id": ontology.id,
            **(ontology.metadata or {}),
        }))

        for node in ontology.nodes:
            self.create_node(node.id, node.type, {
                "label": node.label,
                "confidence": node.attributes.get("confidence"),
                "mentions": len(node.attributes.get("originalSpans") or []),
            })

        for edge in ontology.edges:
            self.create_relationship(edge.id, edge.source, edge.label, edge.target, {
                "confidence": edge.attributes.get("confidence"),
                "context": edge.attributes.get("context", ""),
            })

        self.logger.info(
            f"Graph built: {self.graph.number_of_nodes()} nodes, "
            f"{self.graph.number_of_edges()} edges"
        )

        return self.graph

    def clear_graph(self) -> None:
        self.graph.clear()
        self.logger.info("Cleared graph")

    def get_graph_stats(self) -> Dict[str, Any]:
        """
        Calculate graph statistics.

        Returns:
            Dictionary with node/edge counts, density, weakly connected
            components, average degree and type/label distributions
        """
        total_nodes = self.graph.number_of_nodes()
        total_edges = self.graph.number_of_edges()

        node_types = Counter(
            self.graph.nodes[n].get('type', 'UNKNOWN') for n in self.graph.nodes()
        )
        edge_labels = Counter(
            data.get('label', 'UNKNOWN') for _, _, data in self.graph.edges(data=True)
        )

        if total_nodes > 0:
            density = nx.density(self.graph)
            num_components = nx.number_weakly_connected_components(self.graph)
            avg_degree = sum(dict(self.graph.degree()).values()) / total_nodes
        else:
            density = 0.0
            num_components = 0
            avg_degree = 0.0

        return {
            'total_nodes': total_nodes,
            'total_edges': total_edges,
            'density': round(density, 4),
            'num_connected_components': num_components,
            'average_degree': round(avg_degree, 2),
            'node_type_distribution': dict(node_types),
            'edge_label_distribution': dict(edge_labels)
        }

    def export_graph(self, output_path: str, format: str = "graphml") -> None:
        """
        Export the graph to file.

        Args:
            output_path: Output file path
            format: graphml, gexf or json (node-link)

        Raises:
            ValueError: If the format is not supported
        """
        if format not in SUPPORTED_FORMATS:
            raise ValueError(f"Unsupported format: {format}")

        Path(output_path).parent.mkdir(parents=True, exist_ok=True)

        if format == "graphml":
            nx.write_graphml(self.graph, output_path)
        elif format == "gexf":
            nx.write_gexf(self.graph, output_path)
        else:
            data = json_graph.node_link_data(self.graph)
            with open(output_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, default=str)

        self.logger.info(f"Exported graph to {output_path} ({format})")


def ontology_to_graph(ontology: Ontology) -> nx.MultiDiGraph:
    """Convenience wrapper returning a fresh graph for an ontology."""
    return OntologyGraphBuilder().build_graph(ontology)


def export_ontology(ontology: Ontology, output_path: str, format: str = "graphml") -> None:
    builder = OntologyGraphBuilder()
    builder.build_graph(ontology)
    builder.export_graph(output_path, format)


# Module logger
logger = logging.getLogger(__name__)
