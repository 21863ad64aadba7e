"""
Ontology Visualization Module

Renders ontologies as Mermaid flowchart text and as static matplotlib
figures, colouring nodes by taxonomy class.
"""

import logging
import re
from collections import OrderedDict
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import networkx as nx
from matplotlib.patches import Patch

from .kg_constructor import ontology_to_graph
from .ontology import Ontology, OntologyEdge, OntologyNode
from .taxonomy import Taxonomy


DEFAULT_COLOR = "#CCCCCC"

# Nodes kept first when a diagram is capped at max_nodes
TYPE_IMPORTANCE = {
    "goal": 10,
    "outcome": 9,
    "initiative": 8,
    "metric": 7,
    "stakeholder": 6,
    "time-period": 5,
    "process": 4,
    "resource": 3,
    "insight": 2,
    "principle": 1,
}

NODE_SHAPES = {
    "rectangle": '["{}"]',
    "rounded": '("{}")',
    "circle": '(("{}"))',
    "rhombus": '{{"{}"}}',
}

LAYOUT_ALGORITHMS = {
    "spring": nx.spring_layout,
    "circular": nx.circular_layout,
    "kamada_kawai": nx.kamada_kawai_layout,
    "shell": nx.shell_layout,
    "random": nx.random_layout,
}

MAX_LABEL_LENGTH = 30


def _sanitize_id(value: str) -> str:
    return re.sub(r"[^a-zA-Z0-9_]", "_", value)


def _sanitize_label(label: str) -> str:
    sanitized = label.replace('"', '\\"')
    if len(sanitized) > MAX_LABEL_LENGTH:
        sanitized = sanitized[:MAX_LABEL_LENGTH - 3] + "..."
    return sanitized


class OntologyVisualizer:
    """
    Visualizes ontologies as Mermaid diagrams and static images.

    Attributes:
        taxonomy: Taxonomy supplying node colours and legend entries
        direction: Mermaid flowchart direction (TD, LR, ...)
        include_colors: Emit classDef styling per node type
        max_nodes: Cap on rendered nodes (None for no cap)
        include_labels: Show edge labels
        node_shape: rectangle, rounded, circle or rhombus

    Examples:
        >>> viz = OntologyVisualizer(max_nodes=20)
        >>> diagram = viz.render_mermaid(result.ontology)
        >>> diagram.startswith("flowchart TD")
        True
    """

    def __init__(
        self,
        taxonomy: Optional[Taxonomy] = None,
        direction: str = "TD",
        include_colors: bool = True,
        max_nodes: Optional[int] = 50,
        include_labels: bool = True,
        node_shape: str = "rounded"
    ):
        self.taxonomy = taxonomy or Taxonomy()
        self.direction = direction
        self.include_colors = include_colors
        self.max_nodes = max_nodes
        self.include_labels = include_labels
        self.node_shape = node_shape
        self.logger = logging.getLogger(__name__)

    def get_type_color(self, node_type: str) -> Optional[str]:
        taxonomy_class = self.taxonomy.get_class(node_type)
        return taxonomy_class.color if taxonomy_class else None

    def render_mermaid(self, ontology: Ontology, include_legend: bool = False) -> str:
        """
        Render the ontology as a Mermaid flowchart.

        Args:
            ontology: Ontology to render
            include_legend: Append a subgraph listing every taxonomy class

        Returns:
            Mermaid source text
        """
        nodes = self._limit_nodes(ontology.nodes)
        kept_ids = {node.id for node in nodes}
        edges = [e for e in ontology.edges if e.source in kept_ids and e.target in kept_ids]

        lines = [f"flowchart {self.direction}"]
        lines.extend(self._render_node(node) for node in nodes)
        lines.extend(self._render_edge(edge) for edge in edges)

        diagram = "\n".join(lines) + "\n"
        if self.include_colors:
            diagram += self._render_styling(nodes)
        if include_legend:
            diagram += self.render_legend()

        self.logger.debug(
            f"Rendered Mermaid diagram with {len(nodes)}/{len(ontology.nodes)} nodes "
            f"and {len(edges)} edges"
        )

        return diagram

    def render_legend(self) -> str:
        if not self.include_colors:
            return ""

        lines = ["", "%% Legend", "subgraph Legend"]
        for taxonomy_class in self.taxonomy.classes:
            lines.append(f'    legend_{_sanitize_id(taxonomy_class.id)}["{taxonomy_class.name}"]')
        lines.extend(["end", ""])

        for taxonomy_class in self.taxonomy.classes:
            class_id = "legend" + re.sub(r"[^a-zA-Z0-9]", "", taxonomy_class.id)
            color = taxonomy_class.color or DEFAULT_COLOR
            lines.append(f"classDef {class_id} fill:{color},stroke:#333,stroke-width:2px,color:#000")
            lines.append(f"class legend_{_sanitize_id(taxonomy_class.id)} {class_id}")

        return "\n".join(lines) + "\n"

    def plot_ontology(
        self,
        ontology: Ontology,
        output_path: str,
        layout: str = "spring",
        figsize: Tuple[int, int] = (16, 12),
        with_labels: bool = True,
        dpi: int = 150
    ) -> None:
        """
        Create a static image of the ontology graph.

        Args:
            ontology: Ontology to plot
            output_path: Output file path (PNG, PDF, SVG)
            layout: Layout algorithm name
            figsize: Figure size (width, height)
            with_labels: Whether to show node labels
            dpi: Resolution for raster formats
        """
        graph = ontology_to_graph(ontology)
        self.logger.info(f"Creating ontology visualization with {layout} layout")

        fig, ax = plt.subplots(figsize=figsize)

        if layout not in LAYOUT_ALGORITHMS:
            self.logger.warning(f"Unknown layout {layout}, using spring")
            layout = "spring"
        if graph.number_of_nodes() > 0:
            if layout == "spring":
                pos = nx.spring_layout(graph, k=0.5, iterations=50, seed=42)
            else:
                pos = LAYOUT_ALGORITHMS[layout](graph)

            node_colors = [
                self.get_type_color(graph.nodes[n].get("type", "")) or DEFAULT_COLOR
                for n in graph.nodes()
            ]
            nx.draw_networkx_nodes(graph, pos, node_color=node_colors, node_size=600,
                                   alpha=0.9, edgecolors="#333333", ax=ax)
            nx.draw_networkx_edges(graph, pos, alpha=0.4, edge_color="gray",
                                   arrows=True, arrowsize=12, ax=ax)

            if with_labels:
                labels = {n: _sanitize_label(graph.nodes[n].get("label", str(n))) for n in graph.nodes()}
                nx.draw_networkx_labels(graph, pos, labels, font_size=8, ax=ax)

        ax.set_title(
            f"Ontology ({graph.number_of_nodes()} nodes, {graph.number_of_edges()} edges)",
            fontsize=14,
            fontweight="bold"
        )
        ax.axis("off")
        self._add_legend(ax, [graph.nodes[n].get("type", "") for n in graph.nodes()])

        fig.tight_layout()
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=dpi, bbox_inches="tight")
        plt.close(fig)

        self.logger.info(f"Saved ontology visualization to {output_path}")

    def _limit_nodes(self, nodes: List[OntologyNode]) -> List[OntologyNode]:
        if not self.max_nodes or len(nodes) <= self.max_nodes:
            return list(nodes)
        ranked = sorted(nodes, key=lambda n: TYPE_IMPORTANCE.get(n.type, 0), reverse=True)
        return ranked[:self.max_nodes]

    def _render_node(self, node: OntologyNode) -> str:
        shape = NODE_SHAPES.get(self.node_shape, NODE_SHAPES["rectangle"])
        return f"    {_sanitize_id(node.id)}{shape.format(_sanitize_label(node.label))}"

    def _render_edge(self, edge: OntologyEdge) -> str:
        source = _sanitize_id(edge.source)
        target = _sanitize_id(edge.target)
        label = _sanitize_label(edge.label)
        if self.include_labels and label:
            return f'    {source} -->|"{label}"| {target}'
        return f"    {source} --> {target}"

    def _render_styling(self, nodes: List[OntologyNode]) -> str:
        by_type: Dict[str, List[str]] = OrderedDict()
        for node in nodes:
            by_type.setdefault(node.type, []).append(_sanitize_id(node.id))

        lines = [""]
        for node_type, node_ids in by_type.items():
            color = self.get_type_color(node_type)
            if not color:
                continue
            class_id = "class" + re.sub(r"[^a-zA-Z0-9]", "", node_type)
            lines.append(f"    classDef {class_id} fill:{color},stroke:#333,stroke-width:2px,color:#000")
            lines.append(f"    class {','.join(node_ids)} {class_id}")

        return "\n".join(lines) + "\n"

    def _add_legend(self, ax, node_types: List[str]) -> None:
        """Add legend showing node type colors."""
        legend_elements = [
            Patch(facecolor=self.get_type_color(t) or DEFAULT_COLOR, label=t)
            for t in sorted(set(node_types))
        ]
        if legend_elements:
            ax.legend(handles=legend_elements, loc="upper right", fontsize=9, title="Node Types")


# Module logger
logger = logging.getLogger(__name__)
