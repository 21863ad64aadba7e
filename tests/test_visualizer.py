"""
Unit tests for the Ontology Visualization module.
"""

import pytest

from narrative_ontology.ontology import Ontology, OntologyNode
from narrative_ontology.visualizer import OntologyVisualizer


class TestMermaid:
    """Test suite for Mermaid rendering."""

    @pytest.fixture
    def visualizer(self):
        return OntologyVisualizer()

    def test_header(self, visualizer, sample_ontology):
        """Test diagram direction header."""
        assert visualizer.render_mermaid(sample_ontology).startswith("flowchart TD\n")
        assert OntologyVisualizer(direction="LR").render_mermaid(
            sample_ontology
        ).startswith("flowchart LR\n")

    def test_nodes_and_edges(self, visualizer, sample_ontology):
        """Test nodes and labelled edges are rendered."""
        diagram = visualizer.render_mermaid(sample_ontology)

        assert '    e1("Sarah Johnson")' in diagram
        assert '    e1 -->|"occurs_during"| e2' in diagram
        assert '    e3 -->|"occurs_during"| e2' in diagram

    def test_unlabelled_edges(self, sample_ontology):
        """Test edge labels can be switched off."""
        diagram = OntologyVisualizer(include_labels=False).render_mermaid(sample_ontology)
        assert "    e1 --> e2" in diagram

    def test_styling(self, visualizer, sample_ontology):
        """Test classDef styling for taxonomy-coloured types only."""
        diagram = visualizer.render_mermaid(sample_ontology)

        assert "classDef classtimeperiod fill:#FFC0CB" in diagram
        assert "class e2 classtimeperiod" in diagram
        assert "classstakeholder" not in diagram

    def test_no_colors(self, sample_ontology):
        """Test styling can be switched off."""
        diagram = OntologyVisualizer(include_colors=False).render_mermaid(
            sample_ontology, include_legend=True
        )
        assert "classDef" not in diagram
        assert "Legend" not in diagram

    def test_legend(self, visualizer, sample_ontology):
        """Test the legend lists every taxonomy class."""
        diagram = visualizer.render_mermaid(sample_ontology, include_legend=True)

        assert "%% Legend" in diagram
        assert "subgraph Legend" in diagram
        assert 'legend_time_period["Time Period"]' in diagram
        assert diagram.count("classDef legend") == 10

    def test_max_nodes(self, sample_ontology):
        """Test node capping keeps the most important types."""
        diagram = OntologyVisualizer(max_nodes=1).render_mermaid(sample_ontology)

        assert "e1(" in diagram
        assert "e2(" not in diagram
        assert "-->" not in diagram

    def test_label_sanitizing(self, visualizer):
        """Test long labels are truncated and quotes escaped."""
        ontology = Ontology()
        ontology.add_node(OntologyNode("n-1", 'The "north star" metric for the whole year', "target"))
        diagram = visualizer.render_mermaid(ontology)

        assert 'n_1("The \\"north star\\" metric f...")' in diagram

    def test_node_shapes(self, sample_ontology):
        """Test alternative node shapes."""
        diagram = OntologyVisualizer(node_shape="circle").render_mermaid(sample_ontology)
        assert '    e1(("Sarah Johnson"))' in diagram


class TestPlot:
    """Test suite for static image rendering."""

    def test_plot_png(self, sample_ontology, tmp_path):
        """Test a PNG image is written."""
        path = tmp_path / "plots" / "ontology.png"
        OntologyVisualizer().plot_ontology(sample_ontology, str(path), figsize=(6, 4), dpi=50)

        assert path.exists()
        assert path.stat().st_size > 0

    def test_plot_unknown_layout(self, sample_ontology, tmp_path):
        """Test unknown layouts fall back to spring."""
        path = tmp_path / "ontology.png"
        OntologyVisualizer().plot_ontology(
            sample_ontology, str(path), layout="nonexistent", figsize=(6, 4), dpi=50
        )
        assert path.exists()

    def test_plot_empty(self, tmp_path):
        """Test an empty ontology still produces an image."""
        path = tmp_path / "empty.png"
        OntologyVisualizer().plot_ontology(Ontology(), str(path), figsize=(4, 3), dpi=50)
        assert path.exists()
