"""
Unit tests for the Narrative Processing module.
"""

import math

import pytest
import spacy
import yaml

from narrative_ontology.narrative_processor import (
    UNCLASSIFIED,
    NarrativeProcessor,
    ProcessingOptions,
)
from narrative_ontology.entity_extractor import PERSON_CONFIDENCE
from narrative_ontology.relation_extractor import DEFAULT_RELATION_PATTERNS
from narrative_ontology.segmentation import SpacySegmenter


class TestNarrativeProcessor:
    """Test suite for NarrativeProcessor with a fixed segmenter."""

    @pytest.fixture
    def processor(self, scenario_segmenter):
        return NarrativeProcessor(segmenter=scenario_segmenter)

    def test_shared_segmenter(self, processor, scenario_segmenter):
        """Test both extractors use the processor's segmenter."""
        assert processor.entity_extractor.segmenter is scenario_segmenter
        assert processor.relation_extractor.segmenter is scenario_segmenter
        assert processor.entity_extractor.taxonomy is processor.taxonomy

    def test_scenario(self, processor, scenario_text):
        """
        Test the leadership scenario end to end.

        The default cue table has no entry for "led" or "improve", so no
        causal or implementation relation is found here; the relations come
        from the "in" cue of occurs_during.
        """
        result = processor.process_narrative(scenario_text, "narrative-1")
        types = {
            e.text: (e.classification.type if e.classification else None)
            for e in result.narrative.entities
        }

        assert types["Sarah Johnson"] == "stakeholder"
        assert types["Q2 2024"] == "time-period"
        assert result.stats.entity_count == 4
        assert result.stats.classification_coverage == pytest.approx(0.75)

        default_labels = {p.label for p in DEFAULT_RELATION_PATTERNS}
        assert result.stats.relation_count >= 1
        assert all(r.label in default_labels for r in result.narrative.relations)
        assert result.narrative.get_relations_by_label("occurs_during")

    def test_structural_mirror(self, processor, scenario_text):
        """Test the ontology mirrors the narrative one-to-one."""
        result = processor.process_narrative(scenario_text)
        narrative, ontology = result.narrative, result.ontology

        assert [n.id for n in ontology.nodes] == [e.id for e in narrative.entities]
        assert [e.id for e in ontology.edges] == [r.id for r in narrative.relations]
        assert ontology.metadata["sourceNarrativeId"] == narrative.id
        assert result.stats.entity_count == len(narrative.entities)
        assert result.stats.relation_count == len(narrative.relations)

    def test_empty_text(self, processor):
        """Test empty text produces an empty result."""
        result = processor.process_narrative("")

        assert result.stats.entity_count == 0
        assert result.stats.relation_count == 0
        assert result.stats.classification_coverage == 0.0
        assert result.stats.processing_time >= 0
        assert result.ontology.nodes == []

    def test_generated_narrative_id(self, processor):
        """Test a narrative id is generated when none is given."""
        result = processor.process_narrative("")
        assert result.narrative.id.startswith("narrative-")

    def test_process_multiple(self, processor, scenario_text):
        """Test sequential ids for multiple narratives."""
        results = processor.process_multiple_narratives([scenario_text, "", scenario_text])

        assert [r.narrative.id for r in results] == ["narrative-1", "narrative-2", "narrative-3"]

    def test_process_batch(self, processor, scenario_text):
        """Test batch results keyed by id in input order."""
        results = processor.process_batch([
            {"id": "doc1", "text": scenario_text},
            {"id": "doc2", "text": ""},
        ])

        assert list(results) == ["doc1", "doc2"]
        assert results["doc1"].narrative.id == "doc1"
        assert results["doc2"].stats.entity_count == 0

    def test_process_batch_empty(self, processor):
        """Test batch processing with empty list."""
        assert processor.process_batch([]) == {}

    def test_aggregate_stats(self, processor, scenario_text):
        """Test statistics aggregated across results."""
        results = processor.process_multiple_narratives([scenario_text, scenario_text])
        stats = processor.get_processing_stats(results)

        assert stats.total_entities == 8
        assert stats.total_relations == sum(r.stats.relation_count for r in results)
        assert stats.average_classification_coverage == pytest.approx(0.75)
        assert stats.entities_by_type == {
            UNCLASSIFIED: 2, "target": 2, "stakeholder": 2, "time-period": 2,
        }
        assert sum(stats.relations_by_label.values()) == stats.total_relations

    def test_aggregate_stats_empty(self, processor):
        """Test aggregate averages are NaN with no results."""
        stats = processor.get_processing_stats([])

        assert stats.total_entities == 0
        assert math.isnan(stats.average_processing_time)
        assert math.isnan(stats.average_classification_coverage)

    def test_result_to_dict(self, processor, scenario_text):
        """Test the result projection."""
        data = processor.process_narrative(scenario_text).to_dict()

        assert set(data) == {"narrative", "ontology", "stats"}
        assert set(data["stats"]) == {
            "entityCount", "relationCount", "processingTime", "classificationCoverage"
        }


class TestNarrativeProcessorSpacy:
    """Test suite for NarrativeProcessor with a parsing spaCy pipeline."""

    def test_scenario_stakeholder(self, parsed_nlp, scenario_text):
        """Test a person that is also a noun chunk keeps the stakeholder type."""
        processor = NarrativeProcessor(segmenter=SpacySegmenter(nlp=parsed_nlp))
        result = processor.process_narrative(scenario_text)

        sarah = [e for e in result.narrative.entities if e.text == "Sarah Johnson"]
        assert len(sarah) == 1
        assert sarah[0].classification.type == "stakeholder"
        assert sarah[0].classification.confidence == PERSON_CONFIDENCE
        assert result.stats.entity_count == 4


class TestProcessingOptions:
    """Test suite for configuration handling."""

    def test_from_config(self):
        """Test options built from a configuration dictionary."""
        options = ProcessingOptions.from_config({
            "segmenter": {"model": "en_core_web_md"},
            "entity_extraction": {"min_entity_length": 3},
            "relation_extraction": {"max_distance": 40, "min_confidence": 0.5},
        })

        assert options.segmenter_model == "en_core_web_md"
        assert options.entity_extraction.min_entity_length == 3
        assert options.relation_extraction.max_distance == 40
        assert options.relation_extraction.min_confidence == 0.5

    def test_from_empty_config(self):
        """Test missing sections fall back to defaults."""
        assert ProcessingOptions.from_config({}) == ProcessingOptions()

    def test_processor_from_config_file(self, tmp_path, scenario_segmenter):
        """Test a processor created from a YAML file."""
        config_path = tmp_path / "config.yaml"
        config_path.write_text(yaml.safe_dump({
            "relation_extraction": {"min_confidence": 0.9},
        }))

        processor = NarrativeProcessor.from_config(config_path, segmenter=scenario_segmenter)

        assert processor.options.relation_extraction.min_confidence == 0.9
        assert processor.relation_extractor.options.min_confidence == 0.9

    def test_missing_config_file(self, tmp_path):
        """Test a missing configuration file raises."""
        with pytest.raises(FileNotFoundError):
            NarrativeProcessor.from_config(tmp_path / "missing.yaml")


@pytest.mark.skipif(
    not spacy.util.is_package("en_core_web_sm"),
    reason="spaCy model en_core_web_sm is not installed"
)
class TestNarrativeProcessorFullModel:
    """Test suite for NarrativeProcessor with the default English model."""

    def test_scenario(self, scenario_text):
        """Test the scenario sentence with the real model."""
        result = NarrativeProcessor().process_narrative(scenario_text)

        assert result.stats.entity_count > 0
        assert 0.0 <= result.stats.classification_coverage <= 1.0
