"""
Unit tests for the utility functions module.
"""

import re
from pathlib import Path

import pytest
import yaml

from narrative_ontology.utils import (
    clamp_confidence,
    generate_id,
    load_config,
    load_json,
    load_text_file,
    save_json,
    save_text_file,
    time_function,
)


class TestIdentifiers:
    """Test suite for identifier helpers."""

    def test_generate_id_shape(self):
        """Test ids are prefix, epoch millis and a base-36 suffix."""
        assert re.fullmatch(r"relation-\d{13}-[0-9a-z]{9}", generate_id("relation"))

    def test_generate_id_unique(self):
        """Test ids do not repeat."""
        assert len({generate_id("entity") for _ in range(200)}) == 200

    @pytest.mark.parametrize("value,expected", [
        (1.7, 1.0), (-0.2, 0.0), (0.35, 0.35), (1, 1.0),
    ])
    def test_clamp_confidence(self, value, expected):
        """Test confidence clamping."""
        assert clamp_confidence(value) == expected


class TestConfigLoading:
    """Test suite for configuration loading."""

    def test_load_config(self, tmp_path):
        """Test YAML configuration is parsed."""
        path = tmp_path / "config.yaml"
        path.write_text("relation_extraction:\n  max_distance: 80\n")

        assert load_config(path) == {"relation_extraction": {"max_distance": 80}}

    def test_load_empty_config(self, tmp_path):
        """Test an empty file yields an empty dict."""
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert load_config(path) == {}

    def test_load_missing_config(self, tmp_path):
        """Test a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_load_invalid_config(self, tmp_path):
        """Test malformed YAML raises."""
        path = tmp_path / "broken.yaml"
        path.write_text("key: [unclosed\n")

        with pytest.raises(yaml.YAMLError):
            load_config(path)

    def test_project_config(self):
        """Test the shipped configuration file parses."""
        config = load_config(Path(__file__).resolve().parent.parent / "config" / "config.yaml")

        assert config["segmenter"]["model"] == "en_core_web_sm"
        assert config["relation_extraction"]["min_confidence"] == 0.3


class TestFileHelpers:
    """Test suite for file I/O helpers."""

    def test_json_files(self, tmp_path):
        """Test JSON is written into new directories and read back."""
        path = tmp_path / "out" / "result.json"
        save_json({"name": "Zoë", "count": 2}, path)

        assert load_json(path) == {"name": "Zoë", "count": 2}

    def test_text_files(self, tmp_path):
        """Test text is written into new directories and read back."""
        path = tmp_path / "out" / "diagram.mmd"
        save_text_file("flowchart TD\n", path)

        assert load_text_file(path) == "flowchart TD\n"

    def test_load_missing_text(self, tmp_path):
        """Test loading a missing text file raises."""
        with pytest.raises(FileNotFoundError):
            load_text_file(tmp_path / "missing.txt")


class TestTimeFunction:
    """Test suite for the timing decorator."""

    def test_wraps_function(self):
        """Test the decorator preserves the result and the name."""
        @time_function
        def add(a, b):
            return a + b

        assert add(2, 3) == 5
        assert add.__name__ == "add"
