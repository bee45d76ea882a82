"""
Unit tests for YAML configuration loading.
"""

import pytest # pyright: ignore[reportMissingImports]
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from utils.config_loader import DEFAULT_CONFIG_PATH, load_config, get_nested_config


class TestLoadConfig:
    """Test YAML configuration loading."""

    def test_default_config_loads(self):
        config = load_config()
        assert config['physical']['synchrony']['window_sec'] == 2.0

    def test_default_path(self):
        assert DEFAULT_CONFIG_PATH.name == 'thresholds.yaml'
        assert load_config(DEFAULT_CONFIG_PATH) == load_config()

    def test_default_weights_sum_to_one(self):
        weights = load_config()['scoring']['weights']
        for table in weights.values():
            assert sum(table.values()) == pytest.approx(1.0)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == {}

    def test_string_path(self, tmp_path):
        path = tmp_path / "small.yaml"
        path.write_text("language:\n  keywords:\n    top_n: 5\n")
        assert load_config(str(path))['language']['keywords']['top_n'] == 5

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_non_mapping_root_raises(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ValueError):
            load_config(path)


class TestNestedConfig:
    """Test dot-path lookup."""

    def test_nested_lookup(self):
        config = {'physical': {'events': {'contact_distance': 0.2}}}
        assert get_nested_config(config, 'physical.events.contact_distance') == 0.2
        assert get_nested_config(config, 'physical.events.missing', 5) == 5

    def test_missing_config(self):
        assert get_nested_config(None, 'a.b', 'x') == 'x'

    def test_non_mapping_intermediate(self):
        assert get_nested_config({'a': 3}, 'a.b', 'x') == 'x'


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
