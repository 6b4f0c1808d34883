"""
Tests for loading and validating the propagation parameters.
"""

import json

import pytest

from lightning_params import DEFAULT_PARAMS, load_params, load_params_file
from outline_locator import LOCATOR_CELL_SIZE


class TestLoadParams:
    """Tests for load_params() and load_params_file()."""

    def test_defaults(self):
        params = load_params()
        assert params == DEFAULT_PARAMS
        assert params["locator_cell_size"] == LOCATOR_CELL_SIZE
        assert params is not DEFAULT_PARAMS

    def test_override(self):
        params = load_params({"prune_distance": 3, "line_width": 0.4})
        assert params["prune_distance"] == 3.0
        assert isinstance(params["prune_distance"], float)
        assert params["line_width"] == 0.4
        assert params["smooth_magnitude"] == 0.0

    def test_defaults_untouched(self):
        load_params({"prune_distance": 3})
        assert DEFAULT_PARAMS["prune_distance"] == 0.0

    @pytest.mark.parametrize("params", [
        {"prune_distanse": 1},
        {"prune_distance": -1},
        {"smooth_magnitude": "2"},
        {"line_width": True},
        {"locator_cell_size": 0},
    ])
    def test_invalid(self, params):
        with pytest.raises(ValueError):
            load_params(params)

    def test_from_file(self, tmp_path):
        path = tmp_path / "lightning.json"
        path.write_text(json.dumps({"prune_distance": 2.5, "smooth_magnitude": 1}))
        params = load_params_file(path)
        assert params["prune_distance"] == 2.5
        assert params["smooth_magnitude"] == 1.0

    def test_file_must_hold_object(self, tmp_path):
        path = tmp_path / "lightning.json"
        path.write_text(json.dumps([1, 2, 3]))
        with pytest.raises(ValueError):
            load_params_file(str(path))
