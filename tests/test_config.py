# -*- coding: utf-8 -*-
"""
Tests for warp configuration and annotated parameters.

Author
------
polywarp contributors

License
-------
MIT License
Copyright (c) 2026 polywarp contributors
See LICENSE file for full text.

Created
-------
2026-10-19

Modified
--------
2026-10-19
"""

import pytest

from polywarp.config import MXTERMS, WarpConfig
from polywarp.exceptions import ValidationError
from polywarp.params import Desc, Range, collect_param_specs


# ---------------------------------------------------------------------------
# Parameter specs
# ---------------------------------------------------------------------------

class TestParamSpecs:

    def test_collected_in_declaration_order(self):
        names = [s.name for s in WarpConfig.__param_specs__]
        assert names == [
            'max_landmarks', 'min_terms', 'max_terms', 'error_bound',
            'delta', 'singular_tol', 'chunk_size',
        ]

    def test_spec_details(self):
        specs = {s.name: s for s in collect_param_specs(WarpConfig)}
        spec = specs['max_terms']
        assert spec.param_type is int
        assert spec.default == MXTERMS
        assert spec.min_value == 1
        assert spec.max_value == MXTERMS
        assert not spec.required
        assert 'max_terms' in repr(spec)

    def test_marker_reprs(self):
        assert repr(Range(min=0, max=1)) == "Range(min=0, max=1)"
        assert repr(Desc('x')) == "Desc(text='x')"


# ---------------------------------------------------------------------------
# WarpConfig
# ---------------------------------------------------------------------------

class TestWarpConfig:

    def test_defaults(self):
        cfg = WarpConfig()
        assert cfg.max_landmarks == 100
        assert cfg.min_terms == 3
        assert cfg.max_terms == 10
        assert cfg.error_bound == 0.5
        assert cfg.delta == 0.0

    def test_keyword_only(self):
        with pytest.raises(TypeError):
            WarpConfig(50)

    def test_unknown_keyword(self):
        with pytest.raises(TypeError, match="unexpected"):
            WarpConfig(smoothing=1.0)

    def test_range_checked(self):
        with pytest.raises(ValidationError, match="below minimum"):
            WarpConfig(delta=-1.0)
        with pytest.raises(ValidationError, match="above maximum"):
            WarpConfig(max_terms=11)

    def test_type_checked(self):
        with pytest.raises(ValidationError):
            WarpConfig(max_landmarks=2.5)
        with pytest.raises(ValidationError):
            WarpConfig(min_terms=True)

    def test_int_widened_to_float(self):
        cfg = WarpConfig(delta=4)
        assert cfg.delta == 4.0
        assert isinstance(cfg.delta, float)

    def test_term_order(self):
        with pytest.raises(ValidationError, match="must not exceed"):
            WarpConfig(min_terms=6, max_terms=4)

    def test_replace(self):
        cfg = WarpConfig(delta=2.0)
        other = cfg.replace(max_terms=6)
        assert other.max_terms == 6
        assert other.delta == 2.0
        assert cfg.max_terms == 10

    def test_equality_and_repr(self):
        assert WarpConfig(delta=1.0) == WarpConfig(delta=1.0)
        assert WarpConfig(delta=1.0) != WarpConfig(delta=2.0)
        assert 'delta=1.0' in repr(WarpConfig(delta=1.0))

    def test_from_dict(self):
        cfg = WarpConfig.from_dict({'delta': 3.0, 'chunk_size': None})
        assert cfg.delta == 3.0
        assert cfg.chunk_size == 2048

    def test_from_dict_unknown_key(self):
        with pytest.raises(ValidationError, match="Unknown"):
            WarpConfig.from_dict({'smoothing': 1.0})


class TestWarpConfigYaml:

    def test_top_level(self, tmp_path):
        path = tmp_path / 'warp.yaml'
        path.write_text("max_landmarks: 52\ndelta: 4.0\n")
        cfg = WarpConfig.from_yaml(path)
        assert cfg.max_landmarks == 52
        assert cfg.delta == 4.0

    def test_warp_section(self, tmp_path):
        path = tmp_path / 'app.yaml'
        path.write_text("warp:\n  max_terms: 6\n  error_bound: 1.0\n")
        cfg = WarpConfig.from_yaml(str(path))
        assert cfg.max_terms == 6
        assert cfg.error_bound == 1.0

    def test_empty_file(self, tmp_path):
        path = tmp_path / 'empty.yaml'
        path.write_text("")
        assert WarpConfig.from_yaml(path) == WarpConfig()

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / 'list.yaml'
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ValidationError, match="mapping"):
            WarpConfig.from_yaml(path)

    def test_invalid_value(self, tmp_path):
        path = tmp_path / 'bad.yaml'
        path.write_text("warp:\n  min_terms: 0\n")
        with pytest.raises(ValidationError):
            WarpConfig.from_yaml(path)
