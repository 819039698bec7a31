"""
Tests for EngineConfig validation.
"""

import pytest

from flavorlut.algorithms import Algorithm
from flavorlut.config import EngineConfig


class TestEngineConfig:
    """Test configuration defaults and validation."""

    def test_defaults(self):
        """Defaults match the documented engine limits."""
        config = EngineConfig()
        assert config.max_concurrent_jobs == 2
        assert config.lut_slab_size == 16
        assert config.max_cached_luts == 36
        assert config.default_algorithm is Algorithm.SHEPARDS_METHOD
        assert config.max_input_bytes == 8 * 1024 * 1024
        assert config.max_dimension == 4096
        assert config.gif_disposal == 2

    def test_algorithm_name_is_resolved(self):
        """A string default algorithm is resolved to the enum."""
        assert EngineConfig(default_algorithm="nn").default_algorithm is Algorithm.NEAREST_NEIGHBOR

    @pytest.mark.parametrize(
        "kwargs,match",
        [
            ({"max_concurrent_jobs": 0}, "max_concurrent_jobs"),
            ({"lut_slab_size": 0}, "lut_slab_size"),
            ({"lut_slab_size": 257}, "lut_slab_size"),
            ({"max_cached_luts": 0}, "max_cached_luts"),
            ({"max_input_bytes": 0}, "max_input_bytes"),
            ({"max_dimension": -1}, "max_dimension"),
            ({"gif_disposal": 4}, "gif_disposal"),
        ],
    )
    def test_invalid(self, kwargs, match):
        """Out-of-range values are rejected."""
        with pytest.raises(ValueError, match=match):
            EngineConfig(**kwargs)
