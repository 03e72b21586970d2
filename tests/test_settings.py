"""Test module for SplineSettings in arcspline.common

The tests are run using pytest.
"""

import dataclasses

import pytest

from arcspline.common import DEFAULT_SETTINGS, INTEGRATION_METHODS, SplineSettings

###############################################################################
# SplineSettings Tests
###############################################################################


class TestSplineSettings:
    """Test class for SplineSettings functionality."""

    def test_defaults(self):
        """The defaults match the documented values."""
        settings = SplineSettings()

        assert settings.integration_steps == 12
        assert settings.integration_method == "gauss"
        assert settings.epsilon == 1e-4
        assert settings.max_iterations == 10
        assert settings.sample_spacing == 1.0
        assert settings == DEFAULT_SETTINGS

    def test_frozen(self):
        """Settings are immutable."""
        with pytest.raises(dataclasses.FrozenInstanceError):
            DEFAULT_SETTINGS.epsilon = 1.0  # type: ignore[misc]

    def test_replace(self):
        """replace() returns a changed copy."""
        settings = DEFAULT_SETTINGS.replace(sample_spacing=0.5)

        assert settings.sample_spacing == 0.5
        assert DEFAULT_SETTINGS.sample_spacing == 1.0

    @pytest.mark.parametrize(
        "changes",
        [
            {"integration_steps": 0},
            {"integration_method": "romberg"},
            {"integration_method": "simpson", "integration_steps": 1},
            {"integration_method": "simpson38", "integration_steps": 2},
            {"epsilon": 0.0},
            {"max_iterations": 0},
            {"sample_spacing": -1.0},
        ],
    )
    def test_invalid_values(self, changes):
        """Invalid values are rejected on construction."""
        with pytest.raises(ValueError):
            SplineSettings(**changes)

    def test_all_methods_accepted(self):
        """Every known integration method is valid."""
        for method in INTEGRATION_METHODS:
            assert SplineSettings(integration_method=method).integration_method == method

    def test_dict_round_trip(self):
        """to_dict and from_dict are inverse."""
        settings = SplineSettings(integration_steps=30, integration_method="simpson", epsilon=1e-6)

        assert SplineSettings.from_dict(settings.to_dict()) == settings

    def test_from_partial_dict(self):
        """Missing keys take their default values."""
        settings = SplineSettings.from_dict({"epsilon": 1e-3})

        assert settings == DEFAULT_SETTINGS.replace(epsilon=1e-3)
