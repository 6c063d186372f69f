# SPDX-FileCopyrightText: Copyright (c) 2023 - 2026 NVIDIA CORPORATION & AFFILIATES.
# SPDX-FileCopyrightText: All rights reserved.
# SPDX-License-Identifier: Apache-2.0
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Tests for DiscretizerConfig validation."""

import dataclasses
import math

import pytest

from tetramesh.discretization import DEFAULT_THRESHOLD_ANGLE, DiscretizerConfig
from tetramesh.exceptions import ConfigurationError


class TestDiscretizerConfig:
    """Tests for construction-time validation of the configuration."""

    def test_defaults(self):
        """The default threshold is five degrees and strict mode is off."""
        config = DiscretizerConfig()
        assert config.threshold_angle == pytest.approx(math.radians(5.0))
        assert config.threshold_angle == DEFAULT_THRESHOLD_ANGLE
        assert config.strict is False
        assert config.tolerance is None
        assert config.max_flip_passes == 8

    def test_is_frozen(self):
        """Configurations are immutable."""
        config = DiscretizerConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.threshold_angle = 0.1

    @pytest.mark.parametrize("angle", [0.0, 1e-6, 0.5, math.pi - 1e-9])
    def test_valid_thresholds(self, angle):
        """Zero and every angle below pi are accepted."""
        assert DiscretizerConfig(threshold_angle=angle).threshold_angle == angle

    def test_integer_threshold_becomes_float(self):
        """Integer angles are stored as floats."""
        config = DiscretizerConfig(threshold_angle=1)
        assert isinstance(config.threshold_angle, float)

    @pytest.mark.parametrize("angle", [-0.1, math.pi, 4.0, math.inf, math.nan])
    def test_out_of_range_thresholds(self, angle):
        """Negative angles, pi and beyond, and non-finite values are rejected."""
        with pytest.raises(ConfigurationError, match="threshold_angle"):
            DiscretizerConfig(threshold_angle=angle)

    @pytest.mark.parametrize("angle", ["0.1", None, True])
    def test_non_numeric_threshold(self, angle):
        """The threshold must be a real number."""
        with pytest.raises(ConfigurationError, match="real number"):
            DiscretizerConfig(threshold_angle=angle)

    def test_configuration_error_is_value_error(self):
        """ConfigurationError can be caught as ValueError."""
        with pytest.raises(ValueError):
            DiscretizerConfig(threshold_angle=-1.0)

    @pytest.mark.parametrize("tolerance", [0.0, -1e-9, math.inf, "small"])
    def test_invalid_tolerance(self, tolerance):
        """The coincidence tolerance must be positive and finite."""
        with pytest.raises(ConfigurationError, match="tolerance"):
            DiscretizerConfig(tolerance=tolerance)

    def test_invalid_strict(self):
        """strict must be a bool."""
        with pytest.raises(ConfigurationError, match="strict"):
            DiscretizerConfig(strict=1)

    @pytest.mark.parametrize("field", ["max_steiner_points", "max_flip_passes"])
    @pytest.mark.parametrize("value", [-1, 1.5, True])
    def test_invalid_counts(self, field, value):
        """Budgets are non-negative integers."""
        with pytest.raises(ConfigurationError, match=field):
            DiscretizerConfig(**{field: value})

    def test_from_degrees(self):
        """from_degrees converts to radians and forwards other fields."""
        config = DiscretizerConfig.from_degrees(10.0, strict=True)
        assert config.threshold_angle == pytest.approx(math.radians(10.0))
        assert config.strict is True
        with pytest.raises(ConfigurationError):
            DiscretizerConfig.from_degrees(180.0)

    def test_steiner_budget(self):
        """The default budget grows with the surface; an explicit one is fixed."""
        assert DiscretizerConfig().steiner_budget(12) == 8 * 12 + 64
        assert DiscretizerConfig(max_steiner_points=3).steiner_budget(12) == 3
