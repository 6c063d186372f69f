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

"""Configuration for tetrahedral discretization."""

import math
from dataclasses import dataclass
from numbers import Integral, Real

from tetramesh.exceptions import ConfigurationError

DEFAULT_THRESHOLD_ANGLE = math.radians(5.0)


@dataclass(frozen=True)
class DiscretizerConfig:
    """Quality and robustness parameters for :func:`~tetramesh.discretize`.

    Parameters
    ----------
    threshold_angle : float
        Minimum acceptable dihedral angle of an emitted tetrahedron, in
        radians. Must lie in ``[0, pi)``. Cells below it are slivers: the
        discretizer tries to flip them away and reports the survivors as
        :class:`~tetramesh.exceptions.QualityWarning`. ``0`` disables
        quality filtering.
    strict : bool
        If True, unresolved slivers raise
        :class:`~tetramesh.exceptions.QualityError` instead of being returned
        as warnings.
    tolerance : float | None
        Absolute distance below which two input vertices are considered
        coincident. ``None`` uses ``1e-9`` times the bounding-box diagonal.
    max_steiner_points : int | None
        Budget of Steiner points for boundary recovery. ``None`` uses
        ``8 * n_faces + 64``.
    max_flip_passes : int
        Number of sweeps of the sliver-removal flip pass.

    Raises
    ------
    ConfigurationError
        If any value is out of range or of the wrong type.

    Examples
    --------
    >>> config = DiscretizerConfig.from_degrees(10.0)
    >>> round(config.threshold_angle, 6)
    0.174533
    >>> DiscretizerConfig(threshold_angle=4.0)
    Traceback (most recent call last):
    ...
    tetramesh.exceptions.ConfigurationError: threshold_angle must lie in [0, pi), got threshold_angle=4.0.
    """

    threshold_angle: float = DEFAULT_THRESHOLD_ANGLE
    strict: bool = False
    tolerance: float | None = None
    max_steiner_points: int | None = None
    max_flip_passes: int = 8

    def __post_init__(self):
        threshold_angle = self.threshold_angle
        if isinstance(threshold_angle, bool) or not isinstance(threshold_angle, Real):
            raise ConfigurationError(
                f"threshold_angle must be a real number, got {threshold_angle=}."
            )
        if not (math.isfinite(threshold_angle) and 0.0 <= threshold_angle < math.pi):
            raise ConfigurationError(
                f"threshold_angle must lie in [0, pi), got {threshold_angle=}."
            )
        object.__setattr__(self, "threshold_angle", float(threshold_angle))

        if not isinstance(self.strict, bool):
            raise ConfigurationError(f"strict must be a bool, got {self.strict=}.")

        tolerance = self.tolerance
        if tolerance is not None:
            if isinstance(tolerance, bool) or not isinstance(tolerance, Real):
                raise ConfigurationError(f"tolerance must be a real number, got {tolerance=}.")
            if not (math.isfinite(tolerance) and tolerance > 0.0):
                raise ConfigurationError(
                    f"tolerance must be positive and finite, got {tolerance=}."
                )
            object.__setattr__(self, "tolerance", float(tolerance))

        for name in ("max_steiner_points", "max_flip_passes"):
            value = getattr(self, name)
            if value is None and name == "max_steiner_points":
                continue
            if isinstance(value, bool) or not isinstance(value, Integral) or value < 0:
                raise ConfigurationError(
                    f"{name} must be a non-negative integer, got {value!r}."
                )

    @classmethod
    def from_degrees(cls, threshold_angle: float, **kwargs) -> "DiscretizerConfig":
        """Build a config from a threshold angle given in degrees."""
        if isinstance(threshold_angle, bool) or not isinstance(threshold_angle, Real):
            raise ConfigurationError(
                f"threshold_angle must be a real number, got {threshold_angle=}."
            )
        return cls(threshold_angle=math.radians(threshold_angle), **kwargs)

    def steiner_budget(self, n_faces: int) -> int:
        """Steiner point budget for a surface with ``n_faces`` faces."""
        if self.max_steiner_points is not None:
            return int(self.max_steiner_points)
        return 8 * n_faces + 64
