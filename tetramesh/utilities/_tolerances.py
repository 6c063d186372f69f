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

"""Dtype-aware numerical tolerances for mesh computations.

A hardcoded absolute tolerance like ``1e-10`` is wrong for meshes whose
coordinates live at a scale far from unity. Two helpers cover the cases the
discretizer needs:

- :func:`safe_eps` returns a floor derived from the dtype alone, used to
  guard divisions (normal normalization, angle computations).
- :func:`coincidence_tolerance` returns a length scaled by the extent of a
  point cloud, used to decide whether two vertices are the same point.

``safe_eps(dtype) = torch.finfo(dtype).tiny ** 0.25``:

==========  =============  =============================
dtype       ``safe_eps``   ``1 / safe_eps ** 2``
==========  =============  =============================
float32     ~3.3e-10       ~9.2e+18  (well below 3.4e38)
float64     ~1.2e-77       ~6.7e+153 (well below 1.8e308)
==========  =============  =============================
"""

import torch

# Relative factor applied to the bounding-box diagonal.
COINCIDENCE_RELATIVE_TOLERANCE = 1e-9


def safe_eps(dtype: torch.dtype) -> float:
    """Return a dtype-aware safe epsilon for preventing division by zero.

    Parameters
    ----------
    dtype : torch.dtype
        The floating-point dtype (e.g. ``torch.float32``,
        ``torch.float64``).

    Returns
    -------
    float
        A small positive floor value equal to
        ``torch.finfo(dtype).tiny ** 0.25``.
    """
    return torch.finfo(dtype).tiny ** 0.25


def bounding_box_diagonal(points: torch.Tensor) -> float:
    """Length of the axis-aligned bounding box diagonal of ``points``.

    Parameters
    ----------
    points : torch.Tensor
        Point coordinates, shape ``(n_points, n_spatial_dims)``.

    Returns
    -------
    float
        The diagonal length, or ``0.0`` for an empty point set.
    """
    if points.shape[0] == 0:
        return 0.0
    extent = points.max(dim=0).values - points.min(dim=0).values
    return torch.linalg.vector_norm(extent).item()


def coincidence_tolerance(points: torch.Tensor, tolerance: float | None = None) -> float:
    """Distance below which two points are treated as coincident.

    Parameters
    ----------
    points : torch.Tensor
        Point coordinates, shape ``(n_points, n_spatial_dims)``.
    tolerance : float | None
        Explicit absolute tolerance. If ``None``, uses
        ``COINCIDENCE_RELATIVE_TOLERANCE`` times the bounding-box diagonal,
        floored at :func:`safe_eps`.

    Returns
    -------
    float
        Absolute distance threshold.
    """
    if tolerance is not None:
        return float(tolerance)
    return max(
        COINCIDENCE_RELATIVE_TOLERANCE * bounding_box_diagonal(points),
        safe_eps(points.dtype),
    )
